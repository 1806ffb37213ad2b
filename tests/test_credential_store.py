"""Unit tests for app.services.credential_store: uniqueness, lookups and flag updates."""

import unittest

from app.core.errors import Conflict, InvalidInput, NotFound
from app.services.credential_store import CredentialStore
from tests.helpers import create_account, make_session_factory


class CredentialStoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.store = CredentialStore(self.db)

    def tearDown(self) -> None:
        self.db.close()


class TestCreateAccount(CredentialStoreTestCase):
    def test_defaults(self) -> None:
        account = self.store.create_account("alice", "hash")
        self.assertIsNotNone(account.id)
        self.assertEqual(account.role, "user")
        self.assertFalse(account.banned)
        self.assertEqual(account.balance_cents, 0)
        self.assertIsNotNone(account.created_at)

    def test_identifier_is_stripped(self) -> None:
        account = self.store.create_account("  bob  ", None)
        self.assertEqual(account.identifier, "bob")

    def test_duplicate_identifier_case_insensitive_conflict(self) -> None:
        self.store.create_account("Alice@Example.com", "hash")
        with self.assertRaises(Conflict):
            self.store.create_account("alice@example.COM", "hash")

    def test_invalid_role(self) -> None:
        with self.assertRaises(InvalidInput):
            self.store.create_account("carol", "hash", role="superuser")

    def test_blank_identifier(self) -> None:
        with self.assertRaises(InvalidInput):
            self.store.create_account("   ", "hash")


class TestLookups(CredentialStoreTestCase):
    def test_find_by_identifier_case_insensitive(self) -> None:
        created = create_account(self.db, "Alice")
        found = self.store.find_by_identifier("ALICE")
        self.assertIsNotNone(found)
        self.assertEqual(found.id, created.id)

    def test_find_missing_returns_none(self) -> None:
        self.assertIsNone(self.store.find_by_identifier("ghost"))
        self.assertIsNone(self.store.find_by_identifier(""))
        self.assertIsNone(self.store.find_by_id(999))

    def test_find_by_external(self) -> None:
        created = self.store.create_account(
            "tg-user", None, external_provider="telegram", external_subject="12345"
        )
        self.assertEqual(self.store.find_by_external("telegram", "12345").id, created.id)
        self.assertIsNone(self.store.find_by_external("telegram", "999"))

    def test_list_accounts_newest_first_and_count_admins(self) -> None:
        create_account(self.db, "first")
        create_account(self.db, "second", role="admin")
        self.assertEqual([a.identifier for a in self.store.list_accounts()], ["second", "first"])
        self.assertEqual(self.store.count_admins(), 1)


class TestUpdates(CredentialStoreTestCase):
    def test_set_banned(self) -> None:
        account = create_account(self.db, "alice")
        self.store.set_banned(account.id, True)
        self.assertTrue(self.store.find_by_id(account.id).banned)
        self.store.set_banned(account.id, False)
        self.assertFalse(self.store.find_by_id(account.id).banned)

    def test_set_password_hash(self) -> None:
        account = create_account(self.db, "alice")
        self.store.set_password_hash(account.id, "new-hash")
        self.assertEqual(self.store.find_by_id(account.id).password_hash, "new-hash")

    def test_updates_on_unknown_id_raise_not_found(self) -> None:
        with self.assertRaises(NotFound):
            self.store.set_banned(404, True)
        with self.assertRaises(NotFound):
            self.store.set_password_hash(404, "x")


if __name__ == "__main__":
    unittest.main()
