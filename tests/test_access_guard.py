"""Unit tests for app.services.access_guard: token checks plus live ban and role re-checks."""

import unittest

from app.core.errors import Forbidden, Unauthenticated
from app.models import Account
from app.services.access_guard import authenticate, require_admin
from app.services.credential_store import CredentialStore
from tests.helpers import FakeClock, create_account, make_issuer, make_session_factory


class AccessGuardTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session_factory()()
        self.store = CredentialStore(self.db)
        self.clock = FakeClock()
        self.issuer = make_issuer(self.clock)
        self.user = create_account(self.db, "alice")
        self.admin = create_account(self.db, "root", role="admin")

    def tearDown(self) -> None:
        self.db.close()


class TestAuthenticate(AccessGuardTestCase):
    def test_valid_token(self) -> None:
        issued = self.issuer.issue(self.user)
        context = authenticate(issued.token, self.store, self.issuer)
        self.assertEqual(context.account_id, self.user.id)
        self.assertEqual(context.identifier, "alice")
        self.assertEqual(context.role, "user")
        self.assertEqual(context.token_id, issued.token_id)
        self.assertEqual(context.expires_at, issued.expires_at)

    def test_missing_token(self) -> None:
        for token in (None, ""):
            with self.assertRaises(Unauthenticated):
                authenticate(token, self.store, self.issuer)

    def test_expired_token_message(self) -> None:
        token = self.issuer.issue(self.user).token
        self.clock.advance(hours=2)
        with self.assertRaises(Unauthenticated) as ctx:
            authenticate(token, self.store, self.issuer)
        self.assertIn("expired", ctx.exception.message)

    def test_invalid_token(self) -> None:
        with self.assertRaises(Unauthenticated) as ctx:
            authenticate("garbage.token.value", self.store, self.issuer)
        self.assertEqual(ctx.exception.message, "Invalid token.")

    def test_revoked_token(self) -> None:
        issued = self.issuer.issue(self.user)
        self.issuer.revoke(issued.token_id, issued.expires_at)
        with self.assertRaises(Unauthenticated) as ctx:
            authenticate(issued.token, self.store, self.issuer)
        self.assertIn("revoked", ctx.exception.message)

    def test_other_tokens_unaffected_by_revocation(self) -> None:
        first = self.issuer.issue(self.user)
        second = self.issuer.issue(self.user)
        self.issuer.revoke(first.token_id, first.expires_at)
        self.assertEqual(authenticate(second.token, self.store, self.issuer).account_id, self.user.id)

    def test_banned_account_forbidden_on_next_request(self) -> None:
        token = self.issuer.issue(self.user).token
        authenticate(token, self.store, self.issuer)
        self.store.set_banned(self.user.id, True)
        with self.assertRaises(Forbidden):
            authenticate(token, self.store, self.issuer)
        self.store.set_banned(self.user.id, False)
        self.assertEqual(authenticate(token, self.store, self.issuer).account_id, self.user.id)

    def test_vanished_account(self) -> None:
        ghost = Account(id=4242, identifier="ghost", role="admin")
        token = self.issuer.issue(ghost).token
        with self.assertRaises(Unauthenticated):
            authenticate(token, self.store, self.issuer)


class TestRequireAdmin(AccessGuardTestCase):
    def test_admin_allowed(self) -> None:
        context = authenticate(self.issuer.issue(self.admin).token, self.store, self.issuer)
        self.assertIsNone(require_admin(context))

    def test_user_forbidden(self) -> None:
        context = authenticate(self.issuer.issue(self.user).token, self.store, self.issuer)
        with self.assertRaises(Forbidden):
            require_admin(context)

    def test_demoted_admin_token_is_not_trusted(self) -> None:
        token = self.issuer.issue(self.admin).token
        self.admin.role = "user"
        self.db.commit()
        context = authenticate(token, self.store, self.issuer)
        self.assertEqual(context.token_role, "admin")
        self.assertEqual(context.role, "user")
        with self.assertRaises(Forbidden):
            require_admin(context)

    def test_promoted_user_gets_admin_without_new_token(self) -> None:
        token = self.issuer.issue(self.user).token
        self.user.role = "admin"
        self.db.commit()
        require_admin(authenticate(token, self.store, self.issuer))


if __name__ == "__main__":
    unittest.main()
