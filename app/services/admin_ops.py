"""Privileged operations. Callers must pass authenticate + require_admin first."""

import logging

from app.core.errors import Forbidden, NotFound
from app.models import Account
from app.services.access_guard import AuthContext
from app.services.credential_store import CredentialStore
from app.services.ledger import AuditRow, Ledger

logger = logging.getLogger(__name__)


class AdminOperations:
    """Composes the credential store and ledger for admin actions."""

    def __init__(self, store: CredentialStore, ledger: Ledger) -> None:
        self.store = store
        self.ledger = ledger

    def _resolve(self, target_identifier: str) -> Account:
        account = self.store.find_by_identifier(target_identifier)
        if account is None:
            raise NotFound(f"Account '{target_identifier}' not found.")
        return account

    def adjust_balance(
        self,
        actor: AuthContext,
        target_identifier: str,
        delta_cents: int,
        reason: str,
    ) -> tuple[Account, int]:
        """Apply the change to the target account; return the account and its new balance."""
        target = self._resolve(target_identifier)
        new_balance = self.ledger.apply_delta(target.id, delta_cents, actor.account_id, reason)
        logger.info(
            "Admin balance adjustment",
            extra={
                "admin_id": actor.account_id,
                "target_id": target.id,
                "delta_cents": delta_cents,
                "balance_cents": new_balance,
            },
        )
        return target, new_balance

    def ban_account(self, actor: AuthContext, target_identifier: str, flag: bool) -> Account:
        """Set the ban flag. Idempotent; an admin cannot ban their own account."""
        target = self._resolve(target_identifier)
        if flag and target.id == actor.account_id:
            raise Forbidden("Admins cannot ban their own account.")
        if bool(target.banned) == bool(flag):
            return target
        account = self.store.set_banned(target.id, flag)
        logger.info(
            "Admin %s account",
            "banned" if flag else "unbanned",
            extra={"admin_id": actor.account_id, "target_id": target.id},
        )
        return account

    def list_accounts(self) -> list[Account]:
        return self.store.list_accounts()

    def list_audit_log(self, limit: int) -> list[AuditRow]:
        return self.ledger.audit_log(limit)

    def get_account_balance(self, target_identifier: str) -> tuple[Account, int]:
        target = self._resolve(target_identifier)
        return target, self.ledger.get_balance(target.id)
