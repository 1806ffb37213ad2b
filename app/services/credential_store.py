"""Account persistence: lookups, creation with case-insensitive uniqueness, flag updates.

No business policy lives here. Callers decide who may do what; this module only
reads and writes rows and enforces identifier uniqueness.
"""

import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, InvalidInput, NotFound
from app.core.security import is_valid_identifier, normalize_identifier
from app.models import Account
from app.models.account import ROLE_ADMIN, ROLE_USER, ROLES

logger = logging.getLogger(__name__)


class CredentialStore:
    """Data access for Account rows bound to one SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create_account(
        self,
        identifier: str,
        password_hash: str | None,
        role: str = ROLE_USER,
        external_provider: str | None = None,
        external_subject: str | None = None,
    ) -> Account:
        """Insert and commit a new account. Raises Conflict on a duplicate identifier."""
        identifier = normalize_identifier(identifier)
        if not is_valid_identifier(identifier):
            raise InvalidInput("Identifier must be 1-255 characters.")
        if role not in ROLES:
            raise InvalidInput(f"Role must be one of: {', '.join(ROLES)}.")
        if self.find_by_identifier(identifier) is not None:
            raise Conflict(f"Identifier '{identifier}' already exists.")

        account = Account(
            identifier=identifier,
            password_hash=password_hash,
            role=role,
            banned=False,
            balance_cents=0,
            external_provider=external_provider,
            external_subject=external_subject,
        )
        self.session.add(account)
        try:
            self.session.commit()
        except IntegrityError as e:
            # Lost a race against a concurrent insert of the same identifier.
            self.session.rollback()
            raise Conflict(f"Identifier '{identifier}' already exists.") from e
        self.session.refresh(account)
        logger.info(
            "Account created",
            extra={"account_id": account.id, "role": role, "external": external_provider is not None},
        )
        return account

    def find_by_identifier(self, identifier: str) -> Account | None:
        identifier = normalize_identifier(identifier)
        if not identifier:
            return None
        return (
            self.session.query(Account)
            .filter(func.lower(Account.identifier) == identifier.lower())
            .first()
        )

    def find_by_id(self, account_id: int) -> Account | None:
        return self.session.get(Account, account_id)

    def find_by_external(self, provider: str, subject: str) -> Account | None:
        return (
            self.session.query(Account)
            .filter(
                Account.external_provider == provider,
                Account.external_subject == subject,
            )
            .first()
        )

    def list_accounts(self) -> list[Account]:
        return self.session.query(Account).order_by(Account.id.desc()).all()

    def count_admins(self) -> int:
        return self.session.query(Account).filter(Account.role == ROLE_ADMIN).count()

    def set_banned(self, account_id: int, flag: bool) -> Account:
        account = self._require(account_id)
        account.banned = bool(flag)
        self._commit()
        return account

    def set_password_hash(self, account_id: int, password_hash: str) -> Account:
        account = self._require(account_id)
        account.password_hash = password_hash
        self._commit()
        return account

    def _require(self, account_id: int) -> Account:
        account = self.find_by_id(account_id)
        if account is None:
            raise NotFound()
        return account

    def _commit(self) -> None:
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
