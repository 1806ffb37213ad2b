"""ORM model for accounts (credentials, role, ban flag and cached balance)."""

from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    BigInteger,
    Integer,
    String,
    UniqueConstraint,
    func,
)

from app.models.base import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Account(Base):
    """
    Account for JWT authentication, role-based access control and credits.

    role: 'admin' or 'user'. balance_cents is the cached sum of the account's
    ledger entries and is never negative. Accounts are never deleted; banned is
    the soft-delete flag.
    """

    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("balance_cents >= 0", name="ck_accounts_balance_non_negative"),
        UniqueConstraint(
            "external_provider", "external_subject", name="uq_accounts_external_identity"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    identifier = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=True)
    role = Column(String(32), nullable=False, default=ROLE_USER)
    banned = Column(Boolean, nullable=False, default=False)
    balance_cents = Column(BigInteger, nullable=False, default=0)
    external_provider = Column(String(64), nullable=True)
    external_subject = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


# Case-insensitive uniqueness of identifiers.
Index("ix_accounts_identifier_lower", func.lower(Account.identifier), unique=True)
