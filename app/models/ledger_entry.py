"""ORM model for immutable ledger entries (one per balance mutation)."""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Integer, String

from app.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class LedgerEntry(Base):
    """
    One applied balance change. Never updated or deleted.

    The sum of delta_cents over an account's entries equals Account.balance_cents.
    actor_id is the account that performed the change (an admin for manual
    adjustments); NULL for system actions.
    """

    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    actor_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    delta_cents = Column(BigInteger, nullable=False)
    reason = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
