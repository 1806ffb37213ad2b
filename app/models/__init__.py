"""SQLAlchemy ORM models."""

from app.models.account import Account
from app.models.base import Base
from app.models.ledger_entry import LedgerEntry

__all__ = ["Account", "Base", "LedgerEntry"]
