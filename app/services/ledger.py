"""Credit ledger: atomic balance mutation with one immutable entry per change.

Each mutation runs in a single transaction that conditionally updates the
cached balance and inserts the ledger entry, so the stored balance always
equals the sum of the account's entries and never drops below zero.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, aliased

from app.core.errors import InsufficientFunds, InvalidInput, NotFound, ServiceUnavailable
from app.models import Account, LedgerEntry
from app.services.money import MAX_BALANCE_CENTS, MAX_DELTA_CENTS

logger = logging.getLogger(__name__)

REASON_MAX_LEN = 255
# One retry after a transaction conflict before giving up.
MAX_ATTEMPTS = 2


@dataclass(frozen=True)
class AuditRow:
    """Ledger entry joined with the subject and actor identifiers."""

    id: int
    account_id: int
    account_identifier: str
    actor_id: int | None
    actor_identifier: str | None
    delta_cents: int
    reason: str
    created_at: datetime


class Ledger:
    """Balance mutations and history for accounts in one SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def apply_delta(
        self,
        account_id: int,
        delta_cents: int,
        actor_id: int | None,
        reason: str,
    ) -> int:
        """
        Add delta_cents to the account balance and record a ledger entry; return the new balance.

        Raises InsufficientFunds if the balance would go negative (nothing is
        written), NotFound for an unknown account, InvalidInput for a zero or
        out-of-range delta, a blank reason or a balance above MAX_BALANCE_CENTS.
        A transaction conflict is retried once; if it fails again
        ServiceUnavailable is raised.
        """
        if isinstance(delta_cents, bool) or not isinstance(delta_cents, int):
            raise InvalidInput("delta_cents must be an integer number of cents.")
        if delta_cents == 0:
            raise InvalidInput("delta_cents must be non-zero.")
        if abs(delta_cents) > MAX_DELTA_CENTS:
            raise InvalidInput(f"delta_cents must be at most {MAX_DELTA_CENTS} in either direction.")
        reason = (reason or "").strip()
        if not reason or len(reason) > REASON_MAX_LEN:
            raise InvalidInput(f"Reason must be 1-{REASON_MAX_LEN} characters.")

        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                return self._apply_once(account_id, delta_cents, actor_id, reason)
            except OperationalError as e:
                self.session.rollback()
                if attempt < MAX_ATTEMPTS:
                    logger.warning(
                        "Ledger transaction conflict; retrying",
                        extra={"account_id": account_id, "attempt": attempt},
                    )
                    continue
                logger.error(
                    "Ledger transaction failed after retry",
                    extra={"account_id": account_id, "error": str(e)[:200]},
                )
                raise ServiceUnavailable("Balance update failed; try again later.") from e
        raise AssertionError("unreachable")

    def _apply_once(
        self,
        account_id: int,
        delta_cents: int,
        actor_id: int | None,
        reason: str,
    ) -> int:
        # The conditional UPDATE locks the row and re-checks the balance, so
        # concurrent mutations on the same account serialize without lost updates.
        result = self.session.execute(
            update(Account)
            .where(Account.id == account_id)
            .where(Account.balance_cents + delta_cents >= 0)
            .where(Account.balance_cents + delta_cents <= MAX_BALANCE_CENTS)
            .values(balance_cents=Account.balance_cents + delta_cents)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.session.rollback()
            account = self.session.get(Account, account_id)
            if account is None:
                raise NotFound()
            if delta_cents > 0:
                logger.info(
                    "Balance mutation rejected: balance ceiling",
                    extra={"account_id": account_id, "delta_cents": delta_cents, "actor_id": actor_id},
                )
                raise InvalidInput(f"Balance must not exceed {MAX_BALANCE_CENTS} cents.")
            logger.info(
                "Balance mutation rejected: insufficient funds",
                extra={"account_id": account_id, "delta_cents": delta_cents, "actor_id": actor_id},
            )
            raise InsufficientFunds()

        try:
            self.session.add(
                LedgerEntry(
                    account_id=account_id,
                    actor_id=actor_id,
                    delta_cents=delta_cents,
                    reason=reason,
                )
            )
            self.session.flush()
            new_balance = (
                self.session.query(Account.balance_cents)
                .filter(Account.id == account_id)
                .scalar()
            )
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info(
            "Balance mutated",
            extra={
                "account_id": account_id,
                "actor_id": actor_id,
                "delta_cents": delta_cents,
                "balance_cents": new_balance,
                "reason": reason,
            },
        )
        return int(new_balance)

    def get_balance(self, account_id: int) -> int:
        balance = (
            self.session.query(Account.balance_cents)
            .filter(Account.id == account_id)
            .scalar()
        )
        if balance is None:
            raise NotFound()
        return int(balance)

    def history(self, account_id: int, limit: int = 100) -> list[LedgerEntry]:
        """Return the account's entries, most recent first."""
        if limit < 1:
            raise InvalidInput("limit must be at least 1.")
        if self.session.get(Account, account_id) is None:
            raise NotFound()
        return (
            self.session.query(LedgerEntry)
            .filter(LedgerEntry.account_id == account_id)
            .order_by(LedgerEntry.id.desc())
            .limit(limit)
            .all()
        )

    def audit_log(self, limit: int = 500) -> list[AuditRow]:
        """Return the most recent entries across all accounts with subject and actor identifiers."""
        if limit < 1:
            raise InvalidInput("limit must be at least 1.")
        subject = aliased(Account)
        actor = aliased(Account)
        rows = (
            self.session.query(LedgerEntry, subject.identifier, actor.identifier)
            .join(subject, subject.id == LedgerEntry.account_id)
            .outerjoin(actor, actor.id == LedgerEntry.actor_id)
            .order_by(LedgerEntry.id.desc())
            .limit(limit)
            .all()
        )
        return [
            AuditRow(
                id=entry.id,
                account_id=entry.account_id,
                account_identifier=subject_identifier,
                actor_id=entry.actor_id,
                actor_identifier=actor_identifier,
                delta_cents=entry.delta_cents,
                reason=entry.reason,
                created_at=entry.created_at,
            )
            for entry, subject_identifier, actor_identifier in rows
        ]

    def reconstructed_balance(self, account_id: int) -> int:
        """Sum of all ledger deltas for the account; equals the cached balance."""
        total = (
            self.session.query(func.coalesce(func.sum(LedgerEntry.delta_cents), 0))
            .filter(LedgerEntry.account_id == account_id)
            .scalar()
        )
        return int(total)
