"""
Credit or debit an account from the command line (operator counterpart of
POST /admin/balance). Run from project root:
  python -m app.scripts.adjust_balance IDENTIFIER AMOUNT [--reason REASON]
Example:
  python -m app.scripts.adjust_balance alice 12.50 --reason topup
  python -m app.scripts.adjust_balance alice -3 --reason refund
"""
import argparse
import logging
import sys

from sqlalchemy.orm import Session

from app.core.errors import NotFound, ServiceError
from app.services.credential_store import CredentialStore
from app.services.ledger import Ledger
from app.services.money import format_cents, parse_amount_to_cents

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None, db: Session | None = None) -> int:
    parser = argparse.ArgumentParser(description="Adjust an account balance and record a ledger entry.")
    parser.add_argument("identifier", help="Target account identifier")
    parser.add_argument("amount", help="Signed decimal amount, e.g. 12.50 or -3")
    parser.add_argument("--reason", default="operator_adjustment", help="Ledger reason tag")
    args = parser.parse_args(argv)

    owns_session = db is None
    if db is None:
        from app.core.database import SessionLocal

        db = SessionLocal()
    try:
        try:
            delta_cents = parse_amount_to_cents(args.amount)
            account = CredentialStore(db).find_by_identifier(args.identifier)
            if account is None:
                raise NotFound(f"Account '{args.identifier}' not found.")
            # System action: no actor account.
            new_balance = Ledger(db).apply_delta(account.id, delta_cents, None, args.reason)
        except ServiceError as e:
            print(f"{e.kind}: {e.message}", file=sys.stderr)
            return 1
        print(f"{account.identifier} new balance: {format_cents(new_balance)}")
        return 0
    finally:
        if owns_session:
            db.close()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    sys.exit(main())
