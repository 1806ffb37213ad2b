"""
Create an account (e.g. first admin). Run from project root:
  python -m app.scripts.create_user IDENTIFIER PASSWORD [role]
Example:
  python -m app.scripts.create_user admin your-secure-password admin
"""
import argparse
import logging
import sys

from sqlalchemy.orm import Session

from app.core.errors import ServiceError
from app.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    hash_password,
    is_valid_identifier,
    is_valid_password,
)
from app.models.account import ROLES, ROLE_USER
from app.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None, db: Session | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Credits API account.")
    parser.add_argument("identifier", help="Login name or email (1-255 chars)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("role", nargs="?", default=ROLE_USER, choices=list(ROLES))
    args = parser.parse_args(argv)

    identifier = args.identifier.strip()
    if not is_valid_identifier(identifier):
        print("Invalid identifier length.", file=sys.stderr)
        return 1
    if not is_valid_password(args.password):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    owns_session = db is None
    if db is None:
        from app.core.database import SessionLocal

        db = SessionLocal()
    try:
        store = CredentialStore(db)
        try:
            store.create_account(identifier, hash_password(args.password), role=args.role)
        except ServiceError as e:
            print(e.message, file=sys.stderr)
            return 1
        print(f"Created account '{identifier}' with role '{args.role}'.")
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
