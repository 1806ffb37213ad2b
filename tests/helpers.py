"""Shared fixtures for tests: in-memory databases, fake clock, quick account creation."""

from datetime import UTC, datetime, timedelta

from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import make_engine
from app.core.security import hash_password
from app.models import Account, Base
from app.models.account import ROLE_USER
from app.services.credential_store import CredentialStore
from app.services.session_issuer import SessionIssuer

TEST_SECRET = "unit-test-secret-0123456789abcdef0123456789"
# Low bcrypt cost keeps tests fast; production uses BCRYPT_ROUNDS.
FAST_ROUNDS = 4


def make_session_factory(url: str = "sqlite://") -> sessionmaker:
    """Fresh database with all tables. In-memory URLs share one connection across threads."""
    if url == "sqlite://":
        engine = make_engine(url, poolclass=StaticPool)
    else:
        engine = make_engine(url)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


class FakeClock:
    """Deterministic clock for token expiry tests."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def make_issuer(clock: FakeClock | None = None, ttl: timedelta = timedelta(hours=1)) -> SessionIssuer:
    if clock is None:
        return SessionIssuer(TEST_SECRET, ttl=ttl)
    return SessionIssuer(TEST_SECRET, ttl=ttl, clock=clock)


def create_account(
    db: Session,
    identifier: str,
    password: str | None = "correct-horse",
    role: str = ROLE_USER,
) -> Account:
    password_hash = hash_password(password, rounds=FAST_ROUNDS) if password else None
    return CredentialStore(db).create_account(identifier, password_hash, role=role)
