"""Bearer session tokens: JWT issuance, verification and in-memory revocation.

Tokens carry ``sub`` (account id), ``role`` (snapshot at issuance), ``jti``
(token id used for revocation), ``iat`` and ``exp``. A token is valid iff its
signature verifies, ``now < exp`` and its ``jti`` is not revoked.

The revocation set lives in process memory. Entries are kept only until the
token's natural expiry and are dropped on restart, so a revoked but unexpired
token becomes usable again after a restart.
"""

from __future__ import annotations

import logging
import secrets
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import jwt

if TYPE_CHECKING:
    from app.core.config import Settings
    from app.models import Account

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

REASON_EXPIRED = "expired"
REASON_BAD_SIGNATURE = "bad_signature"
REASON_MALFORMED = "malformed"

REQUIRED_CLAIMS = ("sub", "role", "jti", "iat", "exp")


def utcnow() -> datetime:
    return datetime.now(UTC)


class InvalidToken(Exception):
    """Raised by verify(); reason is one of expired, bad_signature, malformed."""

    def __init__(self, reason: str, message: str) -> None:
        self.reason = reason
        self.message = message
        super().__init__(message)


@dataclass(frozen=True)
class IssuedToken:
    token: str
    token_id: str
    expires_at: datetime


@dataclass(frozen=True)
class TokenClaims:
    subject_id: int
    role: str
    token_id: str
    issued_at: datetime
    expires_at: datetime


class RevocationSet:
    """Thread-safe set of revoked token ids, each kept until its token expires."""

    def __init__(self, clock: Clock = utcnow) -> None:
        self._clock = clock
        self._entries: dict[str, datetime] = {}
        self._lock = threading.Lock()

    def add(self, token_id: str, expires_at: datetime) -> None:
        with self._lock:
            self._prune_locked()
            if expires_at > self._clock():
                self._entries[token_id] = expires_at

    def __contains__(self, token_id: object) -> bool:
        with self._lock:
            self._prune_locked()
            return token_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def prune(self) -> int:
        """Drop entries whose token has expired; returns how many were removed."""
        with self._lock:
            return self._prune_locked()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _prune_locked(self) -> int:
        now = self._clock()
        expired = [jti for jti, exp in self._entries.items() if exp <= now]
        for jti in expired:
            del self._entries[jti]
        return len(expired)


class SessionIssuer:
    """Mints and verifies signed, time-limited bearer tokens."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(days=7),
        clock: Clock = utcnow,
    ) -> None:
        if not secret:
            raise ValueError("Token signing secret must be non-empty")
        self._secret = secret
        self.algorithm = algorithm
        self.ttl = ttl
        self._clock = clock
        self.revocations = RevocationSet(clock=clock)

    def issue(self, account: Account) -> IssuedToken:
        """Create a signed token for the account's id and current role."""
        now = self._clock()
        # JWT NumericDate has one-second resolution.
        now = now.replace(microsecond=0)
        expires_at = now + self.ttl
        token_id = uuid.uuid4().hex
        payload: dict[str, Any] = {
            "sub": str(account.id),
            "role": account.role,
            "jti": token_id,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(payload, self._secret, algorithm=self.algorithm)
        return IssuedToken(token=token, token_id=token_id, expires_at=expires_at)

    def verify(self, token: str) -> TokenClaims:
        """
        Check signature, claim shape and expiry; return the decoded claims.
        Raises InvalidToken. Revocation is checked separately with is_revoked().
        """
        if not token:
            raise InvalidToken(REASON_MALFORMED, "Token is empty.")
        try:
            # Expiry is checked below against the injected clock.
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"verify_exp": False, "verify_iat": False, "require": list(REQUIRED_CLAIMS)},
            )
        except jwt.InvalidSignatureError as e:
            raise InvalidToken(REASON_BAD_SIGNATURE, "Token signature is invalid.") from e
        except jwt.PyJWTError as e:
            raise InvalidToken(REASON_MALFORMED, "Token is malformed.") from e

        try:
            subject_id = int(payload["sub"])
            issued_at = datetime.fromtimestamp(int(payload["iat"]), tz=UTC)
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=UTC)
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidToken(REASON_MALFORMED, "Token payload is malformed.") from e
        role = payload["role"]
        token_id = payload["jti"]
        if not isinstance(role, str) or not isinstance(token_id, str) or not token_id:
            raise InvalidToken(REASON_MALFORMED, "Token payload is malformed.")

        if self._clock() >= expires_at:
            raise InvalidToken(REASON_EXPIRED, "Token has expired.")

        return TokenClaims(
            subject_id=subject_id,
            role=role,
            token_id=token_id,
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def revoke(self, token_id: str, expires_at: datetime) -> None:
        self.revocations.add(token_id, expires_at)
        logger.info("Token revoked", extra={"token_id": token_id, "revoked_count": len(self.revocations)})

    def is_revoked(self, token_id: str) -> bool:
        return token_id in self.revocations


def build_session_issuer(settings: Settings) -> SessionIssuer:
    """Build an issuer from settings, generating a per-process secret when none is configured."""
    if settings.JWT_SECRET is not None:
        secret = settings.JWT_SECRET.get_secret_value()
    else:
        secret = secrets.token_urlsafe(64)
        logger.warning(
            "JWT_SECRET is not set; using a random per-process secret. "
            "Sessions will not survive a restart."
        )
    return SessionIssuer(
        secret=secret,
        algorithm=settings.JWT_ALGORITHM,
        ttl=timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    )


@lru_cache
def get_session_issuer() -> SessionIssuer:
    """Process-wide issuer (one secret and one revocation set per process)."""
    from app.core.config import get_settings

    return build_session_issuer(get_settings())
