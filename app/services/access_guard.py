"""Authentication and authorization checks applied before protected operations."""

import logging
from dataclasses import dataclass
from datetime import datetime

from app.core.errors import Forbidden, Unauthenticated
from app.models.account import ROLE_ADMIN
from app.services.credential_store import CredentialStore
from app.services.session_issuer import REASON_EXPIRED, InvalidToken, SessionIssuer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    """Authenticated caller. role is the live account role, token_role the claim at issuance."""

    account_id: int
    identifier: str
    role: str
    token_role: str
    token_id: str
    expires_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def authenticate(
    token: str | None,
    store: CredentialStore,
    issuer: SessionIssuer,
) -> AuthContext:
    """
    Resolve a bearer token to an AuthContext.

    Raises Unauthenticated for a missing, invalid, expired or revoked token or a
    vanished account, and Forbidden for a banned account. Ban and role are read
    from the account row on every call, never from the token.
    """
    if not token:
        raise Unauthenticated("Not authenticated.")
    try:
        claims = issuer.verify(token)
    except InvalidToken as e:
        if e.reason == REASON_EXPIRED:
            raise Unauthenticated("Token has expired.") from e
        raise Unauthenticated("Invalid token.") from e

    if issuer.is_revoked(claims.token_id):
        raise Unauthenticated("Token has been revoked.")

    account = store.find_by_id(claims.subject_id)
    if account is None:
        raise Unauthenticated("Account not found.")
    if account.banned:
        logger.info("Rejected request from banned account", extra={"account_id": account.id})
        raise Forbidden("Account is banned.")

    return AuthContext(
        account_id=account.id,
        identifier=account.identifier,
        role=account.role,
        token_role=claims.role,
        token_id=claims.token_id,
        expires_at=claims.expires_at,
    )


def require_admin(context: AuthContext) -> None:
    """Raise Forbidden unless the caller's live role is admin."""
    if not context.is_admin:
        if context.token_role == ROLE_ADMIN:
            logger.warning(
                "Stale admin token rejected after demotion",
                extra={"account_id": context.account_id},
            )
        raise Forbidden("Admin access required.")
