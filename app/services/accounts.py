"""Account flows: password and external login, logout, signup, password change, bootstrap admin."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import TYPE_CHECKING

from app.core.errors import BadCredentials, Conflict, Forbidden, InvalidInput
from app.core.security import (
    DUMMY_PASSWORD_HASH,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    hash_password,
    is_valid_password,
    verify_password,
)
from app.models import Account
from app.models.account import ROLE_ADMIN, ROLE_USER
from app.services.access_guard import AuthContext
from app.services.credential_store import CredentialStore
from app.services.session_issuer import IssuedToken, SessionIssuer

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from app.core.config import Settings

logger = logging.getLogger(__name__)

EXTERNAL_PROVIDER_MAX_LEN = 64
EXTERNAL_SUBJECT_MAX_LEN = 255


@dataclass(frozen=True)
class ExternalIdentityClaims:
    """Identity already verified by an external provider (e.g. a chat-platform login)."""

    provider: str
    subject: str
    identifier: str | None = None


def login(
    store: CredentialStore,
    issuer: SessionIssuer,
    identifier: str,
    password: str,
) -> IssuedToken:
    """
    Verify identifier and password and issue a token.

    Unknown identifier, passwordless account and wrong password all raise the
    same BadCredentials. A banned account with the correct password gets Forbidden.
    """
    account = store.find_by_identifier(identifier)
    if account is None:
        # Burn the same bcrypt cost so timing does not reveal unknown identifiers.
        verify_password(password, DUMMY_PASSWORD_HASH)
        logger.info("Login failed", extra={"identifier": identifier[:255]})
        raise BadCredentials()
    if not verify_password(password, account.password_hash):
        logger.info("Login failed", extra={"identifier": identifier[:255]})
        raise BadCredentials()
    if account.banned:
        logger.info("Login refused for banned account", extra={"account_id": account.id})
        raise Forbidden("Account is banned.")
    issued = issuer.issue(account)
    logger.info("Login succeeded", extra={"account_id": account.id, "token_id": issued.token_id})
    return issued


def login_external(
    store: CredentialStore,
    issuer: SessionIssuer,
    claims: ExternalIdentityClaims,
) -> IssuedToken:
    """Issue a token for an externally verified identity, creating the account on first use."""
    provider = (claims.provider or "").strip().lower()
    subject = (claims.subject or "").strip()
    if not provider or len(provider) > EXTERNAL_PROVIDER_MAX_LEN:
        raise InvalidInput(f"provider must be 1-{EXTERNAL_PROVIDER_MAX_LEN} characters.")
    if not subject or len(subject) > EXTERNAL_SUBJECT_MAX_LEN:
        raise InvalidInput(f"subject must be 1-{EXTERNAL_SUBJECT_MAX_LEN} characters.")

    account = store.find_by_external(provider, subject)
    if account is None:
        fallback = f"{provider}:{subject}"
        preferred = (claims.identifier or "").strip() or fallback
        try:
            account = _create_external_account(store, preferred, provider, subject)
        except Conflict:
            if preferred == fallback:
                raise
            # Preferred identifier taken by another account; use the stable one.
            account = _create_external_account(store, fallback, provider, subject)
    if account.banned:
        logger.info("External login refused for banned account", extra={"account_id": account.id})
        raise Forbidden("Account is banned.")
    issued = issuer.issue(account)
    logger.info(
        "External login succeeded",
        extra={"account_id": account.id, "provider": provider, "token_id": issued.token_id},
    )
    return issued


def logout(issuer: SessionIssuer, context: AuthContext) -> None:
    """Revoke the caller's token until its natural expiry."""
    issuer.revoke(context.token_id, context.expires_at)
    logger.info("Logout", extra={"account_id": context.account_id, "token_id": context.token_id})


def signup(store: CredentialStore, identifier: str, password: str) -> Account:
    """Create a password account with role user. Raises Conflict on duplicate identifier."""
    _check_password(password)
    return store.create_account(identifier, hash_password(password), role=ROLE_USER)


def change_password(
    store: CredentialStore,
    context: AuthContext,
    current_password: str,
    new_password: str,
) -> None:
    account = store.find_by_id(context.account_id)
    if account is None or not verify_password(current_password, account.password_hash):
        raise BadCredentials("Current password is incorrect.")
    _check_password(new_password)
    store.set_password_hash(account.id, hash_password(new_password))
    logger.info("Password changed", extra={"account_id": account.id})


def ensure_bootstrap_admin(db: Session, settings: Settings) -> Account | None:
    """
    Create the bootstrap admin when no admin account exists; return it, or None if
    an admin already exists. An existing non-admin account with the configured
    identifier is left untouched.
    """
    store = CredentialStore(db)
    if store.count_admins() > 0:
        return None
    identifier = settings.ADMIN_IDENTIFIER
    existing = store.find_by_identifier(identifier)
    if existing is not None:
        logger.warning(
            "No admin account exists and ADMIN_IDENTIFIER '%s' is taken by a non-admin; "
            "create an admin with app.scripts.create_user",
            identifier,
        )
        return None

    if settings.ADMIN_PASSWORD is not None:
        password = settings.ADMIN_PASSWORD.get_secret_value()
    else:
        password = secrets.token_urlsafe(18)
        logger.warning(
            "ADMIN_PASSWORD is not set; generated bootstrap admin password for '%s': %s",
            identifier,
            password,
        )
    account = store.create_account(identifier, hash_password(password), role=ROLE_ADMIN)
    logger.info("Created bootstrap admin", extra={"account_id": account.id})
    return account


def _create_external_account(
    store: CredentialStore,
    identifier: str,
    provider: str,
    subject: str,
) -> Account:
    try:
        return store.create_account(
            identifier,
            password_hash=None,
            role=ROLE_USER,
            external_provider=provider,
            external_subject=subject,
        )
    except Conflict:
        # A concurrent first login for the same identity may have won the insert.
        existing = store.find_by_external(provider, subject)
        if existing is None:
            raise
        return existing


def _check_password(password: str) -> None:
    if not is_valid_password(password):
        raise InvalidInput(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters."
        )
