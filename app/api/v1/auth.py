"""JWT login/logout/signup endpoints and auth dependencies (get_auth_context, require_admin)."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_db
from app.core.errors import NotFound, Unauthenticated
from app.core.security import constant_time_equals
from app.schemas.account import AccountProfile
from app.schemas.auth import (
    ExternalLoginRequest,
    LoginRequest,
    OkResponse,
    SignupRequest,
    TokenResponse,
    VerifyResponse,
)
from app.services import access_guard, accounts
from app.services.access_guard import AuthContext
from app.services.credential_store import CredentialStore
from app.services.money import format_cents
from app.services.session_issuer import SessionIssuer, get_session_issuer

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBearer(auto_error=False)


def get_credential_store(db: Annotated[Session, Depends(get_db)]) -> CredentialStore:
    return CredentialStore(db)


def get_auth_context(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
    issuer: Annotated[SessionIssuer, Depends(get_session_issuer)],
) -> AuthContext:
    """Dependency: require a valid, unrevoked Bearer JWT for a non-banned account. Raises 401/403."""
    token = credentials.credentials if credentials is not None else None
    return access_guard.authenticate(token, store, issuer)


def require_admin(
    context: Annotated[AuthContext, Depends(get_auth_context)],
) -> AuthContext:
    """Dependency: require an authenticated account whose live role is 'admin'. Raises 403 otherwise."""
    access_guard.require_admin(context)
    return context


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    store: Annotated[CredentialStore, Depends(get_credential_store)],
    issuer: Annotated[SessionIssuer, Depends(get_session_issuer)],
) -> TokenResponse:
    """
    Authenticate with identifier and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <access_token>
    """
    issued = accounts.login(store, issuer, body.identifier, body.password)
    return TokenResponse(access_token=issued.token, expires_at=issued.expires_at)


@router.post("/external", response_model=TokenResponse)
def login_external(
    body: ExternalLoginRequest,
    store: Annotated[CredentialStore, Depends(get_credential_store)],
    issuer: Annotated[SessionIssuer, Depends(get_session_issuer)],
    x_external_auth_key: Annotated[str | None, Header()] = None,
) -> TokenResponse:
    """
    Exchange externally verified identity claims for a token (account created on first use).
    Only for the trusted identity bridge holding EXTERNAL_AUTH_KEY.
    """
    configured = get_settings().EXTERNAL_AUTH_KEY
    if configured is None:
        raise NotFound("External login is not enabled.")
    if not x_external_auth_key or not constant_time_equals(
        x_external_auth_key, configured.get_secret_value()
    ):
        raise Unauthenticated("Invalid external auth key.")
    claims = accounts.ExternalIdentityClaims(
        provider=body.provider,
        subject=body.subject,
        identifier=body.identifier,
    )
    issued = accounts.login_external(store, issuer, claims)
    return TokenResponse(access_token=issued.token, expires_at=issued.expires_at)


@router.post("/signup", response_model=AccountProfile, status_code=status.HTTP_201_CREATED)
def signup(
    body: SignupRequest,
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> AccountProfile:
    """Create a user account with a password. Disabled when SIGNUP_ENABLED is false."""
    if not get_settings().SIGNUP_ENABLED:
        raise NotFound("Signup is disabled.")
    account = accounts.signup(store, body.identifier, body.password)
    return AccountProfile(
        id=account.id,
        identifier=account.identifier,
        role=account.role,
        balance_cents=account.balance_cents,
        balance=format_cents(account.balance_cents),
        banned=account.banned,
        created_at=account.created_at,
    )


@router.post("/logout", response_model=OkResponse)
def logout(
    context: Annotated[AuthContext, Depends(get_auth_context)],
    issuer: Annotated[SessionIssuer, Depends(get_session_issuer)],
) -> OkResponse:
    """Revoke the presented token. Later requests with it get 401."""
    accounts.logout(issuer, context)
    return OkResponse()


@router.get("/verify", response_model=VerifyResponse)
def verify(
    context: Annotated[AuthContext, Depends(get_auth_context)],
) -> VerifyResponse:
    """Check the presented token; 401 if invalid, expired or revoked."""
    return VerifyResponse(
        subject_id=context.account_id,
        identifier=context.identifier,
        role=context.role,
        expires_at=context.expires_at,
    )
