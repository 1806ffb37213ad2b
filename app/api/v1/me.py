"""Self-service endpoints for the authenticated account."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.v1.auth import get_auth_context, get_credential_store
from app.core.config import get_settings
from app.core.database import get_db
from app.core.errors import Unauthenticated
from app.schemas.account import (
    AccountProfile,
    HistoryResponse,
    LedgerEntryItem,
    PasswordChangeRequest,
)
from app.schemas.auth import OkResponse
from app.services import accounts
from app.services.access_guard import AuthContext
from app.services.credential_store import CredentialStore
from app.services.ledger import Ledger
from app.services.money import format_cents

router = APIRouter()


@router.get("", response_model=AccountProfile)
def get_me(
    context: Annotated[AuthContext, Depends(get_auth_context)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> AccountProfile:
    """Return the caller's profile and balance."""
    account = store.find_by_id(context.account_id)
    if account is None:
        raise Unauthenticated("Account not found.")
    return AccountProfile(
        id=account.id,
        identifier=account.identifier,
        role=account.role,
        balance_cents=account.balance_cents,
        balance=format_cents(account.balance_cents),
        banned=account.banned,
        created_at=account.created_at,
    )


@router.get("/history", response_model=HistoryResponse)
def get_my_history(
    context: Annotated[AuthContext, Depends(get_auth_context)],
    db: Annotated[Session, Depends(get_db)],
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> HistoryResponse:
    """Return the caller's ledger entries, most recent first."""
    settings = get_settings()
    limit = min(limit or settings.HISTORY_DEFAULT_LIMIT, settings.MAX_PAGE_LIMIT)
    entries = Ledger(db).history(context.account_id, limit)
    return HistoryResponse(entries=[LedgerEntryItem.model_validate(e) for e in entries])


@router.post("/password", response_model=OkResponse)
def change_my_password(
    body: PasswordChangeRequest,
    context: Annotated[AuthContext, Depends(get_auth_context)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> OkResponse:
    """Change the caller's password. Existing tokens stay valid until they expire."""
    accounts.change_password(store, context, body.current_password, body.new_password)
    return OkResponse()
