"""Admin endpoints: accounts, balance adjustments, bans and the audit log (admin only)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.v1.auth import get_credential_store, require_admin
from app.core.config import get_settings
from app.core.database import get_db
from app.models import Account
from app.schemas.account import (
    AccountProfile,
    AccountsListResponse,
    AdjustBalanceRequest,
    AuditLogItem,
    AuditLogResponse,
    BalanceResponse,
    BanRequest,
)
from app.services.access_guard import AuthContext
from app.services.admin_ops import AdminOperations
from app.services.credential_store import CredentialStore
from app.services.ledger import Ledger
from app.services.money import format_cents, parse_amount_to_cents

router = APIRouter()


def get_admin_operations(
    store: Annotated[CredentialStore, Depends(get_credential_store)],
    db: Annotated[Session, Depends(get_db)],
) -> AdminOperations:
    return AdminOperations(store, Ledger(db))


def _profile(account: Account) -> AccountProfile:
    return AccountProfile(
        id=account.id,
        identifier=account.identifier,
        role=account.role,
        balance_cents=account.balance_cents,
        balance=format_cents(account.balance_cents),
        banned=account.banned,
        created_at=account.created_at,
    )


@router.get("/accounts", response_model=AccountsListResponse)
def list_accounts(
    _admin: Annotated[AuthContext, Depends(require_admin)],
    ops: Annotated[AdminOperations, Depends(get_admin_operations)],
) -> AccountsListResponse:
    """List all accounts, newest first."""
    return AccountsListResponse(accounts=[_profile(a) for a in ops.list_accounts()])


@router.get("/accounts/{identifier}/balance", response_model=BalanceResponse)
def get_account_balance(
    identifier: str,
    _admin: Annotated[AuthContext, Depends(require_admin)],
    ops: Annotated[AdminOperations, Depends(get_admin_operations)],
) -> BalanceResponse:
    """Return one account's balance."""
    account, balance = ops.get_account_balance(identifier)
    return BalanceResponse(
        identifier=account.identifier,
        balance_cents=balance,
        balance=format_cents(balance),
    )


@router.post("/balance", response_model=BalanceResponse)
def adjust_balance(
    body: AdjustBalanceRequest,
    admin: Annotated[AuthContext, Depends(require_admin)],
    ops: Annotated[AdminOperations, Depends(get_admin_operations)],
) -> BalanceResponse:
    """
    Credit (positive) or debit (negative) an account and record a ledger entry.
    Returns 409 insufficient_funds if the balance would go below zero.
    """
    if body.delta_cents is not None:
        delta_cents = body.delta_cents
    else:
        delta_cents = parse_amount_to_cents(body.amount or "")
    account, new_balance = ops.adjust_balance(admin, body.identifier, delta_cents, body.reason)
    return BalanceResponse(
        identifier=account.identifier,
        balance_cents=new_balance,
        balance=format_cents(new_balance),
    )


@router.post("/ban", response_model=AccountProfile)
def ban_account(
    body: BanRequest,
    admin: Annotated[AuthContext, Depends(require_admin)],
    ops: Annotated[AdminOperations, Depends(get_admin_operations)],
) -> AccountProfile:
    """Ban or unban an account. The ban applies to the account's very next request."""
    account = ops.ban_account(admin, body.identifier, body.banned)
    return _profile(account)


@router.get("/audit-log", response_model=AuditLogResponse)
def list_audit_log(
    _admin: Annotated[AuthContext, Depends(require_admin)],
    ops: Annotated[AdminOperations, Depends(get_admin_operations)],
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> AuditLogResponse:
    """Return recent ledger entries across all accounts with subject and actor identifiers."""
    settings = get_settings()
    limit = min(limit or settings.AUDIT_LOG_DEFAULT_LIMIT, settings.MAX_PAGE_LIMIT)
    rows = ops.list_audit_log(limit)
    return AuditLogResponse(entries=[AuditLogItem.model_validate(r) for r in rows])
