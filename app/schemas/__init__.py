"""Pydantic request/response schemas."""

from app.schemas.account import (
    AccountProfile,
    AccountsListResponse,
    AdjustBalanceRequest,
    AuditLogItem,
    AuditLogResponse,
    BalanceResponse,
    BanRequest,
    HistoryResponse,
    LedgerEntryItem,
    PasswordChangeRequest,
)
from app.schemas.auth import (
    ExternalLoginRequest,
    LoginRequest,
    OkResponse,
    SignupRequest,
    TokenResponse,
    VerifyResponse,
)
from app.schemas.health import HealthResponse

__all__ = [
    "AccountProfile",
    "AccountsListResponse",
    "AdjustBalanceRequest",
    "AuditLogItem",
    "AuditLogResponse",
    "BalanceResponse",
    "BanRequest",
    "ExternalLoginRequest",
    "HealthResponse",
    "HistoryResponse",
    "LedgerEntryItem",
    "LoginRequest",
    "OkResponse",
    "PasswordChangeRequest",
    "SignupRequest",
    "TokenResponse",
    "VerifyResponse",
]
