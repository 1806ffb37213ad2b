"""Account and ledger schemas for self-service and admin endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from app.services.money import MAX_DELTA_CENTS


class AccountProfile(BaseModel):
    """Account as shown to its holder and to admins (never includes the password hash)."""

    id: int
    identifier: str
    role: str
    balance_cents: int
    balance: str = Field(..., description="Balance formatted with two decimals")
    banned: bool
    created_at: datetime


class AccountsListResponse(BaseModel):
    """Response for GET /admin/accounts."""

    accounts: list[AccountProfile]


class LedgerEntryItem(BaseModel):
    """One balance change."""

    id: int
    account_id: int
    actor_id: int | None
    delta_cents: int
    reason: str
    created_at: datetime

    class Config:
        from_attributes = True


class HistoryResponse(BaseModel):
    entries: list[LedgerEntryItem]


class AuditLogItem(BaseModel):
    """Ledger entry joined with subject and actor identifiers."""

    id: int
    account_id: int
    account_identifier: str
    actor_id: int | None
    actor_identifier: str | None
    delta_cents: int
    reason: str
    created_at: datetime

    class Config:
        from_attributes = True


class AuditLogResponse(BaseModel):
    entries: list[AuditLogItem]


class PasswordChangeRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=8, max_length=128)


class AdjustBalanceRequest(BaseModel):
    """Credit or debit an account. Give exactly one of delta_cents or amount."""

    identifier: str = Field(..., min_length=1, max_length=255, description="Target account identifier")
    delta_cents: int | None = Field(
        default=None,
        ge=-MAX_DELTA_CENTS,
        le=MAX_DELTA_CENTS,
        description="Signed change in cents",
    )
    amount: str | None = Field(
        default=None,
        max_length=32,
        description="Signed decimal amount, e.g. '12.50' or '-3'",
    )
    reason: str = Field(default="admin_adjustment", min_length=1, max_length=255)

    @model_validator(mode="after")
    def exactly_one_amount(self) -> "AdjustBalanceRequest":
        if (self.delta_cents is None) == (self.amount is None):
            raise ValueError("Provide exactly one of delta_cents or amount")
        return self


class BalanceResponse(BaseModel):
    identifier: str
    balance_cents: int
    balance: str


class BanRequest(BaseModel):
    identifier: str = Field(..., min_length=1, max_length=255, description="Target account identifier")
    banned: bool = Field(default=True, description="True to ban, False to unban")
