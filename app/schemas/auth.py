"""Request/response schemas for auth endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Credentials for login."""

    identifier: str = Field(..., min_length=1, max_length=255, description="Login name or email")
    password: str = Field(..., min_length=1, max_length=128, description="Password")


class SignupRequest(BaseModel):
    """Credentials for a new password account."""

    identifier: str = Field(..., min_length=1, max_length=255, description="Login name or email")
    password: str = Field(..., min_length=8, max_length=128, description="Password")


class ExternalLoginRequest(BaseModel):
    """Identity claims already verified by an external provider."""

    provider: str = Field(..., min_length=1, max_length=64, description="Identity provider, e.g. telegram")
    subject: str = Field(..., min_length=1, max_length=255, description="Stable user id at the provider")
    identifier: str | None = Field(
        default=None,
        max_length=255,
        description="Preferred login name; defaults to provider:subject",
    )


class TokenResponse(BaseModel):
    """JWT access token returned after successful login."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_at: datetime = Field(..., description="Token expiry (UTC)")


class VerifyResponse(BaseModel):
    """Result of GET /auth/verify for a valid token."""

    valid: bool = True
    subject_id: int
    identifier: str
    role: str
    expires_at: datetime


class OkResponse(BaseModel):
    ok: bool = True
