"""Error taxonomy shared by services and the HTTP layer.

Every expected failure is a ServiceError subclass with a stable machine-readable
``kind``. The API renders them as ``{"detail": {"kind": ..., "message": ...}}``.
"""


class ServiceError(Exception):
    """Base class for expected, caller-recoverable failures."""

    kind = "service_error"
    status_code = 500
    default_message = "Service error."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


class BadCredentials(ServiceError):
    """Login failed. Never says whether the account exists."""

    kind = "bad_credentials"
    status_code = 401
    default_message = "Invalid identifier or password."


class Unauthenticated(ServiceError):
    """Missing, invalid, expired or revoked token."""

    kind = "unauthenticated"
    status_code = 401
    default_message = "Not authenticated."


class Forbidden(ServiceError):
    """Valid token but insufficient role, or banned account."""

    kind = "forbidden"
    status_code = 403
    default_message = "Forbidden."


class Conflict(ServiceError):
    kind = "conflict"
    status_code = 409
    default_message = "Identifier already exists."


class NotFound(ServiceError):
    kind = "not_found"
    status_code = 404
    default_message = "Account not found."


class InsufficientFunds(ServiceError):
    """Mutation would drive a balance below zero."""

    kind = "insufficient_funds"
    status_code = 409
    default_message = "Insufficient balance."


class InvalidInput(ServiceError):
    kind = "invalid_input"
    status_code = 422
    default_message = "Invalid input."


class ServiceUnavailable(ServiceError):
    """Storage failure; callers may retry."""

    kind = "service_unavailable"
    status_code = 503
    default_message = "Service temporarily unavailable."
