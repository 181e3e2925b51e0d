"""Error taxonomy shared by services and the HTTP layer.

Services raise these; ``app.main`` renders them as ``{"message", "kind"}``
bodies with the matching status code.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base class for errors that map to a client-visible response."""

    kind: str = "InternalError"
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        return {"message": self.message, "kind": self.kind, **self.extra}


class ValidationFailed(AppError):
    kind = "ValidationError"
    status_code = 400
    default_message = "Invalid request"


class Unauthorized(AppError):
    kind = "Unauthorized"
    status_code = 401
    default_message = "Not authenticated"


class Forbidden(AppError):
    kind = "Forbidden"
    status_code = 403
    default_message = "Access denied"


class NotFound(AppError):
    kind = "NotFound"
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    kind = "Conflict"
    status_code = 409
    default_message = "Request conflicts with current state"


class InvalidCart(Conflict):
    kind = "InvalidCart"
    default_message = "Cart is not valid for this restaurant"


class InvalidTransition(Conflict):
    kind = "InvalidTransition"
    default_message = "Order status transition is not allowed"


class PaymentRejected(AppError):
    kind = "PaymentRejected"
    status_code = 400
    default_message = "Payment verification failed"


class InvalidAmount(AppError):
    kind = "InvalidAmount"
    status_code = 400
    default_message = "Amount must be greater than 0"


class GatewayUnavailable(AppError):
    """Payment provider unreachable or timed out; safe to retry."""

    kind = "GatewayUnavailable"
    status_code = 503
    default_message = "Payment provider is unavailable, please retry"
    retry_after_seconds: int = 5

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        extra.setdefault("retryable", True)
        super().__init__(message, **extra)


class StorageError(AppError):
    kind = "InternalError"
    status_code = 500
    default_message = "Internal server error"


STATUS_KINDS: dict[int, str] = {
    400: ValidationFailed.kind,
    401: Unauthorized.kind,
    403: Forbidden.kind,
    404: NotFound.kind,
    409: Conflict.kind,
}


def kind_for_status(status_code: int) -> str:
    """Return the error kind used for a bare HTTP status code."""
    return STATUS_KINDS.get(status_code, "InternalError" if status_code >= 500 else "ValidationError")
