"""
Error hierarchy shared by the persistence layer, the dispatcher and resources.
Every error carries the HTTP status it maps to; 5xx messages are never sent to clients.
"""

from typing import Any


class ApiError(Exception):
    """Base exception for all backend errors."""

    http_status: int = 500

    def __init__(self, message: str, http_status: int | None = None):
        super().__init__(message)
        self.message = message
        if http_status is not None:
            self.http_status = http_status

    def to_response(self) -> dict[str, Any]:
        """Client-safe JSON payload."""
        if self.http_status >= 500:
            return {"message": INTERNAL_ERROR_MESSAGE}
        return {"message": self.message}


INTERNAL_ERROR_MESSAGE = "internal server error"


# ─── Persistence ────────────────────────────────────────────────

class TypeMismatch(ApiError):
    """The persistence façade was handed something it cannot map. A programming error."""


class StatementFailure(ApiError):
    """The driver rejected or failed a statement."""

    def __init__(self, message: str, cause: BaseException | None = None):
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.cause = cause


# ─── Request path ───────────────────────────────────────────────

class ValidationFailure(ApiError):
    http_status = 400


class AuthFailure(ApiError):
    http_status = 401


class RouteNotFound(ApiError):
    http_status = 404

    def __init__(self, message: str = "endpoint not found"):
        super().__init__(message)


class CapabilityNotImplemented(ApiError):
    http_status = 405

    def __init__(self, message: str = "method not allowed for endpoint"):
        super().__init__(message)


class MalformedBody(ApiError):
    http_status = 400

    def __init__(self, message: str = "malformed data for endpoint"):
        super().__init__(message)


# ─── External collaborators ─────────────────────────────────────

class IdentityProviderError(ApiError):
    """The OAuth2 identity provider refused or failed an exchange."""

    http_status = 502
