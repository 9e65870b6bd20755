"""
Error taxonomy shared by the store, the simulated API and the client.

Each error carries the HTTP status it maps to and a stable error code, so the
client can rebuild the same exception from a response envelope.
"""

from typing import Any, Optional


class TalentFlowError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    code: str = "INTERNAL_SERVER_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            data["details"] = self.details
        return data


class ValidationError(TalentFlowError):
    """A required field is missing or a value is malformed. Never retried."""

    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Request validation failed"


class NotFoundError(TalentFlowError):
    """The addressed entity does not exist."""

    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(TalentFlowError):
    """The write conflicts with the current state of the store."""

    status_code = 409
    code = "CONFLICT"
    default_message = "Request conflicts with current state"


class DuplicateKeyError(ConflictError):
    """An entity with the same primary key already exists."""

    code = "DUPLICATE_KEY"
    default_message = "Resource already exists"


class ServerError(TalentFlowError):
    """Generic server-side failure."""


class InjectedServerError(ServerError):
    """Randomized failure produced by the network simulation."""

    code = "INJECTED_SERVER_ERROR"
    default_message = "A random server error occurred! Please try again."


ERRORS_BY_CODE: dict[str, type[TalentFlowError]] = {
    cls.code: cls
    for cls in (
        ValidationError,
        NotFoundError,
        ConflictError,
        DuplicateKeyError,
        ServerError,
        InjectedServerError,
    )
}

ERRORS_BY_STATUS: dict[int, type[TalentFlowError]] = {
    400: ValidationError,
    404: NotFoundError,
    409: ConflictError,
    500: ServerError,
}


def error_from_response(status_code: int, payload: Any) -> TalentFlowError:
    """
    Rebuild a domain error from a simulated HTTP error response.

    Args:
        status_code: HTTP status of the response
        payload: Decoded JSON body (may be None for empty bodies)

    Returns:
        The matching TalentFlowError subclass instance
    """
    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict):
        error = {}

    cls = ERRORS_BY_CODE.get(error.get("code", ""))
    if cls is None:
        cls = ERRORS_BY_STATUS.get(status_code)
    if cls is None:
        cls = ServerError if status_code >= 500 else TalentFlowError

    return cls(error.get("message"), details=error.get("details"))
