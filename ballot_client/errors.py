"""API error taxonomy and status mapping."""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Error kinds surfaced by the store client."""

    NETWORK_ERROR = "NETWORK_ERROR"
    SERVER_ERROR = "SERVER_ERROR"
    RATE_LIMIT = "RATE_LIMIT"
    INVALID_DATA = "INVALID_DATA"
    ALREADY_VOTED = "ALREADY_VOTED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class ApiError(Exception):
    """Typed failure of a store request."""

    def __init__(self, kind: ErrorKind, message: str, status: int = 0, code: str | None = None):
        self.kind = kind
        self.message = message
        self.status = status
        self.code = code
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"ApiError({self.kind}, {self.message!r}, status={self.status})"


# PostgREST code for "no rows" on single-object reads
NOT_FOUND_CODE = "PGRST116"

_MESSAGES = {
    409: (ErrorKind.ALREADY_VOTED, "You have already voted"),
    422: (ErrorKind.INVALID_DATA, "Invalid request data"),
    429: (ErrorKind.RATE_LIMIT, "Too many requests. Please try again later"),
    500: (ErrorKind.SERVER_ERROR, "Server error. Please try again"),
    502: (ErrorKind.SERVER_ERROR, "Server error. Please try again"),
    503: (ErrorKind.SERVER_ERROR, "Server error. Please try again"),
}


def map_status(status: int, payload: dict | None = None) -> ApiError:
    """Map an HTTP status (and optional store payload) to an ApiError."""
    payload = payload if isinstance(payload, dict) else {}
    code = payload.get("code")
    if status in _MESSAGES:
        kind, message = _MESSAGES[status]
        return ApiError(kind, message, status, code)
    return ApiError(ErrorKind.UNKNOWN_ERROR, payload.get("message") or "An error occurred", status, code)


def is_not_found(exc: ApiError) -> bool:
    """Check if error is the store's "no rows" condition."""
    return exc.code == NOT_FOUND_CODE
