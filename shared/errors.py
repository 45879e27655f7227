from __future__ import annotations

from typing import Optional


class ExpensesError(Exception):
    """Base error; `status_code` is what the HTTP boundary answers with."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str, *, status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.upstream_status = status
        self.upstream_body = body

    def to_payload(self) -> dict:
        return {"error": self.error, "message": self.message}


class ConfigurationError(ExpensesError):
    error = "Configuration error"


class UpstreamError(ExpensesError):
    """Megaplan answered with an error or could not be reached."""


class UpstreamNotFound(UpstreamError):
    status_code = 404
    error = "Deal not found"


class UpstreamRequestError(UpstreamError):
    pass


class RenderServiceError(ExpensesError):
    error = "Ошибка генерации PDF"


class RenderServiceUnavailable(RenderServiceError):
    status_code = 503
    error = "PDF service unavailable. Please check if Gotenberg is running."


class WriteBackFailure(ExpensesError):
    """Raised by the write-back; callers report it instead of failing the request."""

    error = "Field update failed"
