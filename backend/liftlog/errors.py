# liftlog/errors.py
"""Domain errors raised by the set-logging flow.

Each error carries the HTTP status the routers answer with. Everything up to
the set-record insert is fail-fast; metrics problems never surface as one of
these (they become a warning string on the response instead).
"""
from __future__ import annotations
from typing import Any


class SetLogError(Exception):
    status_code = 400
    error = "Request failed"

    def __init__(self, details: Any = None, *, error: str | None = None):
        self.details = details
        if error is not None:
            self.error = error
        super().__init__(f"{self.error}: {details}" if details is not None else self.error)

    def as_detail(self) -> dict[str, Any]:
        detail: dict[str, Any] = {"error": self.error}
        if self.details is not None:
            detail["details"] = self.details
        return detail


class Unauthorized(SetLogError):
    status_code = 401
    error = "Unauthorized"


class Forbidden(SetLogError):
    status_code = 403
    error = "Forbidden"


class ValidationError(SetLogError):
    error = "Invalid request"


class MissingField(ValidationError):
    def __init__(self, field: str, details: Any = None):
        self.field = field
        super().__init__(details if details is not None else f"{field} is required",
                         error=f"Missing required field: {field}")


class UnsupportedBlockType(ValidationError):
    def __init__(self, block_type: Any, valid: list[str]):
        self.block_type = block_type
        super().__init__(f"Must be one of: {', '.join(valid)}",
                         error=f"Invalid block_type: {block_type}")


class InvalidState(SetLogError):
    error = "Invalid state"


class NotFound(SetLogError):
    status_code = 404
    error = "Not found"


class StorageFailure(SetLogError):
    error = "Storage failure"

    def __init__(self, details: Any = None, *, error: str | None = None, status_code: int = 500):
        self.status_code = status_code
        super().__init__(details, error=error)


class MetricsWarning(Exception):
    """Metrics could not be saved; the set record itself is already durable."""


def db_error_text(e: Exception) -> str:
    """Driver message of a SQLAlchemy error, without the statement or help link."""
    orig = getattr(e, "orig", None)
    return str(orig) if orig is not None else type(e).__name__
