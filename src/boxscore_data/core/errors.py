"""
Domain errors raised by the store, analytics and orchestrator.

Every error carries a stable code, a human-readable message and optional
detail so callers (CLI, an HTTP layer) can render them uniformly:
{
    "error": {
        "code": "ERROR_CODE",
        "message": "Human-readable message",
        "detail": "Optional additional context"
    }
}
"""

from typing import Any


class BoxScoreDataError(Exception):
    """Base error for boxscore-data."""

    def __init__(self, code: str, message: str, detail: str | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        return {"error": {"code": self.code, "message": self.message, "detail": self.detail}}


class NotFoundError(BoxScoreDataError):
    """Lookup whose contract requires the entity to exist found nothing."""

    def __init__(self, resource: str, identifier: Any, context: str | None = None):
        detail = f"{resource} with ID {identifier}"
        if context:
            detail = f"{detail} in {context}"
        super().__init__("NOT_FOUND", f"{resource} not found", detail)
        self.resource = resource
        self.identifier = identifier


class ValidationError(BoxScoreDataError):
    """Invalid input."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__("VALIDATION_ERROR", message, detail)
