"""Registration errors.

Every error carries the HTTP status and a short title used by the API layer
to build the error response. ``source`` names the attribute that caused it.
"""

from __future__ import annotations

from typing import Any


class RegistrationError(Exception):
    """Base class for expected registration failures."""

    status_code = 400
    title = "Registration Error"

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.source = source

    @property
    def type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        """Serialize for an error response body."""
        return {
            "type": self.type,
            "status": self.status_code,
            "title": self.title,
            "message": self.message,
            "source": self.source,
        }


class ValidationError(RegistrationError):
    """Attributes failed validation.

    Attributes:
        errors: One entry per failing field, with ``source`` and ``message``.
    """

    title = "Validation Error"

    def __init__(self, message: str, errors: list[dict[str, str]] | None = None) -> None:
        self.errors = errors or []
        source = self.errors[0]["source"] if self.errors else None
        super().__init__(message, source)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class NotFoundError(RegistrationError):
    """A requested or referenced record does not exist."""

    status_code = 404
    title = "Not Found"


class UnauthorizedError(RegistrationError):
    """The caller tried to modify a record it does not own."""

    status_code = 403
    title = "Unauthorized"


class InvalidParameterError(RegistrationError):
    """A parameter violates a precondition (e.g. double registration)."""

    title = "Invalid Parameter"
