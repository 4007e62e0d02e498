# intelligensi/core/errors.py
from __future__ import annotations

from typing import Any, Optional


class ServiceError(Exception):
    """
    Base for errors surfaced to HTTP callers as a `{success: false, error}` envelope.
    """

    status_code: int = 500
    code: str = "internal"

    def __init__(self, message: str, *, details: Optional[Any] = None, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_envelope(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": False, "error": self.message, "code": self.code}
        if self.details is not None:
            body["details"] = self.details
        return body


class InvalidArgument(ServiceError):
    status_code = 400
    code = "invalid-argument"


class InvalidPayload(InvalidArgument):
    """The example payload cannot be turned into an inference target."""


class NoContentError(InvalidArgument):
    def __init__(self, message: str = "No content available to vectorize", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class NotFound(ServiceError):
    status_code = 404
    code = "not-found"


class Internal(ServiceError):
    status_code = 500
    code = "internal"
