from __future__ import annotations

"""Error taxonomy for the view designer core.

Two families live here:

- :class:`ErrorKind` classifies why a routine edit operation did not change
  anything. Edit operations never raise for these; they return a failed
  ``OperationResult`` tagged with the kind.
- :class:`ViewDesignerError` and its subclasses are raised by collaborators
  (document parsing, the view repository client). The document controller
  catches them at its boundary and converts them into failed results.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Reason an edit operation left all state untouched."""

    NOT_FOUND = "not_found"
    INVALID_OPERATION = "invalid_operation"
    UNCHANGED = "unchanged"


class ViewDesignerError(Exception):
    """Base exception for all view designer errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.cause = cause


class ModelError(ViewDesignerError):
    """Raised when view JSON cannot be turned into a document model."""
    pass


class RepositoryError(ViewDesignerError):
    """Base exception for view repository failures.

    Carries the HTTP status (0 when no response was received) and the
    project/view the request targeted, so the presentation layer can render a
    meaningful message.
    """

    def __init__(self, message: str, status: int = 0,
                 project: Optional[str] = None, view_path: Optional[str] = None,
                 cause: Optional[Exception] = None) -> None:
        super().__init__(message, cause)
        self.status = status
        self.project = project
        self.view_path = view_path

    def __str__(self) -> str:
        base = super().__str__()
        if self.project and self.view_path:
            return f"[{self.project}:{self.view_path}] {base}"
        if self.project:
            return f"[{self.project}] {base}"
        return base


class NotFoundError(RepositoryError):
    """The project or view does not exist (HTTP 404)."""
    pass


class UnauthorizedError(RepositoryError):
    """The request carried no valid session (HTTP 401)."""
    pass


class ForbiddenError(RepositoryError):
    """The session lacks Designer permissions (HTTP 403)."""
    pass


class ValidationError(RepositoryError):
    """The Gateway rejected the request payload (HTTP 400)."""
    pass


class ConflictError(RepositoryError):
    """The view changed on the Gateway since it was loaded (HTTP 409).

    ``current_etag`` holds the Gateway's version token when it reported one.
    """

    def __init__(self, message: str, status: int = 409,
                 project: Optional[str] = None, view_path: Optional[str] = None,
                 current_etag: Optional[str] = None,
                 cause: Optional[Exception] = None) -> None:
        super().__init__(message, status, project, view_path, cause)
        self.current_etag = current_etag


class PayloadTooLargeError(RepositoryError):
    """The serialized view exceeded the Gateway body limit (HTTP 413)."""
    pass


class ServerError(RepositoryError):
    """The Gateway failed while handling the request (HTTP 5xx)."""
    pass


class NetworkError(RepositoryError):
    """No response was received (connection refused, timeout, DNS...)."""
    pass
