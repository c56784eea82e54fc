"""
PawSpot API — Custom Exception Hierarchy
=========================================

What:  Application-specific exceptions for the error scenarios of the API.
How:   Each exception carries a user-facing message and an optional context
       dict. Global exception handlers (registered in main.py) catch these and
       return `{"success": false, "error": message}` with the mapped status.
Who:   Raised by services and routes; caught by the global handlers.

Exception Hierarchy:
    PawSpotError (base)
    ├── ValidationError      → 400 Bad Request (entity constraint violated)
    ├── BadUploadError       → 400 Bad Request (missing/non-image/oversized file)
    ├── NotFoundError        → 404 Not Found
    ├── FileStorageError     → 500 Internal Server Error (upload write failed)
    └── DatabaseError        → 500 Internal Server Error
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence


@dataclass(frozen=True)
class FieldViolation:
    """A single failed entity constraint."""

    field: str
    message: str


class PawSpotError(Exception):
    """
    Base exception for all PawSpot application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, never returned to the client)
    """

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PawSpotError):
    """
    Raised when input breaks an entity constraint or a query cannot be built.

    HTTP: 400 Bad Request

    Field-level failures are kept on `violations`; the message joins their
    messages with ", " so a single response lists every problem, e.g.
    "Please add a name, Rating can not be more than 5".
    """

    status_code = 400

    def __init__(
        self,
        message: Optional[str] = None,
        field: Optional[str] = None,
        violations: Optional[Sequence[FieldViolation]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.violations: List[FieldViolation] = list(violations or [])
        if field and not self.violations and message:
            self.violations.append(FieldViolation(field=field, message=message))
        if message is None:
            message = ", ".join(v.message for v in self.violations) or "Validation failed"
        ctx = context or {}
        if self.violations:
            ctx["fields"] = sorted({v.field for v in self.violations})
        super().__init__(message=message, context=ctx)
        self.field = field


class BadUploadError(PawSpotError):
    """
    Raised when a photo upload is rejected before anything is written.

    When: no file part, a non-image MIME type, or a file over MAX_FILE_UPLOAD.
    HTTP: 400 Bad Request
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Please upload a file",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(PawSpotError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; the service layer converts that
    None into this exception so routes never see a missing record.

    HTTP: 404 Not Found
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "Location",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} not found with id of {resource_id}"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class FileStorageError(PawSpotError):
    """
    Raised when writing an uploaded photo to disk fails.

    When: disk full, permission denied, upload directory not writable.
    HTTP: 500 Internal Server Error. The OS error stays in `context`.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "Problem with file upload",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(PawSpotError):
    """
    Raised when a database operation fails unexpectedly.

    The message returned to the client is always generic; driver details
    are logged server-side only.

    HTTP: 500 Internal Server Error
    """

    status_code = 500

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
