"""
Error taxonomy for the records system.

Every error raised by the policy, service and repository layers derives from
RecordsError and carries the HTTP status it maps to. The API layer converts
them to JSON responses; anything else becomes a generic 500.
"""

from typing import Any, Dict, List, Optional


class RecordsError(Exception):
    """Base class for errors that are safe to report to the caller."""

    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}


class Unauthenticated(RecordsError):
    status_code = 401
    default_message = "Not authorized, no token"


class InvalidCredentials(Unauthenticated):
    default_message = "Invalid credentials"


class Forbidden(RecordsError):
    status_code = 403
    default_message = "Access denied"


class NotFound(RecordsError):
    status_code = 404
    default_message = "Not found"


class ValidationError(RecordsError):
    """Field-level validation failure, raised before any mutation."""

    status_code = 400
    default_message = "Validation failed"

    def __init__(self, errors: List[Dict[str, str]], message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}], message=message)

    @classmethod
    def from_pydantic(cls, exc, prefix: str = "") -> "ValidationError":
        """Flatten a pydantic ValidationError into {field, message} pairs."""
        errors = []
        for err in exc.errors():
            loc = [str(part) for part in err.get("loc", ())]
            if loc and loc[0] in ("body", "query", "path", "header"):
                loc = loc[1:]
            field = ".".join(loc)
            if prefix:
                field = f"{prefix}.{field}" if field else prefix
            errors.append({"field": field, "message": err.get("msg", "Invalid value")})
        return cls(errors)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "errors": self.errors}


class DuplicateMember(RecordsError):
    status_code = 400
    default_message = "User is already in the project team"


class UnsupportedFormat(RecordsError):
    status_code = 400
    default_message = "Unsupported report format"


class PayloadTooLarge(RecordsError):
    status_code = 413
    default_message = "Payload too large"


class InternalError(RecordsError):
    status_code = 500
    default_message = "Server error"
