"""
Error taxonomy for RecipeShare.

Every error the API reports on purpose is an AppError; the handler in
recipeshare.app renders it into the `{success: false, message, ...}` envelope.
"""
from typing import List, Optional


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""
    status_code = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def payload(self) -> dict:
        return {"success": False, "message": self.message}


class ValidationFailure(AppError):
    """400 - malformed or out-of-range input, with per-field messages."""
    status_code = 400
    default_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[dict]] = None):
        super().__init__(message)
        self.errors = errors or []

    def payload(self) -> dict:
        body = super().payload()
        if self.errors:
            body["errors"] = self.errors
        return body


def field_errors(errors) -> List[dict]:
    """Flatten pydantic/FastAPI error dicts into `[{field, message}]`."""
    flattened = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        message = err.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        flattened.append({"field": ".".join(loc) or None, "message": message})
    return flattened


class AuthenticationRequired(AppError):
    """401 - no session, or the session is invalid or expired."""
    status_code = 401
    default_message = "Please log in to access this resource"

    def __init__(self, message: Optional[str] = None, return_to: str = "/", wants_json: bool = True):
        super().__init__(message)
        self.return_to = return_to
        self.wants_json = wants_json


class AuthorizationDenied(AppError):
    """403 - valid session, but not allowed to touch this resource."""
    status_code = 403
    default_message = "You do not have permission to perform this action"


class NotFound(AppError):
    """404 - missing entity or malformed id."""
    status_code = 404
    default_message = "Resource not found"


class Conflict(AppError):
    """409 - a unique key is already taken."""
    status_code = 409
    default_message = "Resource already exists"


class UpstreamFailure(AppError):
    """500 - store unavailable, upload I/O error and similar."""
    status_code = 500
    default_message = "Server error"
