"""
Grammable — Custom Exception Hierarchy
========================================

What:  Application-specific exceptions for each expected failure outcome.
How:   Each exception carries a user-safe message and an optional context dict.
       Global handlers (registered in main.py) turn them into redirects or
       structured JSON error responses.
Who:   Raised by the auth dependency and the services; caught by the handlers.

Exception Hierarchy:
    GrammableError (base)
    ├── NotAuthenticatedError    → 302 redirect to the sign-in page
    ├── AuthenticationError      → 401 Unauthorized (wrong email/password)
    ├── ForbiddenError           → 403 Forbidden (signed in, not the owner)
    ├── NotFoundError            → 404 Not Found
    ├── ValidationError          → 422 Unprocessable Entity (re-render form)
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── FileStorageError         → 500 Internal Server Error
    └── DatabaseError            → 500 Internal Server Error

None of these are retried; each maps to exactly one response.
"""

from typing import Any, Dict, List, Optional


class GrammableError(Exception):
    """
    Base exception for all Grammable application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional info; returned only by handlers that opt in
                  (validation errors), otherwise logged server-side
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class NotAuthenticatedError(GrammableError):
    """
    Raised when an action requires a signed-in user and there is none.

    HTTP: 302 Found, Location: the sign-in page.

    Raised by the `require_user` dependency, which FastAPI resolves before the
    handler body runs, so an anonymous request is redirected before the target
    record is ever looked up.
    """

    def __init__(self, message: str = "You need to sign in before continuing."):
        super().__init__(message=message)


class AuthenticationError(GrammableError):
    """Raised when submitted sign-in credentials do not match a user (HTTP 401)."""

    def __init__(self, message: str = "Invalid email or password."):
        super().__init__(message=message)


class ForbiddenError(GrammableError):
    """
    Raised when a signed-in user acts on a record they do not own.

    HTTP: 403 Forbidden. Only raised after the record is known to exist.
    """

    def __init__(
        self,
        message: str = "You are not allowed to change this gram.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(GrammableError):
    """
    Raised when a requested resource does not exist.

    When:    GET /grams/{id} with an unknown or malformed identifier.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ValidationError(GrammableError):
    """
    Raised when submitted attributes fail validation.

    HTTP: 422 Unprocessable Entity

    `errors` maps field name → list of messages; `form` holds the submitted
    values. Both are returned so the client can re-render the form.

    Example response:
        {
            "error": "validation_error",
            "message": "Message can't be blank",
            "details": {
                "errors": {"message": ["can't be blank"]},
                "form": {"message": ""}
            }
        }
    """

    def __init__(
        self,
        errors: Dict[str, List[str]],
        form: Optional[Dict[str, Any]] = None,
        message: Optional[str] = None,
    ):
        self.errors = errors
        self.form = form or {}
        if message is None:
            message = "; ".join(
                f"{field.replace('_', ' ').capitalize()} {text}"
                for field, texts in errors.items()
                for text in texts
            ) or "Validation failed"
        super().__init__(message=message, context={"errors": errors, "form": self.form})


class RateLimitExceededError(GrammableError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP: 429 Too Many Requests, with a Retry-After header.
    """

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class FileStorageError(GrammableError):
    """
    Raised when file system operations fail (disk full, permission denied).

    HTTP: 500. File paths stay in the server log, never in the response.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(GrammableError):
    """
    Raised when database operations fail unexpectedly.

    HTTP: 500. The client always gets a generic message; the original error
    type is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
