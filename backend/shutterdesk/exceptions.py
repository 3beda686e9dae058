"""
ShutterDesk Backend - Custom Exception Hierarchy
==================================================

What:  Application-specific exceptions for every failure the API reports.
How:   Each exception carries a user-facing message and an optional context
       dict. Global exception handlers (registered in main.py) convert them
       into the JSON error envelope with the matching HTTP status code.
Who:   Raised by services, dependencies and middleware.

Exception Hierarchy:
    ShutterDeskError (base)
    ├── ValidationError               → 400 Bad Request
    ├── AuthenticationError           → 401 Unauthorized (bad credentials)
    │   └── MissingProviderEmail      → 401 (OAuth profile without email)
    ├── AuthorizationError
    │   ├── UnauthenticatedError      → 401 (no principal)
    │   └── ForbiddenError            → 403 (wrong role)
    ├── NotFoundError                 → 404 Not Found
    ├── RateLimitExceededError        → 429 Too Many Requests
    ├── ExternalServiceError          → 502 Bad Gateway (Stripe, Google)
    │   └── InvoiceCreationFailed     → 500 (invoice saga aborted)
    └── PersistenceError              → 500 Internal Server Error

Envelope (every error):
    {"success": false, "error": "<message>", "code": "<code>",
     "details": {...}, "requestId": "a1b2c3d4"}
"""

from typing import Any, Dict, Optional


class ShutterDeskError(Exception):
    """
    Base exception for all ShutterDesk application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; returned only where a handler opts in)
    """

    status_code = 500
    code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ShutterDeskError):
    """
    Raised when client input fails a business rule.

    Schema-level failures (FastAPI's RequestValidationError) are mapped onto
    the same 400 envelope by main.py, so the client sees one format.
    """

    status_code = 400
    code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(ShutterDeskError):
    """
    Raised when credentials cannot be verified.

    User-not-found and wrong-password share one generic message. The only
    specific message is the "use Google login" hint for OAuth-only accounts.
    """

    status_code = 401
    code = "invalid_credentials"

    def __init__(
        self,
        message: str = "Invalid email or password",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MissingProviderEmail(AuthenticationError):
    """The OAuth provider profile did not include an email address."""

    code = "missing_provider_email"

    def __init__(self, provider: str = "google", context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["provider"] = provider
        super().__init__(message=f"No email address returned by {provider}", context=ctx)


class AuthorizationError(ShutterDeskError):
    """Base for role-gate denials."""

    status_code = 403
    code = "forbidden"


class UnauthenticatedError(AuthorizationError):
    """No principal is associated with the request."""

    status_code = 401
    code = "unauthenticated"

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Not authenticated", context=context)


class ForbiddenError(AuthorizationError):
    """The principal is authenticated but does not hold the required role."""

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Access denied", context=context)


class NotFoundError(ShutterDeskError):
    """Raised when a requested resource does not exist."""

    status_code = 404
    code = "not_found"

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


class ExternalServiceError(ShutterDeskError):
    """
    Raised when a third-party call (Stripe, Google) fails.

    The provider's own message is surfaced. Nothing is retried or
    compensated at this level; the invoice saga decides that per step.
    """

    status_code = 502
    code = "external_service_error"

    def __init__(
        self,
        message: str = "An external service request failed",
        service: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if service:
            ctx["service"] = service
        super().__init__(message=message, context=ctx)
        self.service = service


class InvoiceCreationFailed(ExternalServiceError):
    """
    Raised when the invoice saga aborts at any step.

    Carries the underlying message plus the step that failed and the Stripe
    ids known at that point, which is what manual reconciliation needs.
    """

    status_code = 500
    code = "invoice_creation_failed"

    def __init__(
        self,
        message: str = "Failed to create invoice",
        step: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if step:
            ctx["step"] = step
        super().__init__(message=message, service="stripe", context=ctx)
        self.step = step


class PersistenceError(ShutterDeskError):
    """
    Raised when a datastore call fails unexpectedly.

    The message returned to the client is always generic; the underlying
    error type is kept in context and logged server-side only.
    """

    status_code = 500
    code = "server_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(ShutterDeskError):
    """Raised when a client exceeds the per-IP request rate limit."""

    status_code = 429
    code = "rate_limit_exceeded"

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
