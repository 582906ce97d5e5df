"""
Custom exception hierarchy for structured error handling.

WHY: Custom exceptions provide:
1. Consistent error handling across the API
2. HTTP status code mapping for FastAPI
3. Structured error responses with contextual data
4. No sensitive data leaks in error messages (OWASP A04)

HOW: Every failure a service can report deliberately is one of these
classes. Each carries an HTTP status code and serializes to the same JSON
shape, so the API layer never builds error responses by hand.

Kinds:
- 400 ValidationError / InvalidStateTransitionError: malformed input, bad OTP,
  already-verified accounts
- 401 AuthenticationError: missing/invalid credentials
- 403 AuthorizationError: authenticated but not allowed
- 404 ResourceNotFoundError: resource absent
- 409 ResourceAlreadyExistsError: duplicate
- 5xx DatabaseError / ExternalServiceError: unexpected store or transport failure

IMPORTANT: NEVER raise the base Exception class from service code.
"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    WHY: Centralizing exception handling in a base class gives every error
    the same response shape and status mapping, and one place to filter
    sensitive context.

    All custom exceptions should inherit from this class.
    """

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        """
        Initialize exception with message and context.

        WHY: Context parameters carry debugging information (ids, field
        names) into logs and responses; to_dict() drops sensitive keys.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (overrides class default)
            **context: Additional context for debugging (filtered in to_dict)
        """
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize exception to dictionary for JSON response.

        WHY: Structured error responses let clients handle errors by the
        ``error`` class name instead of parsing messages.

        Returns:
            Dictionary with error details (sensitive fields filtered out)
        """
        sensitive_fields = {"password", "token", "secret", "key", "api_key", "otp"}
        filtered_context = {
            k: v for k, v in self.context.items() if k.lower() not in sensitive_fields
        }

        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "status_code": self.status_code,
            "details": filtered_context if filtered_context else None,
        }


# ============================================================================
# Authentication & Authorization Exceptions
# ============================================================================


class AuthenticationError(AppException):
    """
    Raised when authentication fails.

    HTTP Status: 401 Unauthorized
    """

    status_code = 401
    default_message = "Authentication failed"


class AuthorizationError(AppException):
    """
    Raised when user lacks permissions for an action.

    HTTP Status: 403 Forbidden
    """

    status_code = 403
    default_message = "You do not have permission to perform this action"


class TokenExpiredError(AuthenticationError):
    """
    Raised when JWT token has expired.

    HTTP Status: 401 Unauthorized
    """

    default_message = "Token has expired"


class TokenInvalidError(AuthenticationError):
    """
    Raised when JWT token is malformed or has invalid signature.

    HTTP Status: 401 Unauthorized
    """

    default_message = "Token is invalid"


class InsufficientPermissionsError(AuthorizationError):
    """
    Raised when user's role doesn't allow an action.

    This is the coarse role gate, checked before any resource is loaded.

    HTTP Status: 403 Forbidden
    """

    default_message = "Role not authorized"


class NotProjectMemberError(AuthorizationError):
    """
    Raised when the requester is not a member of the project that owns
    the resource being accessed.

    WHY: Also raised for tickets and comments whose project was deleted;
    nobody is a member of a missing project.

    HTTP Status: 403 Forbidden
    """

    default_message = "Not a member of this project"


# ============================================================================
# Validation & Input Exceptions
# ============================================================================


class ValidationError(AppException):
    """
    Raised when input validation fails.

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    default_message = "Validation failed"


class InputError(ValidationError):
    """
    Raised when input is malformed or doesn't meet constraints.

    Used for malformed identifiers, detected before any lookup.

    HTTP Status: 400 Bad Request
    """

    default_message = "Invalid input"


class OTPInvalidError(ValidationError):
    """
    Raised when a one-time code is absent, wrong, or past its expiry.

    WHY: The three cases share one message so the response does not
    reveal which check failed.

    HTTP Status: 400 Bad Request
    """

    default_message = "Invalid or expired OTP"


# ============================================================================
# Resource Exceptions
# ============================================================================


class ResourceNotFoundError(AppException):
    """
    Raised when a requested resource doesn't exist.

    HTTP Status: 404 Not Found
    """

    status_code = 404
    default_message = "Resource not found"


class ResourceAlreadyExistsError(AppException):
    """
    Raised when attempting to create a resource that already exists.

    HTTP Status: 409 Conflict
    """

    status_code = 409
    default_message = "Resource already exists"


class UserNotFoundError(ResourceNotFoundError):
    """Raised when a user is not found."""

    default_message = "User not found"


class ProjectNotFoundError(ResourceNotFoundError):
    """Raised when a project is not found."""

    default_message = "Project not found"


class TicketNotFoundError(ResourceNotFoundError):
    """Raised when a ticket is not found."""

    default_message = "Ticket not found"


class CommentNotFoundError(ResourceNotFoundError):
    """Raised when a comment is not found."""

    default_message = "Comment not found"


class AlreadyProjectMemberError(ResourceAlreadyExistsError):
    """
    Raised when adding a user who is already in the project's team.

    HTTP Status: 409 Conflict
    """

    default_message = "User already in project"


# ============================================================================
# Business Logic Exceptions
# ============================================================================


class BusinessRuleViolation(AppException):
    """
    Raised when a business rule is violated.

    HTTP Status: 422 Unprocessable Entity
    """

    status_code = 422
    default_message = "Business rule violation"


class InvalidStateTransitionError(BusinessRuleViolation):
    """
    Raised when an invalid state transition is attempted.

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    default_message = "Invalid state transition"


class AccountAlreadyVerifiedError(InvalidStateTransitionError):
    """
    Raised when a registration step targets an account that is already
    verified (send-otp, verify-otp, resend-otp with type=register).

    HTTP Status: 400 Bad Request
    """

    default_message = "Account already verified"


# ============================================================================
# External Service Exceptions
# ============================================================================


class ExternalServiceError(AppException):
    """
    Base exception for external service failures.

    HTTP Status: 502 Bad Gateway
    """

    status_code = 502
    default_message = "External service error"


class EmailServiceError(ExternalServiceError):
    """
    Raised when email sending fails.

    OTP delivery is attempted once inside the request; a failed send fails
    the request.

    HTTP Status: 502 Bad Gateway
    """

    default_message = "Failed to send email"


# ============================================================================
# Database Exceptions
# ============================================================================


class DatabaseError(AppException):
    """
    Raised when database operations fail.

    HTTP Status: 500 Internal Server Error
    """

    status_code = 500
    default_message = "Database error"


# ============================================================================
# Rate Limiting Exceptions
# ============================================================================


class RateLimitExceeded(AppException):
    """
    Raised when rate limit is exceeded.

    HTTP Status: 429 Too Many Requests
    """

    status_code = 429
    default_message = "Rate limit exceeded"
