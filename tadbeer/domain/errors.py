"""Domain Errors - Centralized Exception Hierarchy"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to API response dict"""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details
            }
        }


# Authentication & Authorization Errors
class AuthenticationError(DomainError):
    """Token missing, invalid, or expired"""
    error_code = "AUTHENTICATION_ERROR"
    http_status = 401


class InvalidCredentialsError(AuthenticationError):
    """Email/password pair rejected"""
    error_code = "INVALID_CREDENTIALS"


class AuthorizationError(DomainError):
    """User lacks permission for action"""
    error_code = "AUTHORIZATION_ERROR"
    http_status = 403


class PermissionDeniedError(AuthorizationError):
    """Specific permission denied"""
    error_code = "PERMISSION_DENIED"


# Validation Errors
class ValidationError(DomainError):
    """Input validation failed"""
    error_code = "VALIDATION_ERROR"
    http_status = 400


# Not Found Errors
class NotFoundError(DomainError):
    """Resource not found"""
    error_code = "NOT_FOUND"
    http_status = 404


class TicketNotFoundError(NotFoundError):
    """Ticket not found"""
    error_code = "TICKET_NOT_FOUND"


class CommentNotFoundError(NotFoundError):
    """Comment not found or soft-deleted"""
    error_code = "COMMENT_NOT_FOUND"


class UserNotFoundError(NotFoundError):
    """User not found"""
    error_code = "USER_NOT_FOUND"


class DepartmentNotFoundError(NotFoundError):
    """Department not found"""
    error_code = "DEPARTMENT_NOT_FOUND"


class NotificationNotFoundError(NotFoundError):
    """Notification not found for this recipient"""
    error_code = "NOTIFICATION_NOT_FOUND"


# Conflict Errors
class ConflictError(DomainError):
    """Resource conflict"""
    error_code = "CONFLICT"
    http_status = 409


class AlreadyExistsError(ConflictError):
    """Resource already exists"""
    error_code = "ALREADY_EXISTS"


# External Service Errors
class ExternalServiceError(DomainError):
    """External service failure"""
    error_code = "EXTERNAL_SERVICE_ERROR"
    http_status = 502


class OpenAIError(ExternalServiceError):
    """LLM provider API error"""
    error_code = "OPENAI_ERROR"
