"""
Custom Exception Classes for the Resumatch API
"""
from typing import Dict, Any
from fastapi import HTTPException


class ResumatchBaseException(Exception):
    """Base exception for the Resumatch API"""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
        cause: Exception = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/response"""
        result = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class ValidationError(ResumatchBaseException):
    """Raised when request data validation fails"""

    def __init__(self, message: str, field: str = None, value: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if field:
            details['field'] = field
        if value is not None:
            details['invalid_value'] = str(value)
        super().__init__(message, error_code="VALIDATION_ERROR", details=details, **kwargs)


class ConflictError(ResumatchBaseException):
    """Raised when a unique resource already exists"""

    def __init__(self, message: str, field: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if field:
            details['field'] = field
        super().__init__(message, error_code="CONFLICT_ERROR", details=details, **kwargs)


class DatabaseError(ResumatchBaseException):
    """Raised when database operations fail"""

    def __init__(self, message: str, operation: str = None, collection: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if operation:
            details['operation'] = operation
        if collection:
            details['collection'] = collection
        super().__init__(message, error_code="DATABASE_ERROR", details=details, **kwargs)


class ProcessingError(ResumatchBaseException):
    """Raised when resume/job processing fails"""

    def __init__(self, message: str, document_id: str = None, document_type: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if document_id:
            details['document_id'] = document_id
        if document_type:
            details['document_type'] = document_type
        super().__init__(message, error_code="PROCESSING_ERROR", details=details, **kwargs)


class ConfigurationError(ResumatchBaseException):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, config_key: str = None, config_value: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if config_key:
            details['config_key'] = config_key
        if config_value is not None:
            details['config_value'] = str(config_value)
        super().__init__(message, error_code="CONFIGURATION_ERROR", details=details, **kwargs)


class AuthenticationError(ResumatchBaseException):
    """Raised when authentication fails"""

    def __init__(self, message: str = "Authentication required", **kwargs):
        super().__init__(message, error_code="AUTHENTICATION_ERROR", **kwargs)


class AuthorizationError(ResumatchBaseException):
    """Raised when authorization fails"""

    def __init__(self, message: str = "Insufficient permissions", resource: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if resource:
            details['resource'] = resource
        super().__init__(message, error_code="AUTHORIZATION_ERROR", details=details, **kwargs)


class RateLimitError(ResumatchBaseException):
    """Raised when rate limits are exceeded"""

    def __init__(self, message: str, limit: int = None, window: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if limit:
            details['limit'] = limit
        if window:
            details['window'] = window
        super().__init__(message, error_code="RATE_LIMIT_ERROR", details=details, **kwargs)


STATUS_CODE_MAPPING = {
    ValidationError: 400,
    ConfigurationError: 400,
    AuthenticationError: 401,
    AuthorizationError: 403,
    ConflictError: 409,
    RateLimitError: 429,
    DatabaseError: 500,
    ProcessingError: 500,
}


def map_to_http_exception(exc: ResumatchBaseException) -> HTTPException:
    """Map custom exceptions to HTTP exceptions"""
    status_code = STATUS_CODE_MAPPING.get(type(exc), 500)

    detail = {
        "error": exc.to_dict(),
        "message": exc.message
    }

    return HTTPException(status_code=status_code, detail=detail)


class ExceptionContext:
    """Context manager for handling exceptions with additional context"""

    def __init__(self, operation: str, logger=None, **context):
        self.operation = operation
        self.logger = logger
        self.context = context

    def __enter__(self):
        if self.logger:
            self.logger.debug(f"Starting operation: {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            if self.logger:
                self.logger.debug(f"Operation completed: {self.operation}", extra=self.context)
            return False

        if self.logger:
            self.logger.error(
                f"Operation failed: {self.operation} - {exc_val}",
                extra={**self.context, "exception_type": exc_type.__name__}
            )

        # Custom and HTTP exceptions pass through untouched
        if isinstance(exc_val, (ResumatchBaseException, HTTPException)):
            return False

        if isinstance(exc_val, (KeyError, ValueError, TypeError)):
            raise ValidationError(
                f"Validation error in {self.operation}: {str(exc_val)}",
                details=dict(self.context),
                cause=exc_val
            ) from exc_val
        if "database" in str(exc_val).lower() or "mongo" in str(exc_val).lower():
            raise DatabaseError(
                f"Database error in {self.operation}: {str(exc_val)}",
                operation=self.operation,
                details=dict(self.context),
                cause=exc_val
            ) from exc_val
        raise ProcessingError(
            f"Processing error in {self.operation}: {str(exc_val)}",
            details=dict(self.context),
            cause=exc_val
        ) from exc_val
