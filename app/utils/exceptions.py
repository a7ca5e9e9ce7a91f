"""
Custom Exception Classes for Job Tracker API
"""
from typing import Dict, Any, Optional


class JobTrackerBaseException(Exception):
    """Base exception for Job Tracker API"""

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
        """Convert exception to dictionary for logging"""
        result = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result

    def to_envelope(self) -> Dict[str, Any]:
        """Render as a {data, error} response body"""
        error = {"code": self.error_code, "message": self.message}
        if self.details.get("field"):
            error["field"] = self.details["field"]
        return {"data": None, "error": error}


class ValidationError(JobTrackerBaseException):
    """Raised when request data validation fails"""

    def __init__(self, message: str, field: str = None, value: Any = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if field:
            details['field'] = field
        if value is not None:
            details['invalid_value'] = str(value)
        super().__init__(message, error_code="VALIDATION_FAILED", details=details, **kwargs)


class AuthenticationError(JobTrackerBaseException):
    """Raised when the caller cannot be identified"""

    def __init__(self, message: str = "Authentication required", **kwargs):
        super().__init__(message, error_code="UNAUTHORIZED", **kwargs)


class NotFoundError(JobTrackerBaseException):
    """Raised when a resource does not exist or is not owned by the caller"""

    def __init__(self, message: str = "Resource not found", resource: str = None, resource_id: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if resource:
            details['resource'] = resource
        if resource_id:
            details['resource_id'] = resource_id
        super().__init__(message, error_code="NOT_FOUND", details=details, **kwargs)


class PrerequisiteError(JobTrackerBaseException):
    """Raised when data an operation depends on has not been provided yet"""

    def __init__(self, message: str, error_code: str, **kwargs):
        super().__init__(message, error_code=error_code, **kwargs)


class DatabaseError(JobTrackerBaseException):
    """Raised when database operations fail"""

    def __init__(self, message: str, operation: str = None, collection: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if operation:
            details['operation'] = operation
        if collection:
            details['collection'] = collection
        super().__init__(message, error_code="DATABASE_ERROR", details=details, **kwargs)


class ProposalError(JobTrackerBaseException):
    """Raised when a mapping proposal cannot be generated"""

    def __init__(self, message: str = "Failed to generate mapping proposal", application_id: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if application_id:
            details['application_id'] = application_id
        super().__init__(message, error_code="PROPOSE_FAILED", details=details, **kwargs)


STATUS_CODE_MAPPING = {
    ValidationError: 400,
    PrerequisiteError: 400,
    AuthenticationError: 401,
    NotFoundError: 404,
    DatabaseError: 500,
    ProposalError: 500,
}


def map_to_status_code(exc: JobTrackerBaseException) -> int:
    """Map custom exceptions to HTTP status codes"""
    for exc_type, status_code in STATUS_CODE_MAPPING.items():
        if isinstance(exc, exc_type):
            return status_code
    return 500


class ExceptionContext:
    """Context manager that logs an operation and wraps unexpected failures"""

    def __init__(self, operation: str, logger=None, wrap_as=None, **context):
        self.operation = operation
        self.logger = logger
        self.wrap_as = wrap_as
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

        if not isinstance(exc_val, Exception):
            return False

        # Client-facing domain errors pass through; server-side ones are rewrapped when asked
        if isinstance(exc_val, JobTrackerBaseException):
            if self.wrap_as is None or map_to_status_code(exc_val) < 500 or isinstance(exc_val, self.wrap_as):
                return False

        if self.wrap_as is not None:
            raise self.wrap_as(details=dict(self.context), cause=exc_val) from exc_val

        raise DatabaseError(
            f"Database error in {self.operation}: {exc_val}",
            operation=self.operation,
            details=dict(self.context),
            cause=exc_val
        ) from exc_val
