"""
Custom Exception Classes for the Prospect Matcher API
"""
from typing import Dict, Any
from fastapi import HTTPException


class MatcherBaseException(Exception):
    """Base exception for Prospect Matcher API"""

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


class ValidationError(MatcherBaseException):
    """Raised when request data validation fails"""

    def __init__(self, message: str, field: str = None, value: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if field:
            details['field'] = field
        if value is not None:
            details['invalid_value'] = str(value)
        super().__init__(message, error_code="VALIDATION_ERROR", details=details, **kwargs)


class NotFoundError(MatcherBaseException):
    """Raised when a referenced prospect or position does not exist"""

    def __init__(self, message: str, resource: str = None, resource_id: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if resource:
            details['resource'] = resource
        if resource_id:
            details['resource_id'] = resource_id
        super().__init__(message, error_code="NOT_FOUND", details=details, **kwargs)


class DatabaseError(MatcherBaseException):
    """Raised when record store operations fail"""

    def __init__(self, message: str, operation: str = None, collection: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if operation:
            details['operation'] = operation
        if collection:
            details['collection'] = collection
        super().__init__(message, error_code="DATABASE_ERROR", details=details, **kwargs)


class ConfigurationError(MatcherBaseException):
    """Raised when configuration is invalid or missing"""

    def __init__(self, message: str, config_key: str = None, config_value: Any = None, **kwargs):
        details = kwargs.pop('details', {})
        if config_key:
            details['config_key'] = config_key
        if config_value is not None:
            details['config_value'] = str(config_value)
        super().__init__(message, error_code="CONFIGURATION_ERROR", details=details, **kwargs)


class MatchingError(MatcherBaseException):
    """Base class for failures while scoring a single (prospect, position) pair"""

    def __init__(self, message: str, error_code: str = "MATCHING_ERROR", **kwargs):
        super().__init__(message, error_code=error_code, **kwargs)


class ProviderError(MatchingError):
    """Raised when the remote LLM/embedding call fails at transport or HTTP level"""

    def __init__(self, message: str, provider: str = None, model_name: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if provider:
            details['provider'] = provider
        if model_name:
            details['model_name'] = model_name
        super().__init__(message, error_code="PROVIDER_ERROR", details=details, **kwargs)


class EmptyResponseError(MatchingError):
    """Raised when the provider call succeeded but returned no usable content"""

    def __init__(self, message: str = "No response content from provider", **kwargs):
        super().__init__(message, error_code="EMPTY_RESPONSE", **kwargs)


class MalformedResponseError(MatchingError):
    """Raised when the provider content is not a JSON object"""

    def __init__(self, message: str, content: str = None, **kwargs):
        details = kwargs.pop('details', {})
        if content is not None:
            details['content_preview'] = content[:200]
        super().__init__(message, error_code="MALFORMED_RESPONSE", details=details, **kwargs)


# HTTP Exception Mapping
def map_to_http_exception(exc: MatcherBaseException) -> HTTPException:
    """Map custom exceptions to HTTP exceptions"""

    status_code_mapping = {
        ValidationError: 400,
        NotFoundError: 404,
        ConfigurationError: 500,
        DatabaseError: 500,
        ProviderError: 502,
        EmptyResponseError: 502,
        MalformedResponseError: 502,
    }

    status_code = status_code_mapping.get(type(exc), 500)

    detail = {
        "error": exc.to_dict(),
        "message": exc.message
    }

    return HTTPException(status_code=status_code, detail=detail)


# Exception context manager for better error handling
class ExceptionContext:
    """Context manager for wrapping record store operations with context"""

    def __init__(self, operation: str, logger=None, collection: str = None, **context):
        self.operation = operation
        self.logger = logger
        self.collection = collection
        self.context = context

    def __enter__(self):
        if self.logger:
            self.logger.debug(f"Starting operation: {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            if self.logger:
                self.logger.error(
                    f"Operation failed: {self.operation} - {exc_val}",
                    extra={**self.context, "exception_type": exc_type.__name__}
                )

            # Re-raise custom exceptions as-is
            if isinstance(exc_val, MatcherBaseException):
                return False

            if isinstance(exc_val, (KeyError, ValueError, TypeError)):
                wrapped_exc = ValidationError(
                    f"Validation error in {self.operation}: {str(exc_val)}",
                    details=dict(self.context),
                    cause=exc_val
                )
                raise wrapped_exc from exc_val

            wrapped_exc = DatabaseError(
                f"Database error in {self.operation}: {str(exc_val)}",
                operation=self.operation,
                collection=self.collection,
                details=dict(self.context),
                cause=exc_val
            )
            raise wrapped_exc from exc_val
        else:
            if self.logger:
                self.logger.debug(f"Operation completed: {self.operation}", extra=self.context)

        return False
