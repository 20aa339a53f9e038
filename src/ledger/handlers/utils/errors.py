"""
Error handling utilities for the ledger Lambda handlers.

Defines the service error taxonomy shared by the handler, logic and data
access layers, and the helpers that turn those errors into API responses.
Every route is wrapped with ``handle_service_errors`` so that each code path
ends in a well-defined response.
"""

import functools
import json
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from aws_lambda_powertools.event_handler import Response, content_types
from aws_lambda_powertools.metrics import MetricUnit
from pydantic import BaseModel, Field

from ledger.handlers.utils.observability import logger, metrics, tracer


class ErrorSeverity(str, Enum):
    """Error severity levels for classification."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ErrorCategory(str, Enum):
    """Error categories for classification."""
    VALIDATION = "VALIDATION"
    BUSINESS_LOGIC = "BUSINESS_LOGIC"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE"
    INFRASTRUCTURE = "INFRASTRUCTURE"


class ErrorContext(BaseModel):
    """Context information for errors."""

    request_id: str = Field(description="Unique request identifier")
    operation: str = Field(description="Operation being performed")
    resource_id: Optional[str] = Field(default=None, description="Record identifier")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    additional_data: Dict[str, Any] = Field(default_factory=dict)


class BaseServiceError(Exception):
    """Base exception class for service errors."""

    # Whether ``message`` is returned to the caller as the "error" detail
    expose_details = True

    def __init__(
        self,
        message: str,
        error_code: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.BUSINESS_LOGIC,
        context: Optional[ErrorContext] = None,
        retry_after: Optional[int] = None,
        user_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.severity = severity
        self.category = category
        self.context = context
        self.retry_after = retry_after
        self.user_message = user_message or "An error occurred while processing your request."
        self.error_id = str(uuid.uuid4())

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "error_id": self.error_id,
            "error_code": self.error_code,
            "message": self.message,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "category": self.category.value,
            "retry_after": self.retry_after,
            "context": self.context.model_dump(mode="json") if self.context else None,
        }


class ValidationError(BaseServiceError):
    """Raised when a request cannot be parsed into the expected shape."""

    def __init__(
        self,
        message: str,
        field_errors: Optional[List[Dict[str, str]]] = None,
        context: Optional[ErrorContext] = None,
        user_message: Optional[str] = None,
    ):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
            context=context,
            user_message=user_message or "Invalid request body",
        )
        self.field_errors = field_errors or []


class ExternalServiceError(BaseServiceError):
    """Raised when the connection to an external service fails."""

    def __init__(
        self,
        message: str,
        service_name: str,
        error_code: str = "EXTERNAL_SERVICE_ERROR",
        retry_after: Optional[int] = None,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.EXTERNAL_SERVICE,
            context=context,
            retry_after=retry_after,
            user_message="A required service is temporarily unavailable. Please try again later.",
        )
        self.service_name = service_name


class ResourceNotFoundError(BaseServiceError):
    """Raised when a requested resource is not found."""

    expose_details = False

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message=f"{resource_type} with ID '{resource_id}' not found",
            error_code="RESOURCE_NOT_FOUND",
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.BUSINESS_LOGIC,
            context=context,
            user_message=f"{resource_type} not found",
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


def create_error_context(
    request_id: str,
    operation: str,
    resource_id: Optional[str] = None,
    **additional_data: Any,
) -> ErrorContext:
    """Create an error context for consistent error handling."""
    return ErrorContext(
        request_id=request_id,
        operation=operation,
        resource_id=resource_id,
        additional_data=additional_data,
    )


@tracer.capture_method
def log_error_metrics(error: BaseServiceError) -> None:
    """Log error metrics for monitoring and alerting."""
    metrics.add_metric(name="ErrorCount", unit=MetricUnit.Count, value=1)
    metrics.add_metric(name=f"Error{error.category.value}Count", unit=MetricUnit.Count, value=1)
    metrics.add_metric(name=f"Error{error.severity.value}Count", unit=MetricUnit.Count, value=1)

    tracer.put_annotation("error_code", error.error_code)
    tracer.put_metadata("error_details", error.to_dict())

    logger.error(
        "Service error occurred",
        extra={
            "error_id": error.error_id,
            "error_code": error.error_code,
            "error_severity": error.severity.value,
            "error_category": error.category.value,
            "error_message": error.message,
            "context": error.context.model_dump(mode="json") if error.context else None,
        }
    )


def get_http_status_code(error: BaseServiceError) -> int:
    """Get appropriate HTTP status code for error."""

    status_mapping = {
        "VALIDATION_ERROR": 400,
        "RESOURCE_NOT_FOUND": 404,
        "EXTERNAL_SERVICE_ERROR": 502,
        "THROTTLING_ERROR": 503,
        "THROUGHPUT_EXCEEDED": 503,
    }

    return status_mapping.get(error.error_code, 500)


def format_error_response(
    error: BaseServiceError,
    failure_message: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Format error for API response.

    Args:
        error: The service error being reported
        failure_message: Operation-level message that replaces the error's
            user message, used for server-side failures

    Returns:
        Response body with ``message`` and, unless the error hides them,
        the ``error`` detail
    """
    response: Dict[str, Any] = {"message": failure_message or error.user_message}

    if error.expose_details:
        response["error"] = error.message

    if isinstance(error, ValidationError) and error.field_errors:
        response["fieldErrors"] = error.field_errors

    return response


def create_api_response(
    status_code: int,
    body: Any,
    headers: Optional[Dict[str, str]] = None,
) -> Response:
    """Create an API Gateway response with a JSON body."""
    return Response(
        status_code=status_code,
        content_type=content_types.APPLICATION_JSON,
        body=body if isinstance(body, str) else json.dumps(body),
        headers=headers,
    )


def handle_service_errors(failure_message: str):
    """
    Decorator mapping every failure of a route to an explicit error response.

    Client errors (4xx) keep the error's own user message; server errors
    (5xx) are reported with ``failure_message`` and the error detail.

    Args:
        failure_message: Message returned when the operation fails server-side
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except BaseServiceError as e:
                log_error_metrics(e)

                status_code = get_http_status_code(e)
                error_response = format_error_response(
                    error=e,
                    failure_message=failure_message if status_code >= 500 else None,
                )

                return create_api_response(
                    status_code=status_code,
                    body=error_response,
                    headers={"Retry-After": str(e.retry_after)} if e.retry_after else None,
                )

            except Exception as e:
                logger.exception("Unexpected error in handler", extra={
                    "error": str(e),
                    "function_name": func.__name__,
                })

                metrics.add_metric(name="UnexpectedError", unit=MetricUnit.Count, value=1)

                return create_api_response(
                    status_code=500,
                    body={"message": failure_message, "error": str(e)},
                )

        return wrapper
    return decorator
