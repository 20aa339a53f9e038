"""
REST API resolver utilities for the ledger Lambda handlers.

Builds the API Gateway REST resolvers and provides the request parsing
helpers shared by the transaction and user routes.
"""

import json
from typing import Optional, Type, TypeVar

from aws_lambda_powertools.event_handler import APIGatewayRestResolver, CORSConfig
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ledger.handlers.models.env_vars import get_handler_env_vars
from ledger.handlers.utils.errors import ErrorContext, ValidationError, create_error_context

# API path constants
TRANSACTIONS_PATH = '/transactions'
USERS_PATH = '/users'

# Request headers browsers may send cross-origin
CORS_ALLOW_HEADERS = ['Content-Type']

ModelT = TypeVar('ModelT', bound=BaseModel)


def create_cors_config() -> CORSConfig:
    """Build the CORS configuration from the environment."""
    env = get_handler_env_vars()

    return CORSConfig(
        allow_origin=env.CORS_ALLOW_ORIGIN,
        max_age=600,
        allow_headers=CORS_ALLOW_HEADERS,
    )


def create_app() -> APIGatewayRestResolver:
    """Create an API Gateway REST resolver with CORS configured from the environment."""
    return APIGatewayRestResolver(cors=create_cors_config())


def current_error_context(
    app: APIGatewayRestResolver,
    operation: str,
    resource_id: Optional[str] = None,
) -> ErrorContext:
    """Build the error context for the request being resolved."""
    request_context = app.current_event.raw_event.get('requestContext') or {}

    return create_error_context(
        request_id=request_context.get('requestId') or 'unknown',
        operation=operation,
        resource_id=resource_id,
    )


def parse_request_body(
    app: APIGatewayRestResolver,
    model: Type[ModelT],
    context: ErrorContext,
) -> ModelT:
    """
    Parse the JSON body of the current request into a model.

    Args:
        app: Resolver holding the current event
        model: Pydantic model describing the body
        context: Error context for tracing

    Returns:
        Validated model instance

    Raises:
        ValidationError: If the body is not a JSON object matching the model
    """
    try:
        payload = json.loads(app.current_event.decoded_body or '{}')
    except json.JSONDecodeError as e:
        raise ValidationError(
            message=f"Invalid JSON in request body: {e}",
            context=context,
        )

    if not isinstance(payload, dict):
        raise ValidationError(
            message="Request body must be a JSON object",
            context=context,
        )

    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        field_errors = [
            {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
            for error in e.errors()
        ]
        raise ValidationError(
            message="Request validation failed",
            field_errors=field_errors,
            context=context,
        )


def parse_limit(app: APIGatewayRestResolver, context: ErrorContext) -> Optional[int]:
    """Read the optional ``limit`` query parameter."""
    raw_limit = app.current_event.get_query_string_value('limit')
    if raw_limit is None:
        return None

    try:
        return int(raw_limit)
    except ValueError:
        raise ValidationError(
            message=f"Invalid limit value: {raw_limit}",
            context=context,
            user_message="Invalid query parameter",
        )
