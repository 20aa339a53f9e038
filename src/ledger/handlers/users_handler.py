"""
Users Handler - Lambda function for the user API.

Routes:
    POST   /users             create a user
    GET    /users             list users
    GET    /users/<user_id>   get a user
    PUT    /users/<user_id>   replace every mutable field
    PATCH  /users/<user_id>   replace the supplied fields only
    DELETE /users/<user_id>   delete a user
"""

import json
from typing import Any, Dict

from aws_lambda_powertools.event_handler import Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from ledger.dal import get_dal_handler
from ledger.handlers.models.env_vars import get_handler_env_vars
from ledger.handlers.utils.errors import create_api_response, handle_service_errors
from ledger.handlers.utils.observability import logger, metrics, tracer
from ledger.handlers.utils.rest_api_resolver import (
    USERS_PATH,
    create_app,
    current_error_context,
    parse_limit,
    parse_request_body,
)
from ledger.logic.record_service import RecordService
from ledger.models.input import UserRequest
from ledger.models.output import MessageOutput, UserList
from ledger.models.user import User

app = create_app()


def get_user_service() -> RecordService[User]:
    """Get the user service backed by the shared DAL handler."""
    env = get_handler_env_vars()
    dal = get_dal_handler(
        env.USERS_TABLE_NAME,
        region_name=env.AWS_REGION,
        endpoint_url=env.DYNAMODB_ENDPOINT,
    )
    return RecordService(dal, User, page_size=env.USERS_PAGE_SIZE)


@app.post(USERS_PATH)
@tracer.capture_method
@handle_service_errors("Failed to create user")
def add_user() -> Response:
    context = current_error_context(app, operation="add_user")
    request = parse_request_body(app, UserRequest, context)

    user = get_user_service().create(request, context=context)

    return create_api_response(status_code=200, body=user.to_json())


@app.get(USERS_PATH)
@tracer.capture_method
@handle_service_errors("Failed to retrieve users")
def get_all_users() -> Response:
    """
    List users.

    Without query parameters every user is returned as a JSON array, read from
    the table one scan page at a time. With ``limit`` or ``lastEvaluatedKey``
    a single page is returned as ``{"items": [...], "lastEvaluatedKey": ...}``.
    """
    context = current_error_context(app, operation="get_all_users")
    cursor = app.current_event.get_query_string_value('lastEvaluatedKey')
    limit = parse_limit(app, context)
    service = get_user_service()

    if cursor is None and limit is None:
        users = list(service.iter_all())
        logger.info("Users listed", extra={"count": len(users)})
        return create_api_response(status_code=200, body=UserList.dump_json(users, by_alias=True).decode())

    page = service.list_page(cursor=cursor, limit=limit, context=context)
    logger.info("User page listed", extra={
        "count": len(page.items),
        "has_more_results": page.last_evaluated_key is not None,
    })

    return create_api_response(status_code=200, body=page.model_dump_json(by_alias=True))


@app.get(f"{USERS_PATH}/<user_id>")
@tracer.capture_method
@handle_service_errors("Failed to retrieve user")
def get_user(user_id: str) -> Response:
    context = current_error_context(app, operation="get_user", resource_id=user_id)
    tracer.put_annotation("user_id", user_id)

    user = get_user_service().get(user_id, context=context)

    return create_api_response(status_code=200, body=user.to_json())


@app.put(f"{USERS_PATH}/<user_id>")
@tracer.capture_method
@handle_service_errors("Failed to update user")
def update_user(user_id: str) -> Response:
    context = current_error_context(app, operation="update_user", resource_id=user_id)
    request = parse_request_body(app, UserRequest, context)

    user = get_user_service().replace(user_id, request, context=context)

    return create_api_response(status_code=200, body=user.to_json())


@app.patch(f"{USERS_PATH}/<user_id>")
@tracer.capture_method
@handle_service_errors("Failed to update user")
def patch_user(user_id: str) -> Response:
    context = current_error_context(app, operation="patch_user", resource_id=user_id)
    request = parse_request_body(app, UserRequest, context)

    user = get_user_service().patch(user_id, request, context=context)

    return create_api_response(status_code=200, body=user.to_json())


@app.delete(f"{USERS_PATH}/<user_id>")
@tracer.capture_method
@handle_service_errors("Failed to delete user")
def delete_user(user_id: str) -> Response:
    context = current_error_context(app, operation="delete_user", resource_id=user_id)

    get_user_service().delete(user_id, context=context)

    return create_api_response(
        status_code=200,
        body=MessageOutput(message="User deleted successfully").model_dump_json(),
    )


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Lambda entry point for the user API.

    Args:
        event: API Gateway REST event
        context: Lambda context object

    Returns:
        API Gateway response
    """
    metrics.add_metric(name="RequestCount", unit=MetricUnit.Count, value=1)
    tracer.put_annotation("service", "users-api")

    try:
        response = app.resolve(event, context)
    except Exception as e:
        metrics.add_metric(name="RequestError", unit=MetricUnit.Count, value=1)
        logger.exception("Unhandled error in lambda handler", extra={"error": str(e)})

        return {
            "statusCode": 500,
            "headers": {"Content-Type": "application/json"},
            "body": json.dumps({"message": "Internal server error", "error": str(e)}),
        }

    metrics.add_metric(name="RequestSuccess", unit=MetricUnit.Count, value=1)
    return response
