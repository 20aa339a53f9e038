"""
Transactions Handler - Lambda function for the transaction API.

Routes:
    POST   /transactions                   create a transaction
    GET    /transactions                   list transactions, one page per call
    GET    /transactions/<transaction_id>  get a transaction
    PUT    /transactions/<transaction_id>  replace every mutable field
    PATCH  /transactions/<transaction_id>  replace the supplied fields only
    DELETE /transactions/<transaction_id>  delete a transaction
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
    TRANSACTIONS_PATH,
    create_app,
    current_error_context,
    parse_limit,
    parse_request_body,
)
from ledger.logic.record_service import RecordService
from ledger.models.input import TransactionRequest
from ledger.models.output import MessageOutput
from ledger.models.transaction import Transaction

app = create_app()


def get_transaction_service() -> RecordService[Transaction]:
    """Get the transaction service backed by the shared DAL handler."""
    env = get_handler_env_vars()
    dal = get_dal_handler(
        env.TRANSACTIONS_TABLE_NAME,
        region_name=env.AWS_REGION,
        endpoint_url=env.DYNAMODB_ENDPOINT,
    )
    return RecordService(dal, Transaction, page_size=env.TRANSACTIONS_PAGE_SIZE)


@app.post(TRANSACTIONS_PATH)
@tracer.capture_method
@handle_service_errors("Failed to create transaction")
def add_transaction() -> Response:
    """Create a transaction from the request body."""
    context = current_error_context(app, operation="add_transaction")
    request = parse_request_body(app, TransactionRequest, context)

    transaction = get_transaction_service().create(request, context=context)

    return create_api_response(status_code=200, body=transaction.to_json())


@app.get(TRANSACTIONS_PATH)
@tracer.capture_method
@handle_service_errors("Failed to retrieve transactions")
def get_all_transactions() -> Response:
    """
    List transactions.

    Query parameters:
        lastEvaluatedKey: cursor returned by the previous call
        limit: page size, never above the configured maximum
    """
    context = current_error_context(app, operation="get_all_transactions")
    cursor = app.current_event.get_query_string_value('lastEvaluatedKey')
    limit = parse_limit(app, context)

    page = get_transaction_service().list_page(cursor=cursor, limit=limit, context=context)

    logger.info("Transactions listed", extra={
        "count": len(page.items),
        "has_more_results": page.last_evaluated_key is not None,
    })

    return create_api_response(status_code=200, body=page.model_dump_json(by_alias=True))


@app.get(f"{TRANSACTIONS_PATH}/<transaction_id>")
@tracer.capture_method
@handle_service_errors("Failed to retrieve transaction")
def get_transaction(transaction_id: str) -> Response:
    context = current_error_context(app, operation="get_transaction", resource_id=transaction_id)
    tracer.put_annotation("transaction_id", transaction_id)

    transaction = get_transaction_service().get(transaction_id, context=context)

    return create_api_response(status_code=200, body=transaction.to_json())


@app.put(f"{TRANSACTIONS_PATH}/<transaction_id>")
@tracer.capture_method
@handle_service_errors("Failed to update transaction")
def update_transaction(transaction_id: str) -> Response:
    """Replace amount, contact, description and type; omitted fields become null."""
    context = current_error_context(app, operation="update_transaction", resource_id=transaction_id)
    request = parse_request_body(app, TransactionRequest, context)

    transaction = get_transaction_service().replace(transaction_id, request, context=context)

    return create_api_response(status_code=200, body=transaction.to_json())


@app.patch(f"{TRANSACTIONS_PATH}/<transaction_id>")
@tracer.capture_method
@handle_service_errors("Failed to update transaction")
def patch_transaction(transaction_id: str) -> Response:
    """Replace only the fields present in the request body."""
    context = current_error_context(app, operation="patch_transaction", resource_id=transaction_id)
    request = parse_request_body(app, TransactionRequest, context)

    transaction = get_transaction_service().patch(transaction_id, request, context=context)

    return create_api_response(status_code=200, body=transaction.to_json())


@app.delete(f"{TRANSACTIONS_PATH}/<transaction_id>")
@tracer.capture_method
@handle_service_errors("Failed to delete transaction")
def delete_transaction(transaction_id: str) -> Response:
    context = current_error_context(app, operation="delete_transaction", resource_id=transaction_id)

    get_transaction_service().delete(transaction_id, context=context)

    return create_api_response(
        status_code=200,
        body=MessageOutput(message="Transaction deleted successfully").model_dump_json(),
    )


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Lambda entry point for the transaction API.

    Args:
        event: API Gateway REST event
        context: Lambda context object

    Returns:
        API Gateway response
    """
    metrics.add_metric(name="RequestCount", unit=MetricUnit.Count, value=1)
    tracer.put_annotation("service", "transactions-api")

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
