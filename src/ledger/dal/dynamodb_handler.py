"""
DynamoDB implementation of the Data Access Layer.

Every primitive is a single call against the table. Store failures are
logged, counted and re-raised as service errors so the handler layer can
map them to responses. Nothing is retried.
"""

import functools
import time
from typing import Any, Dict, Iterator, Optional, Tuple

from aws_lambda_powertools.metrics import MetricUnit
from botocore.exceptions import BotoCoreError, ClientError

from ledger.dal import get_dynamodb_resource
from ledger.handlers.utils.errors import (
    BaseServiceError,
    ErrorCategory,
    ErrorSeverity,
    ExternalServiceError,
)
from ledger.handlers.utils.observability import logger, metrics, tracer


class DALError(BaseServiceError):
    """Base exception for Data Access Layer errors."""

    def __init__(
        self,
        message: str,
        operation: str,
        table_name: str,
        error_code: str = "DAL_ERROR",
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        retry_after: Optional[int] = None,
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            severity=severity,
            category=ErrorCategory.INFRASTRUCTURE,
            retry_after=retry_after,
            user_message="A database error occurred. Please try again later.",
        )
        self.operation = operation
        self.table_name = table_name


class ConditionalCheckFailedError(DALError):
    """Raised when a conditional write is rejected by DynamoDB."""

    def __init__(self, table_name: str, operation: str):
        super().__init__(
            message="Conditional check failed",
            operation=operation,
            table_name=table_name,
            error_code="CONDITIONAL_CHECK_FAILED",
            severity=ErrorSeverity.MEDIUM,
        )


def build_update_expression(fields: Dict[str, Any]) -> Tuple[str, Dict[str, str], Dict[str, Any]]:
    """
    Build a ``SET`` update expression for the given attributes.

    Attribute names go through placeholders since several of ours
    (``name``, ``type``) are DynamoDB reserved words.

    Returns:
        Update expression, expression attribute names, expression attribute values
    """
    names = {f'#{attribute}': attribute for attribute in fields}
    values = {f':{attribute}': value for attribute, value in fields.items()}
    expression = 'SET ' + ', '.join(f'#{attribute} = :{attribute}' for attribute in fields)
    return expression, names, values


# DynamoDB error codes worth retrying later: (error code, message, Retry-After seconds)
RETRYABLE_ERRORS = {
    'ProvisionedThroughputExceededException': ("THROUGHPUT_EXCEEDED", "DynamoDB throughput exceeded", 60),
    'ThrottlingException': ("THROTTLING_ERROR", "DynamoDB throttling detected", 30),
}


def translate_client_error(error: ClientError, operation: str, table_name: str) -> DALError:
    """
    Map a DynamoDB ``ClientError`` to the matching DAL error.

    Args:
        error: Error raised by boto3
        operation: DynamoDB operation name, e.g. ``PutItem``
        table_name: Table the operation ran against

    Returns:
        DAL error to raise in place of the client error
    """
    code = error.response['Error']['Code']
    message = error.response['Error'].get('Message', str(error))

    if code == 'ConditionalCheckFailedException':
        return ConditionalCheckFailedError(table_name=table_name, operation=operation)

    if code == 'ResourceNotFoundException':
        return DALError(
            message=f"Table {table_name} not found",
            operation=operation,
            table_name=table_name,
            error_code="TABLE_NOT_FOUND",
        )

    if code in RETRYABLE_ERRORS:
        error_code, retry_message, retry_after = RETRYABLE_ERRORS[code]
        return DALError(
            message=retry_message,
            operation=operation,
            table_name=table_name,
            error_code=error_code,
            retry_after=retry_after,
        )

    return DALError(
        message=f"DynamoDB error: {message}",
        operation=operation,
        table_name=table_name,
        error_code=f"DYNAMODB_{code}",
    )


def handle_dynamodb_errors(operation: str):
    """
    Decorator recording metrics for a DynamoDB primitive and translating its failures.

    ``ClientError`` becomes a ``DALError``, ``BotoCoreError`` (connection
    problems) an ``ExternalServiceError``, anything else an unexpected
    ``DALError``.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            started = time.time()
            metrics.add_metric(name=f"DynamoDB{operation}Count", unit=MetricUnit.Count, value=1)

            try:
                result = func(self, *args, **kwargs)
            except ClientError as e:
                metrics.add_metric(name=f"DynamoDB{operation}Error", unit=MetricUnit.Count, value=1)
                logger.error(f"DynamoDB {operation} failed", extra={
                    "error_code": e.response['Error']['Code'],
                    "error_message": e.response['Error'].get('Message'),
                    "table_name": self.table_name,
                })
                raise translate_client_error(e, operation, self.table_name) from e
            except BotoCoreError as e:
                metrics.add_metric(name=f"DynamoDB{operation}Error", unit=MetricUnit.Count, value=1)
                logger.error(f"DynamoDB connection error during {operation}", extra={
                    "error": str(e),
                    "table_name": self.table_name,
                })
                raise ExternalServiceError(
                    message=f"Database connection error: {str(e)}",
                    service_name="DynamoDB",
                ) from e
            except Exception as e:
                metrics.add_metric(name=f"DynamoDB{operation}Error", unit=MetricUnit.Count, value=1)
                logger.exception(f"Unexpected error during {operation}", extra={"table_name": self.table_name})
                raise DALError(
                    message=f"Unexpected database error: {str(e)}",
                    operation=operation,
                    table_name=self.table_name,
                    error_code="UNEXPECTED_DATABASE_ERROR",
                ) from e

            metrics.add_metric(name=f"DynamoDB{operation}Success", unit=MetricUnit.Count, value=1)
            metrics.add_metric(
                name=f"DynamoDB{operation}Duration",
                unit=MetricUnit.Milliseconds,
                value=(time.time() - started) * 1000,
            )
            tracer.put_annotation("dynamodb_operation", operation)
            tracer.put_annotation("table_name", self.table_name)

            return result

        return wrapper
    return decorator


class DynamoDBHandler:
    """DynamoDB table handler exposing the store primitives."""

    def __init__(
        self,
        table_name: str,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
    ):
        """
        Initialize DynamoDB handler.

        Args:
            table_name: Name of the DynamoDB table
            region_name: AWS region name
            endpoint_url: DynamoDB endpoint URL (for local testing)
        """
        self.table_name = table_name
        self.dynamodb = get_dynamodb_resource(region_name, endpoint_url)
        self.table = self.dynamodb.Table(table_name)

        logger.debug("DynamoDB handler initialized", extra={
            "table_name": table_name,
            "region_name": region_name,
            "endpoint_url": endpoint_url,
        })

    @tracer.capture_method
    @handle_dynamodb_errors("PutItem")
    def put_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """
        Put an item into DynamoDB.

        Args:
            item: Item data to store

        Returns:
            The stored item data

        Raises:
            DALError: If DynamoDB operation fails
        """
        self.table.put_item(Item=item)

        logger.info("Item stored successfully", extra={
            "table_name": self.table_name,
        })

        return item

    @tracer.capture_method
    @handle_dynamodb_errors("GetItem")
    def get_item(self, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Get a single item from DynamoDB.

        Args:
            key: Primary key of the item to retrieve

        Returns:
            Item data or None if not found
        """
        response = self.table.get_item(Key=key)
        item = response.get('Item')

        if item is None:
            logger.info("Item not found", extra={"table_name": self.table_name, "key": key})

        return item

    @tracer.capture_method
    @handle_dynamodb_errors("UpdateItem")
    def update_item(
        self,
        key: Dict[str, Any],
        fields: Dict[str, Any],
        condition_expression: Optional[Any] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Set attributes on an item and return the item as it is after the update.

        Args:
            key: Primary key of the item to update
            fields: Attribute names mapped to their new values
            condition_expression: Conditional expression for the update

        Returns:
            Updated item data

        Raises:
            DALError: If DynamoDB operation fails
            ConditionalCheckFailedError: If condition check fails
        """
        update_expression, names, values = build_update_expression(fields)

        update_kwargs = {
            'Key': key,
            'UpdateExpression': update_expression,
            'ExpressionAttributeNames': names,
            'ExpressionAttributeValues': values,
            'ReturnValues': 'ALL_NEW',
        }

        if condition_expression is not None:
            update_kwargs['ConditionExpression'] = condition_expression

        response = self.table.update_item(**update_kwargs)

        logger.info("Item updated successfully", extra={
            "table_name": self.table_name,
            "key": key,
            "attributes": sorted(fields),
        })

        return response.get('Attributes')

    @tracer.capture_method
    @handle_dynamodb_errors("DeleteItem")
    def delete_item(self, key: Dict[str, Any]) -> bool:
        """
        Delete an item from DynamoDB.

        Args:
            key: Primary key of the item to delete

        Returns:
            True if an item was deleted, False if there was nothing to delete
        """
        response = self.table.delete_item(Key=key, ReturnValues='ALL_OLD')

        if response.get('Attributes'):
            logger.info("Item deleted successfully", extra={
                "table_name": self.table_name,
                "key": key,
            })
            return True

        logger.info("Item not found for deletion", extra={
            "table_name": self.table_name,
            "key": key,
        })
        return False

    @tracer.capture_method
    @handle_dynamodb_errors("Scan")
    def scan_items(
        self,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Scan one page of items from DynamoDB.

        Args:
            limit: Maximum number of items to evaluate
            exclusive_start_key: Pagination token

        Returns:
            Dictionary with 'items' and optional 'last_evaluated_key'
        """
        scan_kwargs = {}

        if limit:
            scan_kwargs['Limit'] = limit

        if exclusive_start_key:
            scan_kwargs['ExclusiveStartKey'] = exclusive_start_key

        response = self.table.scan(**scan_kwargs)

        result = {
            'items': response.get('Items', []),
            'count': response.get('Count', 0),
            'scanned_count': response.get('ScannedCount', 0),
        }

        if 'LastEvaluatedKey' in response:
            result['last_evaluated_key'] = response['LastEvaluatedKey']

        logger.info("Scan completed successfully", extra={
            "table_name": self.table_name,
            "items_count": result['count'],
            "scanned_count": result['scanned_count'],
            "has_more_results": 'last_evaluated_key' in result,
        })

        return result

    def iter_items(self, page_size: Optional[int] = None) -> Iterator[Dict[str, Any]]:
        """
        Lazily iterate over every item in the table.

        Each scan page is fetched only when the previous one is exhausted.

        Args:
            page_size: Maximum number of items per scan call
        """
        exclusive_start_key = None

        while True:
            page = self.scan_items(limit=page_size, exclusive_start_key=exclusive_start_key)
            yield from page['items']

            exclusive_start_key = page.get('last_evaluated_key')
            if not exclusive_start_key:
                return
