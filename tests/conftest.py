"""
Pytest configuration and shared fixtures for the ledger API.

This module provides common test fixtures and configuration used across
unit, integration, and end-to-end tests.
"""

import json
import os
from typing import Any, Callable, Dict, Optional
from unittest.mock import Mock

import boto3
import pytest
from moto import mock_aws

# Handler modules read the environment when they are imported, so it is set
# before any test module is collected.
TEST_ENVIRONMENT = {
    "AWS_DEFAULT_REGION": "us-east-1",
    "AWS_REGION": "us-east-1",
    "AWS_ACCESS_KEY_ID": "test",
    "AWS_SECRET_ACCESS_KEY": "test",
    "TRANSACTIONS_TABLE_NAME": "TransactionTable",
    "USERS_TABLE_NAME": "UserTable",
    "TRANSACTIONS_PAGE_SIZE": "10",
    # Small on purpose so listing every user walks several scan pages
    "USERS_PAGE_SIZE": "2",
    "ENVIRONMENT": "test",
    "POWERTOOLS_SERVICE_NAME": "test-ledger-api",
    "POWERTOOLS_METRICS_NAMESPACE": "TestLedger",
    "LOG_LEVEL": "DEBUG",
    "POWERTOOLS_TRACE_DISABLED": "true",
}
os.environ.update(TEST_ENVIRONMENT)


@pytest.fixture(scope="session", autouse=True)
def test_environment():
    """Keep the test environment variables in place for the whole session."""
    os.environ.update(TEST_ENVIRONMENT)


@pytest.fixture(autouse=True)
def reset_cached_clients():
    """Drop the cached DynamoDB resource and handlers so each test gets fresh ones."""
    from ledger.dal import get_dal_handler, get_dynamodb_resource

    get_dal_handler.cache_clear()
    get_dynamodb_resource.cache_clear()
    yield
    get_dal_handler.cache_clear()
    get_dynamodb_resource.cache_clear()


# DynamoDB fixtures
@pytest.fixture
def aws():
    """Mock every AWS service for the duration of a test."""
    with mock_aws():
        yield


def _create_table(table_name: str, key_attribute: str):
    dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
    table = dynamodb.create_table(
        TableName=table_name,
        KeySchema=[{"AttributeName": key_attribute, "KeyType": "HASH"}],
        AttributeDefinitions=[{"AttributeName": key_attribute, "AttributeType": "S"}],
        BillingMode="PAY_PER_REQUEST",
    )
    table.wait_until_exists()
    return table


@pytest.fixture
def transactions_table(aws):
    """Create a mock transaction table."""
    yield _create_table("TransactionTable", "transactionId")


@pytest.fixture
def users_table(aws):
    """Create a mock user table."""
    yield _create_table("UserTable", "userId")


# Sample data fixtures
@pytest.fixture
def sample_transaction_data() -> Dict[str, Any]:
    return {
        "amount": 42,
        "contact": "Alice",
        "description": "lunch",
        "type": "expense",
    }


@pytest.fixture
def sample_user_data() -> Dict[str, Any]:
    return {
        "name": "Jane",
        "lastName": "Smith",
        "amount": 100,
    }


@pytest.fixture
def api_gateway_event() -> Callable[..., Dict[str, Any]]:
    """Factory building API Gateway REST events."""

    def _event(
        method: str,
        path: str,
        body: Optional[Any] = None,
        query: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        if body is not None and not isinstance(body, str):
            body = json.dumps(body)

        return {
            "resource": path,
            "path": path,
            "httpMethod": method,
            "headers": {
                "Content-Type": "application/json",
                "User-Agent": "test-agent/1.0",
            },
            "multiValueHeaders": {},
            "queryStringParameters": query,
            "multiValueQueryStringParameters": {k: [v] for k, v in query.items()} if query else None,
            "pathParameters": None,
            "stageVariables": None,
            "requestContext": {
                "requestId": "test-request-id-123",
                "accountId": "123456789012",
                "stage": "test",
                "httpMethod": method,
                "path": path,
                "protocol": "HTTP/1.1",
                "identity": {
                    "sourceIp": "127.0.0.1",
                    "userAgent": "test-agent/1.0",
                },
            },
            "body": body,
            "isBase64Encoded": False,
        }

    return _event


@pytest.fixture
def lambda_context():
    """Create a mock Lambda context for testing."""
    context = Mock()
    context.function_name = "test-ledger-function"
    context.function_version = "$LATEST"
    context.invoked_function_arn = "arn:aws:lambda:us-east-1:123456789012:function:test-ledger-function"
    context.memory_limit_in_mb = 256
    context.aws_request_id = "test-request-id-123"
    context.log_group_name = "/aws/lambda/test-ledger-function"
    context.log_stream_name = "2024/01/01/[$LATEST]test123"
    context.get_remaining_time_in_millis.return_value = 30000
    return context


# Integration test fixtures
@pytest.fixture
def integration_client():
    """HTTP client for the deployed API."""
    import httpx

    base_url = os.environ.get("API_BASE_URL", "http://localhost:3000")

    with httpx.Client(base_url=base_url, timeout=30.0) as client:
        yield client


# Error simulation fixtures
@pytest.fixture
def mock_dynamodb_error():
    """Build DynamoDB ClientErrors for testing error handling."""
    from botocore.exceptions import ClientError

    def create_error(error_code: str, message: str = "Test error"):
        return ClientError(
            error_response={
                "Error": {
                    "Code": error_code,
                    "Message": message,
                }
            },
            operation_name="TestOperation"
        )

    return create_error


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "e2e: End-to-end tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "e2e" in str(item.fspath):
            item.add_marker(pytest.mark.e2e)
