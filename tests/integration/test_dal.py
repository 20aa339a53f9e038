"""
Integration tests for the Data Access Layer (DAL).

This module tests the DynamoDB implementation of the DAL against tables
mocked with moto.
"""

import pytest
from decimal import Decimal
from unittest.mock import patch

from boto3.dynamodb.conditions import Attr
from botocore.exceptions import EndpointConnectionError

from ledger.dal import DalHandler, get_dal_handler
from ledger.dal.dynamodb_handler import (
    ConditionalCheckFailedError,
    DALError,
    DynamoDBHandler,
    build_update_expression,
    translate_client_error,
)
from ledger.handlers.utils.errors import ExternalServiceError


def make_item(transaction_id: str, amount: str = "10") -> dict:
    return {
        "transactionId": transaction_id,
        "amount": Decimal(amount),
        "contact": "Alice",
        "description": "lunch",
        "type": "expense",
        "createdAt": "2024-01-15T10:30:00+00:00",
    }


def test_build_update_expression():
    expression, names, values = build_update_expression({"name": "Jane", "type": None})

    assert expression == "SET #name = :name, #type = :type"
    assert names == {"#name": "name", "#type": "type"}
    assert values == {":name": "Jane", ":type": None}


@pytest.mark.parametrize("aws_code, error_code, retry_after", [
    ("ResourceNotFoundException", "TABLE_NOT_FOUND", None),
    ("ConditionalCheckFailedException", "CONDITIONAL_CHECK_FAILED", None),
    ("ProvisionedThroughputExceededException", "THROUGHPUT_EXCEEDED", 60),
    ("ThrottlingException", "THROTTLING_ERROR", 30),
    ("InternalServerError", "DYNAMODB_InternalServerError", None),
])
def test_translate_client_error(mock_dynamodb_error, aws_code, error_code, retry_after):
    error = translate_client_error(mock_dynamodb_error(aws_code), "GetItem", "TransactionTable")

    assert isinstance(error, DALError)
    assert error.error_code == error_code
    assert error.retry_after == retry_after
    assert error.table_name == "TransactionTable"


@pytest.mark.integration
class TestDynamoDBHandler:
    """Integration tests for the DynamoDB handler."""

    def test_handler_satisfies_protocol(self, transactions_table):
        assert isinstance(DynamoDBHandler("TransactionTable"), DalHandler)

    def test_factory_reuses_handlers(self, transactions_table):
        first = get_dal_handler("TransactionTable", region_name="us-east-1")
        second = get_dal_handler("TransactionTable", region_name="us-east-1")

        assert first is second
        assert first.dynamodb is get_dal_handler("UserTable", region_name="us-east-1").dynamodb

    def test_put_and_get_item(self, transactions_table):
        dal = DynamoDBHandler("TransactionTable")

        stored = dal.put_item(make_item("t-1"))
        retrieved = dal.get_item({"transactionId": "t-1"})

        assert stored["transactionId"] == "t-1"
        assert retrieved == make_item("t-1")

    def test_get_missing_item(self, transactions_table):
        dal = DynamoDBHandler("TransactionTable")

        assert dal.get_item({"transactionId": "missing"}) is None

    def test_update_item_returns_new_values(self, transactions_table):
        dal = DynamoDBHandler("TransactionTable")
        dal.put_item(make_item("t-1"))

        updated = dal.update_item(
            key={"transactionId": "t-1"},
            fields={"amount": Decimal("99"), "type": "income"},
            condition_expression=Attr("transactionId").exists(),
        )

        assert updated["amount"] == Decimal("99")
        assert updated["type"] == "income"
        assert updated["contact"] == "Alice"
        assert updated["createdAt"] == "2024-01-15T10:30:00+00:00"

    def test_update_item_can_write_null(self, transactions_table):
        dal = DynamoDBHandler("TransactionTable")
        dal.put_item(make_item("t-1"))

        updated = dal.update_item(key={"transactionId": "t-1"}, fields={"description": None})

        assert updated["description"] is None

    def test_conditional_update_of_missing_item(self, transactions_table):
        dal = DynamoDBHandler("TransactionTable")

        with pytest.raises(ConditionalCheckFailedError):
            dal.update_item(
                key={"transactionId": "missing"},
                fields={"amount": Decimal("1")},
                condition_expression=Attr("transactionId").exists(),
            )

        assert dal.get_item({"transactionId": "missing"}) is None

    def test_delete_item(self, transactions_table):
        dal = DynamoDBHandler("TransactionTable")
        dal.put_item(make_item("t-1"))

        assert dal.delete_item({"transactionId": "t-1"}) is True
        assert dal.get_item({"transactionId": "t-1"}) is None
        assert dal.delete_item({"transactionId": "t-1"}) is False

    def test_scan_items_paginates(self, transactions_table):
        dal = DynamoDBHandler("TransactionTable")
        for index in range(5):
            dal.put_item(make_item(f"t-{index}"))

        seen = []
        exclusive_start_key = None
        while True:
            page = dal.scan_items(limit=2, exclusive_start_key=exclusive_start_key)
            assert len(page["items"]) <= 2
            seen.extend(item["transactionId"] for item in page["items"])
            exclusive_start_key = page.get("last_evaluated_key")
            if not exclusive_start_key:
                break

        assert sorted(seen) == [f"t-{index}" for index in range(5)]

    def test_iter_items_walks_every_page(self, transactions_table):
        dal = DynamoDBHandler("TransactionTable")
        for index in range(7):
            dal.put_item(make_item(f"t-{index}"))

        with patch.object(dal, "scan_items", wraps=dal.scan_items) as scan:
            items = list(dal.iter_items(page_size=3))

        assert sorted(item["transactionId"] for item in items) == [f"t-{index}" for index in range(7)]
        assert scan.call_count >= 3

    def test_iter_items_on_empty_table(self, transactions_table):
        dal = DynamoDBHandler("TransactionTable")

        assert list(dal.iter_items(page_size=3)) == []


@pytest.mark.integration
class TestDynamoDBErrors:
    """Error translation of the DynamoDB handler."""

    def test_missing_table(self, aws):
        dal = DynamoDBHandler("TransactionTable")

        with pytest.raises(DALError) as exc_info:
            dal.scan_items(limit=10)

        assert exc_info.value.error_code == "TABLE_NOT_FOUND"
        assert exc_info.value.message == "Table TransactionTable not found"

    def test_throttling(self, transactions_table, mock_dynamodb_error):
        dal = DynamoDBHandler("TransactionTable")

        with patch.object(dal.table, "get_item", side_effect=mock_dynamodb_error("ThrottlingException")):
            with pytest.raises(DALError) as exc_info:
                dal.get_item({"transactionId": "t-1"})

        assert exc_info.value.error_code == "THROTTLING_ERROR"
        assert exc_info.value.retry_after == 30

    def test_other_client_errors(self, transactions_table, mock_dynamodb_error):
        dal = DynamoDBHandler("TransactionTable")

        with patch.object(dal.table, "put_item", side_effect=mock_dynamodb_error("ValidationException", "bad item")):
            with pytest.raises(DALError) as exc_info:
                dal.put_item(make_item("t-1"))

        assert exc_info.value.error_code == "DYNAMODB_ValidationException"
        assert exc_info.value.message == "DynamoDB error: bad item"

    def test_connection_error(self, transactions_table):
        dal = DynamoDBHandler("TransactionTable")

        with patch.object(dal.table, "delete_item", side_effect=EndpointConnectionError(endpoint_url="http://localhost:8000")):
            with pytest.raises(ExternalServiceError) as exc_info:
                dal.delete_item({"transactionId": "t-1"})

        assert exc_info.value.service_name == "DynamoDB"

    def test_unexpected_error(self, transactions_table):
        dal = DynamoDBHandler("TransactionTable")

        with patch.object(dal.table, "scan", side_effect=RuntimeError("boom")):
            with pytest.raises(DALError) as exc_info:
                dal.scan_items(limit=10)

        assert exc_info.value.error_code == "UNEXPECTED_DATABASE_ERROR"
        assert exc_info.value.message == "Unexpected database error: boom"
