"""
Ledger API service package.

Serverless handlers for transaction and user records stored in DynamoDB,
laid out in layers:

- handlers: API Gateway routes and Lambda entry points
- logic: record lifecycle shared by every record type
- dal: DynamoDB data access
- models: Pydantic records, requests and responses
"""

__version__ = "1.0.0"
__description__ = "Serverless transaction and user ledger API"

from ledger.handlers.utils.observability import logger, metrics, tracer
from ledger.models import Transaction, TransactionRequest, User, UserRequest

__all__ = [
    "Transaction",
    "TransactionRequest",
    "User",
    "UserRequest",
    "logger",
    "tracer",
    "metrics",
]
