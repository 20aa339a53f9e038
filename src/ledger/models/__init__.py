"""
Ledger Models Package

Pydantic models for stored records, request bodies and API responses.
"""

from .base import Amount, Record, RecordPage, RecordRequest
from .input import TransactionRequest, UserRequest
from .output import MessageOutput, TransactionPage, UserList, UserPage
from .transaction import Transaction
from .user import User

__all__ = [
    # Shared
    "Amount",
    "Record",
    "RecordPage",
    "RecordRequest",

    # Input models
    "TransactionRequest",
    "UserRequest",

    # Output models
    "MessageOutput",
    "TransactionPage",
    "UserList",
    "UserPage",

    # Records
    "Transaction",
    "User",
]
