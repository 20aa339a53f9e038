"""
Output models for API responses.
"""

from typing import Annotated, List

from pydantic import BaseModel, Field, TypeAdapter

from ledger.models.base import RecordPage
from ledger.models.transaction import Transaction
from ledger.models.user import User

TransactionPage = RecordPage[Transaction]
UserPage = RecordPage[User]


class MessageOutput(BaseModel):
    """Plain confirmation message."""

    message: Annotated[str, Field(
        description='Human readable confirmation',
        examples=['Transaction deleted successfully']
    )]


# Bare JSON array of users, returned by the unpaginated user listing
UserList = TypeAdapter(List[User])
