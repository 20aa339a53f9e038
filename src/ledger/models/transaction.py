"""
Transaction record model.
"""

from typing import Annotated, ClassVar, Optional

from pydantic import Field

from ledger.models.base import Amount, Record


class Transaction(Record):
    """A money movement recorded against a contact."""

    key_attribute: ClassVar[str] = 'transactionId'
    label: ClassVar[str] = 'Transaction'

    transaction_id: Annotated[str, Field(
        description='Unique identifier for the transaction',
        examples=['550e8400-e29b-41d4-a716-446655440000']
    )]

    amount: Annotated[Optional[Amount], Field(
        description='Transaction amount',
        examples=[42]
    )] = None

    contact: Annotated[Optional[str], Field(
        description='Counterparty of the transaction',
        examples=['Alice']
    )] = None

    description: Annotated[Optional[str], Field(
        description='Free text description',
        examples=['lunch']
    )] = None

    type: Annotated[Optional[str], Field(
        description='Transaction category',
        examples=['expense', 'income']
    )] = None
