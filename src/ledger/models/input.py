"""
Input models for request bodies.

The same model serves create, full replace (PUT) and partial patch (PATCH):
``replacement_fields`` writes every field, ``patch_fields`` only the supplied
ones. Unknown attributes, including ids and timestamps, are ignored.
"""

from typing import Annotated, Optional

from pydantic import Field

from ledger.models.base import Amount, RecordRequest


class TransactionRequest(RecordRequest):
    """Request body for creating or updating a transaction."""

    amount: Annotated[Optional[Amount], Field(
        description='Transaction amount',
        examples=[42, 12.5]
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
        examples=['expense']
    )] = None


class UserRequest(RecordRequest):
    """Request body for creating or updating a user."""

    name: Annotated[Optional[str], Field(
        description='First name',
        examples=['Jane']
    )] = None

    last_name: Annotated[Optional[str], Field(
        description='Last name',
        examples=['Smith']
    )] = None

    amount: Annotated[Optional[Amount], Field(
        description='Balance held by the user',
        examples=[100]
    )] = None
