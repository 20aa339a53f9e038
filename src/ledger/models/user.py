"""
User record model.
"""

from typing import Annotated, ClassVar, Optional

from pydantic import Field

from ledger.models.base import Amount, Record


class User(Record):
    """A ledger user and their balance."""

    key_attribute: ClassVar[str] = 'userId'
    label: ClassVar[str] = 'User'

    user_id: Annotated[str, Field(
        description='Unique identifier for the user',
        examples=['7d444840-9dc0-11d1-b245-5ffdce74fad2']
    )]

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
