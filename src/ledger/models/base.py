"""
Shared building blocks for the ledger record models.

Records are stored in DynamoDB with camelCase attribute names, which are also
the JSON names exposed by the API. Python attributes stay snake_case and are
mapped through a camelCase alias generator.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any, ClassVar, Dict, Generic, List, Optional, TypeVar, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel, to_snake


def _to_json_number(value: Decimal) -> Union[int, float]:
    """Render a DynamoDB number as a plain JSON number."""
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# DynamoDB rejects floats, so amounts are held as Decimal and only turned
# into JSON numbers when serialized for a response. DynamoDB numbers carry at
# most 38 significant digits and a magnitude below 1E+126.
DYNAMODB_NUMBER_MAX = Decimal("9.9999999999999999999999999999999999999E+125")

Amount = Annotated[
    Decimal,
    Field(max_digits=38, ge=-DYNAMODB_NUMBER_MAX, le=DYNAMODB_NUMBER_MAX),
    PlainSerializer(_to_json_number, return_type=Union[int, float], when_used='json'),
]


class CamelModel(BaseModel):
    """Base model exposing camelCase aliases for snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecordRequest(CamelModel):
    """Base model for the mutable fields of a record supplied by a caller."""

    def replacement_fields(self) -> Dict[str, Any]:
        """All mutable fields, with omitted ones set to None."""
        return self.model_dump(by_alias=True)

    def patch_fields(self) -> Dict[str, Any]:
        """Only the fields the caller actually supplied."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class Record(CamelModel):
    """Base model for a stored record with an immutable id and creation time."""

    # Name of the DynamoDB hash key attribute
    key_attribute: ClassVar[str]
    # Human readable record type used in messages
    label: ClassVar[str]

    created_at: Annotated[str, Field(
        description='ISO-8601 timestamp set when the record was created'
    )]

    @classmethod
    def create(cls, request: RecordRequest):
        """
        Build a new record with a generated id and the current UTC timestamp.

        Args:
            request: Caller supplied mutable fields

        Returns:
            New record instance, not yet persisted
        """
        return cls.model_validate({
            **request.replacement_fields(),
            cls.key_attribute: str(uuid4()),
            'createdAt': datetime.now(timezone.utc).isoformat(),
        })

    @classmethod
    def key_for(cls, record_id: str) -> Dict[str, str]:
        """DynamoDB primary key for a record id."""
        return {cls.key_attribute: record_id}

    @property
    def record_id(self) -> str:
        return getattr(self, to_snake(self.key_attribute))

    def to_item(self) -> Dict[str, Any]:
        """Convert the record to a DynamoDB item."""
        return self.model_dump(by_alias=True)

    @classmethod
    def from_item(cls, item: Dict[str, Any]):
        """Create a record from a DynamoDB item."""
        return cls.model_validate(item)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


RecordT = TypeVar('RecordT', bound=Record)


class RecordPage(CamelModel, Generic[RecordT]):
    """One page of records plus the cursor for the next one."""

    items: List[RecordT]

    last_evaluated_key: Annotated[Optional[str], Field(
        description='Opaque cursor for the next page, null when exhausted'
    )] = None
