"""
Business logic for ledger records.

``RecordService`` implements the record lifecycle once for every record type:
create stamps a fresh id and timestamp, update/patch never touch either, and
a missing record surfaces as ``RecordNotFoundError``. Each operation issues
exactly one store call, except ``iter_all`` which walks the table lazily.
"""

from typing import Generic, Iterator, Optional, Type

from aws_lambda_powertools.metrics import MetricUnit
from boto3.dynamodb.conditions import Attr

from ledger.dal import DalHandler
from ledger.dal.dynamodb_handler import ConditionalCheckFailedError
from ledger.handlers.utils.errors import ErrorContext, ResourceNotFoundError, ValidationError
from ledger.handlers.utils.observability import logger, metrics, tracer
from ledger.logic.pagination import decode_cursor, encode_cursor
from ledger.models.base import RecordPage, RecordRequest, RecordT


class RecordNotFoundError(ResourceNotFoundError):
    """Raised when a record does not exist."""

    def __init__(self, label: str, record_id: str, context: Optional[ErrorContext] = None):
        super().__init__(resource_type=label, resource_id=record_id, context=context)


def _log_extra(context: Optional[ErrorContext], **fields) -> dict:
    """Structured log fields, tagged with the request id and operation when known."""
    if context is not None:
        fields.update(request_id=context.request_id, operation=context.operation)
    return fields


class RecordService(Generic[RecordT]):
    """CRUD operations for one record type backed by one table."""

    def __init__(
        self,
        dal: DalHandler,
        record_cls: Type[RecordT],
        page_size: int = 10,
    ):
        """
        Initialize record service.

        Args:
            dal: Data access handler for the record table
            record_cls: Record model stored in the table
            page_size: Maximum number of records per page
        """
        self.dal = dal
        self.record_cls = record_cls
        self.page_size = page_size

    @property
    def label(self) -> str:
        return self.record_cls.label

    @tracer.capture_method
    def create(self, request: RecordRequest, context: Optional[ErrorContext] = None) -> RecordT:
        """
        Create and persist a new record.

        Args:
            request: Mutable fields supplied by the caller
            context: Error context for tracing

        Returns:
            The stored record
        """
        record = self.record_cls.create(request)
        self.dal.put_item(record.to_item())

        metrics.add_metric(name=f"{self.label}Created", unit=MetricUnit.Count, value=1)
        tracer.put_annotation("record_id", record.record_id)
        logger.info(f"{self.label} created", extra=_log_extra(context, record_id=record.record_id))

        return record

    @tracer.capture_method
    def get(self, record_id: str, context: Optional[ErrorContext] = None) -> RecordT:
        """
        Get a record by id.

        Raises:
            RecordNotFoundError: If no record has this id
        """
        item = self.dal.get_item(self.record_cls.key_for(record_id))
        if item is None:
            raise RecordNotFoundError(self.label, record_id, context)

        return self.record_cls.from_item(item)

    @tracer.capture_method
    def list_page(
        self,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
        context: Optional[ErrorContext] = None,
    ) -> RecordPage[RecordT]:
        """
        Get one page of records.

        Args:
            cursor: Cursor returned with the previous page
            limit: Requested page size, clamped to ``[1, page_size]``
            context: Error context for tracing

        Returns:
            Records of the page and the cursor of the next one (None when exhausted)

        Raises:
            InvalidCursorError: If the cursor cannot be decoded
        """
        page_size = self.page_size if limit is None else max(1, min(limit, self.page_size))

        result = self.dal.scan_items(
            limit=page_size,
            exclusive_start_key=decode_cursor(cursor),
        )

        items = [self.record_cls.from_item(item) for item in result['items']]
        logger.debug(f"{self.label} page read", extra=_log_extra(
            context, count=len(items), has_more_results="last_evaluated_key" in result,
        ))

        return RecordPage[self.record_cls](
            items=items,
            last_evaluated_key=encode_cursor(result.get('last_evaluated_key')),
        )

    def iter_all(self) -> Iterator[RecordT]:
        """Lazily iterate over every record, fetching one page at a time."""
        for item in self.dal.iter_items(page_size=self.page_size):
            yield self.record_cls.from_item(item)

    @tracer.capture_method
    def replace(self, record_id: str, request: RecordRequest, context: Optional[ErrorContext] = None) -> RecordT:
        """
        Overwrite every mutable field of a record.

        Fields the caller omitted are written as null.

        Raises:
            RecordNotFoundError: If no record has this id
        """
        return self._update(record_id, request.replacement_fields(), context)

    @tracer.capture_method
    def patch(self, record_id: str, request: RecordRequest, context: Optional[ErrorContext] = None) -> RecordT:
        """
        Overwrite only the mutable fields the caller supplied.

        Raises:
            ValidationError: If the caller supplied no fields
            RecordNotFoundError: If no record has this id
        """
        fields = request.patch_fields()
        if not fields:
            raise ValidationError(
                message=f"No {self.label.lower()} fields supplied",
                context=context,
            )

        return self._update(record_id, fields, context)

    def _update(self, record_id: str, fields: dict, context: Optional[ErrorContext]) -> RecordT:
        try:
            item = self.dal.update_item(
                key=self.record_cls.key_for(record_id),
                fields=fields,
                condition_expression=Attr(self.record_cls.key_attribute).exists(),
            )
        except ConditionalCheckFailedError:
            raise RecordNotFoundError(self.label, record_id, context)

        metrics.add_metric(name=f"{self.label}Updated", unit=MetricUnit.Count, value=1)
        tracer.put_annotation("record_id", record_id)
        logger.info(f"{self.label} updated", extra=_log_extra(context, record_id=record_id, fields=sorted(fields)))

        return self.record_cls.from_item(item)

    @tracer.capture_method
    def delete(self, record_id: str, context: Optional[ErrorContext] = None) -> None:
        """Delete a record. Deleting a missing record is not an error."""
        deleted = self.dal.delete_item(self.record_cls.key_for(record_id))

        metrics.add_metric(name=f"{self.label}Deleted", unit=MetricUnit.Count, value=1)
        tracer.put_annotation("record_id", record_id)
        logger.info(f"{self.label} delete processed", extra=_log_extra(context, record_id=record_id, existed=deleted))
