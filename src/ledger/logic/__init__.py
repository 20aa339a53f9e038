"""
Business Logic Layer Module.

The logic layer sits between the API handlers and the data access layer. A
single generic ``RecordService`` carries the record lifecycle for both
transactions and users.
"""

from ledger.logic.pagination import InvalidCursorError, decode_cursor, encode_cursor
from ledger.logic.record_service import RecordNotFoundError, RecordService

__all__ = [
    "InvalidCursorError",
    "RecordNotFoundError",
    "RecordService",
    "decode_cursor",
    "encode_cursor",
]
