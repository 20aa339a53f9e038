"""
Pagination cursor encoding.

A cursor is the JSON encoding of the DynamoDB ``LastEvaluatedKey``. Clients
send it back URL-encoded in the ``lastEvaluatedKey`` query parameter.
"""

import json
from typing import Any, Dict, Optional
from urllib.parse import unquote

from ledger.handlers.utils.errors import BaseServiceError, ErrorCategory, ErrorSeverity


class InvalidCursorError(BaseServiceError):
    """Raised when a pagination cursor cannot be decoded into a table key."""

    def __init__(self, cursor: str, reason: str):
        super().__init__(
            message=f"Invalid pagination cursor: {reason}",
            error_code="INVALID_CURSOR",
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
        )
        self.cursor = cursor


def encode_cursor(last_evaluated_key: Optional[Dict[str, Any]]) -> Optional[str]:
    if not last_evaluated_key:
        return None
    return json.dumps(last_evaluated_key, sort_keys=True, default=str)


def decode_cursor(cursor: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Decode a cursor received from a client.

    API Gateway already URL-decodes query parameters, so decoding again is a
    no-op for well-behaved clients but accepts cursors encoded twice. A
    cursor that was JSON-encoded twice is unwrapped as well.

    Args:
        cursor: Raw query parameter value

    Returns:
        The exclusive start key, or None when no cursor was given

    Raises:
        InvalidCursorError: If the cursor is not a JSON object
    """
    if not cursor:
        return None

    try:
        key = json.loads(unquote(cursor))
        if isinstance(key, str):
            key = json.loads(key)
    except json.JSONDecodeError as e:
        raise InvalidCursorError(cursor, str(e)) from e

    if not isinstance(key, dict) or not key:
        raise InvalidCursorError(cursor, "expected a non-empty JSON object")

    return key
