"""
Data Access Layer (DAL) for the ledger service.

This module provides the data access interface and the factory functions that
hand out the shared DynamoDB resource and per-table handlers. Both are created
lazily on first use and reused across warm invocations.
"""

from functools import lru_cache
from typing import Any, Dict, Iterator, Optional, Protocol, runtime_checkable

import boto3


@runtime_checkable
class DalHandler(Protocol):
    """Protocol defining the store primitives used by the logic layer."""

    table_name: str

    def put_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """Create or overwrite an item."""
        ...

    def get_item(self, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Get a single item by key."""
        ...

    def update_item(
        self,
        key: Dict[str, Any],
        fields: Dict[str, Any],
        condition_expression: Optional[Any] = None,
    ) -> Optional[Dict[str, Any]]:
        """Set the given fields and return the updated item."""
        ...

    def delete_item(self, key: Dict[str, Any]) -> bool:
        """Delete an item by key."""
        ...

    def scan_items(
        self,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Scan one page of items."""
        ...

    def iter_items(self, page_size: Optional[int] = None) -> Iterator[Dict[str, Any]]:
        """Lazily iterate over every item, one scan page at a time."""
        ...


@lru_cache(maxsize=None)
def get_dynamodb_resource(region_name: Optional[str] = None, endpoint_url: Optional[str] = None):
    """
    Get the process-wide DynamoDB resource.

    Args:
        region_name: AWS region name
        endpoint_url: DynamoDB endpoint URL (for local testing)

    Returns:
        boto3 DynamoDB service resource
    """
    session_config = {}
    if region_name:
        session_config['region_name'] = region_name
    if endpoint_url:
        session_config['endpoint_url'] = endpoint_url

    return boto3.resource('dynamodb', **session_config)


@lru_cache(maxsize=None)
def get_dal_handler(
    table_name: str,
    region_name: Optional[str] = None,
    endpoint_url: Optional[str] = None,
) -> DalHandler:
    """
    Factory function to get the DAL handler for a table.

    Args:
        table_name: Name of the DynamoDB table
        region_name: AWS region name
        endpoint_url: DynamoDB endpoint URL (for local testing)

    Returns:
        DAL handler instance
    """
    # Import here to avoid circular imports
    from ledger.dal.dynamodb_handler import DynamoDBHandler

    return DynamoDBHandler(table_name, region_name=region_name, endpoint_url=endpoint_url)


__all__ = [
    'DalHandler',
    'get_dal_handler',
    'get_dynamodb_resource',
]
