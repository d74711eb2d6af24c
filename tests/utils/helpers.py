"""Test helper functions."""

import json
from typing import Any, Dict, Optional
from unittest.mock import MagicMock


def create_query_chain(pages: list) -> MagicMock:
    """
    Mock PostgREST query builder.

    Every builder method returns the same mock, so any chain of
    select/eq/neq/order/range calls ends at `execute`, which returns the
    given pages in order.
    """
    query = MagicMock()
    for method in ("select", "eq", "neq", "gte", "lt", "lte", "order", "range"):
        getattr(query, method).return_value = query
    query.execute.side_effect = [MagicMock(data=page) for page in pages]
    return query


def create_mock_client(query: MagicMock) -> MagicMock:
    """Mock Supabase client whose table() returns the given query chain."""
    client = MagicMock()
    client.table.return_value = query
    return client


def create_vercel_request(
    method: str = "GET",
    path: str = "/api/operaciones/kanban",
    body: Any = None,
    headers: Optional[Dict[str, str]] = None,
    query: Optional[Dict[str, str]] = None,
    account_id: Optional[int] = 1
) -> Dict[str, Any]:
    """Create a Vercel request object for testing."""
    if headers is None:
        headers = {"content-type": "application/json"}
        if account_id is not None:
            headers["x-account-id"] = str(account_id)

    return {
        "method": method,
        "path": path,
        "headers": headers,
        "body": json.dumps(body) if isinstance(body, dict) else body,
        "query": query or {},
    }


def complete_listing_record(**overrides) -> Dict[str, Any]:
    """Listing record satisfying every mandatory rule for a piso."""
    record = {
        "price": 300000,
        "listingType": "Sale",
        "propertyType": "piso",
        "squareMeter": 90,
        "bedrooms": 2,
        "bathrooms": 1,
        "street": "Calle Mayor 1",
        "city": "León",
        "province": "León",
        "postalCode": "24001",
        "description": "Piso luminoso en el centro con vistas a la catedral",
        "imageCount": 5,
    }
    record.update(overrides)
    return record
