"""Operations kanban endpoint."""

import asyncio

from vesta.models.operations import ListingTypeFilter, OperationFilters, OperationType
from vesta.services.operations_kanban import get_kanban_data, get_operation_counts
from vesta.utils.errors import InvalidOperationError
from vesta.utils.http import query_params, run_handler
from vesta.utils.logging import setup_logging

setup_logging()


def parse_filters(params: dict) -> tuple[OperationType, OperationFilters]:
    """Operation type and filters from the query string."""
    try:
        operation_type = OperationType(params.get("type") or OperationType.PROSPECTS.value)
    except ValueError as e:
        raise InvalidOperationError(f"Unknown operation type: {params.get('type')}") from e

    try:
        listing_type = ListingTypeFilter(params.get("listing_type") or ListingTypeFilter.ALL.value)
    except ValueError as e:
        raise InvalidOperationError(f"Unknown listing type: {params.get('listing_type')}") from e

    filters = OperationFilters(
        listing_type=listing_type,
        status=params.get("status") or None,
        search_query=params.get("q") or None,
    )
    return operation_type, filters


async def _kanban(request: dict, account_id: int) -> dict:
    operation_type, filters = parse_filters(query_params(request))

    kanban, counts = await asyncio.gather(
        get_kanban_data(operation_type, account_id, filters),
        get_operation_counts(operation_type, account_id),
    )
    return {
        "type": operation_type.value,
        "kanban": kanban,
        "counts": counts,
    }


def handler(request):
    """
    Kanban board for one operation type.

    Query params: type (prospects, leads, deals), listing_type (sale, rent,
    all), status, q.
    """
    return run_handler(request, "kanban", _kanban)
