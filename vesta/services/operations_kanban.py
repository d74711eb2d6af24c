"""Kanban board aggregation and per-track operation counts."""

from collections import Counter
from typing import Optional

from vesta.models.operations import (
    KanbanColumn,
    KanbanData,
    OperationCounts,
    OperationFilters,
    OperationType,
    get_statuses_for_operation_type,
)
from vesta.services import record_fetchers
from vesta.services.operation_cards import get_operations_by_type
from vesta.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)


async def get_kanban_data(
    operation_type: OperationType,
    account_id: int,
    filters: Optional[OperationFilters] = None
) -> KanbanData:
    """
    Group an operation type's cards into one column per workflow status.

    Columns follow the fixed status order and are present even when empty.
    Cards whose status is outside the workflow are counted in total_count
    but placed in no column.
    """
    filters = filters or OperationFilters()

    try:
        with log_timing(
            "get_kanban_data",
            logger=logger,
            operation_type=operation_type.value,
            account_id=account_id
        ):
            operations = await get_operations_by_type(operation_type, account_id, filters)

            columns = []
            for status in get_statuses_for_operation_type(operation_type):
                items = [op for op in operations if op.status == status]
                columns.append(KanbanColumn(
                    id=status,
                    title=status,
                    status=status,
                    items=items,
                    item_count=len(items),
                ))

            kanban = KanbanData(columns=columns, total_count=len(operations))
    except Exception as e:
        logger.error(
            f"Error fetching kanban data for {operation_type.value}",
            operation_type=operation_type.value,
            account_id=account_id,
            filters=filters.model_dump(mode="json"),
            error=str(e)
        )
        raise

    logger.info(
        f"Built {operation_type.value} kanban",
        operation_type=operation_type.value,
        account_id=account_id,
        total_count=kanban.total_count
    )

    unplaced = kanban.total_count - sum(column.item_count for column in kanban.columns)
    if unplaced:
        logger.warning(
            "Cards with statuses outside the workflow were left off the board",
            operation_type=operation_type.value,
            account_id=account_id,
            unplaced_count=unplaced
        )

    return kanban


COUNT_FETCHERS = {
    OperationType.PROSPECTS: record_fetchers.fetch_prospect_status_rows,
    OperationType.LEADS: record_fetchers.fetch_lead_status_rows,
    OperationType.DEALS: record_fetchers.fetch_deal_status_rows,
}


async def get_operation_counts(operation_type: OperationType, account_id: int) -> OperationCounts:
    """
    Sale and Rent totals for an operation type, ignoring status.

    Fails soft: any error is logged and zero counts are returned.
    """
    try:
        rows = await COUNT_FETCHERS[operation_type](account_id)
    except Exception as e:
        logger.error(
            f"Error fetching operation counts for {operation_type}",
            operation_type=str(operation_type),
            account_id=account_id,
            error=str(e)
        )
        return OperationCounts()

    by_type = Counter(row["listing_type"] for row in rows)
    sale = by_type.get("Sale", 0)
    rent = by_type.get("Rent", 0)
    return OperationCounts(sale=sale, rent=rent, all=sale + rent)
