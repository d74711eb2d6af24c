"""Tests for kanban aggregation and operation counts."""

import pytest
from unittest.mock import AsyncMock, patch

from tests.utils.assertions import assert_valid_kanban
from tests.utils.factories import create_deal_row, create_lead_row, create_prospect_row, create_status_rows
from vesta.models.operations import (
    DEAL_STATUSES,
    LEAD_STATUSES,
    PROSPECT_STATUSES,
    OperationFilters,
    OperationType,
)
from vesta.services.operations_kanban import get_kanban_data, get_operation_counts
from vesta.utils.errors import SupabaseError


@pytest.mark.unit
@pytest.mark.asyncio
async def test_kanban_columns_in_workflow_order():
    """Test cards are grouped into ordered status columns."""
    rows = [
        create_prospect_row(status="En búsqueda"),
        create_prospect_row(status="Archivado"),
        create_prospect_row(status="En búsqueda"),
    ]

    with patch('vesta.services.record_fetchers.fetch_prospect_rows', new=AsyncMock(return_value=rows)):
        kanban = await get_kanban_data(OperationType.PROSPECTS, 1)

    assert_valid_kanban(kanban, PROSPECT_STATUSES)
    counts = {column.status: column.item_count for column in kanban.columns}
    assert counts == {"En búsqueda": 2, "En preparación": 0, "Archivado": 1, "Finalizado": 0}
    assert kanban.total_count == 3


@pytest.mark.unit
@pytest.mark.asyncio
async def test_kanban_empty_board_has_all_columns():
    """Test an empty result still yields every column."""
    with patch('vesta.services.record_fetchers.fetch_deal_rows', new=AsyncMock(return_value=[])):
        kanban = await get_kanban_data(OperationType.DEALS, 1)

    assert_valid_kanban(kanban, DEAL_STATUSES)
    assert kanban.total_count == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_kanban_unknown_status_counted_not_placed():
    """Test cards outside the workflow count toward total only."""
    rows = [create_lead_row(status="New"), create_lead_row(status="Qualified")]

    with patch('vesta.services.record_fetchers.fetch_lead_rows', new=AsyncMock(return_value=rows)):
        kanban = await get_kanban_data(OperationType.LEADS, 1)

    assert_valid_kanban(kanban, LEAD_STATUSES)
    assert kanban.total_count == 2
    assert sum(column.item_count for column in kanban.columns) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_kanban_preserves_fetch_order_within_column():
    """Test most recently touched cards stay first."""
    rows = [
        create_deal_row(deal_id=3, status="Offer"),
        create_deal_row(deal_id=1, status="Offer"),
        create_deal_row(deal_id=2, status="Offer"),
    ]

    with patch('vesta.services.record_fetchers.fetch_deal_rows', new=AsyncMock(return_value=rows)):
        kanban = await get_kanban_data(OperationType.DEALS, 1, OperationFilters(status="Offer"))

    assert [card.id for card in kanban.columns[0].items] == [3, 1, 2]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_kanban_fetch_failure_raises():
    """Test errors propagate to the caller."""
    with patch('vesta.services.record_fetchers.fetch_deal_rows', new=AsyncMock(side_effect=SupabaseError("down"))):
        with pytest.raises(SupabaseError):
            await get_kanban_data(OperationType.DEALS, 1)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_operation_counts():
    """Test Sale/Rent counts; other listing types are not counted."""
    rows = (
        create_status_rows("En búsqueda", "Sale", 3)
        + create_status_rows("Archivado", "Rent", 2)
        + create_status_rows("En búsqueda", "Transfer", 1)
        + create_status_rows("En búsqueda", None, 1)
    )

    with patch.dict(
        'vesta.services.operations_kanban.COUNT_FETCHERS',
        {OperationType.PROSPECTS: AsyncMock(return_value=rows)}
    ):
        counts = await get_operation_counts(OperationType.PROSPECTS, 1)

    assert (counts.sale, counts.rent, counts.all) == (3, 2, 5)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_operation_counts_fail_soft():
    """Test failures return zero counts."""
    with patch.dict(
        'vesta.services.operations_kanban.COUNT_FETCHERS',
        {OperationType.DEALS: AsyncMock(side_effect=SupabaseError("down"))}
    ):
        counts = await get_operation_counts(OperationType.DEALS, 1)

    assert (counts.sale, counts.rent, counts.all) == (0, 0, 0)
