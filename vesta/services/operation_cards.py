"""Map prospects, leads and deals into unified operation cards."""

from typing import Optional

from vesta.models.operations import (
    DEFAULT_LISTING_TYPE,
    OperationCard,
    OperationFilters,
    OperationType,
)
from vesta.services import record_fetchers
from vesta.services.need_summary import build_need_summary
from vesta.utils.errors import InvalidOperationError
from vesta.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


def _apply_search(cards: list[OperationCard], search_query: Optional[str]) -> list[OperationCard]:
    # TODO: match search_query against contact name / listing address once the
    # board search box ships; until then the filter is accepted and ignored.
    return cards


async def get_prospects_as_cards(account_id: int, filters: OperationFilters) -> list[OperationCard]:
    """Prospects with a contact, most recently touched first."""
    rows = await record_fetchers.fetch_prospect_rows(
        account_id,
        listing_type=filters.listing_type.listing_type,
        status=filters.status,
    )

    cards = [
        OperationCard(
            id=row["prospect_id"],
            type="prospect",
            status=row["status"],
            listing_type=row["listing_type"] or DEFAULT_LISTING_TYPE,
            contact_name=row["contact_name"],
            need_summary=build_need_summary(row),
            urgency_level=row["urgency_level"],
            last_activity=row["updated_at"],
        )
        for row in rows
    ]
    return _apply_search(cards, filters.search_query)


async def get_leads_as_cards(account_id: int, filters: OperationFilters) -> list[OperationCard]:
    """
    Buyer leads as cards.

    The listing-type filter runs in memory: a lead without an attached
    listing matches every listing type.
    """
    rows = await record_fetchers.fetch_lead_rows(account_id, status=filters.status)

    expected_type = filters.listing_type.listing_type
    if expected_type:
        rows = [
            row for row in rows
            if not row["listing_type"] or row["listing_type"] == expected_type
        ]

    cards = [
        OperationCard(
            id=row["lead_id"],
            type="lead",
            status=row["status"],
            listing_type=row["listing_type"] or DEFAULT_LISTING_TYPE,
            contact_name=row["contact_name"],
            listing_address=row["listing_address"],
            source=row["source"],
            last_activity=row["updated_at"],
        )
        for row in rows
    ]
    return _apply_search(cards, filters.search_query)


async def get_deals_as_cards(account_id: int, filters: OperationFilters) -> list[OperationCard]:
    """Deals as cards; the amount is the listing's asking price."""
    rows = await record_fetchers.fetch_deal_rows(
        account_id,
        listing_type=filters.listing_type.listing_type,
        status=filters.status,
    )

    cards = [
        OperationCard(
            id=row["deal_id"],
            type="deal",
            status=row["status"],
            listing_type=row["listing_type"] or DEFAULT_LISTING_TYPE,
            listing_address=row["listing_address"],
            amount=float(row["listing_price"]) if row["listing_price"] else None,
            close_date=row["close_date"],
            last_activity=row["updated_at"],
            participants=[],
        )
        for row in rows
    ]
    return _apply_search(cards, filters.search_query)


CARD_MAPPERS = {
    OperationType.PROSPECTS: get_prospects_as_cards,
    OperationType.LEADS: get_leads_as_cards,
    OperationType.DEALS: get_deals_as_cards,
}


async def get_operations_by_type(
    operation_type: OperationType,
    account_id: int,
    filters: Optional[OperationFilters] = None
) -> list[OperationCard]:
    """Dispatch to the card mapper of an operation type."""
    mapper = CARD_MAPPERS.get(operation_type)
    if mapper is None:
        raise InvalidOperationError(f"Unknown operation type: {operation_type}")
    return await mapper(account_id, filters or OperationFilters())
