"""Tests for tenant-scoped record fetchers."""

import pytest
from datetime import datetime

from vesta.services import record_fetchers
from vesta.services.record_fetchers import contact_name, property_address
from vesta.utils.errors import SupabaseError


@pytest.mark.unit
@pytest.mark.parametrize("contact,expected", [
    ({"first_name": "Ana", "last_name": "García"}, "Ana García"),
    ({"first_name": "Ana", "last_name": None}, "Ana"),
    ({"first_name": None, "last_name": None}, None),
    (None, None),
])
def test_contact_name(contact, expected):
    """Test contact name joining."""
    assert contact_name(contact) == expected


@pytest.mark.unit
@pytest.mark.parametrize("prop,expected", [
    ({"street": "Calle Mayor 1", "address_details": "3º B"}, "Calle Mayor 1, 3º B"),
    ({"street": "Calle Mayor 1", "address_details": None}, "Calle Mayor 1"),
    ({"street": "  ", "address_details": "Local 2"}, "Local 2"),
    ({}, None),
    (None, None),
])
def test_property_address(prop, expected):
    """Test address joining skips blank parts."""
    assert property_address(prop) == expected


@pytest.mark.unit
@pytest.mark.asyncio
async def test_fetch_prospect_rows_flattens_contact(patch_record_client):
    """Test prospect rows are scoped and flattened."""
    query = patch_record_client([[
        {
            "prospect_id": 11,
            "status": "En búsqueda",
            "listing_type": "Sale",
            "prospect_type": "search",
            "property_type": "piso",
            "min_price": 100000,
            "max_price": 200000,
            "min_bedrooms": 2,
            "min_square_meters": 60,
            "urgency_level": 3,
            "updated_at": "2024-12-09T10:00:00",
            "contacts": {"first_name": "Ana", "last_name": "García", "account_id": 1},
        }
    ]])

    rows = await record_fetchers.fetch_prospect_rows(1, listing_type="Sale", status="En búsqueda")

    assert rows[0]["prospect_id"] == 11
    assert rows[0]["contact_name"] == "Ana García"
    assert "contacts" not in rows[0]
    query.eq.assert_any_call("contacts.account_id", 1)
    query.eq.assert_any_call("listing_type", "Sale")
    query.eq.assert_any_call("status", "En búsqueda")
    query.order.assert_called_with("updated_at", desc=True)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_fetch_prospect_rows_without_filters(patch_record_client):
    """Test optional filters are not applied when absent."""
    query = patch_record_client([[]])

    rows = await record_fetchers.fetch_prospect_rows(1)

    assert rows == []
    query.eq.assert_called_once_with("contacts.account_id", 1)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_fetch_lead_rows_buyers_only(patch_record_client):
    """Test leads are buyer listing-contacts with optional listing."""
    query = patch_record_client([[
        {
            "listing_contact_id": 5,
            "status": "New",
            "source": "Web",
            "updated_at": "2024-12-09T10:00:00",
            "contacts": {"first_name": "Luis", "last_name": "Pérez"},
            "listings": None,
        }
    ]])

    rows = await record_fetchers.fetch_lead_rows(1)

    assert rows == [{
        "lead_id": 5,
        "status": "New",
        "source": "Web",
        "updated_at": "2024-12-09T10:00:00",
        "contact_name": "Luis Pérez",
        "listing_type": None,
        "listing_address": None,
    }]
    state = patch_record_client.state
    state["client"].table.assert_called_with("listing_contacts")
    query.eq.assert_any_call("contact_type", "buyer")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_fetch_deal_rows_reads_stage(patch_record_client):
    """Test deal status comes from the stage column and price from the listing."""
    query = patch_record_client([[
        {
            "deal_id": 9,
            "status": "Offer",
            "close_date": None,
            "updated_at": "2024-12-09T10:00:00",
            "listings": {
                "listing_type": "Rent",
                "price": "950.00",
                "properties": {"street": "Calle Ancha 4", "address_details": None},
            },
        }
    ]])

    rows = await record_fetchers.fetch_deal_rows(1, listing_type="Rent", status="Offer")

    assert rows[0]["listing_type"] == "Rent"
    assert rows[0]["listing_price"] == "950.00"
    assert rows[0]["listing_address"] == "Calle Ancha 4"
    query.eq.assert_any_call("stage", "Offer")
    query.eq.assert_any_call("listings.listing_type", "Rent")
    query.eq.assert_any_call("listings.properties.account_id", 1)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_fetch_listing_status_rows_excludes_drafts(patch_record_client):
    """Test only active non-draft listings are read."""
    query = patch_record_client([[{"status": "Activo", "listing_type": "Sale"}]])

    rows = await record_fetchers.fetch_listing_status_rows(1)

    assert rows == [{"status": "Activo", "listing_type": "Sale"}]
    query.eq.assert_any_call("is_active", True)
    query.neq.assert_called_once_with("status", "Draft")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_fetch_lead_status_rows_without_listing(patch_record_client):
    """Test leads without a listing have no listing type."""
    patch_record_client([[
        {"status": "New", "listings": None},
        {"status": "Working", "listings": {"listing_type": "Rent"}},
    ]])

    rows = await record_fetchers.fetch_lead_status_rows(1)

    assert rows == [
        {"status": "New", "listing_type": None},
        {"status": "Working", "listing_type": "Rent"},
    ]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_fetch_prospect_task_rows_window(patch_record_client):
    """Test the due-date window and address resolution through the deal."""
    query = patch_record_client([[
        {
            "task_id": 1,
            "description": "Firmar arras",
            "due_date": "2024-12-10T09:00:00",
            "completed": False,
            "prospect_id": 3,
            "listing_contact_id": None,
            "deal_id": 4,
            "listing_id": None,
            "appointment_id": None,
            "listings": None,
            "deals": {"listings": {"properties": {"street": "Calle Ancha 4", "address_details": "1º"}}},
            "prospects": {"contacts": {"first_name": "Ana", "last_name": "García"}},
        }
    ]])
    start = datetime(2024, 12, 9)
    end = datetime(2024, 12, 15)

    rows = await record_fetchers.fetch_prospect_task_rows(1, start, end)

    assert rows[0]["contact_name"] == "Ana García"
    assert rows[0]["property_address"] == "Calle Ancha 4, 1º"
    assert rows[0]["prospect_id"] == 3
    query.eq.assert_any_call("completed", False)
    query.gte.assert_called_once_with("due_date", start.isoformat())
    query.lt.assert_called_once_with("due_date", end.isoformat())


@pytest.mark.unit
@pytest.mark.asyncio
async def test_fetch_appointment_rows_excludes_cancelled(patch_record_client):
    """Test appointment window and cancelled filter."""
    query = patch_record_client([[
        {
            "appointment_id": 2,
            "datetime_start": "2024-12-09T10:00:00",
            "datetime_end": "2024-12-09T11:00:00",
            "trip_time_minutes": 20,
            "status": "Scheduled",
            "notes": None,
            "type": None,
            "contacts": {"first_name": "Ana", "last_name": "García"},
            "listings": {"properties": {"street": "Calle Mayor 1", "address_details": None}},
        }
    ]])

    rows = await record_fetchers.fetch_appointment_rows(1, datetime(2024, 12, 9), datetime(2024, 12, 11))

    assert rows[0]["start_time"] == "2024-12-09T10:00:00"
    assert rows[0]["property_address"] == "Calle Mayor 1"
    query.neq.assert_called_once_with("status", "Cancelled")
    query.lte.assert_called_once_with("datetime_start", datetime(2024, 12, 11).isoformat())


@pytest.mark.unit
@pytest.mark.asyncio
async def test_fetch_wraps_errors(patch_record_client):
    """Test query failures raise SupabaseError."""
    query = patch_record_client([[]])
    query.execute.side_effect = RuntimeError("connection reset")

    with pytest.raises(SupabaseError, match="Failed to fetch deal statuses"):
        await record_fetchers.fetch_deal_status_rows(1)
