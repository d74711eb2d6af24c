"""Tenant-scoped record reads against Supabase.

Each fetcher returns flat dict rows; embedded PostgREST resources are folded
into `contact_name`, `listing_type`, `listing_address` and similar keys.
"""

from datetime import datetime
from typing import Any, Optional

from vesta.services.supabase_client import SupabaseClient, fetch_all_rows
from vesta.utils.errors import SupabaseError
from vesta.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

BUYER_CONTACT_TYPE = "buyer"
DRAFT_LISTING_STATUS = "Draft"
CANCELLED_APPOINTMENT_STATUS = "Cancelled"

PROPERTY_ADDRESS = "properties(street, address_details)"

PROSPECT_COLUMNS = (
    "prospect_id, status, listing_type, prospect_type, property_type, "
    "min_price, max_price, min_bedrooms, min_square_meters, urgency_level, "
    "created_at, updated_at, "
    "contacts!inner(first_name, last_name, email, phone, account_id)"
)

LEAD_COLUMNS = (
    "listing_contact_id, status, source, created_at, updated_at, "
    "contacts!inner(first_name, last_name, account_id), "
    f"listings(listing_type, {PROPERTY_ADDRESS})"
)

# deals.status is stored in the `stage` column
DEAL_COLUMNS = (
    "deal_id, status:stage, close_date, created_at, updated_at, "
    "listings!inner(listing_type, price, properties!inner(street, address_details, account_id))"
)

TASK_COLUMNS = (
    "task_id, description, due_date, completed, "
    "prospect_id, listing_contact_id, deal_id, listing_id, appointment_id, "
    f"listings({PROPERTY_ADDRESS}), deals(listings({PROPERTY_ADDRESS}))"
)

APPOINTMENT_COLUMNS = (
    "appointment_id, datetime_start, datetime_end, trip_time_minutes, status, notes, type, "
    "contacts!inner(first_name, last_name, account_id), "
    f"listings({PROPERTY_ADDRESS})"
)


def contact_name(contact: Optional[dict]) -> Optional[str]:
    """First and last name of an embedded contact."""
    if not contact:
        return None
    name = f"{contact.get('first_name') or ''} {contact.get('last_name') or ''}".strip()
    return name or None


def property_address(prop: Optional[dict]) -> Optional[str]:
    """Street and address details of an embedded property, blanks skipped."""
    if not prop:
        return None
    parts = [
        str(part).strip()
        for part in (prop.get("street"), prop.get("address_details"))
        if part and str(part).strip()
    ]
    return ", ".join(parts) or None


def _listing_address(listing: Optional[dict]) -> Optional[str]:
    return property_address((listing or {}).get("properties"))


def _listing_type(listing: Optional[dict]) -> Optional[str]:
    return (listing or {}).get("listing_type")


async def _read_all(operation: str, build_query, **context: Any) -> list[dict]:
    """Run a paged read, wrapping any failure into SupabaseError."""
    async with SupabaseClient() as client:
        try:
            rows = await fetch_all_rows(lambda: build_query(client))
        except Exception as e:
            logger.error(
                f"Failed to fetch {operation}",
                operation=operation,
                error=str(e),
                **context
            )
            raise SupabaseError(f"Failed to fetch {operation}: {e}") from e

    logger.debug(
        f"Fetched {operation}",
        operation=operation,
        row_count=len(rows),
        **context
    )
    return rows


# Operation cards

async def fetch_prospect_rows(
    account_id: int,
    listing_type: Optional[str] = None,
    status: Optional[str] = None
) -> list[dict]:
    """Prospects with their contact, most recently updated first."""
    def build(client):
        query = client.table("prospects").select(PROSPECT_COLUMNS).eq("contacts.account_id", account_id)
        if listing_type:
            query = query.eq("listing_type", listing_type)
        if status:
            query = query.eq("status", status)
        return query.order("updated_at", desc=True)

    rows = await _read_all(
        "prospects", build,
        account_id=account_id, listing_type=listing_type, status_filter=status
    )
    return [
        {
            "prospect_id": row["prospect_id"],
            "status": row.get("status"),
            "listing_type": row.get("listing_type"),
            "prospect_type": row.get("prospect_type"),
            "property_type": row.get("property_type"),
            "min_price": row.get("min_price"),
            "max_price": row.get("max_price"),
            "min_bedrooms": row.get("min_bedrooms"),
            "min_square_meters": row.get("min_square_meters"),
            "urgency_level": row.get("urgency_level"),
            "updated_at": row.get("updated_at"),
            "contact_name": contact_name(row.get("contacts")),
        }
        for row in rows
    ]


async def fetch_lead_rows(account_id: int, status: Optional[str] = None) -> list[dict]:
    """
    Buyer lead-contacts with their contact and, when attached, listing.

    No listing-type filter here: unattached leads have no listing type and
    the caller decides how to treat them.
    """
    def build(client):
        query = (
            client.table("listing_contacts")
            .select(LEAD_COLUMNS)
            .eq("contacts.account_id", account_id)
            .eq("contact_type", BUYER_CONTACT_TYPE)
        )
        if status:
            query = query.eq("status", status)
        return query.order("updated_at", desc=True)

    rows = await _read_all("leads", build, account_id=account_id, status_filter=status)
    return [
        {
            "lead_id": row["listing_contact_id"],
            "status": row.get("status"),
            "source": row.get("source"),
            "updated_at": row.get("updated_at"),
            "contact_name": contact_name(row.get("contacts")),
            "listing_type": _listing_type(row.get("listings")),
            "listing_address": _listing_address(row.get("listings")),
        }
        for row in rows
    ]


async def fetch_deal_rows(
    account_id: int,
    listing_type: Optional[str] = None,
    status: Optional[str] = None
) -> list[dict]:
    """Deals with their listing and property, most recently updated first."""
    def build(client):
        query = client.table("deals").select(DEAL_COLUMNS).eq("listings.properties.account_id", account_id)
        if listing_type:
            query = query.eq("listings.listing_type", listing_type)
        if status:
            query = query.eq("stage", status)
        return query.order("updated_at", desc=True)

    rows = await _read_all(
        "deals", build,
        account_id=account_id, listing_type=listing_type, status_filter=status
    )
    return [
        {
            "deal_id": row["deal_id"],
            "status": row.get("status"),
            "close_date": row.get("close_date"),
            "updated_at": row.get("updated_at"),
            "listing_type": _listing_type(row.get("listings")),
            "listing_price": (row.get("listings") or {}).get("price"),
            "listing_address": _listing_address(row.get("listings")),
        }
        for row in rows
    ]


# Status / listing-type rows for the summary and count aggregators

async def fetch_prospect_status_rows(account_id: int) -> list[dict]:
    def build(client):
        return (
            client.table("prospects")
            .select("status, listing_type, contacts!inner(account_id)")
            .eq("contacts.account_id", account_id)
        )

    rows = await _read_all("prospect statuses", build, account_id=account_id)
    return [{"status": row.get("status"), "listing_type": row.get("listing_type")} for row in rows]


async def fetch_listing_status_rows(account_id: int) -> list[dict]:
    """Active, non-draft listings."""
    def build(client):
        return (
            client.table("listings")
            .select("status, listing_type")
            .eq("account_id", account_id)
            .eq("is_active", True)
            .neq("status", DRAFT_LISTING_STATUS)
        )

    rows = await _read_all("listing statuses", build, account_id=account_id)
    return [{"status": row.get("status"), "listing_type": row.get("listing_type")} for row in rows]


async def fetch_lead_status_rows(account_id: int) -> list[dict]:
    """Buyer lead-contacts; listing_type is None when no listing is attached."""
    def build(client):
        return (
            client.table("listing_contacts")
            .select("status, contacts!inner(account_id), listings(listing_type)")
            .eq("contacts.account_id", account_id)
            .eq("contact_type", BUYER_CONTACT_TYPE)
        )

    rows = await _read_all("lead statuses", build, account_id=account_id)
    return [
        {"status": row.get("status"), "listing_type": _listing_type(row.get("listings"))}
        for row in rows
    ]


async def fetch_deal_status_rows(account_id: int) -> list[dict]:
    def build(client):
        return (
            client.table("deals")
            .select("status:stage, listings!inner(listing_type, properties!inner(account_id))")
            .eq("listings.properties.account_id", account_id)
        )

    rows = await _read_all("deal statuses", build, account_id=account_id)
    return [
        {"status": row.get("status"), "listing_type": _listing_type(row.get("listings"))}
        for row in rows
    ]


# Tasks and appointments

def _flatten_task(row: dict, contact: Optional[dict]) -> dict:
    address = _listing_address(row.get("listings")) or _listing_address(
        (row.get("deals") or {}).get("listings")
    )
    return {
        "task_id": row["task_id"],
        "description": row.get("description") or "",
        "due_date": row.get("due_date"),
        "completed": bool(row.get("completed")),
        "prospect_id": row.get("prospect_id"),
        "listing_contact_id": row.get("listing_contact_id"),
        "deal_id": row.get("deal_id"),
        "listing_id": row.get("listing_id"),
        "appointment_id": row.get("appointment_id"),
        "contact_name": contact_name(contact),
        "property_address": address,
    }


def _open_tasks_due_between(query, window_start: datetime, window_end: datetime):
    # The range filters also exclude tasks without a due date
    return (
        query
        .eq("is_active", True)
        .eq("completed", False)
        .gte("due_date", window_start.isoformat())
        .lt("due_date", window_end.isoformat())
        .order("due_date")
    )


async def fetch_prospect_task_rows(
    account_id: int,
    window_start: datetime,
    window_end: datetime
) -> list[dict]:
    """Open tasks reaching the tenant through prospect -> contact."""
    def build(client):
        query = (
            client.table("tasks")
            .select(f"{TASK_COLUMNS}, prospects!inner(contacts!inner(first_name, last_name, account_id))")
            .eq("prospects.contacts.account_id", account_id)
        )
        return _open_tasks_due_between(query, window_start, window_end)

    rows = await _read_all("prospect tasks", build, account_id=account_id)
    return [
        _flatten_task(row, (row.get("prospects") or {}).get("contacts"))
        for row in rows
    ]


async def fetch_lead_task_rows(
    account_id: int,
    window_start: datetime,
    window_end: datetime
) -> list[dict]:
    """Open tasks reaching the tenant through buyer lead-contact -> contact."""
    def build(client):
        query = (
            client.table("tasks")
            .select(
                f"{TASK_COLUMNS}, "
                "listing_contacts!inner(contact_type, contacts!inner(first_name, last_name, account_id))"
            )
            .eq("listing_contacts.contact_type", BUYER_CONTACT_TYPE)
            .eq("listing_contacts.contacts.account_id", account_id)
        )
        return _open_tasks_due_between(query, window_start, window_end)

    rows = await _read_all("lead tasks", build, account_id=account_id)
    return [
        _flatten_task(row, (row.get("listing_contacts") or {}).get("contacts"))
        for row in rows
    ]


async def fetch_appointment_rows(
    account_id: int,
    window_start: datetime,
    window_end: datetime
) -> list[dict]:
    """Active, non-cancelled appointments starting inside the window."""
    def build(client):
        return (
            client.table("appointments")
            .select(APPOINTMENT_COLUMNS)
            .eq("contacts.account_id", account_id)
            .gte("datetime_start", window_start.isoformat())
            .lte("datetime_start", window_end.isoformat())
            .eq("is_active", True)
            .neq("status", CANCELLED_APPOINTMENT_STATUS)
            .order("datetime_start")
        )

    rows = await _read_all("appointments", build, account_id=account_id)
    return [
        {
            "appointment_id": row["appointment_id"],
            "start_time": row.get("datetime_start"),
            "end_time": row.get("datetime_end"),
            "trip_time_minutes": row.get("trip_time_minutes"),
            "status": row.get("status"),
            "notes": row.get("notes"),
            "type": row.get("type"),
            "contact_name": contact_name(row.get("contacts")),
            "property_address": _listing_address(row.get("listings")),
        }
        for row in rows
    ]
