"""Dashboard queries: operations summary, urgent tasks and upcoming appointments."""

import asyncio
import os
from collections import Counter
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from vesta.models.dashboard import (
    AppointmentRef,
    DealRef,
    EntityRef,
    LeadRef,
    ListingRef,
    OperacionesSummary,
    ProspectRef,
    TodayAppointment,
    TrackSummary,
    UrgentTask,
)
from vesta.services import record_fetchers
from vesta.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)

DEFAULT_WORKING_DAYS_LIMIT = int(os.environ.get("URGENT_TASKS_WORKING_DAYS", "5"))
APPOINTMENTS_LOOKAHEAD_DAYS = int(os.environ.get("APPOINTMENTS_LOOKAHEAD_DAYS", "2"))

DEFAULT_APPOINTMENT_TYPE = "viewing"

# First non-null foreign key wins
TASK_ENTITY_PRIORITY = (
    ("prospect_id", ProspectRef),
    ("listing_contact_id", LeadRef),
    ("deal_id", DealRef),
    ("listing_id", ListingRef),
    ("appointment_id", AppointmentRef),
)


def calculate_working_days(start: date, end: date) -> int:
    """Monday-Friday dates in the inclusive range [start, end]; 0 if end < start."""
    working_days = 0
    current = start
    while current <= end:
        if current.weekday() < 5:
            working_days += 1
        current += timedelta(days=1)
    return working_days


def _track(summary: OperacionesSummary, listing_type: Optional[str]) -> TrackSummary:
    # Anything that is not exactly "Sale" is counted as rent
    return summary.sale if listing_type == "Sale" else summary.rent


def _group_counts(rows: Iterable[dict]) -> Counter:
    return Counter((row["status"], row["listing_type"]) for row in rows)


def build_operaciones_summary(
    prospect_rows: Iterable[dict],
    listing_rows: Iterable[dict],
    lead_rows: Iterable[dict],
    deal_rows: Iterable[dict]
) -> OperacionesSummary:
    """
    Cross-tabulate status rows into the two-track summary.

    Prospect and listing counts accumulate into the same prospects bucket.
    Lead and deal counts are assigned, so when several listing types fold
    into the rent track the last group written wins.
    """
    summary = OperacionesSummary()

    for rows in (prospect_rows, listing_rows):
        for (status, listing_type), count in _group_counts(rows).items():
            bucket = _track(summary, listing_type).prospects
            bucket[status] = bucket.get(status, 0) + count

    for (status, listing_type), count in _group_counts(lead_rows).items():
        if listing_type and status:
            _track(summary, listing_type).leads[status] = count

    for (status, listing_type), count in _group_counts(deal_rows).items():
        if status:
            _track(summary, listing_type).deals[status] = count

    return summary


async def get_operaciones_summary(account_id: int) -> OperacionesSummary:
    """Summary of prospects (plus active listings), leads and deals per track."""
    try:
        with log_timing("get_operaciones_summary", logger=logger, account_id=account_id):
            prospect_rows, listing_rows, lead_rows, deal_rows = await asyncio.gather(
                record_fetchers.fetch_prospect_status_rows(account_id),
                record_fetchers.fetch_listing_status_rows(account_id),
                record_fetchers.fetch_lead_status_rows(account_id),
                record_fetchers.fetch_deal_status_rows(account_id),
            )
            return build_operaciones_summary(prospect_rows, listing_rows, lead_rows, deal_rows)
    except Exception as e:
        logger.error(
            "Error fetching operaciones summary",
            account_id=account_id,
            error=str(e)
        )
        raise


def entity_ref_from_task_row(row: dict) -> Optional[EntityRef]:
    """Resolve the entity a task row points at."""
    linked = [(column, ref) for column, ref in TASK_ENTITY_PRIORITY if row.get(column)]
    if not linked:
        return None
    if len(linked) > 1:
        logger.warning(
            "Task references several entities; using the first by priority",
            task_id=row.get("task_id"),
            linked_columns=[column for column, _ in linked]
        )
    column, ref = linked[0]
    return ref(id=row[column])


def _entity_name(entity: Optional[EntityRef], row: dict) -> str:
    if entity is None:
        return "Unknown"
    if entity.kind in ("prospect", "lead"):
        return row.get("contact_name") or "Unknown Contact"
    if entity.kind in ("deal", "listing"):
        return row.get("property_address") or "Unknown Property"
    return "Appointment"


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value)).date()


async def get_urgent_tasks(
    account_id: int,
    working_days_limit: int = DEFAULT_WORKING_DAYS_LIMIT,
    today: Optional[date] = None
) -> list[UrgentTask]:
    """
    Incomplete tasks due from today 00:00 up to the end of day
    today + working_days_limit.

    The window starts at midnight, not at the current time, so tasks due
    earlier today that are already overdue are still listed. It is
    measured in calendar days while days_until_due counts working days.
    """
    today = today or date.today()
    window_start = datetime.combine(today, time.min)
    # Inclusive of the whole cutoff day
    window_end = datetime.combine(today + timedelta(days=int(working_days_limit) + 1), time.min)

    try:
        with log_timing(
            "get_urgent_tasks",
            logger=logger,
            account_id=account_id,
            working_days_limit=working_days_limit
        ):
            prospect_tasks, lead_tasks = await asyncio.gather(
                record_fetchers.fetch_prospect_task_rows(account_id, window_start, window_end),
                record_fetchers.fetch_lead_task_rows(account_id, window_start, window_end),
            )

            rows_by_id: dict = {}
            for row in [*prospect_tasks, *lead_tasks]:
                rows_by_id.setdefault(row["task_id"], row)

            urgent_tasks = []
            for row in rows_by_id.values():
                entity = entity_ref_from_task_row(row)
                urgent_tasks.append(UrgentTask(
                    task_id=row["task_id"],
                    description=row["description"],
                    due_date=row["due_date"],
                    entity=entity,
                    entity_name=_entity_name(entity, row),
                    days_until_due=calculate_working_days(today, _as_date(row["due_date"])),
                    completed=row["completed"],
                ))
    except Exception as e:
        logger.error(
            "Error fetching urgent tasks",
            account_id=account_id,
            working_days_limit=working_days_limit,
            error=str(e)
        )
        raise

    urgent_tasks.sort(key=lambda task: task.due_date)
    logger.info(
        "Resolved urgent tasks",
        account_id=account_id,
        working_days_limit=working_days_limit,
        task_count=len(urgent_tasks)
    )
    return urgent_tasks


def derive_appointment_type(row: dict) -> str:
    """Appointment type shown on the dashboard."""
    # TODO: return row["type"] once the calendar form writes appointments.type
    return DEFAULT_APPOINTMENT_TYPE


async def get_today_appointments(
    account_id: int,
    today: Optional[date] = None
) -> list[TodayAppointment]:
    """Active, non-cancelled appointments for today and tomorrow."""
    today = today or date.today()
    window_start = datetime.combine(today, time.min)
    window_end = window_start + timedelta(days=APPOINTMENTS_LOOKAHEAD_DAYS)

    try:
        rows = await record_fetchers.fetch_appointment_rows(account_id, window_start, window_end)
        appointments = [
            TodayAppointment(
                appointment_id=row["appointment_id"],
                contact_name=row["contact_name"] or "",
                property_address=row["property_address"],
                start_time=row["start_time"],
                end_time=row["end_time"],
                trip_time_minutes=row["trip_time_minutes"],
                status=row["status"],
                appointment_type=derive_appointment_type(row),
            )
            for row in rows
        ]
    except Exception as e:
        logger.error(
            "Error fetching today's appointments",
            account_id=account_id,
            error=str(e)
        )
        raise

    logger.info("Fetched upcoming appointments", account_id=account_id, appointment_count=len(appointments))
    return appointments
