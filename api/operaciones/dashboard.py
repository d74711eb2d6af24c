"""Operaciones dashboard endpoint."""

import asyncio

from vesta.services.operaciones_dashboard import (
    DEFAULT_WORKING_DAYS_LIMIT,
    get_operaciones_summary,
    get_today_appointments,
    get_urgent_tasks,
)
from vesta.utils.errors import InvalidOperationError
from vesta.utils.http import query_params, run_handler
from vesta.utils.logging import setup_logging

setup_logging()


def parse_working_days(params: dict) -> int:
    raw = params.get("working_days")
    if raw in (None, ""):
        return DEFAULT_WORKING_DAYS_LIMIT
    try:
        working_days = int(raw)
    except ValueError as e:
        raise InvalidOperationError(f"Invalid working_days: {raw}") from e
    if working_days < 0:
        raise InvalidOperationError(f"Invalid working_days: {raw}")
    return working_days


async def _dashboard(request: dict, account_id: int) -> dict:
    working_days = parse_working_days(query_params(request))

    summary, urgent_tasks, appointments = await asyncio.gather(
        get_operaciones_summary(account_id),
        get_urgent_tasks(account_id, working_days),
        get_today_appointments(account_id),
    )
    return {
        "summary": summary,
        "urgent_tasks": urgent_tasks,
        "today_appointments": appointments,
    }


def handler(request):
    """Summary, urgent tasks and upcoming appointments for the tenant."""
    return run_handler(request, "dashboard", _dashboard)
