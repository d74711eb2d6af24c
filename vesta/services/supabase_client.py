"""Supabase access: process-wide client, async context manager and paged reads."""

import asyncio
import os
from typing import Any, Callable, Optional

from supabase import Client, create_client
from supabase.client import ClientOptions

from vesta.utils.errors import SupabaseError
from vesta.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

SUPABASE_SCHEMA = os.environ.get("SUPABASE_SCHEMA", "public")
SUPABASE_TIMEOUT_SECONDS = int(os.environ.get("SUPABASE_TIMEOUT_SECONDS", "30"))

# PostgREST caps unbounded selects, so full result sets are read page by page
DEFAULT_PAGE_SIZE = int(os.environ.get("SUPABASE_PAGE_SIZE", "1000"))

# Shared by every request served by a warm function instance
_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Return the shared service-role client, creating it on first use.

    Raises:
        SupabaseError: If SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY is unset
    """
    global _client

    if _client is not None:
        return _client

    url = os.environ.get("SUPABASE_URL")
    service_key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
    if not url or not service_key:
        raise SupabaseError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

    # Service-role access: no user session to persist or refresh
    _client = create_client(url, service_key, ClientOptions(
        schema=SUPABASE_SCHEMA,
        postgrest_client_timeout=SUPABASE_TIMEOUT_SECONDS,
        auto_refresh_token=False,
        persist_session=False,
    ))
    logger.info("Created Supabase client", supabase_url=url, schema=SUPABASE_SCHEMA)
    return _client


async def close_supabase_client() -> None:
    """Forget the shared client; the next read creates a new one."""
    global _client
    if _client is not None:
        _client = None
        logger.info("Dropped Supabase client")


class SupabaseClient:
    """`async with SupabaseClient() as client:` scope for one unit of reads."""

    def __init__(self):
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        self.client = get_supabase_client()
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase read failed",
                error=str(exc_val),
                error_type=exc_type.__name__
            )
        return False


async def execute_query(query: Any) -> list[dict]:
    """
    Run a PostgREST query builder and return its rows.

    supabase-py executes synchronously; the call runs in a worker thread so
    reads issued together with asyncio.gather overlap.
    """
    result = await asyncio.to_thread(query.execute)
    return result.data if result.data else []


async def fetch_all_rows(
    build_query: Callable[[], Any],
    page_size: int = DEFAULT_PAGE_SIZE
) -> list[dict]:
    """
    Read every row of a query, one `.range()` page at a time.

    `build_query` must return a fresh query builder on every call; builders
    are mutable and cannot be reused across pages.
    """
    rows: list[dict] = []
    start = 0

    while True:
        page = await execute_query(build_query().range(start, start + page_size - 1))
        rows.extend(page)
        if len(page) < page_size:
            return rows
        start += page_size
