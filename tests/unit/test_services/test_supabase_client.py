"""Tests for the Supabase client wrapper."""

import pytest
from unittest.mock import MagicMock, patch

from tests.utils.helpers import create_query_chain
from vesta.services import supabase_client
from vesta.services.supabase_client import (
    SupabaseClient,
    close_supabase_client,
    execute_query,
    fetch_all_rows,
    get_supabase_client,
)
from vesta.utils.errors import SupabaseError


@pytest.fixture(autouse=True)
def reset_client():
    supabase_client._client = None
    yield
    supabase_client._client = None


@pytest.mark.unit
def test_get_supabase_client_singleton():
    """Test the client is created once."""
    with patch('vesta.services.supabase_client.create_client') as mock_create:
        mock_create.return_value = MagicMock()

        first = get_supabase_client()
        second = get_supabase_client()

        assert first is second
        mock_create.assert_called_once()


@pytest.mark.unit
def test_get_supabase_client_missing_env(monkeypatch):
    """Test missing credentials raise SupabaseError."""
    monkeypatch.delenv("SUPABASE_URL", raising=False)

    with pytest.raises(SupabaseError):
        get_supabase_client()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_close_supabase_client():
    """Test closing drops the cached client."""
    supabase_client._client = MagicMock()
    await close_supabase_client()
    assert supabase_client._client is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_context_manager_returns_client():
    """Test the async context manager yields the singleton."""
    client = MagicMock()
    supabase_client._client = client

    async with SupabaseClient() as entered:
        assert entered is client


@pytest.mark.unit
@pytest.mark.asyncio
async def test_execute_query_empty_data():
    """Test None data becomes an empty list."""
    query = create_query_chain([None])
    assert await execute_query(query) == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_fetch_all_rows_pages_until_short_page():
    """Test paging with .range() until a page is short."""
    query = create_query_chain([
        [{"id": 1}, {"id": 2}],
        [{"id": 3}, {"id": 4}],
        [{"id": 5}],
    ])

    rows = await fetch_all_rows(lambda: query, page_size=2)

    assert [row["id"] for row in rows] == [1, 2, 3, 4, 5]
    assert [call.args for call in query.range.call_args_list] == [(0, 1), (2, 3), (4, 5)]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_fetch_all_rows_exact_multiple():
    """Test a full last page triggers one more, empty, read."""
    query = create_query_chain([[{"id": 1}, {"id": 2}], []])

    rows = await fetch_all_rows(lambda: query, page_size=2)

    assert len(rows) == 2
    assert query.execute.call_count == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_context_manager_does_not_swallow_errors():
    """Test errors raised inside the scope propagate."""
    supabase_client._client = MagicMock()

    with pytest.raises(RuntimeError, match="boom"):
        async with SupabaseClient():
            raise RuntimeError("boom")
