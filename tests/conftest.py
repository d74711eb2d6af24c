"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import patch
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("LOG_FORMAT", "text")

from tests.utils.helpers import complete_listing_record, create_mock_client, create_query_chain


@pytest.fixture
def patch_record_client():
    """
    Patch the SupabaseClient context manager used by record_fetchers.

    Yields a setter: call it with the list of pages the next read returns.
    The created client and query are kept on `set_pages.state`.
    """
    with patch('vesta.services.record_fetchers.SupabaseClient') as mock_client_class:
        state = {}

        def set_pages(pages):
            query = create_query_chain(pages)
            client = create_mock_client(query)
            mock_client_class.return_value.__aenter__.return_value = client
            mock_client_class.return_value.__aexit__.return_value = None
            state["query"] = query
            state["client"] = client
            return query

        set_pages.state = state
        yield set_pages


@pytest.fixture
def listing_record():
    """Flattened listing record passing every mandatory rule for a piso."""
    return complete_listing_record()


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests (a Monday)."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time
