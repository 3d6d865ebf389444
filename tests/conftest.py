"""Shared pytest fixtures and configuration."""

import os
import pytest
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("LISTING_STORE_BACKEND", "memory")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("LOG_FORMAT", "text")

from roomswap.services.listing_store import InMemoryListingStore, reset_listing_store
from roomswap.services.match_engine import MatchEngine
from tests.utils.factories import create_listing_body


@pytest.fixture(autouse=True)
def fresh_default_store():
    """Each test starts with an empty process-wide store."""
    reset_listing_store()
    yield
    reset_listing_store()


@pytest.fixture
def memory_store():
    """Empty in-memory listing store."""
    return InMemoryListingStore()


@pytest.fixture
def match_engine(memory_store):
    """Match engine over the in-memory store."""
    return MatchEngine(memory_store)


@pytest.fixture
def listing_l1_body():
    """Lives in A/3, wants B/1."""
    return create_listing_body(
        email="l1@example.com",
        current_block="A",
        current_floor="3",
        desired_block="B",
        desired_floor="1",
    )


@pytest.fixture
def listing_l2_body():
    """Lives in B/1, wants A/3: the mirror of L1."""
    return create_listing_body(
        email="l2@example.com",
        current_block="B",
        current_floor="1",
        desired_block="A",
        desired_floor="3",
    )


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time
