"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))


# ============================================================================
# Pytest Configuration
# ============================================================================

# Async tests are marked explicitly with @pytest.mark.asyncio

TIER_ENV_VARS = (
    "OBJECT_STORE_REGION",
    "OBJECT_STORE_ACCESS_KEY_ID",
    "OBJECT_STORE_ACCESS_KEY_SECRET",
    "OBJECT_STORE_BUCKET",
    "OBJECT_STORE_ENDPOINT",
    "METADATA_STORE_ENDPOINT",
    "CACHE_DEBUG",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_singletons(monkeypatch):
    """
    Give every test fresh settings and no shared tier clients.

    Tier environment variables are cleared so a developer's shell or .env
    cannot enable real backends during unit tests.
    """
    from tiercache.core.config import settings as settings_module
    from tiercache.infrastructure.cache import tier_orchestrator
    from tiercache.infrastructure.storage import metadata_store, object_store

    for name in TIER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    monkeypatch.setattr(settings_module, "_settings", None)
    monkeypatch.setattr(object_store, "_object_store", None)
    monkeypatch.setattr(metadata_store, "_metadata_store", None)
    monkeypatch.setattr(tier_orchestrator, "_orchestrator", None)
    yield


# ============================================================================
# Clock Fixtures
# ============================================================================


class FakeClock:
    """Epoch-ms clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def clock():
    """Controllable epoch-ms clock."""
    return FakeClock()


# ============================================================================
# Tier Fixtures
# ============================================================================


@pytest.fixture
def local_cache():
    """Local recency cache with room for 100 entries."""
    from tiercache.infrastructure.cache.recency_cache import RecencyCache

    return RecencyCache(max_size=100)


@pytest.fixture
def object_store(clock):
    """In-memory object store sharing the fake clock."""
    from tiercache.core.interfaces.cache import InMemoryObjectStore

    return InMemoryObjectStore(clock=clock)


@pytest.fixture
def metadata_store(clock):
    """In-memory metadata store sharing the fake clock."""
    from tiercache.core.interfaces.cache import InMemoryMetadataStore

    return InMemoryMetadataStore(clock=clock)


@pytest.fixture
def object_spy(object_store):
    """Object store spy: records calls, delegates to the in-memory store."""
    from tests.test_fixtures.store_factory import StoreTestFactory

    return StoreTestFactory.spy_object_store(object_store)


@pytest.fixture
def metadata_spy(metadata_store):
    """Metadata store spy: records calls, delegates to the in-memory store."""
    from tests.test_fixtures.store_factory import StoreTestFactory

    return StoreTestFactory.spy_metadata_store(metadata_store)


@pytest.fixture
def orchestrator(local_cache, object_spy, metadata_spy, clock):
    """Three-tier orchestrator with a 1 second local freshness window."""
    from tiercache.infrastructure.cache.tier_orchestrator import TierOrchestrator

    return TierOrchestrator(
        local=local_cache,
        object_store=object_spy,
        metadata_store=metadata_spy,
        local_ttl_ms=1000,
        clock=clock,
    )


# ============================================================================
# Mock Backend Fixtures
# ============================================================================


@pytest.fixture
def mock_redis_client():
    """
    redis.asyncio client mock.

    Hash commands are AsyncMocks; pipeline() returns a synchronous builder
    whose execute() is awaited.
    """
    client = MagicMock()
    client.hgetall = AsyncMock(return_value={})
    client.hset = AsyncMock(return_value=1)
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock()

    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[])
    client.pipeline = MagicMock(return_value=pipe)

    return client


@pytest.fixture
def mock_s3_client():
    """Synchronous boto3 S3 client mock."""
    from tests.test_fixtures.store_factory import StoreTestFactory

    return StoreTestFactory.s3_client()
