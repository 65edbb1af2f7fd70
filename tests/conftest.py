"""
Shared pytest fixtures for the sqlaccess library tests.

This module provides:
- Collaborator fixtures (mock_executor, cache, audit, publisher, tracer)
- Store fixtures (harness, store_config, store)
- Sample data fixtures (user_row, binary_id)
"""

from __future__ import annotations

import logging

import pytest

from sqlaccess.audit import InMemoryAuditClient
from sqlaccess.bus.memory import InMemoryPublisher
from sqlaccess.cache import InMemoryCache
from sqlaccess.config import ResourceConfig, StoreConfig
from sqlaccess.observability import MockTracer
from sqlaccess.store import ResourceStore
from sqlaccess.testing import MockSqlExecutor, StoreTestHarness

# ============================================================================
# aiosqlite Availability Check
# ============================================================================

AIOSQLITE_AVAILABLE = False
try:
    import aiosqlite  # noqa: F401

    AIOSQLITE_AVAILABLE = True
except ImportError:
    pass


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for tests."""
    config.addinivalue_line("markers", "sqlite: marks tests that require SQLite (aiosqlite)")


skip_if_no_aiosqlite = pytest.mark.skipif(not AIOSQLITE_AVAILABLE, reason="aiosqlite not installed")


# =============================================================================
# Collaborator Fixtures
# =============================================================================


@pytest.fixture
def mock_executor() -> MockSqlExecutor:
    """Provide a fresh scripted SQL executor."""
    return MockSqlExecutor()


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def audit() -> InMemoryAuditClient:
    return InMemoryAuditClient()


@pytest.fixture
def publisher() -> InMemoryPublisher:
    return InMemoryPublisher(enable_tracing=False)


@pytest.fixture
def tracer() -> MockTracer:
    return MockTracer()


@pytest.fixture
def test_logger() -> logging.Logger:
    """Logger standing in for a request-scoped logger."""
    return logging.getLogger("tests.sqlaccess.request")


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def store_config() -> StoreConfig:
    """
    Provide a store configuration with two resource types.

    - users: text ids generated as "u-new", status defaults to "active"
    - orders: ``userId`` is a relationship to users
    """
    return StoreConfig(
        resources={
            "users": ResourceConfig(defaults={"id": lambda: "u-new", "status": "active"}),
            "orders": ResourceConfig(relationships={"userId": "users"}),
        }
    )


@pytest.fixture
def harness() -> StoreTestHarness:
    """Provide a fresh harness per test."""
    return StoreTestHarness()


@pytest.fixture
def store(harness: StoreTestHarness, store_config: StoreConfig) -> ResourceStore:
    """Provide a store wired to the harness components."""
    return harness.create_store(store_config)


# =============================================================================
# Sample Data Fixtures
# =============================================================================


@pytest.fixture
def user_row() -> dict[str, object]:
    return {"id": "u1", "name": "Jo", "status": "active"}


@pytest.fixture
def binary_id() -> bytes:
    """A fixed 16-byte identifier."""
    return bytes(range(16))
