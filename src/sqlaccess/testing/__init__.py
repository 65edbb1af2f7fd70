"""
Test utilities for sqlaccess.

Components:
    MockSqlExecutor: Records statements and answers from scripted results
    StoreTestHarness: A ResourceStore wired to in-memory collaborators

Example:
    >>> from sqlaccess.testing import StoreTestHarness
    >>>
    >>> harness = StoreTestHarness()
    >>> harness.executor.set_next_result([{"id": "u1", "name": "Jo"}])
    >>> user = await harness.create_store().get_one("users", {"id": "u1"})

Note:
    This module is intended for test code only. It should not be imported
    in production code paths.
"""

from sqlaccess.testing.executor import MockSqlExecutor, RecordedQuery
from sqlaccess.testing.harness import StoreTestHarness

__all__ = [
    "MockSqlExecutor",
    "RecordedQuery",
    "StoreTestHarness",
]
