#!/usr/bin/env python3
"""
Test suite configuration and utilities.

All tests run against an in-memory SQLite database; nothing needs to be
running locally:

    # Run all tests
    python -m pytest tests/ -v

    # Only the tenant isolation tests
    python -m pytest tests/unit/database -v

    # Skip tests that touch a database
    python -m pytest tests/ -v -m "not db"

Set TEST_DATABASE_URL to run the database tests against another backend
(e.g. a throwaway PostgreSQL) instead of SQLite.
"""

import os

# In-memory SQLite shared across connections via StaticPool (see conftest.py)
TEST_DB_URL = os.environ.get("TEST_DATABASE_URL", "sqlite://")
TEST_ASYNC_DB_URL = os.environ.get("TEST_ASYNC_DATABASE_URL", "sqlite+aiosqlite://")


def get_test_db_url() -> str:
    """Get the test database URL."""
    return TEST_DB_URL


def is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")
