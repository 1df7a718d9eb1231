"""
Shared fixtures for adversarial tests.

Provides the PostgreSQL pool and services used by the race condition
tests. Skipped when the database is unreachable.
"""

from collections.abc import Generator

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from soko.adapters.repository.postgres import (
    PostgresAccessTokenRepository,
    PostgresAccountRepository,
    run_migrations,
)
from soko.config.settings import get_settings


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for adversarial tests."""
    settings = get_settings()
    try:
        with psycopg.connect(settings.database_url, connect_timeout=3):
            pass
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL not available: {e}")

    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=20,
        open=True,
    )
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def accounts(pool: ConnectionPool) -> PostgresAccountRepository:
    return PostgresAccountRepository(pool)


@pytest.fixture
def tokens(pool: ConnectionPool) -> PostgresAccessTokenRepository:
    return PostgresAccessTokenRepository(pool)


@pytest.fixture(autouse=True)
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Clean all tables before each test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM access_token")
        conn.execute("DELETE FROM verification_ticket")
        conn.execute("DELETE FROM account")
        conn.commit()
    yield
