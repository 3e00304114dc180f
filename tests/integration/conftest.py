"""
Shared fixtures for integration tests.

Requires PostgreSQL to be running; tests are skipped when it is not reachable.
"""

from collections.abc import Generator

import psycopg
import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import run_migrations
from src.config.settings import get_settings


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for integration tests and apply migrations."""
    settings = get_settings()
    try:
        with psycopg.connect(settings.database_url, connect_timeout=2):
            pass
    except psycopg.OperationalError:
        pytest.skip("PostgreSQL is not reachable")

    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=10,
        open=True,
    )
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture(autouse=True)
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Clean all tables before each test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM memberships")
        conn.execute("DELETE FROM sites")
        conn.execute("DELETE FROM accounts")
        conn.commit()
    yield


@pytest.fixture
def insert_account(pool: ConnectionPool):
    """Helper inserting an account row."""

    def _insert(account_id: str, email: str, password_hash: str | None = None) -> None:
        with pool.connection() as conn:
            conn.execute(
                "INSERT INTO accounts (account_id, email, name, encrypted_password) VALUES (%s, %s, %s, %s)",
                (account_id, email, account_id.title(), password_hash),
            )
            conn.commit()

    return _insert


@pytest.fixture
def insert_membership(pool: ConnectionPool):
    """Helper inserting a membership (and its site if missing)."""

    def _insert(site_id: str, account_id: str, is_admin: bool) -> None:
        with pool.connection() as conn:
            conn.execute("INSERT INTO sites (site_id) VALUES (%s) ON CONFLICT DO NOTHING", (site_id,))
            conn.execute(
                "INSERT INTO memberships (site_id, account_id, is_admin) VALUES (%s, %s, %s)",
                (site_id, account_id, is_admin),
            )
            conn.commit()

    return _insert
