"""
PostgreSQL repository adapters - Implement the repository protocols.

This module provides the PostgreSQL implementations of the domain's
repository ports using psycopg3 with raw SQL.

Concurrency Design:
------------------
1. **API token issuance**: ``UPDATE ... SET api_token = COALESCE(api_token, %s)``
   takes the row lock and keeps an existing token, so concurrent issuers all
   read back the single winning value.

2. **API token invalidation**: the replacement is conditional on the old value
   still being current (``WHERE api_token = %s``).

3. **Membership removal**: the account's sites are locked with
   ``SELECT ... FOR UPDATE`` in site_id order, memberships are read and
   deleted inside the same transaction. Two removals touching one site
   serialize on the site row, so the last-admin check cannot race.

psycopg errors are re-raised as the domain's PersistenceError.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

import psycopg
from psycopg_pool import ConnectionPool

from src.domain.account import Account, Membership, Site
from src.domain.exceptions import PersistenceError

logger = logging.getLogger(__name__)

_ACCOUNT_COLUMNS = """
    account_id, email, name, locale, encrypted_password, confirmed_at,
    api_token, switch_site_token, switch_site_token_updated_at
"""


def _map_account(row: tuple) -> Account:
    """Convert a raw database tuple into the domain ``Account`` dataclass."""
    return Account(
        account_id=str(row[0]),
        email=row[1],
        name=row[2],
        locale=row[3],
        encrypted_password=row[4],
        confirmed_at=row[5],
        api_token=row[6],
        switch_site_token=row[7],
        switch_site_token_updated_at=row[8],
    )


def _group_sites(rows: list[tuple]) -> list[Site]:
    sites: dict[str, Site] = {}
    for site_id, account_id, is_admin in rows:
        site = sites.setdefault(str(site_id), Site(str(site_id)))
        site.memberships.append(Membership(str(site_id), str(account_id), bool(is_admin)))
    return [sites[key] for key in sorted(sites)]


class PostgresAccountRepository:
    """
    Implements AccountRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def find_by_email(self, email: str) -> Account | None:
        return self._fetch_one(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE email = lower(%s)", (email,)
        )

    def find_by_api_token(self, token: str) -> Account | None:
        return self._fetch_one(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE api_token = %s", (token,)
        )

    def find_by_switch_site_token(self, token: str, updated_after: datetime) -> Account | None:
        sql = f"""
            SELECT {_ACCOUNT_COLUMNS}
            FROM accounts
            WHERE switch_site_token = %s
              AND switch_site_token_updated_at > %s
            LIMIT 1
        """
        return self._fetch_one(sql, (token, updated_after))

    def ensure_api_token(self, account_id: str, candidate: str) -> str:
        """
        Set the API token unless one exists, returning the stored value.

        Args:
            account_id: Account identifier
            candidate: Freshly generated token, used only if none is stored

        Returns:
            The API token stored after the update
        """
        sql = """
            UPDATE accounts
            SET api_token = COALESCE(api_token, %s)
            WHERE account_id = %s
            RETURNING api_token
        """
        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, (candidate, account_id))
                row = cursor.fetchone()
                conn.commit()
        except psycopg.Error as e:
            raise PersistenceError(f"Failed to store API token for {account_id}") from e

        if row is None:
            raise PersistenceError(f"Account not found: {account_id}")
        return row[0]

    def replace_api_token(self, account_id: str, current: str, new: str) -> bool:
        sql = """
            UPDATE accounts
            SET api_token = %s
            WHERE account_id = %s AND api_token = %s
        """
        return self._execute(sql, (new, account_id, current)) == 1

    def update_switch_site_token(self, account_id: str, token: str, updated_at: datetime) -> None:
        sql = """
            UPDATE accounts
            SET switch_site_token = %s, switch_site_token_updated_at = %s
            WHERE account_id = %s
        """
        if self._execute(sql, (token, updated_at, account_id)) != 1:
            raise PersistenceError(f"Account not found: {account_id}")

    def delete(self, account_id: str) -> None:
        self._execute("DELETE FROM accounts WHERE account_id = %s", (account_id,))

    def _fetch_one(self, sql: str, params: tuple) -> Account | None:
        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, params)
                row = cursor.fetchone()
        except psycopg.Error as e:
            raise PersistenceError("Account lookup failed") from e
        return _map_account(row) if row else None

    def _execute(self, sql: str, params: tuple) -> int:
        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(sql, params)
                conn.commit()
                return cursor.rowcount
        except psycopg.Error as e:
            raise PersistenceError("Account update failed") from e


class PostgresSiteMembershipSession:
    """Implements SiteMembershipSession over an open, locked transaction."""

    def __init__(self, cursor: psycopg.Cursor, sites: list[Site]) -> None:
        self._cursor = cursor
        self._sites = sites

    def sites(self) -> list[Site]:
        return self._sites

    def delete(self, membership: Membership) -> None:
        self._cursor.execute(
            "DELETE FROM memberships WHERE site_id = %s AND account_id = %s",
            (membership.site_id, membership.account_id),
        )


class PostgresMembershipRepository:
    """Implements MembershipRepository protocol via psycopg3."""

    _MEMBERSHIPS_SQL = """
        SELECT site_id, account_id, is_admin
        FROM memberships
        WHERE site_id = ANY(%s)
        ORDER BY site_id, account_id
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def sites_for_account(self, account_id: str) -> list[Site]:
        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                site_ids = self._site_ids_for(cursor, account_id, lock=False)
                cursor.execute(self._MEMBERSHIPS_SQL, (site_ids,))
                rows = cursor.fetchall()
        except psycopg.Error as e:
            raise PersistenceError(f"Failed to list sites of account {account_id}") from e
        return _group_sites(rows)

    @contextmanager
    def lock_sites_for_account(self, account_id: str) -> Iterator[PostgresSiteMembershipSession]:
        """
        Open a transaction holding row locks on every site of the account.

        The transaction commits when the block exits normally and rolls back
        when it raises.
        """
        try:
            with self._pool.connection() as conn, conn.transaction(), conn.cursor() as cursor:
                site_ids = self._site_ids_for(cursor, account_id, lock=True)
                cursor.execute(self._MEMBERSHIPS_SQL, (site_ids,))
                session = PostgresSiteMembershipSession(cursor, _group_sites(cursor.fetchall()))
                yield session
        except psycopg.Error as e:
            raise PersistenceError(f"Failed to remove memberships of account {account_id}") from e

    def _site_ids_for(self, cursor: psycopg.Cursor, account_id: str, lock: bool) -> list[str]:
        sql = """
            SELECT site_id
            FROM sites
            WHERE site_id IN (SELECT site_id FROM memberships WHERE account_id = %s)
            ORDER BY site_id
        """
        if lock:
            sql += " FOR UPDATE"
        cursor.execute(sql, (account_id,))
        return [row[0] for row in cursor.fetchall()]


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            with pool.connection() as conn:
                conn.execute(sql_file.read_text())

            logger.info(f"Migration complete: {sql_file.name}")
        except psycopg.Error as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise PersistenceError(f"Database migration failed: {sql_file.name}") from e
