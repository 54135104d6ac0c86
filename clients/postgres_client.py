"""
PostgreSQL access over a shared psycopg2 connection pool.

Calls block; request handlers and the sweeper reach them through a thread
pool. Every statement commits on its own, so callers never hold a
transaction across awaits. psycopg2 failures leave this module as
api.errors.DatabaseFault.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any

import psycopg2
import psycopg2.extensions
import psycopg2.extras
import psycopg2.pool

from api import errors

logger = logging.getLogger(__name__)

Params = tuple | dict | None


def _describe_dsn(database_url: str) -> str:
    """host:port/dbname for log lines, never the password."""
    try:
        parts = psycopg2.extensions.parse_dsn(database_url)
    except psycopg2.ProgrammingError:
        return "<unparseable dsn>"
    host = parts.get("host", "localhost")
    port = parts.get("port", "5432")
    return f"{host}:{port}/{parts.get('dbname', '')}"


class PostgresClient:
    """
    Dict-row PostgreSQL client.

    Pools are per DSN and shared by every client built with that DSN, so
    constructing a client is cheap after the first one.

    Usage:
        db = PostgresClient(config.database_url)
        row = db.execute_single("SELECT id FROM Users WHERE email = %s", (email,))
    """

    _pools: dict[str, psycopg2.pool.ThreadedConnectionPool] = {}
    _pools_lock = threading.RLock()

    def __init__(self, database_url: str, minconn: int = 2, maxconn: int = 20):
        """
        Raises:
            ValueError: If database_url is empty
            DatabaseFault: If the first pool connections cannot be opened
        """
        if not database_url:
            raise ValueError("database_url is required")
        self._database_url = database_url
        self._minconn = minconn
        self._maxconn = maxconn
        self._pool = self._get_or_create_pool()

    def _get_or_create_pool(self) -> psycopg2.pool.ThreadedConnectionPool:
        with self._pools_lock:
            pool = self._pools.get(self._database_url)
            if pool is not None:
                return pool
            try:
                pool = psycopg2.pool.ThreadedConnectionPool(
                    minconn=self._minconn,
                    maxconn=self._maxconn,
                    dsn=self._database_url,
                    connect_timeout=30,
                )
            except psycopg2.Error as e:
                raise errors.database_fault(e) from e
            self._pools[self._database_url] = pool
            logger.info(
                f"Connection pool ({self._minconn}-{self._maxconn}) opened to "
                f"{_describe_dsn(self._database_url)}"
            )
            return pool

    @contextmanager
    def get_connection(self):
        """Borrow a pooled connection for one statement.

        A driver error rolls back (if the connection survived) and becomes a
        DatabaseFault. The connection always goes back to the pool.
        """
        conn = None
        try:
            conn = self._pool.getconn()
            yield conn
        except psycopg2.Error as e:
            if conn is not None and not conn.closed:
                conn.rollback()
            raise errors.database_fault(e) from e
        finally:
            if conn is not None:
                self._pool.putconn(conn)

    def execute(self, query: str, params: Params = None) -> list[dict[str, Any]]:
        """Run one statement and commit.

        Returns:
            The rows produced (SELECT or RETURNING) as dicts, else [].
        """
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(query, params)
                rows = [dict(row) for row in cur.fetchall()] if cur.description else []
            conn.commit()
        return rows

    def execute_single(self, query: str, params: Params = None) -> dict[str, Any] | None:
        """Run one statement; first row or None."""
        rows = self.execute(query, params)
        return rows[0] if rows else None

    @classmethod
    def close_all_pools(cls) -> None:
        """Close every pool. Called once at shutdown."""
        with cls._pools_lock:
            for pool in cls._pools.values():
                pool.closeall()
            cls._pools.clear()
