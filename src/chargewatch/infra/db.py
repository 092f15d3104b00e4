"""Database access layer using psycopg2.

Provides:
- get_conn(): Open a single connection from a DSN (DB_PASSWORD fallback)
- ConnectionPool: bounded pool whose callers wait for a free connection
- txn(): Context manager for short, safe transactions
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Iterator
from urllib.parse import urlparse

import psycopg2
from psycopg2.extensions import connection as PgConnection, cursor as PgCursor
from psycopg2.pool import ThreadedConnectionPool


def _dsn_has_password(dsn: str) -> bool:
    if "://" in dsn:
        return bool(urlparse(dsn).password)
    return any(part.startswith("password=") for part in dsn.split())


def _connect_kwargs(dsn: str, db_password: str | None) -> dict[str, Any]:
    """Extra psycopg2.connect kwargs: DB_PASSWORD only when the DSN has none."""
    if db_password and not _dsn_has_password(dsn):
        return {"password": db_password}
    return {}


def get_conn(dsn: str | None, db_password: str | None = None) -> PgConnection:
    """Open a new database connection.

    Args:
        dsn: libpq key=value DSN or postgres:// URL.
        db_password: Used when the DSN carries no password.

    Raises:
        RuntimeError: If no DSN is configured.
        psycopg2.Error: On connection failure.
    """
    if not dsn:
        raise RuntimeError("DATABASE_URL not configured")
    return psycopg2.connect(dsn, **_connect_kwargs(dsn, db_password))


class ConnectionPool:
    """Thread-safe bounded connection pool.

    psycopg2's ThreadedConnectionPool raises PoolError once maxconn
    connections are out; a semaphore in front of it turns that into an
    unbounded wait queue. No connection is opened until first use.
    """

    def __init__(self, dsn: str, db_password: str | None = None, maxconn: int = 10) -> None:
        self._dsn = dsn
        self._db_password = db_password
        self._maxconn = maxconn
        self._slots = threading.BoundedSemaphore(maxconn)
        self._lock = threading.Lock()
        self._pool: ThreadedConnectionPool | None = None

    def _get_pool(self) -> ThreadedConnectionPool:
        with self._lock:
            if self._pool is None:
                self._pool = ThreadedConnectionPool(
                    0,
                    self._maxconn,
                    self._dsn,
                    **_connect_kwargs(self._dsn, self._db_password),
                )
            return self._pool

    @contextmanager
    def connection(self) -> Iterator[PgConnection]:
        """Borrow a connection, waiting if all are in use."""
        self._slots.acquire()
        try:
            pool = self._get_pool()
            conn = pool.getconn()
            try:
                yield conn
            finally:
                pool.putconn(conn, close=bool(conn.closed))
        finally:
            self._slots.release()

    def close(self) -> None:
        with self._lock:
            if self._pool is not None:
                self._pool.closeall()
                self._pool = None


@contextmanager
def txn(conn: PgConnection) -> Iterator[PgCursor]:
    """Context manager for a short, safe transaction.

    Commits on successful exit, rolls back on exception.

    Example:
        with pool.connection() as conn, txn(conn) as cur:
            cur.execute("INSERT INTO t (x) VALUES (%s)", (1,))
    """
    try:
        with conn.cursor() as cur:
            yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
