"""SQLite access for every SaveIt.AI repository

All entities live in one database file (saveit/data/saveit.db unless
SAVEIT_DB_PATH says otherwise). Repositories never open connections
themselves: reads use get_db_connection(), writes use db_transaction(),
and writers that may race wrap themselves in @retry_on_db_lock().

The pool keeps DB_POOL_SIZE long-lived WAL connections. When all of them are
checked out, up to DB_TEMP_CONN_MAX overflow connections are opened and
closed again on return.
"""

from __future__ import annotations

import atexit
import os
import random
import sqlite3
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from functools import lru_cache, wraps
from pathlib import Path
from queue import Empty, Full, Queue
from threading import Lock
from typing import Any, TypeVar

from saveit.config import (
    DB_CONNECT_TIMEOUT,
    DB_POOL_SIZE,
    DB_POOL_TIMEOUT,
    DB_RETRY_BASE_DELAY,
    DB_RETRY_JITTER,
    DB_RETRY_MAX,
    DB_RETRY_MAX_DELAY,
    DB_TEMP_CONN_MAX,
)
from saveit.observability.logging import get_logger
from saveit.observability.telemetry import counter, log_event

F = TypeVar("F", bound=Callable[..., Any])

DB_PATH = Path(__file__).parent.parent / "data" / "saveit.db"

# Applied to every new connection, pooled or overflow
_PRAGMAS = ("journal_mode=WAL", "synchronous=NORMAL", "foreign_keys=ON")

logger = get_logger(__name__)


def _is_lock_error(error: sqlite3.OperationalError) -> bool:
    message = str(error).lower()
    return "locked" in message or "busy" in message


def _backoff(attempt: int, base_delay: float, max_delay: float) -> float:
    delay = min(base_delay * (2**attempt), max_delay)
    return delay + random.uniform(0, delay * DB_RETRY_JITTER)


def retry_on_db_lock(
    max_retries: int = DB_RETRY_MAX,
    base_delay: float = DB_RETRY_BASE_DELAY,
    max_delay: float = DB_RETRY_MAX_DELAY,
) -> Callable[[F], F]:
    """
    Re-run a repository write while SQLite reports the database as locked.

    Waits grow exponentially with jitter. Other OperationalErrors (missing
    table, bad SQL) propagate on the first attempt.

    Usage:
        @staticmethod
        @retry_on_db_lock()
        def create(note: Note) -> Note:
            with db_transaction() as conn:
                conn.execute(Note.insert_sql("notes"), note.to_db_dict())
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except sqlite3.OperationalError as e:
                    if not _is_lock_error(e):
                        raise
                    if attempt >= max_retries:
                        logger.error("%s still locked after %d retries: %s", func.__qualname__, attempt, e)
                        counter("database.lock_retry_exhausted")
                        raise

                    wait = _backoff(attempt, base_delay, max_delay)
                    attempt += 1
                    logger.warning(
                        "%s hit a locked database (retry %d/%d in %.2fs)",
                        func.__qualname__,
                        attempt,
                        max_retries,
                        wait,
                    )
                    time.sleep(wait)

        return wrapper  # type: ignore[return-value]

    return decorator


def _open_connection(db_path: Path) -> sqlite3.Connection:
    """
    New connection with Row factory and the standard pragmas.

    Raises:
        RuntimeError: the file fails SQLite's quick integrity check
    """
    conn = sqlite3.connect(str(db_path), timeout=DB_CONNECT_TIMEOUT, check_same_thread=False)
    try:
        status = conn.execute("PRAGMA quick_check(1)").fetchone()[0]
    except sqlite3.DatabaseError as e:
        status = str(e)
    if status != "ok":
        conn.close()
        logger.critical("Integrity check failed for %s: %s", db_path, status)
        counter("database.corruption_detected")
        raise RuntimeError(f"Database corruption detected: {status}")

    for pragma in _PRAGMAS:
        conn.execute(f"PRAGMA {pragma}")
    conn.row_factory = sqlite3.Row
    return conn


class DatabaseConnectionPool:
    """Fixed set of shared connections plus a capped number of overflow ones."""

    def __init__(self, db_path, pool_size=DB_POOL_SIZE):
        self.db_path = db_path
        self.pool_size = pool_size
        self.pool: Queue[sqlite3.Connection] = Queue(maxsize=pool_size)
        self.lock = Lock()
        self.closed = False
        self.temp_conn_count = 0
        self.temp_conn_max = DB_TEMP_CONN_MAX
        # ids of overflow connections; sqlite3.Connection takes no extra attributes
        self._temporary: set[int] = set()

        for _ in range(pool_size):
            try:
                self.pool.put_nowait(_open_connection(db_path))
            except (sqlite3.Error, RuntimeError) as e:
                logger.warning("Pool for %s starts short a connection: %s", db_path, e)

        atexit.register(self.close_all)

    def get_connection(self) -> sqlite3.Connection:
        """
        Check out a pooled connection, or an overflow one when none frees up
        within DB_POOL_TIMEOUT.

        Raises:
            RuntimeError: the pool is closed, or the overflow cap is reached
        """
        if self.closed:
            raise RuntimeError("Connection pool has been closed")
        try:
            return self.pool.get(timeout=DB_POOL_TIMEOUT)
        except Empty:
            return self._open_overflow()

    def _open_overflow(self) -> sqlite3.Connection:
        with self.lock:
            if self.temp_conn_count >= self.temp_conn_max:
                logger.critical(
                    "All %d pooled and %d overflow connections are in use",
                    self.pool_size,
                    self.temp_conn_max,
                )
                raise RuntimeError(
                    f"Database busy: pool of {self.pool_size} exhausted and "
                    f"temporary connection limit of {self.temp_conn_max} reached"
                )
            self.temp_conn_count += 1
            in_use = self.temp_conn_count

        log_event("database.pool_exhausted", pool_size=self.pool_size, temp_conn_count=in_use)
        try:
            conn = _open_connection(self.db_path)
        except Exception:
            with self.lock:
                self.temp_conn_count -= 1
            raise
        with self.lock:
            self._temporary.add(id(conn))
        return conn

    def return_connection(self, conn: sqlite3.Connection) -> None:
        """Give a connection back. Overflow connections are closed."""
        with self.lock:
            overflow = id(conn) in self._temporary
            if overflow:
                self._temporary.discard(id(conn))
                self.temp_conn_count -= 1

        if overflow or self.closed:
            conn.close()
            return
        try:
            self.pool.put_nowait(conn)
        except Full:
            conn.close()

    def close_all(self) -> None:
        self.closed = True
        while True:
            try:
                self.pool.get_nowait().close()
            except Empty:
                break


def get_db_path() -> Path:
    """SAVEIT_DB_PATH if set, else the bundled data directory."""
    if env_path := os.getenv("SAVEIT_DB_PATH"):
        return Path(env_path)
    return DB_PATH


@lru_cache(maxsize=1)
def get_pool() -> DatabaseConnectionPool:
    """Process-wide pool, bound to the database path seen on first use."""
    return DatabaseConnectionPool(get_db_path(), pool_size=DB_POOL_SIZE)


def reset_pool() -> None:
    """
    Close the current pool so the next query reopens against
    SAVEIT_DB_PATH. Used by tests and the admin CLI.
    """
    if get_pool.cache_info().currsize:
        get_pool().close_all()
    get_pool.cache_clear()


@contextmanager
def get_db_connection() -> Generator[sqlite3.Connection, None, None]:
    """
    Borrow a connection for reads.

    Raises:
        FileNotFoundError: the database file has not been created yet
    """
    db_path = get_db_path()
    if not db_path.exists():
        raise FileNotFoundError(f"Database not found: {db_path}\nRun: init_database()")

    pool = get_pool()
    conn = pool.get_connection()
    try:
        yield conn
    finally:
        pool.return_connection(conn)


@contextmanager
def db_transaction() -> Generator[sqlite3.Connection, None, None]:
    """Borrow a connection for writes: commit on exit, roll back on any error."""
    with get_db_connection() as conn:
        try:
            yield conn
        except BaseException:
            conn.rollback()
            raise
        conn.commit()


def validate_schema() -> bool:
    """
    Raises:
        ValueError: a required table is missing
    """
    from saveit.infrastructure.database_schema import validate_schema as check_tables

    with get_db_connection() as conn:
        return check_tables(conn)


def get_pool_stats() -> dict[str, Any]:
    pool = get_pool()
    available = pool.pool.qsize()
    in_use = pool.pool_size - available
    return {
        "pool_size": pool.pool_size,
        "available": available,
        "in_use": in_use,
        "overflow": pool.temp_conn_count,
        "usage_percent": round(100 * in_use / pool.pool_size, 1) if pool.pool_size else 0,
        "closed": pool.closed,
    }


def init_database() -> None:
    """Create missing tables and indexes (idempotent)."""
    from saveit.infrastructure.database_schema import init_database as create_schema

    create_schema(get_db_path())
