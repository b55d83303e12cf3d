"""SQLite store handle.

One connection per process, shared by every repository. The sqlite calls
block, so each one runs in a worker thread; a plain lock keeps them from
overlapping on the shared connection.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sqlite3
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from errors import StoreUnavailable, UniquenessViolation, ValidationError

logger = logging.getLogger(__name__)

Params = Union[Sequence[Any], Mapping[str, Any]]


@dataclass(frozen=True, slots=True)
class ExecResult:
    rowcount: int
    lastrowid: int | None


def _is_unique_violation(exc: sqlite3.Error) -> bool:
    if not isinstance(exc, sqlite3.IntegrityError):
        return False
    name = getattr(exc, "sqlite_errorname", None)
    if name is not None:
        return name == "SQLITE_CONSTRAINT_UNIQUE"
    # Python 3.10 has no sqlite_errorname
    return "UNIQUE" in str(exc).upper()


def _translate(exc: sqlite3.Error) -> StoreUnavailable:
    if _is_unique_violation(exc):
        return UniquenessViolation(str(exc))
    return StoreUnavailable(str(exc))


class Database:
    def __init__(self, conn: sqlite3.Connection, path: Path) -> None:
        self._conn: sqlite3.Connection | None = conn
        self._lock = threading.Lock()
        self.path = path

    # ---------------- LOW-LEVEL ----------------

    def _checked_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreUnavailable(f"database {self.path} is closed")
        return self._conn

    def _execute_sync(self, sql: str, params: Params) -> ExecResult:
        with self._lock:
            conn = self._checked_conn()
            try:
                cur = conn.execute(sql, params)
                conn.commit()
            except UnicodeEncodeError as exc:
                with contextlib.suppress(sqlite3.Error):
                    conn.rollback()
                raise ValidationError(f"parameter is not valid UTF-8: {exc.reason}") from exc
            except sqlite3.Error as exc:
                with contextlib.suppress(sqlite3.Error):
                    conn.rollback()
                raise _translate(exc) from exc
            return ExecResult(rowcount=cur.rowcount, lastrowid=cur.lastrowid)

    def _query_sync(self, sql: str, params: Params) -> list[sqlite3.Row]:
        with self._lock:
            conn = self._checked_conn()
            try:
                return conn.execute(sql, params).fetchall()
            except UnicodeEncodeError as exc:
                raise ValidationError(f"parameter is not valid UTF-8: {exc.reason}") from exc
            except sqlite3.Error as exc:
                raise _translate(exc) from exc

    def _close_sync(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None

    # ---------------- PUBLIC ----------------

    async def execute(self, sql: str, params: Params = ()) -> ExecResult:
        """Run one write statement and commit it. Rolls back on failure."""
        return await asyncio.to_thread(self._execute_sync, sql, params)

    async def query(self, sql: str, params: Params = ()) -> list[sqlite3.Row]:
        return await asyncio.to_thread(self._query_sync, sql, params)

    async def close(self) -> None:
        await asyncio.to_thread(self._close_sync)
        logger.info("Database closed path=%s", self.path)

    @property
    def closed(self) -> bool:
        return self._conn is None


def _connect(path: Path) -> sqlite3.Connection:
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), timeout=30.0, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    with contextlib.suppress(sqlite3.Error):
        conn.execute("PRAGMA journal_mode=WAL")
    return conn


async def open_database(path: str | Path) -> Database:
    """Open (and create if absent) the database file at `path`."""
    path = Path(path)
    try:
        conn = await asyncio.to_thread(_connect, path)
    except (OSError, sqlite3.Error) as exc:
        logger.error("Cannot open database path=%s: %s", path, exc)
        raise StoreUnavailable(f"cannot open database {path}: {exc}") from exc
    logger.info("Database opened path=%s", path)
    return Database(conn, path)
