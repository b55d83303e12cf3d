"""Table owners: schema, inserts and reads for tasks and accounts.

All queries are parameterized and go through the shared `Database`.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime, timezone

from database import Database
from errors import NotFound, ValidationError
from models import Account, Priority, Task, is_utf8

logger = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


class _SchemaGuard:
    """Lets one caller run the DDL while concurrent callers wait for it.

    Uses a thread lock, not an asyncio one: the app may run each request in a
    fresh event loop.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.done = False

    async def run(self, db: Database, statements: list[str]) -> None:
        while not self._lock.acquire(blocking=False):
            await asyncio.sleep(0.01)
        try:
            for sql in statements:
                await db.execute(sql)
            self.done = True
        finally:
            self._lock.release()


# ---------------- TASKS ----------------

TASK_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS todonts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        text TEXT NOT NULL,
        priority TEXT NOT NULL CHECK (priority IN ('Low', 'Normal', 'High')),
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_todonts_priority ON todonts(priority)",
]


class TaskRepository:
    def __init__(self, db: Database, *, max_text_length: int = 1000) -> None:
        self._db = db
        self._max_text_length = max_text_length
        self._schema = _SchemaGuard()

    @property
    def schema_ready(self) -> bool:
        return self._schema.done

    async def create_schema(self) -> None:
        await self._schema.run(self._db, TASK_SCHEMA)

    def _validate_text(self, text) -> str:
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("text is required")
        if len(text) > self._max_text_length:
            raise ValidationError(f"text longer than {self._max_text_length} characters")
        if not is_utf8(text):
            raise ValidationError("text is not valid UTF-8")
        return text

    async def add(self, text, priority) -> int:
        """Insert one task and return its id."""
        text = self._validate_text(text)
        prio = Priority.parse(priority)

        res = await self._db.execute(
            "INSERT INTO todonts (text, priority, created_at) VALUES (?, ?, ?)",
            (text, prio.value, _utc_now_iso()),
        )
        if res.lastrowid is None:
            raise RuntimeError("SQLite did not return lastrowid for todonts insert")
        task_id = int(res.lastrowid)
        logger.debug("Task added id=%s priority=%s", task_id, prio.value)
        return task_id

    async def get_all(self) -> list[Task]:
        rows = await self._db.query("SELECT * FROM todonts ORDER BY id ASC")
        return [Task.from_row(r) for r in rows]

    async def get_all_with_priority(self, priority) -> list[Task]:
        prio = Priority.parse(priority)
        rows = await self._db.query(
            "SELECT * FROM todonts WHERE priority = ? ORDER BY id ASC", (prio.value,)
        )
        return [Task.from_row(r) for r in rows]

    async def count(self) -> int:
        rows = await self._db.query("SELECT COUNT(*) FROM todonts")
        return int(rows[0][0])


# ---------------- ACCOUNTS ----------------

ACCOUNT_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT UNIQUE NOT NULL,
        password_hash TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
]


class AccountRepository:
    """Raw credential storage. Hashing happens in AuthService."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self._schema = _SchemaGuard()

    @property
    def schema_ready(self) -> bool:
        return self._schema.done

    async def create_schema(self) -> None:
        await self._schema.run(self._db, ACCOUNT_SCHEMA)

    async def insert(self, username: str, password_hash: str) -> int:
        """Insert an account row.

        Raises UniquenessViolation when the username is taken.
        """
        res = await self._db.execute(
            "INSERT INTO users (username, password_hash, created_at) VALUES (?, ?, ?)",
            (username, password_hash, _utc_now_iso()),
        )
        if res.lastrowid is None:
            raise RuntimeError("SQLite did not return lastrowid for users insert")
        return int(res.lastrowid)

    async def find_by_username(self, username: str) -> Account:
        rows = await self._db.query(
            "SELECT id, username, password_hash FROM users WHERE username = ?",
            (username,),
        )
        if not rows:
            raise NotFound(f"no account for username {username!r}")
        return Account.from_row(rows[0])

    async def count_by_username(self, username: str) -> int:
        rows = await self._db.query(
            "SELECT COUNT(*) FROM users WHERE username = ?", (username,)
        )
        return int(rows[0][0])
