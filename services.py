"""Dependency container built once at startup and handed to the app.

Request handlers reach the repositories only through `AppServices`, which
refuses with ServiceNotReady until `start()` has finished.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from enum import Enum

from auth import AuthService
from config import Settings
from database import Database, open_database
from errors import ServiceNotReady
from repositories import AccountRepository, TaskRepository

logger = logging.getLogger(__name__)


class ServiceState(str, Enum):
    UNINITIALIZED = "uninitialized"
    STARTING = "starting"
    READY = "ready"
    CLOSED = "closed"


class AppServices:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.state = ServiceState.UNINITIALIZED
        self._lock = threading.Lock()
        self._db: Database | None = None
        self._tasks: TaskRepository | None = None
        self._accounts: AccountRepository | None = None
        self._auth: AuthService | None = None

    # ---------------- LIFECYCLE ----------------

    async def _acquire(self) -> None:
        while not self._lock.acquire(blocking=False):
            await asyncio.sleep(0.01)

    async def start(self) -> None:
        """Open the store and create both schemas. Only the first call does work."""
        await self._acquire()
        try:
            if self.state is not ServiceState.UNINITIALIZED:
                return
            self.state = ServiceState.STARTING
            db = None
            try:
                db = await open_database(self.settings.db_path)
                tasks = TaskRepository(db, max_text_length=self.settings.max_text_length)
                await tasks.create_schema()
                accounts = AccountRepository(db)
                await accounts.create_schema()
                auth = AuthService(accounts, hash_method=self.settings.password_hash_method)
            except Exception:
                self.state = ServiceState.UNINITIALIZED
                if db is not None:
                    await db.close()
                raise

            self._db, self._tasks, self._accounts, self._auth = db, tasks, accounts, auth
            self.state = ServiceState.READY
            logger.info("Services ready db=%s tasks=%s", db.path, await tasks.count())
        finally:
            self._lock.release()

    async def close(self) -> None:
        await self._acquire()
        try:
            if self._db is not None:
                await self._db.close()
            self._db = self._tasks = self._accounts = self._auth = None
            self.state = ServiceState.CLOSED
        finally:
            self._lock.release()

    @property
    def ready(self) -> bool:
        return self.state is ServiceState.READY

    def _require_ready(self, component):
        if self.state is not ServiceState.READY or component is None:
            raise ServiceNotReady(f"services are {self.state.value}")
        return component

    # ---------------- COMPONENTS ----------------

    @property
    def tasks(self) -> TaskRepository:
        return self._require_ready(self._tasks)

    @property
    def accounts(self) -> AccountRepository:
        return self._require_ready(self._accounts)

    @property
    def auth(self) -> AuthService:
        return self._require_ready(self._auth)
