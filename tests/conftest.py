# tests/conftest.py

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
import pytest_asyncio

from app import create_app
from auth import AuthService
from config import Settings
from database import open_database
from repositories import AccountRepository, TaskRepository
from services import AppServices

# Cheap hash so the suite stays fast; production uses scrypt.
FAST_HASH = "pbkdf2:sha256:1000"


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        db_path=tmp_path / "Database" / "Todont.db",
        log_dir=tmp_path / "logs",
        log_level="INFO",
        host="127.0.0.1",
        port=8080,
        max_text_length=200,
        password_hash_method=FAST_HASH,
    )


@pytest_asyncio.fixture()
async def db(settings: Settings):
    database = await open_database(settings.db_path)
    yield database
    await database.close()


@pytest_asyncio.fixture()
async def tasks(db, settings: Settings) -> TaskRepository:
    repo = TaskRepository(db, max_text_length=settings.max_text_length)
    await repo.create_schema()
    return repo


@pytest_asyncio.fixture()
async def accounts(db) -> AccountRepository:
    repo = AccountRepository(db)
    await repo.create_schema()
    return repo


@pytest.fixture()
def auth(accounts: AccountRepository) -> AuthService:
    return AuthService(accounts, hash_method=FAST_HASH)


@pytest.fixture()
def services(settings: Settings):
    svc = AppServices(settings)
    asyncio.run(svc.start())
    yield svc
    asyncio.run(svc.close())


@pytest.fixture()
def client(settings: Settings, services: AppServices):
    app = create_app(settings, services)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture()
def unready_client(settings: Settings):
    """Client whose services were never started."""
    app = create_app(settings, AppServices(settings))
    app.config["TESTING"] = True
    return app.test_client()
