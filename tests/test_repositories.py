# tests/test_repositories.py

from __future__ import annotations

import asyncio

import pytest

from errors import NotFound, UniquenessViolation, ValidationError
from models import Priority
from repositories import TaskRepository


async def _row_count(db) -> int:
    rows = await db.query("SELECT COUNT(*) FROM todonts")
    return int(rows[0][0])


@pytest.mark.asyncio
async def test_add_then_get_all_appends_in_order(tasks) -> None:
    assert await tasks.get_all() == []

    first = await tasks.add("doomscroll", "High")
    second = await tasks.add("buy milk", Priority.LOW)

    items = await tasks.get_all()
    assert [t.id for t in items] == [first, second]
    assert (items[-1].text, items[-1].priority) == ("buy milk", Priority.LOW)
    assert items[-1].to_dict()["priority"] == "Low"
    assert items[-1].created_at


@pytest.mark.asyncio
@pytest.mark.parametrize("bad", ["low", "HIGH", "Urgent", "", None, 3])
async def test_invalid_priority_rejected_without_write(tasks, db, bad) -> None:
    await tasks.add("keep me", "Normal")

    with pytest.raises(ValidationError):
        await tasks.add("text", bad)
    with pytest.raises(ValidationError):
        await tasks.get_all_with_priority(bad)

    assert await _row_count(db) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("bad", ["", "   ", None, "x" * 201])
async def test_invalid_text_rejected(tasks, db, bad) -> None:
    with pytest.raises(ValidationError):
        await tasks.add(bad, "Low")
    assert await _row_count(db) == 0


@pytest.mark.asyncio
async def test_filter_by_priority(tasks) -> None:
    await tasks.add("a", "Low")
    await tasks.add("b", "High")
    await tasks.add("c", "Low")

    low = await tasks.get_all_with_priority("Low")
    assert [t.text for t in low] == ["a", "c"]
    assert await tasks.get_all_with_priority("Normal") == []


@pytest.mark.asyncio
async def test_create_schema_twice_keeps_rows(tasks, accounts) -> None:
    await tasks.add("still here", "Normal")
    await accounts.insert("bob", "hash")

    await tasks.create_schema()
    await tasks.create_schema()
    await accounts.create_schema()

    assert [t.text for t in await tasks.get_all()] == ["still here"]
    assert (await accounts.find_by_username("bob")).password_hash == "hash"


@pytest.mark.asyncio
async def test_concurrent_create_schema(db) -> None:
    repo = TaskRepository(db)
    await asyncio.gather(*(repo.create_schema() for _ in range(5)))
    assert repo.schema_ready
    assert await repo.count() == 0


@pytest.mark.asyncio
async def test_concurrent_adds_all_land(tasks) -> None:
    ids = await asyncio.gather(*(tasks.add(f"item {i}", "Normal") for i in range(20)))
    assert len(set(ids)) == 20
    assert await tasks.count() == 20


@pytest.mark.asyncio
async def test_account_insert_and_find(accounts) -> None:
    account_id = await accounts.insert("alice", "h1")
    found = await accounts.find_by_username("alice")
    assert (found.id, found.username, found.password_hash) == (account_id, "alice", "h1")

    with pytest.raises(NotFound):
        await accounts.find_by_username("nobody")


@pytest.mark.asyncio
async def test_account_duplicate_is_uniqueness_violation(accounts) -> None:
    await accounts.insert("alice", "h1")
    with pytest.raises(UniquenessViolation):
        await accounts.insert("alice", "h2")
    assert await accounts.count_by_username("alice") == 1


@pytest.mark.asyncio
async def test_usernames_are_case_sensitive(accounts) -> None:
    await accounts.insert("alice", "h1")
    await accounts.insert("Alice", "h2")
    assert (await accounts.find_by_username("Alice")).password_hash == "h2"


@pytest.mark.asyncio
async def test_lone_surrogate_text_rejected(tasks, db) -> None:
    with pytest.raises(ValidationError):
        await tasks.add("\ud800", "Low")
    with pytest.raises(ValidationError):
        await tasks.add("ok \udfff then", "High")
    assert await _row_count(db) == 0
