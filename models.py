from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from enum import Enum
from typing import Any

from errors import ValidationError


def is_utf8(value: str) -> bool:
    """False for strings sqlite and the hasher cannot encode (lone surrogates)."""
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


class Priority(str, Enum):
    LOW = "Low"
    NORMAL = "Normal"
    HIGH = "High"

    @classmethod
    def parse(cls, raw: Any) -> "Priority":
        """Exact, case-sensitive match against the three known values."""
        if isinstance(raw, cls):
            return raw
        for p in cls:
            if raw == p.value:
                return p
        raise ValidationError(f"invalid priority: {raw!r}")


@dataclass(frozen=True, slots=True)
class Task:
    id: int
    text: str
    priority: Priority
    created_at: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Task":
        return cls(
            id=int(row["id"]),
            text=str(row["text"]),
            priority=Priority(row["priority"]),
            created_at=str(row["created_at"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "priority": self.priority.value,
            "created_at": self.created_at,
        }


@dataclass(frozen=True, slots=True)
class Account:
    id: int
    username: str
    password_hash: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Account":
        return cls(
            id=int(row["id"]),
            username=str(row["username"]),
            password_hash=str(row["password_hash"]),
        )
