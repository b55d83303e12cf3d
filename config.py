"""Settings loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "TODONT"

BASE_DIR = Path(__file__).resolve().parent
DEFAULT_DB_PATH = BASE_DIR / "Database" / "Todont.db"


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(*names: str, default: Path) -> Path:
    for name in names:
        raw = os.getenv(name)
        if raw is not None and raw.strip() != "":
            return Path(raw).expanduser()
    return default


@dataclass(frozen=True, slots=True)
class Settings:
    db_path: Path
    log_dir: Path
    log_level: str
    host: str
    port: int
    max_text_length: int
    password_hash_method: str

    @staticmethod
    def from_env() -> "Settings":
        # DB_FILE_PATH is the older, unprefixed name.
        db_path = _env_path(_k("DB_FILE_PATH"), "DB_FILE_PATH", default=DEFAULT_DB_PATH)

        return Settings(
            db_path=db_path,
            log_dir=_env_path(_k("LOG_DIR"), default=Path("logs")),
            log_level=_env(_k("LOG_LEVEL"), "INFO").upper(),
            host=_env(_k("HOST"), "0.0.0.0"),
            port=_env_int(_k("PORT"), 80),
            max_text_length=_env_int(_k("MAX_TEXT_LENGTH"), 1000),
            password_hash_method=_env(_k("PASSWORD_HASH_METHOD"), "scrypt"),
        )
