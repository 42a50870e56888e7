"""Settings loaded from environment variables.

Database connection, pool tuning, logging and listener options all live
here so the rest of the app receives them explicitly via `create_app()`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import quote_plus


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # ---- Database ----
    database_url: Optional[str] = None
    db_driver: str = "sqlite+aiosqlite"
    db_path: str = "./data/tasks.db"
    db_host: str = "localhost"
    db_port: int = 3306
    db_user: str = "root"
    db_password: str = "password"
    db_name: str = "tasks"
    db_echo: bool = False

    # ---- Pool (server drivers only) ----
    db_pool_size: int = 10
    db_max_overflow: int = 90
    db_pool_recycle: int = 3600
    db_pool_timeout: int = 30

    # ---- App ----
    task_repo: str = "sql"
    log_level: str = "INFO"
    log_dir: Optional[Path] = Path("./logs")
    host: str = "0.0.0.0"
    port: int = 8080

    @property
    def is_sqlite(self) -> bool:
        return (self.database_url or self.db_driver).startswith("sqlite")

    @property
    def url(self) -> str:
        if self.database_url:
            return self.database_url

        if self.db_driver.startswith("sqlite"):
            p = Path(self.db_path).resolve()
            p.parent.mkdir(parents=True, exist_ok=True)
            return f"{self.db_driver}:///{p.as_posix()}"

        url = (
            f"{self.db_driver}://{quote_plus(self.db_user)}:{quote_plus(self.db_password)}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )
        if self.db_driver.startswith("mysql"):
            url += "?charset=utf8mb4"
        return url

    @staticmethod
    def from_env() -> "Settings":
        log_dir = _env("LOG_DIR", "./logs").strip()
        return Settings(
            database_url=_env("DATABASE_URL").strip() or None,
            db_driver=_env("DB_DRIVER", "sqlite+aiosqlite"),
            db_path=_env("DB_PATH", "./data/tasks.db"),
            db_host=_env("DB_HOST", "localhost"),
            db_port=_env_int("DB_PORT", 3306),
            db_user=_env("DB_USER", "root"),
            db_password=_env("DB_PASSWORD", "password"),
            db_name=_env("DB_NAME", "tasks"),
            db_echo=_env_bool("DB_ECHO", False),
            db_pool_size=_env_int("DB_POOL_SIZE", 10),
            db_max_overflow=_env_int("DB_MAX_OVERFLOW", 90),
            db_pool_recycle=_env_int("DB_POOL_RECYCLE", 3600),
            db_pool_timeout=_env_int("DB_POOL_TIMEOUT", 30),
            task_repo=_env("TASK_REPO", "sql").strip().lower(),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            log_dir=Path(log_dir) if log_dir else None,
            host=_env("HOST", "0.0.0.0"),
            port=_env_int("PORT", 8080),
        )
