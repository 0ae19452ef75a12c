"""
Application settings.

Read from environment variables (prefix CHESSDUEL_), falling back to defaults suitable for local development.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable

ENV_PREFIX = "CHESSDUEL_"


def _get(name: str, default: Any, cast: Callable[[str], Any] | None = None) -> Any:
    value = os.environ.get(f"{ENV_PREFIX}{name}")
    if value is None:
        return default
    return cast(value) if cast else value


def _as_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./chessduel.db"
    echo_sql: bool = False
    log_level: str = "INFO"
    leaderboard_default_limit: int = 10
    leaderboard_max_limit: int = 100

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        return cls(
            database_url=_get("DATABASE_URL", defaults.database_url),
            echo_sql=_get("ECHO_SQL", defaults.echo_sql, _as_bool),
            log_level=_get("LOG_LEVEL", defaults.log_level, str.upper),
            leaderboard_default_limit=_get(
                "LEADERBOARD_LIMIT", defaults.leaderboard_default_limit, int
            ),
            leaderboard_max_limit=_get(
                "LEADERBOARD_MAX", defaults.leaderboard_max_limit, int
            ),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
