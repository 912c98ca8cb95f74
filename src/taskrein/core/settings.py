"""Settings for the taskrein execution engine.

Configuration should be explicit, validated, and environment-driven. Runner
defaults that a deployment may want to tune (worker pool sizing, logging) come
from here instead of module-level constants.

Features:
    - **TaskReinSettings:** log_level, json_logs, default_max_concurrency,
      worker_thread_prefix
    - **env_prefix:** ``TASKREIN_`` environment variable namespacing
    - **.env file support:** Automatic loading via pydantic-settings
    - **Extra ignore:** Unknown env vars don't cause startup failures

Examples:
    >>> import os
    >>> os.environ["TASKREIN_DEFAULT_MAX_CONCURRENCY"] = "8"
    >>> reset_settings()
    >>> get_settings().default_max_concurrency
    8

Tags:
    settings, configuration, pydantic, environment, taskrein
"""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _cpu_count() -> int:
    return os.cpu_count() or 1


class TaskReinSettings(BaseSettings):
    """Engine-wide settings.

    Fields
    ──────
    log_level               : Structlog log level
    json_logs               : Force JSON (True) / console (False) output, None = auto
    default_max_concurrency : Batch admission limit when none is configured
    worker_thread_prefix    : Thread name prefix for background worker pools
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKREIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    # ── Execution ────────────────────────────────────────────────
    default_max_concurrency: int = Field(
        default_factory=_cpu_count,
        ge=1,
        description="Default parallel batch admission limit",
    )
    worker_thread_prefix: str = "taskrein-worker"


@lru_cache(maxsize=1)
def get_settings() -> TaskReinSettings:
    """Return the process-wide settings, loading them on first use."""
    return TaskReinSettings()


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()


__all__ = ["TaskReinSettings", "get_settings", "reset_settings"]
