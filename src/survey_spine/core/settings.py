"""Engine settings.

Defaults for compute parameters, the fetch timeout, result memoization and
the debug artifact sink, read from ``SURVEY_SPINE_*`` environment variables
and an optional ``.env`` file.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not runtime
    - **Environment-driven:** Reads from env vars and .env files
    - **Sensible defaults:** Works out of the box for development

Examples:
    >>> from survey_spine.core.settings import EngineSettings
    >>> EngineSettings(default_limit=20).default_limit
    20

Tags:
    settings, configuration, pydantic, environment
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Settings for the compute engine.

    Fields
    ──────
    default_cutoff        : Minimum count kept when a request omits ``cutoff``
    default_limit         : Maximum buckets when a request omits ``limit``
    fetch_timeout_seconds : Raw result fetch timeout (``None`` → no timeout)
    cache_ttl_seconds     : TTL of memoized results
    cache_enabled         : Memoize results in a process-wide in-memory cache
    cache_max_size        : In-memory cache capacity
    debug                 : Write intermediate artifacts to ``debug_dir``
    log_level / log_format: Structlog configuration
    """

    model_config = SettingsConfigDict(
        env_prefix="SURVEY_SPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Compute defaults ─────────────────────────────────────────
    default_cutoff: int = 1
    default_limit: int = 50

    # ── Collaborators ────────────────────────────────────────────
    fetch_timeout_seconds: float | None = 30.0

    # ── Memoization ──────────────────────────────────────────────
    cache_enabled: bool = False
    cache_ttl_seconds: int = 3600
    cache_max_size: int = 1000

    # ── Observability ────────────────────────────────────────────
    debug: bool = False
    debug_dir: Path = Field(
        default_factory=lambda: Path(".survey_spine") / "last_query",
        description="Directory receiving debug artifacts",
    )
    log_level: str = "INFO"
    log_format: str = "console"

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        value = value.upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR"}:
            raise ValueError(f"Unsupported log level: {value}")
        return value

    @field_validator("log_format")
    @classmethod
    def _lower_format(cls, value: str) -> str:
        value = value.lower()
        if value not in {"json", "console"}:
            raise ValueError(f"Unsupported log format: {value}")
        return value


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    """Return the process-wide settings (cached)."""
    return EngineSettings()
