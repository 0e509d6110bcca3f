"""Environment-driven settings for the job runtime.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.
    A launcher that embeds the runtime sets ``JOBRUNNER_*`` variables (or a
    ``.env`` file) instead of threading options through its own argument
    parsing.

    - **Pydantic validation:** Type-checked at startup, not mid-run
    - **Environment-driven:** Reads from env vars and .env files
    - **Sensible defaults:** Works out of the box for development

Examples:
    >>> import os
    >>> os.environ["JOBRUNNER_JOB_TYPE_SEARCH_MODULES"] = "acme.jobs,acme.reports"
    >>> get_settings(_force_reload=True).job_type_search_modules
    ['acme.jobs', 'acme.reports']

Tags:
    settings, configuration, pydantic, environment, jobrunner

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

import json
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class RuntimeSettings(BaseSettings):
    """Settings consumed when a :class:`~jobrunner.runtime.JobRuntime` is built.

    Fields
    ──────
    job_type_search_modules : Ordered modules probed before the broad scans
    host_module             : Module whose imports form the referenced set
    log_level               : Structlog log level
    log_json                : JSON logs (True), console (False), auto (None)
    service_name            : ``service.name`` stamped on every log record
    """

    model_config = SettingsConfigDict(
        env_prefix="JOBRUNNER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Type resolution ──────────────────────────────────────────
    job_type_search_modules: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="Modules probed (in order) for a case-insensitive job type match",
    )
    host_module: str = Field(
        default="__main__",
        description="Module whose referenced modules are scanned when candidates miss",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_json: bool | None = Field(default=None)
    service_name: str = Field(default="jobrunner")

    @field_validator("job_type_search_modules", mode="before")
    @classmethod
    def _split_modules(cls, value: Any) -> Any:
        """Accept a JSON list or a comma-separated string."""
        if isinstance(value, str):
            text = value.strip()
            if text.startswith("["):
                return json.loads(text)
            return [part.strip() for part in text.split(",") if part.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level


_settings_cache: dict[str, RuntimeSettings] = {}


def get_settings(*, _force_reload: bool = False) -> RuntimeSettings:
    """Load, validate, and cache the process-wide :class:`RuntimeSettings`."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]

    settings = RuntimeSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = ["RuntimeSettings", "get_settings", "clear_settings_cache"]
