"""
app/config.py

Application-level configuration helpers for the import/export service.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class ImportSettings:
    """
    Runtime settings for batch imports.
    """

    batch_size: int = 10
    max_errors: int = 500
    log_row_errors: bool = True
    max_rows: int = 10000


@dataclass(frozen=True)
class ExportSettings:
    """
    Row limits for exports.
    """

    default_limit: int = 1000
    max_limit: int = 5000


@dataclass(frozen=True)
class CacheSettings:
    """
    Lifetimes for in-process caches.
    """

    ticket_type_ttl_seconds: int = 300


@dataclass(frozen=True)
class LoggingSettings:
    """
    Root logger configuration.
    """

    level: str = "INFO"


@lru_cache(maxsize=1)
def get_import_settings() -> ImportSettings:
    """
    Return cached import settings from environment variables.
    """

    return ImportSettings(
        batch_size=max(1, _get_int_env("IMPORT_BATCH_SIZE", 10)),
        max_errors=max(1, _get_int_env("IMPORT_MAX_ERRORS", 500)),
        log_row_errors=_get_bool_env("IMPORT_LOG_ROW_ERRORS", True),
        max_rows=max(1, _get_int_env("IMPORT_MAX_ROWS", 10000)),
    )


@lru_cache(maxsize=1)
def get_export_settings() -> ExportSettings:
    """
    Return cached export settings from environment variables.
    """

    max_limit = max(1, _get_int_env("EXPORT_MAX_LIMIT", 5000))
    return ExportSettings(
        default_limit=min(max_limit, max(1, _get_int_env("EXPORT_DEFAULT_LIMIT", 1000))),
        max_limit=max_limit,
    )


@lru_cache(maxsize=1)
def get_cache_settings() -> CacheSettings:
    return CacheSettings(
        ticket_type_ttl_seconds=max(0, _get_int_env("TICKET_TYPE_CACHE_TTL_SECONDS", 300)),
    )


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    return LoggingSettings(level=_get_str_env("LOG_LEVEL", "INFO").upper())
