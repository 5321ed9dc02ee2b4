"""
Sync engine configuration.

Values come from environment variables (a local .env file is loaded first)
and are frozen into a SyncSettings instance. Tests build SyncSettings
directly instead of touching the environment.
"""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv, find_dotenv

from gitsync.exceptions import ConfigurationError

_ = load_dotenv(find_dotenv())  # read local .env file

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.github.com"
DEFAULT_API_VERSION = "2022-11-28"
DEFAULT_TIMEOUT = 30.0  # seconds
DEFAULT_BATCH_SIZE = 5
DEFAULT_MAX_FILE_BYTES = 100_000
DEFAULT_USER_AGENT = "gitsync"


def _read_number(name: str, default, cast):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigurationError(name, f"(expected a number, got {raw!r})")
    if value <= 0:
        raise ConfigurationError(name, f"(must be positive, got {raw!r})")
    return value


@dataclass(frozen=True)
class SyncSettings:
    """Settings shared by the fetcher, the commit builder and the API layer."""

    api_base: str = DEFAULT_API_BASE
    api_version: str = DEFAULT_API_VERSION
    timeout: float = DEFAULT_TIMEOUT
    batch_size: int = DEFAULT_BATCH_SIZE
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def from_env(cls) -> "SyncSettings":
        settings = cls(
            api_base=os.environ.get("GITHUB_API_BASE", DEFAULT_API_BASE).rstrip("/"),
            api_version=os.environ.get("GITHUB_API_VERSION", DEFAULT_API_VERSION),
            timeout=_read_number("GITHUB_API_TIMEOUT", DEFAULT_TIMEOUT, float),
            batch_size=_read_number("SYNC_BATCH_SIZE", DEFAULT_BATCH_SIZE, int),
            max_file_bytes=_read_number("SYNC_MAX_FILE_BYTES", DEFAULT_MAX_FILE_BYTES, int),
            user_agent=os.environ.get("GITHUB_USER_AGENT", DEFAULT_USER_AGENT),
        )
        logger.debug(f"Loaded sync settings: {settings}")
        return settings


_settings: SyncSettings | None = None


def get_settings() -> SyncSettings:
    """Process-wide settings, read from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = SyncSettings.from_env()
    return _settings
