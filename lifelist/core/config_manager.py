"""Configuration management for the lifelist server."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from lifelist.core.timezone_utils import DEFAULT_SERVER_TIMEZONE, load_zone

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = "example/data.yaml"


def parse_env_file(path: Path) -> dict[str, str]:
    """Parse a .env file and return key-value pairs.

    Args:
        path: Path to .env file

    Returns:
        Dictionary of key-value pairs from the .env file.
        Empty dict if file doesn't exist or cannot be read.

    Note:
        - Skips empty lines and comments (lines starting with #)
        - Strips quotes (both single and double) from values
        - Handles KEY=VALUE format with optional whitespace
    """
    if not path.exists():
        return {}

    result: dict[str, str] = {}

    try:
        content = path.read_text(encoding="utf-8")
    except OSError:
        logger.debug("Failed to read .env file (continuing): %s", str(path), exc_info=True)
        return result

    for raw_line in content.splitlines():
        line = raw_line.strip()

        # Skip empty lines and comments
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, val = line.split("=", 1)
        key = key.strip()
        val = val.strip().strip('"').strip("'")

        if key:
            result[key] = val

    return result


@dataclass
class Config:
    """Typed configuration for lifelist.

    Fields:
        data_file: path of the YAML events file
        server_bind: host to bind the HTTP server to
        server_port: port for the HTTP server
        debounce_seconds: quiet period before re-parsing a changed data file (0.05..10)
        poll_interval_seconds: how often the data file is checked for changes (0.1..60)
        default_timezone: IANA zone used when a request names none
        default_event_count: occurrences returned when a request names no count
        log_level: logging level name
    """

    data_file: str = DEFAULT_DATA_FILE
    server_bind: str = "127.0.0.1"
    server_port: int = 8080
    debounce_seconds: float = 0.8
    poll_interval_seconds: float = 0.5
    default_timezone: str = DEFAULT_SERVER_TIMEZONE
    default_event_count: int = 20
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Config:
        """Create Config from a plain mapping, applying defaults and validation.

        Numeric-like values are coerced and out-of-range values clamped, with a
        warning logged whenever a coercion occurs.
        """
        if data is None:
            data = {}

        def _coerce(key: str, default: Any, kind: type) -> Any:
            raw = data.get(key, default)
            try:
                return kind(raw)
            except (TypeError, ValueError):
                logger.warning("Config %s=%r is not a %s; using default %r", key, raw, kind.__name__, default)
                return default

        def _clamp(key: str, value: float, low: float, high: float) -> float:
            if value < low:
                logger.warning("%s %r below minimum; coercing to %r", key, value, low)
                return low
            if value > high:
                logger.warning("%s %r above maximum; coercing to %r", key, value, high)
                return high
            return value

        debounce = _clamp("debounce_seconds", _coerce("debounce_seconds", 0.8, float), 0.05, 10.0)
        poll = _clamp("poll_interval_seconds", _coerce("poll_interval_seconds", 0.5, float), 0.1, 60.0)

        default_count = _coerce("default_event_count", 20, int)
        if default_count < 0:
            logger.warning("default_event_count %d is negative; coercing to 20", default_count)
            default_count = 20

        data_file = data.get("data_file") or DEFAULT_DATA_FILE

        default_tz = str(data.get("default_timezone") or DEFAULT_SERVER_TIMEZONE)
        if load_zone(default_tz) is None:
            logger.warning("default_timezone %r is not a valid IANA zone; using %s", default_tz, DEFAULT_SERVER_TIMEZONE)
            default_tz = DEFAULT_SERVER_TIMEZONE

        return cls(
            data_file=str(data_file),
            server_bind=str(data.get("server_bind") or "127.0.0.1"),
            server_port=_coerce("server_port", 8080, int),
            debounce_seconds=debounce,
            poll_interval_seconds=poll,
            default_timezone=default_tz,
            default_event_count=default_count,
            log_level=str(data.get("log_level") or "INFO").upper(),
        )


class ConfigManager:
    """Manages application configuration from environment variables and .env files."""

    # Environment variable -> config key
    ENV_KEYS: dict[str, str] = {
        "LIFELIST_DATA_FILE": "data_file",
        "LIFELIST_WEB_HOST": "server_bind",
        "LIFELIST_WEB_PORT": "server_port",
        "LIFELIST_DEBOUNCE_SECONDS": "debounce_seconds",
        "LIFELIST_POLL_INTERVAL_SECONDS": "poll_interval_seconds",
        "LIFELIST_DEFAULT_TIMEZONE": "default_timezone",
        "LIFELIST_DEFAULT_EVENT_COUNT": "default_event_count",
        "LIFELIST_LOG_LEVEL": "log_level",
    }

    def __init__(self, env_file_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file (defaults to .env in current directory)
        """
        self.env_file_path = env_file_path or Path.cwd() / ".env"

    def load_env_file(self) -> list[str]:
        """Load .env file and set environment variables.

        Only sets variables that are not already in the environment.

        Returns:
            List of environment variable keys that were loaded from .env file
        """
        if not self.env_file_path.exists():
            logger.debug("No .env file found at %s", self.env_file_path)
            return []

        set_keys = []
        for key, val in parse_env_file(self.env_file_path).items():
            if key not in os.environ:
                os.environ[key] = val
                set_keys.append(key)

        if set_keys:
            logger.debug("Loaded .env defaults for keys: %s", ", ".join(set_keys))

        return set_keys

    def build_config_from_env(self) -> dict[str, Any]:
        """Build configuration dictionary from LIFELIST_* environment variables."""
        cfg: dict[str, Any] = {}
        for env_key, cfg_key in self.ENV_KEYS.items():
            value = os.environ.get(env_key)
            if value:
                cfg[cfg_key] = value
        return cfg

    def load_config(self, overrides: dict[str, Any] | None = None) -> Config:
        """Load .env file and build the typed configuration.

        This is the main entry point for loading configuration. Explicit
        overrides (e.g. from the command line) win over the environment.
        """
        self.load_env_file()
        cfg = self.build_config_from_env()
        if overrides:
            cfg.update({k: v for k, v in overrides.items() if v is not None})
        config = Config.from_dict(cfg)
        logger.debug("Configuration values: %s", config)
        return config
