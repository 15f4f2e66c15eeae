"""
Central logging configuration for lifelist.

Suppresses verbose debug logs from third-party libraries while keeping the
engine's own diagnostics, and tags every record with the current request ID.
"""

import logging
import os
from typing import Optional

# Loggers owned by this package
LIFELIST_MODULES = [
    "lifelist",
    "lifelist.api.server",
    "lifelist.calendar.occurrence_cache",
    "lifelist.calendar.watcher",
    "lifelist.domain.events_manager",
]

# Third-party libraries that generate excessive debug logs
NOISY_LOGGERS: dict[str, int] = {
    "aiohttp.access": logging.WARNING,
    "aiohttp.server": logging.WARNING,
    "aiohttp.web": logging.INFO,
    "aiohttp.web_log": logging.WARNING,
    "asyncio": logging.WARNING,
}


class CorrelationIdFilter(logging.Filter):
    """Add correlation ID to all log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add correlation ID to log record.

        Args:
            record: Log record to enhance

        Returns:
            True to allow record to be logged
        """
        # Import here to avoid circular dependency
        from lifelist.api.middleware.correlation_id import get_request_id

        record.request_id = get_request_id()
        return True


def configure_logging(
    debug_mode: bool = False, force_debug: Optional[bool] = None, level: Optional[str] = None
) -> None:
    """
    Configure logging levels for lifelist.

    Args:
        debug_mode: Whether to enable debug logging for lifelist modules
        force_debug: Override debug mode setting (None to use env var detection)
        level: Level name for root and lifelist loggers (e.g. from --log-level);
            takes precedence over LIFELIST_LOG_LEVEL, ignored when debug is on

    Environment Variables:
        LIFELIST_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        LIFELIST_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("LIFELIST_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("LIFELIST_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    requested = (level or env_log_level).upper()
    root_level = logging.INFO
    if final_debug:
        root_level = logging.DEBUG
    elif requested in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, requested)

    # Don't use force=True to preserve the colorful formatter from _init_logging
    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    correlation_filter = CorrelationIdFilter()

    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(root_level)
        formatter = logging.Formatter(
            "[%(asctime)s] [%(request_id)s] %(levelname)s - %(name)s - %(message)s"
        )
        handler.setFormatter(formatter)
        handler.addFilter(correlation_filter)
        root_logger.addHandler(handler)
    else:
        for existing_handler in root_logger.handlers:
            if not any(isinstance(f, CorrelationIdFilter) for f in existing_handler.filters):
                existing_handler.addFilter(correlation_filter)

    logger_config = dict(NOISY_LOGGERS)
    for module in LIFELIST_MODULES:
        logger_config[module] = root_level

    for logger_name, logger_level in logger_config.items():
        logging.getLogger(logger_name).setLevel(logger_level)

    if final_debug:
        root_logger.info("Debug logging enabled for lifelist modules")
    else:
        root_logger.debug("Production logging configuration applied")
