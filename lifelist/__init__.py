"""lifelist - personal event and todo aggregator.

Reads a YAML list of one-off, recurring, multi-day and undated events and
serves the next occurrences, grouped by day. Imports are kept light so the
package can be inspected without pulling in the server stack.
"""

__version__ = "0.1.0"

from typing import Any, Optional


def _init_logging(level_name: Optional[str]) -> None:
    """Initialize root logging to stream to console.

    Honors the LIFELIST_DEBUG environment variable (truthy values: "1",
    "true", "yes", "on"), which forces DEBUG verbosity.
    """
    import logging
    import os
    import sys

    debug_env = os.environ.get("LIFELIST_DEBUG", "")
    if debug_env.strip().lower() in ("1", "true", "yes", "on"):
        level_name = "DEBUG"

    root = logging.getLogger()
    # Only configure basic handler if no handlers are present to avoid duplicate output.
    if not root.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        try:
            from colorlog import ColoredFormatter  # type: ignore[import-not-found]

            # HH:MM:SS  LEVEL   logger.name: message, only the level colorized
            fmt = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
            log_colors = {
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            }
            formatter = ColoredFormatter(fmt, datefmt="%H:%M:%S", log_colors=log_colors)
        except ImportError:
            # Fall back to plain logging if colorlog isn't installed.
            fmt = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
            formatter = logging.Formatter(fmt, datefmt="%H:%M:%S")

        handler.setFormatter(formatter)
        root.addHandler(handler)

    level = logging.INFO
    if isinstance(level_name, str) and level_name:
        level = getattr(logging, level_name.upper(), logging.INFO)
    root.setLevel(level)
    logging.getLogger(__name__).debug(
        "Logging initialized at level %s", logging.getLevelName(level)
    )


def _config_overrides(args: Optional[object]) -> dict[str, Any]:
    """Command line values that override the environment."""
    if args is None:
        return {}
    return {
        "server_port": getattr(args, "port", None),
        "server_bind": getattr(args, "host", None),
        "data_file": getattr(args, "data_file", None),
        "log_level": getattr(args, "log_level", None),
    }


async def print_upcoming(config: Any, count: int, from_text: Optional[str] = None) -> None:
    """Print the next ``count`` occurrences as grouped JSON and exit.

    Raises:
        SourceNotFoundError: If the data file does not exist
        SchemaValidationError: If the data file or ``from_text`` is invalid
    """
    import json

    from lifelist.calendar.datetime_parser import parse_datetime
    from lifelist.domain.events_manager import EventsManager
    from lifelist.domain.grouping import groups_to_json

    from_date = parse_datetime(from_text) if from_text else None
    manager = await EventsManager.create(config)
    try:
        groups = await manager.get_events(from_date, count)
    finally:
        await manager.close()
    print(json.dumps(groups_to_json(groups), indent=2))


def run_server(args: Optional[object] = None) -> None:
    """Start the lifelist server, or print upcoming occurrences.

    Args:
        args: Optional command line arguments namespace (--port, --host,
            --data-file, --log-level, --upcoming, --from)

    Behavior:
    - Initialize console logging early using LIFELIST_LOG_LEVEL (env) if present.
    - Load .env defaults and LIFELIST_* variables, then apply command line overrides.
    - With --upcoming N: print the next N occurrences as JSON instead of serving.
    - Otherwise: run the HTTP server until SIGINT/SIGTERM.
    """
    import asyncio
    import logging
    import os

    _init_logging(os.environ.get("LIFELIST_LOG_LEVEL"))
    logger = logging.getLogger(__name__)

    from lifelist.core.config_manager import ConfigManager

    config = ConfigManager().load_config(_config_overrides(args))
    logging.getLogger().setLevel(getattr(logging, config.log_level, logging.INFO))
    logger.debug("Using data file %s", config.data_file)

    upcoming = getattr(args, "upcoming", None)
    if upcoming is not None:
        asyncio.run(print_upcoming(config, upcoming, getattr(args, "from_date", None)))
        return

    from lifelist.api.server import start_server

    start_server(config)
