"""aiohttp server for lifelist.

The server owns one EventsManager for its lifetime; request handlers receive
it by reference through route registration.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import Any, Optional

from lifelist.core.config_manager import Config
from lifelist.core.health_tracker import get_system_diagnostics
from lifelist.domain.events_manager import EventsManager

logger = logging.getLogger(__name__)


async def _make_app(config: Config, manager: EventsManager):  # type: ignore[no-untyped-def]
    """Create aiohttp web application with routes wired to the events manager.

    aiohttp is imported lazily here so the module can be imported without aiohttp installed.
    """
    try:
        from aiohttp import web  # type: ignore
    except Exception:  # pragma: no cover - requires aiohttp at runtime
        logger.exception("aiohttp is required to run the server")
        raise

    from lifelist.api.middleware import correlation_id_middleware
    from lifelist.api.routes import register_event_routes, register_health_routes

    app = web.Application(middlewares=[correlation_id_middleware])
    app["config"] = config
    app["events_manager"] = manager

    register_event_routes(app, manager, config)
    register_health_routes(app, manager, get_system_diagnostics)

    async def _shutdown(_app):  # type: ignore[no-untyped-def]
        logger.info("Application shutdown requested")
        await manager.close()

    app.on_shutdown.append(_shutdown)
    return app


async def _serve(config: Config, external_stop_event: Optional[asyncio.Event] = None) -> None:
    """Run the server until signalled to stop.

    Args:
        config: Server configuration
        external_stop_event: Optional event to signal shutdown. If provided,
            signal handlers will NOT be registered (caller owns signal handling).

    Raises:
        SourceNotFoundError: If the data file does not exist
        SchemaValidationError: If the data file is invalid
    """
    stop_event = external_stop_event or asyncio.Event()

    # Fails fast before anything is bound
    manager = await EventsManager.create(config)

    from aiohttp import web  # type: ignore

    app = await _make_app(config, manager)
    runner = web.AppRunner(app)
    await runner.setup()

    host = config.server_bind
    port = config.server_port
    site = web.TCPSite(runner, host=host, port=port)
    try:
        await site.start()
    except OSError:
        logger.exception("Failed to start server on %s:%d", host, port)
        await runner.cleanup()
        raise

    logger.info("Server started successfully on %s:%d serving %s", host, port, config.data_file)

    loop = asyncio.get_running_loop()
    if external_stop_event is None:

        def _on_signal() -> None:
            logger.info("Shutdown signal received")
            stop_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, _on_signal)
    else:
        logger.debug("Using external stop event - skipping signal handler registration")

    await stop_event.wait()
    logger.info("Stop event received, shutting down")

    await runner.cleanup()
    logger.info("Server shutdown complete")


def start_server(config: Any) -> None:
    """Start the asyncio event loop and HTTP server.

    Blocks the calling thread until SIGINT/SIGTERM is received.

    Args:
        config: Config instance
    """
    from lifelist.core.logging_config import configure_logging

    configure_logging(debug_mode=config.log_level == "DEBUG", level=config.log_level)
    logger.info("Logging configuration applied: level=%s", config.log_level)

    try:
        logger.debug("Running asyncio event loop for server")
        asyncio.run(_serve(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
