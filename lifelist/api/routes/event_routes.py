"""Event API routes for lifelist."""

from __future__ import annotations

import logging
from typing import Any

from lifelist.calendar.datetime_parser import parse_datetime
from lifelist.calendar.schema import event_to_dict
from lifelist.core.exceptions import SchemaValidationError, SourceNotFoundError
from lifelist.core.timezone_utils import now, parse_request_timezone
from lifelist.domain.grouping import groups_to_json

logger = logging.getLogger(__name__)


def _parse_count(raw: str | None, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        count = int(raw)
    except ValueError:
        raise ValueError(f"count must be a non-negative integer, got {raw!r}") from None
    if count < 0:
        raise ValueError(f"count must be a non-negative integer, got {raw!r}")
    return count


def register_event_routes(app: Any, manager: Any, config: Any) -> None:
    """Register the event listing and creation routes.

    Args:
        app: aiohttp web application
        manager: EventsManager serving the data file
        config: Application configuration (default count and timezone)
    """
    from aiohttp import web

    async def list_events(request: Any) -> Any:
        """Upcoming occurrences grouped by day.

        Query parameters:
            count: number of occurrences (default from config)
            timezone: IANA zone used for "today" (default from config)
            date: free-form start date (default today)
        """
        try:
            count = _parse_count(request.query.get("count"), config.default_event_count)
            zone = parse_request_timezone(request.query.get("timezone"), config.default_timezone)
        except ValueError as e:
            return web.json_response({"error": str(e)}, status=400)

        raw_date = request.query.get("date")
        if raw_date:
            try:
                from_date = parse_datetime(raw_date)
            except SchemaValidationError as e:
                return web.json_response({"error": str(e)}, status=400)
        else:
            from_date = now(zone)

        logger.debug("/api/events from %s count=%d", from_date, count)
        groups = await manager.get_events(from_date, count)
        return web.json_response(groups_to_json(groups))

    async def create_event(request: Any) -> Any:
        """Append an event to the data file."""
        try:
            data = await request.json()
        except ValueError:
            return web.json_response({"error": "invalid json"}, status=400)

        try:
            event = await manager.add_event(data)
        except SchemaValidationError as e:
            return web.json_response({"error": str(e), "errors": list(e.errors)}, status=400)
        except SourceNotFoundError as e:
            logger.error("Cannot add event: %s", e)
            return web.json_response({"error": str(e)}, status=503)

        return web.json_response({"event": event_to_dict(event)}, status=201)

    app.router.add_get("/api/events", list_events)
    app.router.add_post("/api/events", create_event)
