"""Health check route for lifelist."""

from __future__ import annotations

from typing import Any


def register_health_routes(app: Any, manager: Any, get_system_diagnostics: Any) -> None:
    """Register the health endpoint.

    Args:
        app: aiohttp web application
        manager: EventsManager whose reload state is reported
        get_system_diagnostics: Function returning platform diagnostics
    """
    from aiohttp import web

    async def health_check(_request: Any) -> Any:
        """Health check endpoint for monitoring system status."""
        health_data = manager.get_health()
        diag = get_system_diagnostics()
        health_data["system_diagnostics"] = {
            "platform": diag.platform,
            "python_version": diag.python_version,
        }

        # Return appropriate HTTP status based on health
        http_status = 200 if health_data["status"] == "ok" else 503
        return web.json_response(health_data, status=http_status)

    app.router.add_get("/api/health", health_check)
