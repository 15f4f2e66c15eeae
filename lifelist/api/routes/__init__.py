"""Route modules for the lifelist server."""

from .event_routes import register_event_routes
from .health_routes import register_health_routes

__all__ = [
    "register_event_routes",
    "register_health_routes",
]
