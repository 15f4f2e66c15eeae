"""Middleware for the lifelist HTTP server."""

from .correlation_id import correlation_id_middleware, get_request_id

__all__ = [
    "correlation_id_middleware",
    "get_request_id",
]
