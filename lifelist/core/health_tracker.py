"""Health tracking and monitoring for the lifelist server."""

from __future__ import annotations

import os
import platform
import time
from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class HealthStatus:
    """Health status information for the server."""

    status: str  # "ok", "degraded" or "starting"
    server_time_iso: str
    uptime_seconds: int
    pid: int
    event_count: int
    last_reload_attempt_age_seconds: Optional[int]
    last_reload_success_age_seconds: Optional[int]
    reload_failures: int
    last_reload_error: Optional[str]


@dataclass
class SystemDiagnostics:
    """System diagnostics information."""

    platform: str
    python_version: str


class HealthTracker:
    """In-memory health tracking for the events engine."""

    def __init__(self) -> None:
        """Initialize health tracker with default values."""
        self._start_time: float = time.time()
        self._last_reload_attempt: Optional[float] = None
        self._last_reload_success: Optional[float] = None
        self._current_event_count: int = 0
        self._reload_failures: int = 0
        self._consecutive_failures: int = 0
        self._last_reload_error: Optional[str] = None

    def record_reload_attempt(self) -> None:
        """Record that a parse of the data file was started."""
        self._last_reload_attempt = time.time()

    def record_reload_success(self, event_count: int) -> None:
        """Record a successful parse.

        Args:
            event_count: Number of source events in the new snapshot
        """
        self._last_reload_success = time.time()
        self._current_event_count = event_count
        self._consecutive_failures = 0
        self._last_reload_error = None

    def record_reload_failure(self, error: str) -> None:
        """Record a failed parse; the previous snapshot stays in service."""
        self._reload_failures += 1
        self._consecutive_failures += 1
        self._last_reload_error = error

    def get_uptime_seconds(self) -> int:
        """Get server uptime in seconds."""
        return int(time.time() - self._start_time)

    def get_last_reload_attempt_age_seconds(self) -> Optional[int]:
        """Seconds since the last parse was started, or None if there was none."""
        if self._last_reload_attempt is None:
            return None
        return int(time.time() - self._last_reload_attempt)

    def get_last_reload_age_seconds(self) -> Optional[int]:
        """Seconds since the last successful parse, or None if there was none."""
        if self._last_reload_success is None:
            return None
        return int(time.time() - self._last_reload_success)

    def determine_overall_status(self) -> str:
        """Determine overall health status.

        Returns:
            "starting" before the first successful parse, "degraded" when the
            most recent parse failed (stale data is being served), else "ok"
        """
        if self._last_reload_success is None:
            return "starting"
        if self._consecutive_failures > 0:
            return "degraded"
        return "ok"

    def get_health_status(self, current_time_iso: str) -> HealthStatus:
        """Get complete health status snapshot."""
        return HealthStatus(
            status=self.determine_overall_status(),
            server_time_iso=current_time_iso,
            uptime_seconds=self.get_uptime_seconds(),
            pid=os.getpid(),
            event_count=self._current_event_count,
            last_reload_attempt_age_seconds=self.get_last_reload_attempt_age_seconds(),
            last_reload_success_age_seconds=self.get_last_reload_age_seconds(),
            reload_failures=self._reload_failures,
            last_reload_error=self._last_reload_error,
        )

    def to_dict(self, current_time_iso: str) -> dict[str, Any]:
        """Serializable health snapshot for the health endpoint."""
        status = self.get_health_status(current_time_iso)
        return {
            "status": status.status,
            "server_time_iso": status.server_time_iso,
            "server_status": {"uptime_s": status.uptime_seconds, "pid": status.pid},
            "data_status": {
                "event_count": status.event_count,
                "last_reload_attempt_age_s": status.last_reload_attempt_age_seconds,
                "last_reload_success_age_s": status.last_reload_success_age_seconds,
                "reload_failures": status.reload_failures,
                "last_reload_error": status.last_reload_error,
            },
        }


def get_system_diagnostics() -> SystemDiagnostics:
    """Get basic system diagnostics."""
    return SystemDiagnostics(
        platform=platform.system(),
        python_version=platform.python_version(),
    )
