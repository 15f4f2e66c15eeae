"""Custom exception hierarchy for lifelist.

This module provides specific exception types for the failures the event
engine can report, so request handlers can map them to proper HTTP status
codes and startup can abort with a clear message.
"""

from __future__ import annotations


class LifelistError(Exception):
    """Base exception for all lifelist errors."""


class SourceNotFoundError(LifelistError):
    """The backing data file is missing.

    Raised when:
    - The data file does not exist at startup (fatal)
    - The data file disappeared before a write (the write is rejected)

    Should result in HTTP 503 Service Unavailable response.
    """

    def __init__(self, path: str) -> None:
        super().__init__(f"Data file not found: {path}")
        self.path = path


class SchemaValidationError(LifelistError, ValueError):
    """The data document or a single event violates the event schema.

    Raised when:
    - A required field is missing or has the wrong type
    - priority is outside [0, 10]
    - frequency is not one of the supported values
    - start/end are inconsistent (end without start, end before start)

    Should result in HTTP 400 Bad Request response.
    """

    def __init__(self, errors: list[str] | tuple[str, ...] | str) -> None:
        if isinstance(errors, str):
            errors = [errors]
        self.errors = tuple(errors)
        super().__init__("; ".join(self.errors))


class DateParseError(SchemaValidationError):
    """A date/time string is too vague or malformed to resolve."""

    def __init__(self, text: str, reason: str = "is not a valid date") -> None:
        super().__init__(f'"{text}" {reason}')
        self.text = text
