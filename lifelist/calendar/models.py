"""Data models for lifelist events and display summaries."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from lifelist.calendar.datetime_parser import parse_datetime


class Frequency(str, Enum):
    """Supported recurrence kinds (closed set)."""

    ONCE = "once"
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    WEEKDAYS = "weekdays"
    MONTHLY = "monthly"
    ANNUALLY = "annually"
    FLOATING = "floating"


class Weekday(str, Enum):
    """Day names accepted by floating rules."""

    SUNDAY = "sunday"
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"

    @property
    def index(self) -> int:
        """Python weekday number (Monday == 0)."""
        return ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"].index(
            self.value
        )


class WeekOfMonth(str, Enum):
    """Which matching weekday of the month a floating rule picks."""

    FIRST = "first"
    SECOND = "second"
    THIRD = "third"
    FOURTH = "fourth"
    LAST = "last"

    @property
    def ordinal(self) -> int:
        """1..4 for first..fourth, -1 for last."""
        if self is WeekOfMonth.LAST:
            return -1
        return ["first", "second", "third", "fourth"].index(self.value) + 1


class Month(str, Enum):
    """Month names accepted by floating rules."""

    JANUARY = "january"
    FEBRUARY = "february"
    MARCH = "march"
    APRIL = "april"
    MAY = "may"
    JUNE = "june"
    JULY = "july"
    AUGUST = "august"
    SEPTEMBER = "september"
    OCTOBER = "october"
    NOVEMBER = "november"
    DECEMBER = "december"

    @property
    def number(self) -> int:
        """Calendar month number (January == 1)."""
        return list(Month).index(self) + 1


class FloatingRule(BaseModel):
    """A yearly date such as "fourth thursday of november"."""

    weekday: Weekday
    week: WeekOfMonth
    month: Month

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("weekday", "week", "month", mode="before")
    @classmethod
    def _lowercase(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value


class Event(BaseModel):
    """A single event, or one concrete occurrence derived from it.

    Occurrences produced during enumeration are copies of a source event with
    only ``start``/``end`` (and ``frequency`` for span continuations) changed.
    """

    name: str = Field(..., description="Event name")
    priority: Union[int, float] = Field(..., description="Priority from 0 to 10")
    location: Optional[str] = Field(default=None, description="Where the event happens")

    # Time information; an undated event is a TODO
    start: Optional[datetime] = Field(default=None, description="Start instant, None for TODOs")
    end: Optional[datetime] = Field(default=None, description="End instant, requires start")

    # Recurrence
    frequency: Frequency = Field(default=Frequency.ONCE, description="Recurrence kind")
    floating: Optional[FloatingRule] = Field(
        default=None, description="Yearly rule, only for floating frequency"
    )

    tags: tuple[str, ...] = Field(default=(), description="Ordered tags")

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def _split_frequency_mapping(cls, data: Any) -> Any:
        """Accept ``frequency: {kind: floating, weekday: ..., week: ..., month: ...}``."""
        if not isinstance(data, dict):
            return data
        frequency = data.get("frequency")
        if isinstance(frequency, dict):
            data = dict(data)
            rule = dict(frequency)
            data["frequency"] = rule.pop("kind", None)
            if rule:
                data["floating"] = rule
        elif frequency is None and "frequency" in data:
            data = {k: v for k, v in data.items() if k != "frequency"}
        return data

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise ValueError("name must not be empty")
        return value

    @field_validator("priority", mode="before")
    @classmethod
    def _reject_bool_priority(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("priority must be a number")
        return value

    @field_validator("priority")
    @classmethod
    def _check_priority_range(cls, value: Union[int, float]) -> Union[int, float]:
        if not 0 <= value <= 10:
            raise ValueError(f"priority must be between 0 and 10, got {value}")
        return value

    @field_validator("frequency", mode="before")
    @classmethod
    def _lowercase_frequency(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_datetime(cls, value: Any) -> Any:
        if value is None or isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        if isinstance(value, str):
            return parse_datetime(value)
        raise ValueError(f"{value!r} is not a valid date")

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_default(cls, value: Any) -> Any:
        return () if value is None else value

    @model_validator(mode="after")
    def _check_cross_field_rules(self) -> Event:
        if self.start is None and self.frequency != Frequency.ONCE:
            raise ValueError('start must be defined if frequency is not "once"')
        if self.end is not None and self.start is None:
            raise ValueError("end cannot be defined if start is null")
        if self.start is not None and self.end is not None and instant_key(self.start) > instant_key(self.end):
            raise ValueError("start must be before end")
        if self.frequency == Frequency.FLOATING and self.floating is None:
            raise ValueError("floating frequency requires weekday, week and month")
        if self.frequency != Frequency.FLOATING and self.floating is not None:
            raise ValueError("weekday, week and month are only allowed for floating frequency")
        return self

    @property
    def is_todo(self) -> bool:
        """True for undated items."""
        return self.start is None

    @property
    def is_recurring(self) -> bool:
        """True when the event repeats."""
        return self.frequency != Frequency.ONCE


class EventSummary(BaseModel):
    """Display-ready view of one occurrence."""

    name: str
    priority: Union[int, float]
    location: Optional[str] = None
    start_time: Optional[str] = Field(default=None, description="Formatted start time of day")
    end_time: Optional[str] = Field(default=None, description="Formatted end time of day")
    tags: list[str] = Field(default_factory=list)


def instant_key(value: datetime) -> float:
    """Comparable instant for aware and naive (local) datetimes alike."""
    return value.timestamp()
