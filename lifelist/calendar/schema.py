"""Validation and YAML (de)serialization of the events data file."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generic, NoReturn, TypeVar, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from lifelist.calendar.datetime_parser import format_datetime
from lifelist.calendar.models import Event, Frequency
from lifelist.core.exceptions import SchemaValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EventDocument(BaseModel):
    """The whole data file: an ``upcoming`` list plus any other top-level keys."""

    upcoming: list[Event] = Field(default_factory=list)

    # Unknown top-level keys are kept so a write-back does not drop them
    model_config = ConfigDict(extra="allow")

    @field_validator("upcoming", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def extra_sections(self) -> dict[str, Any]:
        """Top-level keys other than ``upcoming``."""
        return dict(self.model_extra or {})


@dataclass(frozen=True)
class ValidationSuccess(Generic[T]):
    """Validated value."""

    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class ValidationFailure:
    """Human-readable errors naming each offending field and rule."""

    errors: tuple[str, ...]

    @property
    def ok(self) -> bool:
        return False

    def raise_error(self) -> NoReturn:
        raise SchemaValidationError(self.errors)

    def unwrap(self) -> NoReturn:
        self.raise_error()


ValidationResult = Union[ValidationSuccess[T], ValidationFailure]


def _format_location(loc: tuple[Union[int, str], ...]) -> str:
    text = ""
    for part in loc:
        if isinstance(part, int):
            text += f"[{part}]"
        else:
            text += f".{part}" if text else str(part)
    return text


def _format_errors(error: ValidationError) -> tuple[str, ...]:
    messages = []
    for detail in error.errors():
        message = detail["msg"].removeprefix("Value error, ")
        where = _format_location(detail["loc"])
        if where:
            message = f"{where}: {message}"
        if detail["type"] not in ("value_error", "missing"):
            message = f"{message} (got {detail['input']!r})"
        messages.append(message)
    return tuple(messages)


def validate_event(raw: Any) -> ValidationResult[Event]:
    """Validate one event mapping."""
    if isinstance(raw, Event):
        return ValidationSuccess(raw)
    if not isinstance(raw, dict):
        return ValidationFailure((f"event must be a mapping, got {type(raw).__name__}",))
    try:
        return ValidationSuccess(Event.model_validate(raw))
    except ValidationError as e:
        return ValidationFailure(_format_errors(e))


def validate_document(raw: Any) -> ValidationResult[EventDocument]:
    """Validate a whole data document (the parsed YAML mapping)."""
    if not isinstance(raw, dict):
        return ValidationFailure(("data file must be a mapping with an 'upcoming' list",))
    try:
        return ValidationSuccess(EventDocument.model_validate(raw))
    except ValidationError as e:
        return ValidationFailure(_format_errors(e))


def load_yaml(text: str) -> Any:
    """Load YAML text.

    Raises:
        SchemaValidationError: If the text is not well-formed YAML
    """
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SchemaValidationError(f"invalid YAML: {e}") from e


def parse_document(text: str) -> EventDocument:
    """Load and validate the data file contents.

    Raises:
        SchemaValidationError: If the YAML is malformed or any event is invalid
    """
    document = validate_document(load_yaml(text)).unwrap()
    logger.debug("Parsed data document with %d events", len(document.upcoming))
    return document


class _IndentedDumper(yaml.SafeDumper):
    """SafeDumper that indents block sequences under their parent key."""

    def increase_indent(self, flow: bool = False, indentless: bool = False) -> None:
        return super().increase_indent(flow, False)


def event_to_dict(event: Event) -> dict[str, Any]:
    """Plain mapping for one event in canonical key order."""
    data: dict[str, Any] = {"name": event.name, "priority": event.priority}
    if event.location is not None:
        data["location"] = event.location
    data["start"] = format_datetime(event.start) if event.start is not None else None
    if event.end is not None:
        data["end"] = format_datetime(event.end)
    if event.frequency == Frequency.FLOATING and event.floating is not None:
        data["frequency"] = {
            "kind": event.frequency.value,
            "weekday": event.floating.weekday.value,
            "week": event.floating.week.value,
            "month": event.floating.month.value,
        }
    else:
        data["frequency"] = event.frequency.value
    if event.tags:
        data["tags"] = list(event.tags)
    return data


def dump_document(document: EventDocument) -> str:
    """Serialize a document to YAML text for the data file."""
    data: dict[str, Any] = {"upcoming": [event_to_dict(event) for event in document.upcoming]}
    data.update(document.extra_sections)
    return yaml.dump(
        data,
        Dumper=_IndentedDumper,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )
