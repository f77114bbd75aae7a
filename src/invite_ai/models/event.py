"""Pydantic models for assistant event extraction.

Defines the structured data types used by the extraction pipeline:

- :class:`EventPayload` -- the JSON object the assistant answers with
  (datetimes as raw strings, possibly empty or invalid).
- :class:`Event` -- the repaired, immutable event handed to the caller,
  with timezone-aware ``datetime`` values normalised to UTC.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import AwareDatetime, BaseModel, ConfigDict, field_validator

# ---------------------------------------------------------------------------
# EventPayload -- raw assistant output
# ---------------------------------------------------------------------------


class EventPayload(BaseModel):
    """A single event as returned by the assistant.

    All fields are strings at this stage.  ``null`` values are accepted and
    treated as empty; unknown keys are ignored.  The timestamps are parsed
    and repaired later by :func:`~invite_ai.parser.build_event`.

    Attributes:
        title: Short event title.
        description: Free-text description.
        location: Event location.
        start_time: RFC 3339 start timestamp, or ``""`` if unknown.
        end_time: RFC 3339 end timestamp, or ``""`` if unknown.
    """

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    description: str = ""
    location: str = ""
    start_time: str = ""
    end_time: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


# ---------------------------------------------------------------------------
# Event -- repaired, immutable result
# ---------------------------------------------------------------------------


class Event(BaseModel):
    """A calendar event ready to be encoded.

    ``end_time >= start_time`` is deliberately not validated here: the
    encoder tolerates whatever the assistant produced.

    Attributes:
        title: Short event title.
        description: Free-text description.
        location: Event location.
        start_time: Event start (UTC).
        end_time: Event end (UTC).
    """

    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str = ""
    location: str = ""
    start_time: AwareDatetime
    end_time: AwareDatetime

    @field_validator("start_time", "end_time")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        """Normalise timestamps to UTC."""
        return value.astimezone(timezone.utc)

    @property
    def is_all_day(self) -> bool:
        """Whether the event starts exactly at midnight."""
        return is_midnight(self.start_time)


def is_midnight(value: datetime) -> bool:
    """Return ``True`` if *value* has zero hour, minute and second."""
    return value.hour == 0 and value.minute == 0 and value.second == 0
