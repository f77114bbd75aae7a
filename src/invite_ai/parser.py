"""Defensive parsing of assistant replies into events.

The assistant is asked for a bare JSON object but often wraps it in prose
("Sure! Here's the event: {...} Thanks.").  The parser slices from the
first ``{`` to the last ``}`` before decoding, validates the object with
Pydantic, and then repairs missing or unparseable timestamps with
documented fallbacks instead of failing the whole extraction.

Fallbacks:

- start time missing/invalid -> the current instant.
- end time missing/invalid -> start + 1 hour, or midnight of the next day
  when the start is exactly midnight (all-day inference).
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone

from pydantic import ValidationError

from invite_ai.exceptions import MalformedResponseError
from invite_ai.models.event import Event, EventPayload, is_midnight

logger = logging.getLogger(__name__)

_DEFAULT_DURATION = timedelta(hours=1)


def slice_json_object(raw: str) -> str:
    """Return *raw* from its first ``{`` to its last ``}`` inclusive.

    If there is no such pair, *raw* is returned unchanged (and will
    usually fail to decode).
    """
    start = raw.find("{")
    end = raw.rfind("}")
    if start >= 0 and end > start:
        return raw[start : end + 1]
    logger.warning("Could not find JSON object markers in the response")
    return raw


def parse_event_payload(raw: str) -> EventPayload:
    """Decode an assistant reply into an :class:`EventPayload`.

    Raises:
        MalformedResponseError: If the sliced text is not a JSON object
            or does not fit the payload schema.
    """
    candidate = slice_json_object(raw)
    logger.debug("Extracted JSON: %s", candidate)

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(
            f"failed to parse event data: {exc}", raw_response=raw
        ) from exc

    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"expected a JSON object, got {type(data).__name__}", raw_response=raw
        )

    try:
        return EventPayload.model_validate(data)
    except ValidationError as exc:
        raise MalformedResponseError(
            f"event data does not match schema: {exc}", raw_response=raw
        ) from exc


def _parse_rfc3339(value: str) -> datetime | None:
    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None or parsed.utcoffset() is None:
        return None
    return parsed


def parse_timestamp(value: str) -> datetime | None:
    """Parse an RFC 3339 timestamp, returning ``None`` if it is not one.

    A UTC designator or numeric offset is required; naive timestamps are
    rejected.
    """
    parsed = _parse_rfc3339(value)
    return None if parsed is None else parsed.astimezone(timezone.utc)


def next_midnight(value: datetime) -> datetime:
    """Midnight at the start of the day after *value*, in the same zone."""
    following = value.date() + timedelta(days=1)
    return datetime(
        following.year, following.month, following.day, tzinfo=value.tzinfo
    )


def repair_times(
    start_raw: str,
    end_raw: str,
    now: datetime,
) -> tuple[datetime, datetime]:
    """Parse start and end strings, substituting fallbacks where needed.

    Midnight detection and the next-midnight fallback use the offset the
    start was written in, so ``00:00+03:00`` is an all-day start.

    Args:
        start_raw: Start timestamp as returned by the assistant.
        end_raw: End timestamp as returned by the assistant.
        now: The current instant (timezone-aware), used when the start is
            missing or invalid.

    Returns:
        ``(start, end)`` as UTC datetimes.
    """
    start = _parse_rfc3339(start_raw)
    if start is None:
        if start_raw.strip():
            logger.warning(
                "Failed to parse start time %r, using current time", start_raw
            )
        else:
            logger.warning("Start time was empty, using current time")
        start = now
    elif is_midnight(start):
        logger.info("Detected possible all-day event (start time at midnight)")

    end = _parse_rfc3339(end_raw)
    if end is None:
        if is_midnight(start):
            end = next_midnight(start)
            reason = "all-day event, using midnight of the next day"
        else:
            end = start + _DEFAULT_DURATION
            reason = "using start time + 1 hour"
        if end_raw.strip():
            logger.warning("Failed to parse end time %r, %s", end_raw, reason)
        else:
            logger.warning("End time was empty, %s", reason)

    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def build_event(payload: EventPayload, now: datetime) -> Event:
    """Assemble an :class:`Event` from a payload, repairing its times."""
    start, end = repair_times(payload.start_time, payload.end_time, now)
    return Event(
        title=payload.title,
        description=payload.description,
        location=payload.location,
        start_time=start,
        end_time=end,
    )


def parse_event(raw: str, now: datetime) -> Event:
    """Parse a raw assistant reply straight into an :class:`Event`.

    Raises:
        MalformedResponseError: If the reply holds no usable JSON object.
    """
    return build_event(parse_event_payload(raw), now)
