"""Encode events as iCalendar (RFC 5545) invites.

Produces a ``METHOD:REQUEST`` calendar with a single ``VEVENT``, ready to
be sent as an ``.ics`` attachment.

Timestamps are always written in UTC form (``...Z``).  The assistant
returns the user's *local* wall-clock time labelled as UTC, so the
encoder subtracts the display zone's current whole-hour offset; when the
calendar application re-applies that offset, the user sees the time they
asked for.  The zone name is recorded in ``X-DISPLAY-TIMEZONE``.

Events starting exactly at midnight are all-day events and use date-only
``DTSTART;VALUE=DATE`` (and ``DTEND`` when the end is midnight too).
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from icalendar import Calendar
from icalendar import Event as IcsEvent

from invite_ai.exceptions import IcsEncodingError
from invite_ai.models.event import Event, is_midnight
from invite_ai.timezones import current_offset_hours, load_zone

logger = logging.getLogger(__name__)

PRODUCT_ID = "-//Calendar Assistant//EN"
DISPLAY_TIMEZONE_PROPERTY = "X-DISPLAY-TIMEZONE"


def adjust_for_offset(value: datetime, offset_hours: int) -> datetime:
    """Shift *value* back by *offset_hours* to compensate for the display zone."""
    return value - timedelta(hours=offset_hours)


def encode_event(
    event: Event,
    timezone_name: str,
    now: datetime | None = None,
) -> bytes:
    """Serialise *event* as an iCalendar invite.

    Args:
        event: The extracted event.
        timezone_name: The user's display timezone.  Unknown names fall
            back to UTC.
        now: Override for the current time (used for the UID, the
            creation stamps and the offset).  Defaults to now.

    Returns:
        The complete calendar document as bytes (CRLF line endings).

    Raises:
        IcsEncodingError: If serialisation fails.
    """
    zone, zone_name = load_zone(timezone_name)
    return encode_event_in_zone(event, zone, zone_name, now)


def encode_event_in_zone(
    event: Event,
    zone: ZoneInfo,
    zone_name: str,
    now: datetime | None = None,
) -> bytes:
    """Like :func:`encode_event`, for a zone already resolved by :func:`load_zone`."""
    stamp = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    offset_hours = current_offset_hours(zone, stamp)

    start = adjust_for_offset(event.start_time, offset_hours)
    end = adjust_for_offset(event.end_time, offset_hours)
    logger.debug(
        "Timezone %s offset %+d h: start %s -> %s, end %s -> %s",
        zone_name,
        offset_hours,
        event.start_time.isoformat(),
        start.isoformat(),
        event.end_time.isoformat(),
        end.isoformat(),
    )

    dtstart: datetime | date = start
    dtend: datetime | date = end
    # All-day detection looks at the times before offset compensation.
    if is_midnight(event.start_time):
        logger.info("Detected all-day event, using DATE format")
        dtstart = start.date()
        if is_midnight(event.end_time):
            dtend = end.date()

    vevent = IcsEvent()
    vevent.add("uid", str(int(stamp.timestamp())))
    vevent.add("created", stamp)
    vevent.add("dtstamp", stamp)
    vevent.add("last-modified", stamp)
    vevent.add("dtstart", dtstart)
    vevent.add("dtend", dtend)
    vevent.add("summary", event.title)
    vevent.add("description", event.description)
    vevent.add("location", event.location)
    vevent.add(DISPLAY_TIMEZONE_PROPERTY, zone_name)

    calendar = Calendar()
    calendar.add("prodid", PRODUCT_ID)
    calendar.add("version", "2.0")
    calendar.add("method", "REQUEST")
    calendar.add_component(vevent)

    try:
        data = calendar.to_ical()
    except (ValueError, TypeError) as exc:
        raise IcsEncodingError(f"failed to serialize ICS: {exc}") from exc

    logger.debug("Generated ICS (%d bytes):\n%s", len(data), data.decode("utf-8"))
    return data
