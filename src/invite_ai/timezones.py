"""Timezone helpers for invite generation.

Resolves IANA zone names with a UTC fallback, computes the whole-hour
offset used for offset compensation, and parses the looser forms users
type (``GMT+3``, ``UTC -5:30``) into names the zone database understands.

The offset is taken at the current moment, not at the event's own date,
so invites for events on the other side of a daylight-saving change are
off by one hour.  This is a known limitation.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from invite_ai.exceptions import InvalidTimezoneError

logger = logging.getLogger(__name__)

UTC_NAME = "UTC"

_MAX_OFFSET_HOURS = 14

_OFFSET_PATTERN = re.compile(
    r"^(GMT|UTC)\s*([+-])\s*(\d+)(?::(\d+))?$", re.IGNORECASE
)


def _lookup(name: str) -> ZoneInfo | None:
    if not name or not name.strip():
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return None


def load_zone(name: str) -> tuple[ZoneInfo, str]:
    """Resolve *name* to a zone, falling back to UTC.

    Never raises: an unknown or malformed name logs a warning and yields
    UTC.

    Returns:
        ``(zone, resolved_name)``.
    """
    zone = _lookup(name)
    if zone is None:
        logger.warning("Invalid timezone %r, falling back to UTC", name)
        return ZoneInfo(UTC_NAME), UTC_NAME
    return zone, name


def current_offset_hours(zone: ZoneInfo, now: datetime | None = None) -> int:
    """Return the UTC offset of *zone* at *now* in whole hours.

    Fractional offsets are truncated toward zero (``+05:30`` -> ``5``,
    ``-03:30`` -> ``-3``).
    """
    moment = now if now is not None else datetime.now(timezone.utc)
    offset = moment.astimezone(zone).utcoffset()
    seconds = offset.total_seconds() if offset is not None else 0.0
    return int(seconds / 3600)


def parse_timezone(text: str) -> str:
    """Normalise user-typed timezone text.

    Accepts IANA names (``Europe/London``), bare ``GMT``/``UTC``, and
    offsets such as ``GMT+3``, ``UTC -5`` or ``GMT-5:30``.  Offsets map to
    the ``Etc/GMT`` zones, whose sign is inverted (``GMT+3`` is
    ``Etc/GMT-3``) and which only exist for whole hours; 30 minutes or
    more round the hour up.

    Returns:
        A name accepted by :func:`load_zone`.

    Raises:
        InvalidTimezoneError: If the text is neither a zone name nor a
            valid offset.
    """
    if _lookup(text) is not None:
        return text

    stripped = text.strip()
    if stripped.upper() in {"GMT", "UTC"}:
        return UTC_NAME

    match = _OFFSET_PATTERN.match(stripped)
    if match is None:
        raise InvalidTimezoneError(
            "invalid timezone format. Please use an IANA timezone name "
            "(e.g. 'Europe/London') or GMT offset (e.g. 'GMT+3')"
        )

    sign = match.group(2)
    hours = int(match.group(3))
    if hours > _MAX_OFFSET_HOURS:
        raise InvalidTimezoneError(
            f"invalid GMT offset: hours must be between 0 and {_MAX_OFFSET_HOURS}"
        )

    minutes_text = match.group(4)
    if minutes_text:
        minutes = int(minutes_text)
        if minutes >= 60:
            raise InvalidTimezoneError(
                "invalid GMT offset: minutes must be between 0 and 59"
            )
        if minutes >= 30:
            hours += 1

    inverted = "-" if sign == "+" else "+"
    return f"Etc/GMT{inverted}{hours}"


def format_timezone_for_display(name: str) -> str:
    """Render a zone name for users, undoing the ``Etc/GMT`` sign inversion.

    ``Etc/GMT-3`` becomes ``GMT+3``; IANA names are returned unchanged.
    """
    if not name.startswith("Etc/GMT"):
        return name

    offset = name[len("Etc/GMT") :]
    if not offset:
        return "GMT+0"
    if offset[0] == "+":
        return "GMT-" + offset[1:]
    if offset[0] == "-":
        return "GMT+" + offset[1:]
    return "GMT" + offset
