"""Pipeline orchestrator for the message-to-invite workflow.

Wires the components together for one user interaction: resolve the
user's conversation thread, extract the event through the assistant, and
encode it as an ``.ics`` invite.  The top-level entry point is
:class:`CalendarAssistant`, whose :meth:`~CalendarAssistant.create_invite`
returns an :class:`InviteResult` suitable for rendering by
:func:`describe_invite`.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone

from invite_ai.assistant import AssistantResolver, AssistantService
from invite_ai.config import Settings
from invite_ai.extractor import EventExtractor
from invite_ai.ics import encode_event_in_zone
from invite_ai.models.event import Event
from invite_ai.models.requests import ExtractionInput
from invite_ai.sessions import SessionManager, ThreadStore
from invite_ai.timezones import format_timezone_for_display, load_zone

logger = logging.getLogger(__name__)

_FILENAME_UNSAFE = re.compile(r"[^A-Za-z0-9]+")
_MAX_FILENAME_STEM = 40


# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InviteResult:
    """Outcome of turning one user message into an invite.

    Attributes:
        event: The extracted event.
        ics: The encoded calendar document.
        timezone: The display timezone actually used (after UTC fallback).
        filename: Suggested attachment name, e.g. ``"team_lunch.ics"``.
        duration_seconds: Wall-clock time for extraction and encoding.
    """

    event: Event
    ics: bytes
    timezone: str
    filename: str
    duration_seconds: float = 0.0

    @property
    def is_all_day(self) -> bool:
        return self.event.is_all_day


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class CalendarAssistant:
    """Per-user front door: sessions, extraction and encoding.

    Args:
        sessions: The per-user thread cache.
        extractor: The event extractor.
    """

    def __init__(self, sessions: SessionManager, extractor: EventExtractor) -> None:
        self._sessions = sessions
        self._extractor = extractor

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: ThreadStore | None = None,
    ) -> CalendarAssistant:
        """Build a fully wired assistant from application settings."""
        service = AssistantService(api_key=settings.openai_api_key)
        resolver = AssistantResolver(
            service,
            assistant_id=settings.assistant_id,
            name=settings.assistant_name,
            create_missing=settings.create_assistant,
            model=settings.model,
        )
        extractor = EventExtractor(
            service,
            resolver,
            poll_interval=settings.poll_interval,
            timeout=settings.run_timeout,
        )
        return cls(SessionManager(service, store), extractor)

    @property
    def sessions(self) -> SessionManager:
        return self._sessions

    def extract_event(
        self,
        user_id: str,
        request: ExtractionInput,
        *,
        timeout: float | None = None,
        cancel: threading.Event | None = None,
    ) -> Event:
        """Extract an event from *request* in *user_id*'s conversation.

        Raises:
            InviteError: Any request-aborting failure (see
                :mod:`invite_ai.exceptions`).
        """
        # Resolve the assistant before any thread is created for the user.
        self._extractor.resolve_assistant()
        thread_id = self._sessions.resolve(user_id)
        return self._extractor.extract(
            thread_id, request, timeout=timeout, cancel=cancel
        )

    def create_invite(
        self,
        user_id: str,
        request: ExtractionInput,
        timezone_name: str,
        *,
        timeout: float | None = None,
        cancel: threading.Event | None = None,
    ) -> InviteResult:
        """Extract an event and encode it as an invite.

        Args:
            user_id: Stable identifier of the end user.
            request: Text or image input.
            timezone_name: The user's display timezone.
            timeout: Optional polling deadline in seconds.
            cancel: Optional cancellation event.

        Returns:
            An :class:`InviteResult`.
        """
        started = time.monotonic()

        logger.info("Stage 1: Extracting event for user %s", user_id)
        event = self.extract_event(user_id, request, timeout=timeout, cancel=cancel)

        logger.info("Stage 2: Encoding invite in timezone %s", timezone_name)
        zone, zone_name = load_zone(timezone_name)
        data = encode_event_in_zone(event, zone, zone_name)

        result = InviteResult(
            event=event,
            ics=data,
            timezone=zone_name,
            filename=invite_filename(event),
            duration_seconds=time.monotonic() - started,
        )
        logger.info(
            "Invite '%s' ready (%d bytes) in %.1fs",
            result.filename,
            len(data),
            result.duration_seconds,
        )
        return result

    def clear(self, user_id: str) -> None:
        """Forget *user_id*'s conversation so the next request starts fresh.

        Only the local mapping is dropped; always succeeds.
        """
        self._sessions.evict(user_id)


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------


def invite_filename(event: Event) -> str:
    """Build a filesystem-safe ``.ics`` file name from the event title."""
    stem = _FILENAME_UNSAFE.sub("_", event.title).strip("_").lower()
    return f"{stem[:_MAX_FILENAME_STEM] or 'event'}.ics"


def describe_invite(result: InviteResult) -> str:
    """Render a short human-readable summary of an invite.

    Times are shown as the user will see them in their calendar, i.e. the
    wall-clock times the assistant extracted.
    """
    event = result.event
    if result.is_all_day:
        kind, fmt = "All-day event", "%Y-%m-%d"
    else:
        kind, fmt = "Timed event", "%Y-%m-%d %H:%M"

    lines = [
        f"{kind}: {event.title}",
        f"Start: {_wall_clock(event.start_time).strftime(fmt)}",
        f"End: {_wall_clock(event.end_time).strftime(fmt)}",
        f"Location: {event.location}",
        f"Timezone: {format_timezone_for_display(result.timezone)}",
    ]
    return "\n".join(lines)


def _wall_clock(value: datetime) -> datetime:
    return value.astimezone(timezone.utc).replace(tzinfo=None)
