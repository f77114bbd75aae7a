"""invite-ai: Message-to-Calendar-Invite AI.

Turns a free-form text or image description of an event into an
iCalendar (``.ics``) invite, using an OpenAI assistant for extraction.
"""

from __future__ import annotations

from invite_ai.exceptions import (
    AssistantNotConfiguredError,
    AssistantServiceError,
    ExtractionCancelledError,
    IcsEncodingError,
    InvalidTimezoneError,
    InviteError,
    MalformedResponseError,
    RunFailedError,
    RunRequiresActionError,
    RunTimeoutError,
    ThreadCreationError,
)
from invite_ai.ics import encode_event
from invite_ai.models import Event, EventPayload, ImageInput, RunStatus, TextInput
from invite_ai.parser import parse_event, slice_json_object
from invite_ai.pipeline import CalendarAssistant, InviteResult, describe_invite
from invite_ai.sessions import InMemoryThreadStore, SessionManager, ThreadStore
from invite_ai.timezones import format_timezone_for_display, parse_timezone

__version__ = "0.1.0"

__all__ = [
    "AssistantNotConfiguredError",
    "AssistantServiceError",
    "CalendarAssistant",
    "Event",
    "EventPayload",
    "ExtractionCancelledError",
    "IcsEncodingError",
    "ImageInput",
    "InMemoryThreadStore",
    "InvalidTimezoneError",
    "InviteError",
    "InviteResult",
    "MalformedResponseError",
    "RunFailedError",
    "RunRequiresActionError",
    "RunStatus",
    "RunTimeoutError",
    "SessionManager",
    "TextInput",
    "ThreadCreationError",
    "ThreadStore",
    "describe_invite",
    "encode_event",
    "format_timezone_for_display",
    "parse_event",
    "parse_timezone",
    "slice_json_object",
]
