"""Data models for invite-ai."""

from __future__ import annotations

from invite_ai.models.event import Event, EventPayload, is_midnight
from invite_ai.models.requests import (
    ExtractionInput,
    ImageInput,
    RunStatus,
    TextInput,
    is_image_mime,
)

__all__ = [
    "Event",
    "EventPayload",
    "ExtractionInput",
    "ImageInput",
    "RunStatus",
    "TextInput",
    "is_image_mime",
    "is_midnight",
]
