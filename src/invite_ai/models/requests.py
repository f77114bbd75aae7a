"""Extraction request and run-status types.

These are intentionally simple stdlib dataclasses and enums (not Pydantic):
they never cross the wire as JSON.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

_MIME_SUFFIXES: dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/bmp": ".bmp",
}

IMAGE_MIME_TYPES = frozenset(_MIME_SUFFIXES)

_DEFAULT_SUFFIX = ".png"


def is_image_mime(mime_type: str) -> bool:
    """Return ``True`` if *mime_type* is an image type we can upload."""
    return mime_type.lower() in IMAGE_MIME_TYPES


def _sniff_suffix(data: bytes) -> str | None:
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return ".png"
    if data.startswith(b"\xff\xd8\xff"):
        return ".jpg"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return ".gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return ".webp"
    if data.startswith(b"BM"):
        return ".bmp"
    return None


@dataclass(frozen=True)
class TextInput:
    """Free-form text describing an event.

    Attributes:
        text: The user's message.
    """

    text: str


@dataclass(frozen=True)
class ImageInput:
    """An image (photo, screenshot, poster) describing an event.

    Attributes:
        data: Raw image bytes.
        mime_type: MIME type reported by the sender, if known.
    """

    data: bytes
    mime_type: str | None = None

    @property
    def suffix(self) -> str:
        """File extension used when staging the image for upload.

        Taken from :attr:`mime_type` when it is a known image type,
        otherwise sniffed from the magic bytes, falling back to ``.png``.
        """
        if self.mime_type and self.mime_type.lower() in _MIME_SUFFIXES:
            return _MIME_SUFFIXES[self.mime_type.lower()]
        return _sniff_suffix(self.data) or _DEFAULT_SUFFIX


ExtractionInput = TextInput | ImageInput


class RunStatus(str, Enum):
    """Status of an assistant run."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    CANCELLING = "cancelling"
    REQUIRES_ACTION = "requires_action"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    INCOMPLETE = "incomplete"

    @property
    def is_pending(self) -> bool:
        return self in _PENDING


_PENDING = frozenset({RunStatus.QUEUED, RunStatus.IN_PROGRESS, RunStatus.CANCELLING})