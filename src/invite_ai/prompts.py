"""Prompt builders for the assistant event-extraction requests.

Constructs the per-request user messages (which carry today's date so the
assistant can resolve relative references like "tomorrow") and the
standing instructions used when the assistant itself has to be created.
"""

from __future__ import annotations

from datetime import datetime


def format_current_date(now: datetime) -> str:
    """Format *now* as a human-readable date, e.g. ``"Monday, March 10, 2025"``."""
    return f"{now:%A}, {now:%B} {now.day}, {now.year}"


def build_text_request(text: str, now: datetime) -> str:
    """Build the user message for a text extraction request.

    Args:
        text: The user's free-form event description.
        now: The current date/time, rendered as a date for the assistant.

    Returns:
        The message text to post to the conversation thread.
    """
    return (
        f"Today is {format_current_date(now)}. "
        f"Please extract event information from the following text:\n\n{text}"
    )


def build_image_request(now: datetime) -> str:
    """Build the text part of the user message for an image request."""
    return (
        f"Today is {format_current_date(now)}. "
        "Please extract event information from this image."
    )


def build_assistant_instructions() -> str:
    """Build the standing instructions for a newly created assistant.

    The instructions pin the reply to a single JSON object with the keys
    the response parser expects.  Replies are still parsed defensively,
    since the assistant may wrap the object in prose.

    Returns:
        The complete instruction string.
    """
    return """\
You are a calendar assistant. Users send you a text or an image (a poster,
a screenshot, an invitation) describing an event. Extract the event and
answer with exactly one JSON object and nothing else.

## Output Format

{
  "title": "short event title",
  "description": "one or two sentences describing the event",
  "location": "venue or address, empty string if unknown",
  "start_time": "RFC 3339 timestamp, e.g. 2025-03-10T16:00:00Z",
  "end_time": "RFC 3339 timestamp, empty string if unknown"
}

## Time Rules

- Each message starts with today's date. Use it to resolve relative
  references such as "tomorrow", "next Friday" or "in two weeks".
- Write local times as given, with a "Z" suffix. Do not convert them.
- If the event lasts all day or has no time, use midnight (T00:00:00Z)
  for the start and midnight of the following day for the end.
- If the end time is unknown, leave "end_time" empty.
- If no date can be found at all, leave "start_time" empty.
"""
