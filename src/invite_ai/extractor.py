"""Event extraction through the remote assistant.

Drives one extraction request end to end: resolve the assistant, post the
user's text or image to the conversation thread, start a run, poll it to a
terminal state, and parse the assistant's reply into an
:class:`~invite_ai.models.event.Event`.

Run status state machine::

    queued/in_progress --(unchanged)----------------------------> keep polling
    queued/in_progress --(completed)----------------------------> parse reply
    queued/in_progress --(failed|cancelled|expired|incomplete)--> RunFailedError
    queued/in_progress --(requires_action)----------------------> RunRequiresActionError

By default the loop waits indefinitely.  Callers can opt into a deadline
(``timeout``) or cancel from another thread (``cancel``); neither changes
what a successful extraction returns.
"""

from __future__ import annotations

import logging
import tempfile
import threading
import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from invite_ai.assistant import AssistantResolver, AssistantService
from invite_ai.exceptions import (
    AssistantNotConfiguredError,
    ExtractionCancelledError,
    MalformedResponseError,
    RunFailedError,
    RunRequiresActionError,
    RunTimeoutError,
)
from invite_ai.models.event import Event
from invite_ai.models.requests import ExtractionInput, ImageInput, RunStatus
from invite_ai.parser import parse_event
from invite_ai.prompts import build_image_request, build_text_request

logger = logging.getLogger(__name__)

_DEFAULT_POLL_INTERVAL = 1.0  # seconds


def _local_now() -> datetime:
    return datetime.now().astimezone()


class EventExtractor:
    """Extract calendar events from text or images via the assistant.

    Args:
        service: The remote assistant service.
        resolver: Resolves (and caches) the assistant identity to run.
        poll_interval: Seconds between run status polls.
        timeout: Default polling deadline in seconds; ``None`` waits
            indefinitely.
        clock: Returns the current time (timezone-aware).  Used for the
            date in the request and for timestamp fallbacks.
    """

    def __init__(
        self,
        service: AssistantService,
        resolver: AssistantResolver,
        poll_interval: float = _DEFAULT_POLL_INTERVAL,
        timeout: float | None = None,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self._service = service
        self._resolver = resolver
        self._poll_interval = poll_interval
        self._timeout = timeout
        self._clock = clock

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve_assistant(self) -> str:
        """Return the assistant id to run, resolving it on first use.

        Raises:
            AssistantNotConfiguredError: If no assistant can be resolved.
        """
        assistant_id = self._resolver.resolve()
        if assistant_id is None:
            raise AssistantNotConfiguredError(
                "no assistant id configured and none found by name"
            )
        return assistant_id

    def extract(
        self,
        thread_id: str,
        request: ExtractionInput,
        *,
        timeout: float | None = None,
        cancel: threading.Event | None = None,
    ) -> Event:
        """Extract one event from *request* on the given thread.

        Args:
            thread_id: Conversation thread (from the session manager).
            request: A :class:`~invite_ai.models.requests.TextInput` or
                :class:`~invite_ai.models.requests.ImageInput`.
            timeout: Polling deadline in seconds, overriding the default
                given to the constructor.
            cancel: Event that, once set, aborts the polling loop.

        Returns:
            The extracted, timestamp-repaired event.

        Raises:
            AssistantNotConfiguredError: If no assistant can be resolved.
            AssistantServiceError: If any remote call fails.
            RunFailedError: If the run ends failed, cancelled or expired.
            RunRequiresActionError: If the run asks for a tool call.
            RunTimeoutError: If the deadline passes first.
            ExtractionCancelledError: If *cancel* is set while polling.
            MalformedResponseError: If the reply cannot be parsed.
        """
        assistant_id = self.resolve_assistant()
        now = self._clock()
        if isinstance(request, ImageInput):
            self._post_image(thread_id, request, now)
        else:
            message_text = build_text_request(request.text, now)
            logger.debug("Sending text request:\n%s", message_text)
            self._service.post_message(thread_id, message_text)

        run_id = self._service.start_run(thread_id, assistant_id)
        logger.info(
            "Started run %s on thread %s with assistant %s",
            run_id,
            thread_id,
            assistant_id,
        )

        self._wait_for_run(
            thread_id,
            run_id,
            timeout=self._timeout if timeout is None else timeout,
            cancel=cancel,
        )

        raw = self._fetch_reply(thread_id)
        event = parse_event(raw, self._clock())
        logger.info(
            "Extracted event '%s' (%s -> %s)",
            event.title,
            event.start_time.isoformat(),
            event.end_time.isoformat(),
        )
        return event

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _post_image(self, thread_id: str, request: ImageInput, now: datetime) -> None:
        """Stage the image in a temporary file, upload it, and post it.

        The temporary directory is removed on every exit path.
        """
        with tempfile.TemporaryDirectory(prefix="invite-ai-") as tmp_dir:
            path = Path(tmp_dir) / f"event-image{request.suffix}"
            path.write_bytes(request.data)
            logger.debug("Uploading image %s (%d bytes)", path.name, len(request.data))
            file_id = self._service.upload_image(path)

        message_text = build_image_request(now)
        self._service.post_message(thread_id, message_text, image_file_id=file_id)

    def _wait_for_run(
        self,
        thread_id: str,
        run_id: str,
        timeout: float | None,
        cancel: threading.Event | None,
    ) -> None:
        """Poll *run_id* until it completes; raise on any other terminal state."""
        waiter = cancel if cancel is not None else threading.Event()
        deadline = None if timeout is None else time.monotonic() + timeout
        attempt = 0

        while True:
            attempt += 1
            raw_status = self._service.get_run_status(thread_id, run_id)
            logger.debug("Poll attempt #%d for run %s: %s", attempt, run_id, raw_status)

            try:
                status: RunStatus | None = RunStatus(raw_status)
            except ValueError:
                logger.warning("Unknown run status %r, polling again", raw_status)
                status = None

            if status is RunStatus.COMPLETED:
                logger.info("Run %s completed after %d poll(s)", run_id, attempt)
                return
            if status is RunStatus.REQUIRES_ACTION:
                raise RunRequiresActionError(run_id)
            if status is not None and not status.is_pending:
                logger.error("Run %s ended with status %s", run_id, status.value)
                raise RunFailedError(status.value, run_id=run_id)

            delay = self._poll_interval
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise RunTimeoutError(
                        f"run {run_id} still {raw_status} after {timeout}s"
                    )
                delay = min(delay, remaining)

            if waiter.wait(delay):
                raise ExtractionCancelledError(
                    f"extraction cancelled while run {run_id} was {raw_status}"
                )

    def _fetch_reply(self, thread_id: str) -> str:
        """Return the text of the assistant's newest message."""
        message = self._service.latest_message(thread_id)
        if message is None:
            raise MalformedResponseError("no messages found")
        if message.role != "assistant":
            raise MalformedResponseError(f"unexpected message role: {message.role}")
        if not message.text:
            raise MalformedResponseError("no text content found in assistant message")

        logger.debug("Assistant response:\n%s", message.text)
        return message.text
