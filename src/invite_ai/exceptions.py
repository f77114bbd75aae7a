"""Custom exceptions for the invite-ai extraction pipeline.

Every error that aborts a request derives from :class:`InviteError` and
carries the pipeline *stage* it came from, so the caller can log it and
show the end user a one-line reason.

Exception hierarchy::

    InviteError
    +-- AssistantServiceError        (remote call failed)
    |   +-- ThreadCreationError      (conversation thread could not be created)
    +-- AssistantNotConfiguredError  (no assistant identity resolved)
    +-- RunFailedError               (run ended failed/cancelled/expired)
    |   +-- RunRequiresActionError   (run wants a tool call -- unsupported)
    +-- RunTimeoutError              (optional polling deadline exceeded)
    +-- ExtractionCancelledError     (caller cancelled the polling loop)
    +-- MalformedResponseError       (assistant answer unusable)
    +-- IcsEncodingError             (calendar serialisation failed)
"""

from __future__ import annotations


class InviteError(Exception):
    """Base exception for request-aborting failures.

    Attributes:
        stage: Short name of the pipeline stage that failed (e.g.
            ``"create_thread"``, ``"poll"``, ``"parse"``).
    """

    stage: str = "invite"

    def __init__(self, message: str, stage: str | None = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage

    def __str__(self) -> str:
        return f"{self.stage}: {super().__str__()}"


class AssistantServiceError(InviteError):
    """Raised when a call to the remote assistant service fails.

    Covers network errors, authentication failures and any other
    API-level error.  No automatic retry is attempted.
    """

    stage = "assistant"


class ThreadCreationError(AssistantServiceError):
    """Raised when a new conversation thread cannot be created."""

    stage = "create_thread"


class AssistantNotConfiguredError(InviteError):
    """Raised when no assistant identity could be resolved for a run."""

    stage = "resolve_assistant"


class RunFailedError(InviteError):
    """Raised when a run reaches a terminal failure status.

    Attributes:
        status: The terminal run status (e.g. ``"expired"``).
        run_id: Identifier of the failed run.
    """

    stage = "poll"

    def __init__(self, status: str, run_id: str = "", message: str | None = None) -> None:
        super().__init__(message or f"run {run_id} ended with status: {status}")
        self.status = status
        self.run_id = run_id


class RunRequiresActionError(RunFailedError):
    """Raised when a run asks for a tool call; tool calls are not supported."""

    def __init__(self, run_id: str = "") -> None:
        super().__init__(
            "requires_action",
            run_id=run_id,
            message=f"run {run_id} requires action, which is not supported",
        )


class RunTimeoutError(InviteError):
    """Raised when a run does not finish before the caller's deadline."""

    stage = "poll"


class ExtractionCancelledError(InviteError):
    """Raised when the caller cancels an extraction while it is polling."""

    stage = "poll"


class MalformedResponseError(InviteError):
    """Raised when the assistant's answer cannot be turned into an event.

    Covers a missing reply, a reply not authored by the assistant, a reply
    without text content, and JSON or schema failures.

    Attributes:
        raw_response: The raw assistant output that failed to parse.
    """

    stage = "parse"

    def __init__(self, message: str, raw_response: str = "") -> None:
        super().__init__(message)
        self.raw_response = raw_response


class IcsEncodingError(InviteError):
    """Raised when the calendar document cannot be serialised."""

    stage = "encode"


class InvalidTimezoneError(ValueError):
    """Raised when user-supplied timezone text cannot be understood."""
