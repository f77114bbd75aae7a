"""OpenAI Assistants API client for conversation threads and runs.

Wraps the ``openai`` SDK so the rest of the package only sees plain
identifiers and status strings.  Every SDK failure is re-raised as an
:class:`~invite_ai.exceptions.AssistantServiceError` naming the stage
that failed.

Also provides :class:`AssistantResolver`, the process-wide lazily
resolved assistant identity.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import openai

from invite_ai.config import DEFAULT_ASSISTANT_NAME
from invite_ai.exceptions import AssistantServiceError, ThreadCreationError
from invite_ai.prompts import build_assistant_instructions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssistantMessage:
    """The newest message of a thread, reduced to what the parser needs.

    Attributes:
        message_id: Identifier of the message.
        role: Author role (``"assistant"`` or ``"user"``).
        text: First text content block, or ``None`` if there is none.
    """

    message_id: str
    role: str
    text: str | None


class AssistantService:
    """Client for the remote assistant service.

    Args:
        api_key: OpenAI API key.  Ignored when *client* is given.
        client: Optional pre-built ``openai.OpenAI`` client.  Pass a mock
            here in tests.
    """

    def __init__(self, api_key: str = "", client: Any | None = None) -> None:
        self._client = client or openai.OpenAI(api_key=api_key)

    # ------------------------------------------------------------------
    # Threads
    # ------------------------------------------------------------------

    def create_thread(self) -> str:
        """Create a new conversation thread and return its id.

        Raises:
            ThreadCreationError: If the service refuses or cannot be reached.
        """
        try:
            thread = self._client.beta.threads.create()
        except openai.OpenAIError as exc:
            logger.error("Thread creation failed: %s", exc)
            raise ThreadCreationError(f"failed to create thread: {exc}") from exc
        return thread.id

    def thread_exists(self, thread_id: str) -> bool:
        """Check whether *thread_id* still exists upstream.

        Any failure (not only a 404) is reported as ``False`` so the
        caller replaces the handle instead of failing the request.
        """
        try:
            self._client.beta.threads.retrieve(thread_id)
        except openai.NotFoundError:
            return False
        except openai.OpenAIError as exc:
            logger.warning("Could not verify thread %s: %s", thread_id, exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Messages and files
    # ------------------------------------------------------------------

    def upload_image(self, path: Path) -> str:
        """Upload the image at *path* for vision use and return its file id."""
        try:
            with open(path, "rb") as fh:
                uploaded = self._client.files.create(file=fh, purpose="vision")
        except openai.OpenAIError as exc:
            raise AssistantServiceError(
                f"failed to upload image: {exc}", stage="upload"
            ) from exc
        logger.debug("Uploaded %s as file %s", path.name, uploaded.id)
        return uploaded.id

    def post_message(
        self,
        thread_id: str,
        text: str,
        image_file_id: str | None = None,
    ) -> str:
        """Post a user message to a thread and return the message id.

        Args:
            thread_id: Target conversation thread.
            text: Text content block.
            image_file_id: Uploaded image to attach as an ``image_file``
                block, if any.
        """
        content: list[dict[str, Any]] = [{"type": "text", "text": text}]
        if image_file_id is not None:
            content.append(
                {
                    "type": "image_file",
                    "image_file": {"file_id": image_file_id, "detail": "high"},
                }
            )
        try:
            message = self._client.beta.threads.messages.create(
                thread_id, role="user", content=content
            )
        except openai.OpenAIError as exc:
            raise AssistantServiceError(
                f"failed to create message: {exc}", stage="post_message"
            ) from exc
        return message.id

    def latest_message(self, thread_id: str) -> AssistantMessage | None:
        """Return the newest message of a thread, or ``None`` if it is empty."""
        try:
            page = self._client.beta.threads.messages.list(
                thread_id, order="desc", limit=1
            )
        except openai.OpenAIError as exc:
            raise AssistantServiceError(
                f"failed to list messages: {exc}", stage="fetch_reply"
            ) from exc

        if not page.data:
            return None
        message = page.data[0]

        text: str | None = None
        for block in message.content:
            if block.type == "text":
                text = block.text.value
                break

        return AssistantMessage(message_id=message.id, role=message.role, text=text)

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def start_run(self, thread_id: str, assistant_id: str) -> str:
        """Start a run of *assistant_id* on a thread and return the run id."""
        try:
            run = self._client.beta.threads.runs.create(
                thread_id=thread_id, assistant_id=assistant_id
            )
        except openai.OpenAIError as exc:
            raise AssistantServiceError(
                f"failed to create run: {exc}", stage="start_run"
            ) from exc
        return run.id

    def get_run_status(self, thread_id: str, run_id: str) -> str:
        """Return the current status string of a run."""
        try:
            run = self._client.beta.threads.runs.retrieve(run_id, thread_id=thread_id)
        except openai.OpenAIError as exc:
            raise AssistantServiceError(
                f"failed to retrieve run: {exc}", stage="poll"
            ) from exc
        return run.status

    # ------------------------------------------------------------------
    # Assistants
    # ------------------------------------------------------------------

    def assistant_exists(self, assistant_id: str) -> bool:
        try:
            self._client.beta.assistants.retrieve(assistant_id)
        except openai.OpenAIError as exc:
            logger.warning("Assistant %s not found: %s", assistant_id, exc)
            return False
        return True

    def find_assistant(self, name: str) -> str | None:
        """Return the id of the first assistant named *name*, if any.

        The API cannot filter by name, so the listing is scanned.
        """
        try:
            assistants = self._client.beta.assistants.list()
        except openai.OpenAIError as exc:
            raise AssistantServiceError(
                f"failed to list assistants: {exc}", stage="resolve_assistant"
            ) from exc

        for assistant in assistants.data:
            if assistant.name == name:
                return assistant.id
        return None

    def create_assistant(self, name: str, model: str, instructions: str) -> str:
        try:
            assistant = self._client.beta.assistants.create(
                name=name, model=model, instructions=instructions
            )
        except openai.OpenAIError as exc:
            raise AssistantServiceError(
                f"failed to create assistant: {exc}", stage="resolve_assistant"
            ) from exc
        return assistant.id


class AssistantResolver:
    """Lazily resolved, process-wide assistant identity.

    Resolution order:

    1. the configured *assistant_id*, if it still exists upstream;
    2. the first existing assistant named *name*;
    3. a newly created assistant, when *create_missing* is set.

    A successful resolution is cached until :meth:`invalidate` is called.
    An unsuccessful one is not cached, so the next call tries again.

    Args:
        service: The remote assistant service.
        assistant_id: Configured assistant id, or ``None``.
        name: Display name used for the by-name lookup.
        create_missing: Create an assistant when none can be found.
        model: Model for a newly created assistant.
    """

    def __init__(
        self,
        service: AssistantService,
        assistant_id: str | None = None,
        name: str = DEFAULT_ASSISTANT_NAME,
        create_missing: bool = False,
        model: str = "gpt-4o",
    ) -> None:
        self._service = service
        self._configured_id = assistant_id
        self._name = name
        self._create_missing = create_missing
        self._model = model
        self._resolved: str | None = None
        self._lock = threading.Lock()

    def resolve(self) -> str | None:
        """Return the assistant id, resolving it on first use.

        Returns:
            The assistant id, or ``None`` if none could be resolved.

        Raises:
            AssistantServiceError: If listing or creating assistants fails.
        """
        resolved = self._resolved
        if resolved is not None:
            return resolved

        with self._lock:
            if self._resolved is None:
                self._resolved = self._lookup()
            return self._resolved

    def invalidate(self) -> None:
        """Forget the cached id; the next :meth:`resolve` looks it up again."""
        with self._lock:
            if self._resolved is not None:
                logger.info("Invalidating cached assistant %s", self._resolved)
            self._resolved = None

    def _lookup(self) -> str | None:
        if self._configured_id:
            if self._service.assistant_exists(self._configured_id):
                return self._configured_id
            logger.warning(
                "Configured assistant %s not found, looking up '%s' by name",
                self._configured_id,
                self._name,
            )
            # Skip the stale id on the next lookup.
            self._configured_id = None

        found = self._service.find_assistant(self._name)
        if found is not None:
            logger.info("Using assistant '%s' (%s)", self._name, found)
            return found

        if self._create_missing:
            created = self._service.create_assistant(
                self._name, self._model, build_assistant_instructions()
            )
            logger.info("Created assistant '%s' (%s)", self._name, created)
            return created

        logger.warning("No assistant named '%s' found", self._name)
        return None
