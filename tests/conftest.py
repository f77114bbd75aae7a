"""Shared fixtures for invite-ai tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from unittest.mock import MagicMock, create_autospec

import pytest

from invite_ai.assistant import AssistantMessage, AssistantService


@pytest.fixture()
def monkeypatch_env(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set all required environment variables to valid defaults.

    Also patches ``load_dotenv`` so that a real ``.env`` file on disk does not
    override the test values.

    Returns the dict of variables so tests can inspect or override values.
    """
    monkeypatch.setattr("invite_ai.config.load_dotenv", lambda *_a, **_kw: None)
    env_vars = {
        "OPENAI_API_KEY": "test-openai-key-12345",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove all invite-ai-related environment variables.

    Patches ``load_dotenv`` so a real ``.env`` file cannot re-inject values
    that the test explicitly removed.
    """
    monkeypatch.setattr("invite_ai.config.load_dotenv", lambda *_a, **_kw: None)
    for key in (
        "OPENAI_API_KEY",
        "OPENAI_ASSISTANT_ID",
        "ASSISTANT_NAME",
        "OPENAI_MODEL",
        "LOG_LEVEL",
        "TIMEZONE",
        "POLL_INTERVAL",
        "RUN_TIMEOUT",
        "CREATE_ASSISTANT",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def mock_service() -> MagicMock:
    """Return an autospecced :class:`AssistantService` with happy defaults.

    - ``create_thread`` hands out ``thread-1``, ``thread-2``, ...
    - every thread exists, the assistant ``asst-1`` exists
    - runs complete on the first poll
    - the newest message is an assistant reply with an empty event
    """
    service = create_autospec(AssistantService, instance=True)

    counter = {"n": 0}

    def _new_thread() -> str:
        counter["n"] += 1
        return f"thread-{counter['n']}"

    service.create_thread.side_effect = _new_thread
    service.thread_exists.return_value = True
    service.assistant_exists.return_value = True
    service.find_assistant.return_value = None
    service.post_message.return_value = "msg-1"
    service.upload_image.return_value = "file-1"
    service.start_run.return_value = "run-1"
    service.get_run_status.return_value = "completed"
    service.latest_message.return_value = AssistantMessage(
        message_id="msg-2", role="assistant", text='{"title": "Event"}'
    )
    return service


@pytest.fixture(autouse=True)
def _reset_root_logger() -> Generator[None, None, None]:
    """Reset the root logger after each test to prevent handler leaks."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
