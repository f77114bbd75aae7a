"""Configuration loading for invite-ai.

Reads settings from environment variables (with .env support via python-dotenv)
and validates that all required values are present.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_ASSISTANT_NAME = "Calendar Assistant"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables.

    Attributes:
        openai_api_key: API key for the OpenAI Assistants API.
        assistant_id: Identifier of the assistant to run, or ``None`` to
            look it up by *assistant_name*.
        assistant_name: Display name used for the by-name lookup.
        model: Model used when the assistant has to be created.
        log_level: Logging level (default ``"INFO"``).
        timezone: Default timezone for invites (default ``"UTC"``).
        poll_interval: Seconds between run status polls (default ``1.0``).
        run_timeout: Polling deadline in seconds, or ``None`` to wait
            indefinitely.
        create_assistant: Create the assistant when no existing one matches.
    """

    openai_api_key: str
    assistant_id: str | None = None
    assistant_name: str = DEFAULT_ASSISTANT_NAME
    model: str = "gpt-4o"
    log_level: str = "INFO"
    timezone: str = "UTC"
    poll_interval: float = 1.0
    run_timeout: float | None = None
    create_assistant: bool = False

    def __repr__(self) -> str:
        return (
            f"Settings(openai_api_key='***', "
            f"assistant_id={self.assistant_id!r}, "
            f"assistant_name={self.assistant_name!r}, "
            f"model={self.model!r}, "
            f"log_level={self.log_level!r}, "
            f"timezone={self.timezone!r}, "
            f"poll_interval={self.poll_interval!r}, "
            f"run_timeout={self.run_timeout!r}, "
            f"create_assistant={self.create_assistant!r})"
        )


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Calls :func:`dotenv.load_dotenv` so a ``.env`` file in the project root
    is picked up automatically.

    Returns:
        A validated :class:`Settings` instance.

    Raises:
        ConfigError: If ``OPENAI_API_KEY`` is missing, empty, or
            whitespace-only, or if a numeric/boolean variable cannot be
            parsed.  The error message names **all** offending variables.
    """
    load_dotenv()

    values: dict[str, object] = {}
    problems: list[str] = []

    api_key = os.environ.get("OPENAI_API_KEY", "")
    if not api_key.strip():
        raise ConfigError("Missing required environment variables: OPENAI_API_KEY")
    values["openai_api_key"] = api_key

    # Optional string settings with defaults handled by the dataclass.
    optional = {
        "OPENAI_ASSISTANT_ID": "assistant_id",
        "ASSISTANT_NAME": "assistant_name",
        "OPENAI_MODEL": "model",
        "LOG_LEVEL": "log_level",
        "TIMEZONE": "timezone",
    }
    for env_var, field_name in optional.items():
        raw = os.environ.get(env_var, "").strip()
        if raw:
            values[field_name] = raw

    poll_interval = os.environ.get("POLL_INTERVAL", "").strip()
    if poll_interval:
        try:
            values["poll_interval"] = float(poll_interval)
        except ValueError:
            problems.append(f"POLL_INTERVAL={poll_interval!r} is not a number")
        else:
            if values["poll_interval"] < 0:
                problems.append("POLL_INTERVAL must not be negative")

    run_timeout = os.environ.get("RUN_TIMEOUT", "").strip()
    if run_timeout:
        try:
            values["run_timeout"] = float(run_timeout)
        except ValueError:
            problems.append(f"RUN_TIMEOUT={run_timeout!r} is not a number")

    create = os.environ.get("CREATE_ASSISTANT", "").strip().lower()
    if create:
        if create in _TRUE_VALUES:
            values["create_assistant"] = True
        elif create in _FALSE_VALUES:
            values["create_assistant"] = False
        else:
            problems.append(f"CREATE_ASSISTANT={create!r} is not a boolean")

    if problems:
        raise ConfigError("Invalid environment variables: " + "; ".join(problems))

    return Settings(**values)  # type: ignore[arg-type]
