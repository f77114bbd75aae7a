"""Entry point for ``python -m invite_ai``.

Provides a CLI that turns a text description or an image of an event
into an ``.ics`` invite.  Uses stdlib :mod:`argparse` for argument
parsing (no extra dependencies).

Subcommands:
    text  -- Extract an event from a text description.
    image -- Extract an event from an image file.

Exit codes:
    0 -- Invite written successfully.
    1 -- An error occurred (file not found, config error, extraction failed).
    2 -- Argument parsing error (handled by argparse).
"""

from __future__ import annotations

import argparse
import logging
import mimetypes
import sys
from pathlib import Path

from invite_ai.config import ConfigError, load_settings
from invite_ai.exceptions import InvalidTimezoneError, InviteError
from invite_ai.log import setup_logging
from invite_ai.models.requests import ExtractionInput, ImageInput, TextInput, is_image_mime
from invite_ai.pipeline import CalendarAssistant, describe_invite
from invite_ai.timezones import parse_timezone

_DEFAULT_USER = "cli"

logger = logging.getLogger(__name__)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--user",
        type=str,
        default=_DEFAULT_USER,
        help="User id whose conversation thread is used (default: cli).",
    )
    parser.add_argument(
        "--timezone",
        type=str,
        default=None,
        help=(
            "Display timezone, e.g. Europe/London or GMT+3 "
            "(defaults to TIMEZONE from config)."
        ),
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Where to write the .ics file (default: derived from the title).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug-level logging.",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser with subcommands.

    Returns:
        Configured :class:`argparse.ArgumentParser` with ``text`` and
        ``image`` subcommands.
    """
    parser = argparse.ArgumentParser(
        prog="invite-ai",
        description="Turn an event description or image into a calendar invite.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- "text" subcommand --------------------------------------------
    text_parser = subparsers.add_parser(
        "text",
        help="Extract an event from a text description.",
    )
    text_parser.add_argument("text", type=str, help="The event description.")
    _add_common_arguments(text_parser)

    # --- "image" subcommand -------------------------------------------
    image_parser = subparsers.add_parser(
        "image",
        help="Extract an event from an image file.",
    )
    image_parser.add_argument("image_file", type=str, help="Path to the image.")
    _add_common_arguments(image_parser)

    return parser


def _load_request(args: argparse.Namespace) -> ExtractionInput:
    """Build the extraction input for the chosen subcommand.

    Raises:
        FileNotFoundError: If the image file does not exist.
        ValueError: If the file is not a supported image type.
    """
    if args.command == "text":
        return TextInput(text=args.text)

    path = Path(args.image_file)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")

    mime_type, _ = mimetypes.guess_type(path.name)
    if mime_type is not None and not is_image_mime(mime_type):
        raise ValueError(f"Unsupported file type: {mime_type}")
    return ImageInput(data=path.read_bytes(), mime_type=mime_type)


def main(argv: list[str] | None = None) -> int:
    """Run the invite-ai CLI.

    Args:
        argv: Command-line arguments.  Defaults to ``sys.argv[1:]``
            when ``None`` (the normal case).

    Returns:
        Exit code: ``0`` on success, ``1`` on error.
    """
    parser = build_parser()
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    # --- Configure logging --------------------------------------------
    setup_logging("DEBUG" if args.verbose else settings.log_level)

    try:
        timezone_name = parse_timezone(args.timezone or settings.timezone)
    except InvalidTimezoneError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    try:
        request = _load_request(args)
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    # --- Run pipeline -------------------------------------------------
    assistant = CalendarAssistant.from_settings(settings)
    try:
        result = assistant.create_invite(args.user, request, timezone_name)
    except InviteError as exc:
        print(f"Error: failed to extract event: {exc}", file=sys.stderr)
        return 1

    output = Path(args.output) if args.output else Path(result.filename)
    output.write_bytes(result.ics)
    logger.debug("Wrote %d bytes to %s", len(result.ics), output)

    print(describe_invite(result))
    print(f"Saved invite to {output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
