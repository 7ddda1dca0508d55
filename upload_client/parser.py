"""Command parser for REPL input."""

import shlex

from upload_client.models import (
    CancelCommand,
    CommandRequest,
    PauseCommand,
    ResumeCommand,
    StatusCommand,
    UploadCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object (one of Upload/Status/Pause/Resume/Cancel)

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0].lower()

    if command_name == "upload":
        return _parse_upload(tokens[1:])
    elif command_name == "status":
        return _parse_status(tokens[1:])
    elif command_name == "pause":
        return PauseCommand(transfer_id=_parse_optional_id("pause", tokens[1:]))
    elif command_name == "resume":
        return ResumeCommand(transfer_id=_parse_optional_id("resume", tokens[1:]))
    elif command_name == "cancel":
        return CancelCommand(transfer_id=_parse_optional_id("cancel", tokens[1:]))
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_upload(args: list[str]) -> UploadCommand:
    """Parse 'upload <path> [path...]' command."""
    if not args:
        raise ParseError("upload requires at least one file")

    return UploadCommand(file_list=tuple(args))


def _parse_status(args: list[str]) -> StatusCommand:
    """Parse 'status' command."""
    if args:
        raise ParseError("status takes no arguments")

    return StatusCommand()


def _parse_optional_id(command_name: str, args: list[str]) -> int | None:
    """Parse the optional transfer id of pause/resume/cancel."""
    if not args:
        return None
    if len(args) > 1:
        raise ParseError(f"{command_name} takes at most one transfer id")

    raw = args[0].lstrip("#")
    try:
        transfer_id = int(raw)
    except ValueError:
        raise ParseError(f"{command_name}: transfer id must be a number, got '{args[0]}'")
    if transfer_id < 1:
        raise ParseError(f"{command_name}: transfer id must be positive")
    return transfer_id
