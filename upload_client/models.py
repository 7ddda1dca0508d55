"""Command request data types for the REPL."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class UploadCommand:
    """Upload one or more local files."""

    file_list: tuple[str, ...]
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class StatusCommand:
    """Show progress of every transfer."""

    command: Literal["status"] = "status"


@dataclass(frozen=True)
class PauseCommand:
    """Pause one transfer, or all of them when no id is given."""

    transfer_id: int | None = None
    command: Literal["pause"] = "pause"


@dataclass(frozen=True)
class ResumeCommand:
    """Resume one transfer, or all of them when no id is given."""

    transfer_id: int | None = None
    command: Literal["resume"] = "resume"


@dataclass(frozen=True)
class CancelCommand:
    """Cancel one transfer, or all of them when no id is given."""

    transfer_id: int | None = None
    command: Literal["cancel"] = "cancel"


CommandRequest = (
    UploadCommand
    | StatusCommand
    | PauseCommand
    | ResumeCommand
    | CancelCommand
)
