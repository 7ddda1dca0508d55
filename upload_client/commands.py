"""Command handler functions for REPL operations."""

import os
from typing import Optional

from common.logging_config import get_logger
from upload_client.config import Config
from upload_client.manager import TransferManager, describe_start_error
from upload_client.models import (
    CancelCommand,
    PauseCommand,
    ResumeCommand,
    StatusCommand,
    UploadCommand,
)
from upload_client.sources import FileSource
from upload_client.upload_client import UploadClient
from upload_client.utils import format_file_size

logger = get_logger(__name__)


_manager: Optional[TransferManager] = None


def get_manager() -> TransferManager:
    """
    Get or create the global TransferManager instance.

    Returns:
        TransferManager bound to the configured server
    """
    global _manager
    if _manager is None:
        logger.debug("Creating new TransferManager instance")
        config = Config()
        _manager = TransferManager(
            UploadClient(config),
            retry_policy=config.get_retry_policy(),
            send_checksums=config.get_send_checksums(),
        )
    return _manager


def handle_upload(cmd: UploadCommand, manager: Optional[TransferManager] = None) -> str:
    """
    Handle 'upload' command.

    Each file becomes its own background transfer; a file that cannot be
    started does not prevent the others.

    Args:
        cmd: UploadCommand with file_list
        manager: Optional TransferManager for dependency injection (testing)

    Returns:
        One line per file
    """
    logger.info(f"Executing upload command: {len(cmd.file_list)} files")
    if manager is None:
        manager = get_manager()

    results = []
    for path in cmd.file_list:
        expanded = os.path.expanduser(path)
        try:
            source = FileSource(expanded)
            transfer = manager.start_upload(source)
        except Exception as e:
            logger.warning(f"Could not start upload of {path}: {e}")
            results.append(describe_start_error(path, e))
            continue
        results.append(
            f"Started #{transfer.transfer_id}: {source.name} ({format_file_size(source.size)})"
        )

    return '\n'.join(results) if results else "No files uploaded."


def handle_status(cmd: StatusCommand, manager: Optional[TransferManager] = None) -> str:
    """
    Handle 'status' command.

    Args:
        cmd: StatusCommand
        manager: Optional TransferManager for dependency injection (testing)

    Returns:
        One progress line per transfer
    """
    if manager is None:
        manager = get_manager()
    lines = manager.status_lines()
    return '\n'.join(lines) if lines else "No transfers."


def handle_pause(cmd: PauseCommand, manager: Optional[TransferManager] = None) -> str:
    if manager is None:
        manager = get_manager()
    return _control(manager.pause, cmd.transfer_id, "Paused")


def handle_resume(cmd: ResumeCommand, manager: Optional[TransferManager] = None) -> str:
    if manager is None:
        manager = get_manager()
    return _control(manager.resume, cmd.transfer_id, "Resumed")


def handle_cancel(cmd: CancelCommand, manager: Optional[TransferManager] = None) -> str:
    if manager is None:
        manager = get_manager()
    return _control(manager.cancel, cmd.transfer_id, "Cancelled")


def _control(action, transfer_id: Optional[int], verb: str) -> str:
    try:
        transfers = action(transfer_id)
    except KeyError:
        return f"Error: No transfer #{transfer_id}"
    if not transfers:
        return "No transfers to update."
    return '\n'.join(f"{verb} #{t.transfer_id} {t.source.name}" for t in transfers)
