"""Formatting helpers for progress output."""

from upload_client.constants import GREEN, RED, RESET, YELLOW
from upload_client.types import TransferState, TransferStatus


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"


def format_speed(bytes_per_second: float) -> str:
    return f"{format_file_size(int(bytes_per_second))}/s"


def format_duration(seconds: float | None) -> str:
    """Format an ETA as ``1h02m``, ``3m05s`` or ``42s``; ``--`` when unknown."""
    if seconds is None:
        return "--"
    seconds = int(round(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes:02d}m"
    if minutes:
        return f"{minutes}m{secs:02d}s"
    return f"{secs}s"


_STATUS_COLORS = {
    TransferStatus.DONE: GREEN,
    TransferStatus.ERROR: RED,
    TransferStatus.PAUSED: YELLOW,
}


def format_progress(state: TransferState, color: bool = True) -> str:
    """
    One-line summary of a transfer.

    Example: ``uploading 42% 210.00 MiB / 500.00 MiB 12.30 MiB/s ETA 23s``
    """
    status = state.status.value
    if color and state.status in _STATUS_COLORS:
        status = f"{_STATUS_COLORS[state.status]}{status}{RESET}"

    line = (
        f"{status} {state.percent}% "
        f"{format_file_size(state.sent_bytes)} / {format_file_size(state.total_bytes)}"
    )
    if state.status == TransferStatus.UPLOADING:
        line += f" {format_speed(state.speed_bps)} ETA {format_duration(state.eta_seconds)}"
    if state.status == TransferStatus.ERROR and state.last_error:
        line += f" ({state.last_error})"
    if state.status == TransferStatus.DONE and state.final_path:
        line += f" -> {state.final_path}"
    return line
