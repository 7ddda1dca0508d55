"""Runs several object transfers side by side, one scheduler each."""

import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

from common.logging_config import get_logger
from upload_client.exceptions import UploadError
from upload_client.planner import plan_transfer
from upload_client.retry import RetryPolicy
from upload_client.scheduler import TransferScheduler
from upload_client.sources import FileSource, ObjectSource
from upload_client.types import TransferState, TransferStatus, UploadTransport
from upload_client.utils import format_progress

logger = get_logger(__name__)


@dataclass
class Transfer:
    """A numbered transfer as shown to the user."""

    transfer_id: int
    source: ObjectSource
    scheduler: TransferScheduler

    @property
    def state(self) -> TransferState:
        return self.scheduler.state


class TransferManager:
    """
    Owns the transfers started from one client.

    Every object gets its own TransferScheduler, so a failed or paused
    object never holds up the others.
    """

    def __init__(
        self,
        transport: UploadTransport,
        retry_policy: Optional[RetryPolicy] = None,
        send_checksums: bool = True,
    ):
        self.transport = transport
        self.retry_policy = retry_policy or RetryPolicy()
        self.send_checksums = send_checksums
        self._transfers: Dict[int, Transfer] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def start_upload(self, source: ObjectSource) -> Transfer:
        """
        Open a server session for ``source`` and start sending it.

        The server's recommended chunk size replaces the planned one;
        concurrency and retries stay as planned.

        Raises:
            UploadError: If the session cannot be opened
        """
        plan = plan_transfer(source.size)
        session = self.transport.init_upload(source.name, source.size, source.mime_type)
        if session.recommended_chunk_size:
            plan = plan.with_chunk_size(session.recommended_chunk_size)

        scheduler = TransferScheduler(
            self.transport,
            retry_policy=self.retry_policy,
            send_checksums=self.send_checksums,
        )

        with self._lock:
            transfer = Transfer(self._next_id, source, scheduler)
            self._transfers[transfer.transfer_id] = transfer
            self._next_id += 1

        scheduler.start(source, plan, session)
        logger.info(f"Started transfer #{transfer.transfer_id} for '{source.name}'")
        return transfer

    def upload_files(self, paths: List[str], timeout: Optional[float] = None) -> List[TransferState]:
        """
        Upload several files concurrently and wait for all of them.

        Returns:
            Final state of each file, in input order
        """
        transfers = [self.start_upload(FileSource(path)) for path in paths]
        return [transfer.scheduler.wait(timeout) for transfer in transfers]

    def get(self, transfer_id: int) -> Transfer:
        with self._lock:
            transfer = self._transfers.get(transfer_id)
        if transfer is None:
            raise KeyError(f"No transfer #{transfer_id}")
        return transfer

    def list_transfers(self) -> List[Transfer]:
        with self._lock:
            return [self._transfers[key] for key in sorted(self._transfers)]

    def pause(self, transfer_id: Optional[int] = None) -> List[Transfer]:
        return self._apply(transfer_id, lambda scheduler: scheduler.pause())

    def resume(self, transfer_id: Optional[int] = None) -> List[Transfer]:
        return self._apply(transfer_id, lambda scheduler: scheduler.resume())

    def cancel(self, transfer_id: Optional[int] = None) -> List[Transfer]:
        return self._apply(transfer_id, lambda scheduler: scheduler.cancel())

    def _apply(self, transfer_id: Optional[int], action) -> List[Transfer]:
        """Run ``action`` on one transfer, or on every unfinished one when no id is given."""
        if transfer_id is not None:
            targets = [self.get(transfer_id)]
        else:
            targets = [t for t in self.list_transfers() if t.state.status != TransferStatus.DONE]
        for transfer in targets:
            action(transfer.scheduler)
        return targets

    def wait_all(self, timeout: Optional[float] = None) -> List[TransferState]:
        return [transfer.scheduler.wait(timeout) for transfer in self.list_transfers()]

    def has_active_transfers(self) -> bool:
        active = (TransferStatus.UPLOADING, TransferStatus.PAUSED, TransferStatus.ASSEMBLING)
        return any(t.state.status in active for t in self.list_transfers())

    def status_lines(self, color: bool = True) -> List[str]:
        return [
            f"#{t.transfer_id} {t.source.name}: {format_progress(t.state, color=color)}"
            for t in self.list_transfers()
        ]

    def toolbar_text(self) -> str:
        """Compact one-line progress of unfinished transfers for the REPL toolbar."""
        parts = []
        for t in self.list_transfers():
            state = t.state
            if state.status in (TransferStatus.UPLOADING, TransferStatus.PAUSED, TransferStatus.ASSEMBLING):
                parts.append(f"#{t.transfer_id} {state.status.value} {state.percent}%")
        return " | ".join(parts) if parts else "no active transfers"


def describe_start_error(path: str, error: Exception) -> str:
    if isinstance(error, FileNotFoundError):
        return f"Error: File not found: {path}"
    if isinstance(error, UploadError):
        return f"Error starting upload of {path}: {error}"
    return f"Unexpected error starting upload of {path}: {error}"
