"""Client-side data types shared by the planner, scheduler and transport."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Protocol

MIN_CONCURRENCY = 1
MAX_CONCURRENCY = 6


@dataclass(frozen=True)
class TransferPlan:
    """How one object is cut and sent."""

    object_size: int
    chunk_size: int
    concurrency: int
    max_retries: int

    def __post_init__(self) -> None:
        if self.object_size < 0:
            raise ValueError(f"object_size must be >= 0, got {self.object_size}")
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be > 0, got {self.chunk_size}")
        if not MIN_CONCURRENCY <= self.concurrency <= MAX_CONCURRENCY:
            raise ValueError(
                f"concurrency must be in [{MIN_CONCURRENCY}, {MAX_CONCURRENCY}], got {self.concurrency}"
            )
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")

    def with_chunk_size(self, chunk_size: int) -> "TransferPlan":
        """Return a copy using the server-recommended chunk size."""
        return replace(self, chunk_size=chunk_size)


@dataclass(frozen=True)
class ChunkSpan:
    """Byte range ``[start, end)`` of chunk ``index``."""

    index: int
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


class TransferStatus(str, Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    PAUSED = "paused"
    ASSEMBLING = "assembling"
    DONE = "done"
    ERROR = "error"


@dataclass
class TransferState:
    """
    Observable progress of one object transfer.

    Subscribers and pollers receive copies; only the owning scheduler mutates
    the original.
    """

    total_bytes: int = 0
    sent_bytes: int = 0
    status: TransferStatus = TransferStatus.PENDING
    speed_bps: float = 0.0
    eta_seconds: float | None = None
    last_error: str | None = None
    final_path: str | None = None

    @property
    def percent(self) -> int:
        """Whole-number progress, held at 99 until the object is assembled."""
        if self.status == TransferStatus.DONE:
            return 100
        if self.total_bytes <= 0:
            return 0
        return min(99, int(self.sent_bytes * 100 / self.total_bytes))

    def snapshot(self) -> "TransferState":
        return replace(self)


@dataclass(frozen=True)
class UploadSessionInfo:
    """Answer of the server to ``init``."""

    session_id: str
    recommended_chunk_size: int | None = None
    already_received_indices: tuple[int, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class FinalizeResult:
    """Answer of the server to ``finalize``."""

    final_path: str
    original_name: str
    sanitized_name: str
    size: int
    checksum: str | None = None


class UploadTransport(Protocol):
    """The three server calls a scheduler needs."""

    def init_upload(self, object_name: str, declared_size: int, mime_type: str) -> UploadSessionInfo:
        ...

    def put_chunk(
        self,
        session_id: str,
        chunk_index: int,
        data: bytes,
        checksum: str | None = None,
    ) -> int:
        ...

    def finalize(self, session_id: str, total_chunks: int, object_name: str) -> FinalizeResult:
        ...
