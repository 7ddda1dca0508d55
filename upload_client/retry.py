"""Per-chunk retry with linear backoff."""

import time
from dataclasses import dataclass, replace
from typing import Callable, Optional, TypeVar

from common.logging_config import get_logger
from upload_client.exceptions import (
    ChunkUploadExhaustedError,
    TransferCancelledError,
    TransmissionError,
)

logger = get_logger(__name__)

T = TypeVar("T")

# Blocks for up to the given seconds; returns False if the transfer was cancelled.
WaitFn = Callable[[float], bool]


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry budget and delays for chunk sends.

    The n-th retry of a chunk waits ``n * base_delay`` seconds, plus
    ``large_object_extra_delay`` when the object has more than
    ``large_object_chunk_threshold`` chunks.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    large_object_extra_delay: float = 2.0
    large_object_chunk_threshold: int = 100

    def delay_for(self, attempts_left: int, total_chunks: int) -> float:
        """
        Delay before the retry made while ``attempts_left`` attempts remain.

        Args:
            attempts_left: Retries still available before this one
            total_chunks: Number of chunks of the object

        Returns:
            Delay in seconds
        """
        delay = (self.max_retries - attempts_left + 1) * self.base_delay
        if total_chunks > self.large_object_chunk_threshold:
            delay += self.large_object_extra_delay
        return delay

    def with_max_retries(self, max_retries: int) -> "RetryPolicy":
        return replace(self, max_retries=max_retries)

    def send_with_retry(
        self,
        send: Callable[[], T],
        chunk_index: int,
        total_chunks: int,
        attempts_left: Optional[int] = None,
        wait: Optional[WaitFn] = None,
    ) -> T:
        """
        Call ``send`` until it succeeds or the retry budget is spent.

        Only TransmissionError is retried; any other error propagates at once.

        Args:
            send: Performs one transmission of the chunk
            chunk_index: Index of the chunk, for errors and logs
            total_chunks: Number of chunks of the object
            attempts_left: Retries available (defaults to max_retries)
            wait: Sleeps between attempts; returns False when cancelled

        Returns:
            Whatever ``send`` returns

        Raises:
            ChunkUploadExhaustedError: If every attempt failed
            TransferCancelledError: If ``wait`` reports cancellation
        """
        if attempts_left is None:
            attempts_left = self.max_retries
        if wait is None:
            wait = _sleep

        while True:
            try:
                return send()
            except TransmissionError as e:
                if attempts_left <= 0:
                    logger.error(f"Chunk {chunk_index} failed, no retries left: {e}")
                    raise ChunkUploadExhaustedError(chunk_index, e) from e

                delay = self.delay_for(attempts_left, total_chunks)
                logger.warning(
                    f"Chunk {chunk_index} failed ({e}), retrying in {delay:.1f}s "
                    f"({attempts_left} attempts left)"
                )
                if not wait(delay):
                    raise TransferCancelledError(f"Transfer cancelled while retrying chunk {chunk_index}")
                attempts_left -= 1


def _sleep(seconds: float) -> bool:
    time.sleep(seconds)
    return True
