"""Chunk planning: chunk size, concurrency and retry budget from object size."""

from typing import Iterator

from common.constants import GIB, MIB
from upload_client.types import ChunkSpan, TransferPlan

# (max object size inclusive, chunk size, concurrency, max retries)
PLAN_TABLE = (
    (50 * MIB, 5 * MIB, 6, 3),
    (500 * MIB, 10 * MIB, 4, 3),
    (2 * GIB, 25 * MIB, 3, 4),
    (10 * GIB, 50 * MIB, 2, 5),
)
LARGEST_PLAN = (100 * MIB, 1, 5)


def plan_transfer(object_size: int) -> TransferPlan:
    """
    Pick the transfer plan for an object.

    Larger objects get larger chunks, fewer parallel streams and more
    retries. Every size maps to a plan.

    Args:
        object_size: Object size in bytes

    Returns:
        TransferPlan for the object
    """
    for max_size, chunk_size, concurrency, max_retries in PLAN_TABLE:
        if object_size <= max_size:
            return TransferPlan(object_size, chunk_size, concurrency, max_retries)

    chunk_size, concurrency, max_retries = LARGEST_PLAN
    return TransferPlan(object_size, chunk_size, concurrency, max_retries)


def count_chunks(object_size: int, chunk_size: int) -> int:
    """Number of chunks needed to cover ``object_size`` bytes."""
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be > 0, got {chunk_size}")
    return -(-object_size // chunk_size)


def chunk_spans(object_size: int, chunk_size: int) -> Iterator[ChunkSpan]:
    """
    Yield the contiguous byte ranges of every chunk, in index order.

    The last span may be shorter than ``chunk_size``; a zero-byte object
    yields nothing.
    """
    for index in range(count_chunks(object_size, chunk_size)):
        start = index * chunk_size
        yield ChunkSpan(index=index, start=start, end=min(start + chunk_size, object_size))


def chunk_span(object_size: int, chunk_size: int, index: int) -> ChunkSpan:
    """Byte range of a single chunk."""
    total = count_chunks(object_size, chunk_size)
    if not 0 <= index < total:
        raise IndexError(f"chunk index {index} out of range for {total} chunks")
    start = index * chunk_size
    return ChunkSpan(index=index, start=start, end=min(start + chunk_size, object_size))
