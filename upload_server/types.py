"""Upload server data type definitions."""

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class InitResult:
    """
    Outcome of opening an upload session.
    """
    session_id: str
    recommended_chunk_size: int
    already_received_indices: List[int]


@dataclass(frozen=True)
class ChunkReceipt:
    """
    Acknowledgement for one stored chunk.
    """
    session_id: str
    chunk_index: int
    byte_length: int
    stored_location: str


@dataclass(frozen=True)
class FinalizeResult:
    """
    Outcome of assembling a session into its final artifact.
    """
    final_path: str
    original_name: str
    sanitized_name: str
    size: int
    checksum: str
