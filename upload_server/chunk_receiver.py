"""Persists arriving chunks against their upload session."""

import logging
from typing import Optional

from common.checksum import chunk_matches
from upload_server.chunk_storage import ChunkStorage
from upload_server.exceptions import (
    ChecksumMismatchError,
    InvalidChunkError,
    SessionNotFoundError,
)
from upload_server.session_registry import SessionRegistry
from upload_server.types import ChunkReceipt

logger = logging.getLogger(__name__)


class ChunkReceiver:
    """
    Stores one chunk per call, in any order, idempotently.

    No ordering or completeness check happens here; the Assembler does that
    at finalize time.
    """

    def __init__(self, registry: SessionRegistry, storage: ChunkStorage):
        self.registry = registry
        self.storage = storage

    def put(
        self,
        session_id: str,
        chunk_index: int,
        data: bytes,
        checksum: Optional[str] = None,
    ) -> ChunkReceipt:
        """
        Store a chunk under (session_id, chunk_index), replacing any earlier copy.

        Args:
            session_id: Session the chunk belongs to
            chunk_index: Zero-based chunk index
            data: Chunk bytes
            checksum: Optional SHA-256 hex digest of ``data``

        Returns:
            ChunkReceipt with the stored location and byte length

        Raises:
            SessionNotFoundError: If the session is unknown or was finalized
            InvalidChunkError: If the index is negative
            ChecksumMismatchError: If ``checksum`` does not match ``data``
        """
        if chunk_index < 0:
            raise InvalidChunkError(f"Chunk index must be >= 0, got {chunk_index}")

        session = self.registry.get_session(session_id)

        if checksum and not chunk_matches(data, checksum):
            logger.warning(f"Checksum mismatch for chunk {chunk_index} of session {session_id}")
            raise ChecksumMismatchError(chunk_index)

        try:
            stored_location = self.storage.write_chunk(session_id, chunk_index, data)
        except FileNotFoundError:
            # temp area purged by a concurrent finalize
            raise SessionNotFoundError(f"Upload session {session_id} not found") from None

        session.record_chunk(chunk_index, len(data))
        logger.debug(f"Stored chunk {chunk_index} of session {session_id} ({len(data)} bytes)")

        return ChunkReceipt(
            session_id=session_id,
            chunk_index=chunk_index,
            byte_length=len(data),
            stored_location=stored_location,
        )
