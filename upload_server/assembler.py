"""Concatenates a session's chunks, in index order, into the final artifact."""

import logging
from pathlib import Path
from typing import Optional, Tuple

from common.checksum import ArtifactDigest
from upload_server.chunk_storage import ChunkStorage
from upload_server.exceptions import InvalidChunkError, MissingChunkError, SizeMismatchError
from upload_server.output_store import OutputStore
from upload_server.session_registry import SessionRegistry, UploadSession
from upload_server.types import FinalizeResult
from upload_server.utils import sanitize_object_name

logger = logging.getLogger(__name__)

PROGRESS_LOG_EVERY = 50


class Assembler:
    """
    Builds the final artifact of a session and then destroys the session.

    Finalize is serialized per session: a call that gets the session lock
    after another call already assembled and removed the session fails with
    SessionNotFoundError instead of concatenating twice.
    """

    def __init__(self, registry: SessionRegistry, storage: ChunkStorage, output_store: OutputStore):
        self.registry = registry
        self.storage = storage
        self.output_store = output_store

    def finalize(self, session_id: str, total_chunks: int, object_name: str) -> FinalizeResult:
        """
        Assemble chunks 0..total_chunks-1 into ``object_name`` in the output root.

        Args:
            session_id: Session to assemble
            total_chunks: Number of chunks the client sent
            object_name: Desired object name, sanitized before use

        Returns:
            FinalizeResult with the final path and both names

        Raises:
            SessionNotFoundError: If the session is unknown or already finalized
            MissingChunkError: If a chunk index is absent (session is kept)
            SizeMismatchError: If the assembled size differs from the declared size
            InvalidChunkError: If total_chunks is negative
            InvalidObjectNameError: If the name cannot be placed in the output root
        """
        if total_chunks < 0:
            raise InvalidChunkError(f"total_chunks must be >= 0, got {total_chunks}")

        session = self.registry.get_session(session_id)

        with session.finalize_lock:
            self.registry.get_session(session_id)

            missing = self._first_missing_chunk(session_id, total_chunks)
            if missing is not None:
                logger.warning(f"Cannot finalize session {session_id}: chunk {missing} of {total_chunks} is missing")
                raise MissingChunkError(missing)

            sanitized_name = sanitize_object_name(object_name)
            target = self.output_store.resolve_target(sanitized_name)
            logger.info(
                f"Assembling session {session_id}: {total_chunks} chunks into {target} "
                f"(original name '{object_name}', sanitized '{sanitized_name}')"
            )

            size, checksum = self._write_artifact(session, total_chunks, target)

            self.storage.purge_area(session_id)
            self.registry.remove_session(session_id)

        logger.info(f"Finalized session {session_id}: {target} ({size} bytes, sha256={checksum})")
        return FinalizeResult(
            final_path=str(target),
            original_name=object_name,
            sanitized_name=sanitized_name,
            size=size,
            checksum=checksum,
        )

    def _first_missing_chunk(self, session_id: str, total_chunks: int) -> Optional[int]:
        stored = set(self.storage.list_chunk_indices(session_id))
        for chunk_index in range(total_chunks):
            if chunk_index not in stored:
                return chunk_index
        return None

    def _write_artifact(self, session: UploadSession, total_chunks: int, target: Path) -> Tuple[int, str]:
        digest = ArtifactDigest()

        with self.output_store.open_partial(target, session.session_id) as artifact:
            for chunk_index in range(total_chunks):
                try:
                    for piece in self.storage.read_chunk_streaming(session.session_id, chunk_index):
                        artifact.append(piece)
                        digest.update(piece)
                except FileNotFoundError:
                    raise MissingChunkError(chunk_index) from None

                if chunk_index % PROGRESS_LOG_EVERY == 0:
                    logger.info(
                        f"Assembly progress for {session.session_id}: "
                        f"{chunk_index}/{total_chunks} chunks, {digest.size} bytes written"
                    )

            if artifact.size != session.declared_size:
                raise SizeMismatchError(session.declared_size, artifact.size)

            artifact.commit()
            return artifact.size, digest.hexdigest()
