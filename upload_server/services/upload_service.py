"""Upload service wiring the registry, receiver and assembler together."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from upload_server.assembler import Assembler
from upload_server.chunk_receiver import ChunkReceiver
from upload_server.chunk_storage import ChunkStorage
from upload_server.output_store import OutputStore
from upload_server.session_registry import SessionRegistry
from upload_server.types import ChunkReceipt, FinalizeResult, InitResult

logger = logging.getLogger(__name__)


class UploadService:
    """
    Facade used by the HTTP routes.

    One instance lives on the application state for the lifetime of the app.
    """

    def __init__(self, temp_root: Path, output_root: Path, recommended_chunk_size: int):
        self.recommended_chunk_size = recommended_chunk_size
        self.storage = ChunkStorage(temp_root)
        self.output_store = OutputStore(output_root)
        self.registry = SessionRegistry(self.storage)
        self.receiver = ChunkReceiver(self.registry, self.storage)
        self.assembler = Assembler(self.registry, self.storage, self.output_store)

    def ensure_storage(self) -> None:
        """Create the temp and output roots if needed."""
        self.storage.ensure_root()
        self.output_store.ensure_root()
        logger.info(f"Temp root: {self.storage.root.resolve()}")
        logger.info(f"Output root: {self.output_store.root.resolve()}")

    def init_upload(self, object_name: str, declared_size: int, mime_type: str) -> InitResult:
        session = self.registry.create_session(object_name, declared_size, mime_type)
        return InitResult(
            session_id=session.session_id,
            recommended_chunk_size=self.recommended_chunk_size,
            already_received_indices=[],
        )

    def put_chunk(
        self,
        session_id: str,
        chunk_index: int,
        data: bytes,
        checksum: Optional[str] = None,
    ) -> ChunkReceipt:
        return self.receiver.put(session_id, chunk_index, data, checksum)

    def finalize(self, session_id: str, total_chunks: int, object_name: str) -> FinalizeResult:
        return self.assembler.finalize(session_id, total_chunks, object_name)

    def get_session_status(self, session_id: str) -> Dict[str, Any]:
        """
        Describe a live session.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        session = self.registry.get_session(session_id)
        return {
            "session_id": session.session_id,
            "object_name": session.object_name,
            "declared_size": session.declared_size,
            "mime_type": session.mime_type,
            "created_at": session.created_at.isoformat(),
            "received_indices": session.received_indices(),
            "received_bytes": session.received_bytes(),
        }
