"""In-memory registry of open upload sessions."""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List

from upload_server.chunk_storage import ChunkStorage
from upload_server.exceptions import SessionNotFoundError
from upload_server.utils import generate_session_id

logger = logging.getLogger(__name__)


@dataclass
class UploadSession:
    """
    Server-side bookkeeping for one object transfer.

    ``received`` maps chunk index to the byte length of its latest copy.
    """
    session_id: str
    object_name: str
    declared_size: int
    mime_type: str
    temp_dir: Path
    created_at: datetime
    received: Dict[int, int] = field(default_factory=dict)
    finalize_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)
    _records_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def record_chunk(self, chunk_index: int, byte_length: int) -> None:
        with self._records_lock:
            self.received[chunk_index] = byte_length

    def received_indices(self) -> List[int]:
        with self._records_lock:
            return sorted(self.received)

    def received_bytes(self) -> int:
        with self._records_lock:
            return sum(self.received.values())


class SessionRegistry:
    """
    Issues session ids and temp areas, and resolves ids back to sessions.

    Thread-safe: routes run blocking work in the threadpool.
    """

    def __init__(self, storage: ChunkStorage):
        self.storage = storage
        self._sessions: Dict[str, UploadSession] = {}
        self._lock = threading.Lock()

    def create_session(self, object_name: str, declared_size: int, mime_type: str) -> UploadSession:
        """
        Open a new upload session with a fresh id and private temp area.

        Args:
            object_name: Name of the object as sent by the client
            declared_size: Object size in bytes announced by the client
            mime_type: Content type announced by the client

        Returns:
            The registered UploadSession
        """
        with self._lock:
            session_id = generate_session_id()
            while session_id in self._sessions:
                session_id = generate_session_id()

            temp_dir = self.storage.create_area(session_id)
            session = UploadSession(
                session_id=session_id,
                object_name=object_name,
                declared_size=declared_size,
                mime_type=mime_type,
                temp_dir=temp_dir,
                created_at=datetime.now(timezone.utc),
            )
            self._sessions[session_id] = session

        logger.info(
            f"Created upload session {session_id} for '{object_name}' "
            f"({declared_size} bytes, {mime_type})"
        )
        return session

    def get_session(self, session_id: str) -> UploadSession:
        """
        Look up a live session.

        Raises:
            SessionNotFoundError: If the id is unknown or already finalized
        """
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Upload session {session_id} not found")
        return session

    def remove_session(self, session_id: str) -> bool:
        """
        Forget a session.

        Returns:
            True if the session was registered
        """
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            logger.info(f"Removed upload session {session_id}")
        return removed is not None

    def list_sessions(self) -> List[UploadSession]:
        with self._lock:
            return list(self._sessions.values())
