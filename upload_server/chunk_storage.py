"""Manages per-session temp areas and the chunk files stored in them."""

import os
import re
import shutil
import uuid
from pathlib import Path
from typing import Iterator, List

from common.constants import STREAM_PIECE_SIZE_BYTES

_PART_NAME = re.compile(r'^part_(\d+)$')


class ChunkStorage:
    """
    Byte store addressed by (session_id, chunk_index).

    Each session owns one directory under the temp root; chunk ``i`` lives
    in ``<root>/<session_id>/part_<i>``.
    """

    def __init__(self, root: Path):
        """
        Initialize storage rooted at a temp directory.

        Args:
            root: Parent directory for all session temp areas
        """
        self.root = Path(root)

    def ensure_root(self) -> None:
        """Ensure the temp root exists."""
        self.root.mkdir(parents=True, exist_ok=True)

    def area_path(self, session_id: str) -> Path:
        return self.root / session_id

    def create_area(self, session_id: str) -> Path:
        """
        Create the private temp area of a session.

        Args:
            session_id: Session identifier

        Returns:
            Path of the created directory

        Raises:
            FileExistsError: If the area already exists
        """
        self.ensure_root()
        area = self.area_path(session_id)
        area.mkdir()
        return area

    def get_chunk_path(self, session_id: str, chunk_index: int) -> Path:
        return self.area_path(session_id) / f"part_{chunk_index}"

    def write_chunk(self, session_id: str, chunk_index: int, data: bytes) -> str:
        """
        Write chunk data, replacing any previous copy of the same index.

        The data is written to a scratch file and moved into place so readers
        only ever see a complete chunk.

        Args:
            session_id: Session identifier
            chunk_index: Zero-based chunk index
            data: Raw chunk data

        Returns:
            String path to written file

        Raises:
            FileNotFoundError: If the session area does not exist
            OSError: If write operation fails
        """
        final_path = self.get_chunk_path(session_id, chunk_index)
        scratch_path = final_path.with_name(f"{final_path.name}.{uuid.uuid4().hex}.tmp")
        try:
            with open(scratch_path, 'wb') as f:
                f.write(data)
            os.replace(scratch_path, final_path)
        except BaseException:
            scratch_path.unlink(missing_ok=True)
            raise
        return str(final_path)

    def read_chunk_streaming(
        self,
        session_id: str,
        chunk_index: int,
        piece_size: int = STREAM_PIECE_SIZE_BYTES,
    ) -> Iterator[bytes]:
        """
        Stream chunk data in pieces.

        Args:
            session_id: Session identifier
            chunk_index: Zero-based chunk index
            piece_size: Size of each piece in bytes (default 64KB)

        Yields:
            Chunk data pieces

        Raises:
            FileNotFoundError: If chunk does not exist
        """
        filepath = self.get_chunk_path(session_id, chunk_index)
        with open(filepath, 'rb') as f:
            while True:
                piece = f.read(piece_size)
                if not piece:
                    break
                yield piece

    def list_chunk_indices(self, session_id: str) -> List[int]:
        """
        List stored chunk indices of a session, ascending.

        Scratch files of writes still in progress are ignored.
        """
        area = self.area_path(session_id)
        if not area.is_dir():
            return []

        indices = []
        for filepath in area.iterdir():
            match = _PART_NAME.match(filepath.name)
            if match:
                indices.append(int(match.group(1)))
        return sorted(indices)

    def purge_area(self, session_id: str) -> bool:
        """
        Delete a session's temp area with every chunk in it.

        Returns:
            True if the area existed
        """
        area = self.area_path(session_id)
        if not area.exists():
            return False
        shutil.rmtree(area)
        return True
