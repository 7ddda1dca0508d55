"""Readable objects the scheduler can cut into chunks."""

import mimetypes
import os
from abc import ABC, abstractmethod
from pathlib import Path

DEFAULT_MIME_TYPE = "application/octet-stream"


class ObjectSource(ABC):
    """A named, sized byte sequence with random-access reads."""

    name: str
    mime_type: str

    @property
    @abstractmethod
    def size(self) -> int:
        ...

    @abstractmethod
    def read_range(self, start: int, end: int) -> bytes:
        """Return bytes ``[start, end)``."""
        ...


class FileSource(ObjectSource):
    """
    A local file.

    Each read opens the file on its own so worker threads never share a
    file position.
    """

    def __init__(self, path: str | Path, name: str | None = None, mime_type: str | None = None):
        self.path = Path(path)
        if not self.path.is_file():
            raise FileNotFoundError(f"Not a file: {self.path}")
        self.name = name or self.path.name
        self.mime_type = mime_type or mimetypes.guess_type(self.path.name)[0] or DEFAULT_MIME_TYPE
        self._size = os.path.getsize(self.path)

    @property
    def size(self) -> int:
        return self._size

    def read_range(self, start: int, end: int) -> bytes:
        with open(self.path, 'rb') as f:
            f.seek(start)
            return f.read(end - start)


class BytesSource(ObjectSource):
    """An object held in memory."""

    def __init__(self, data: bytes, name: str, mime_type: str = DEFAULT_MIME_TYPE):
        self.data = bytes(data)
        self.name = name
        self.mime_type = mime_type

    @property
    def size(self) -> int:
        return len(self.data)

    def read_range(self, start: int, end: int) -> bytes:
        return self.data[start:end]
