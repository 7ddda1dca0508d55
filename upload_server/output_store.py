"""Output store for assembled artifacts."""

import logging
import os
from pathlib import Path
from typing import Optional

from upload_server.exceptions import InvalidObjectNameError

logger = logging.getLogger(__name__)


class PartialArtifact:
    """
    Append-only file that becomes visible under its final name only on commit.

    Used as a context manager: leaving the block without ``commit()`` (or with
    an exception) removes the partial file.
    """

    def __init__(self, partial_path: Path, final_path: Path):
        self.partial_path = partial_path
        self.final_path = final_path
        self.size = 0
        self._file = open(partial_path, 'wb')
        self._committed = False

    def append(self, data: bytes) -> None:
        self._file.write(data)
        self.size += len(data)

    def commit(self) -> Path:
        """
        Flush the partial file to disk and move it to its final path.

        Returns:
            Final artifact path
        """
        self._file.flush()
        os.fsync(self._file.fileno())
        self._file.close()
        os.replace(self.partial_path, self.final_path)
        self._committed = True
        return self.final_path

    def discard(self) -> None:
        if not self._file.closed:
            self._file.close()
        self.partial_path.unlink(missing_ok=True)

    def __enter__(self) -> 'PartialArtifact':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if not self._committed:
            logger.debug(f"Discarding partial artifact {self.partial_path}")
            self.discard()


class OutputStore:
    """Directory that receives final artifacts by sanitized name."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def ensure_root(self) -> None:
        """Ensure the output root exists."""
        self.root.mkdir(parents=True, exist_ok=True)

    def resolve_target(self, file_name: str) -> Path:
        """
        Map a sanitized file name to its path in the output root.

        Args:
            file_name: Sanitized file name

        Returns:
            Absolute target path

        Raises:
            InvalidObjectNameError: If the path would leave the output root
        """
        base_dir = self.root.resolve()
        target = (base_dir / file_name).resolve()
        try:
            relative = target.relative_to(base_dir)
        except ValueError:
            raise InvalidObjectNameError(f"Object name '{file_name}' escapes the output directory")
        if len(relative.parts) != 1:
            raise InvalidObjectNameError(f"Object name '{file_name}' is not a plain file name")
        return target

    def open_partial(self, target: Path, tag: Optional[str] = None) -> PartialArtifact:
        """
        Open a partial artifact that will be published at ``target``.

        Args:
            target: Final path returned by resolve_target
            tag: Unique tag for the partial file name (e.g. the session id)

        Returns:
            PartialArtifact ready for appends
        """
        self.ensure_root()
        partial_name = f".{tag or target.name}.partial"
        return PartialArtifact(target.with_name(partial_name), target)
