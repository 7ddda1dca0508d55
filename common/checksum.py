"""SHA-256 digests of chunks and assembled artifacts."""

import hashlib


def sha256_hex(data: bytes) -> str:
    """Hex SHA-256 of one chunk, as sent alongside it on upload."""
    return hashlib.sha256(data).hexdigest()


def chunk_matches(data: bytes, claimed_digest: str) -> bool:
    """
    Check received chunk bytes against the digest the client claimed.

    The claimed digest may use either hex case and carry surrounding
    whitespace from the form field.
    """
    return sha256_hex(data) == claimed_digest.strip().lower()


class ArtifactDigest:
    """Digest and byte count of an artifact assembled piece by piece."""

    def __init__(self):
        self._hash = hashlib.sha256()
        self.size = 0

    def update(self, piece: bytes) -> None:
        self._hash.update(piece)
        self.size += len(piece)

    def hexdigest(self) -> str:
        return self._hash.hexdigest()
