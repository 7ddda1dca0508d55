"""Custom exception classes for the upload server."""


class UploadServerError(Exception):
    """
    Base exception class for all upload server errors.
    """
    pass


class SessionNotFoundError(UploadServerError):
    """
    Raised when an upload session id is unknown, expired or already finalized.
    """
    pass


class MissingChunkError(UploadServerError):
    """
    Raised at finalize when a chunk index in 0..total_chunks-1 was never stored.
    The session is kept so the caller can re-send the chunk and finalize again.
    """

    def __init__(self, chunk_index: int):
        self.chunk_index = chunk_index
        super().__init__(f"Missing chunk {chunk_index}")


class InvalidChunkError(UploadServerError):
    """
    Raised when a chunk index or chunk count is out of range.
    """
    pass


class ChecksumMismatchError(UploadServerError):
    """
    Raised when a received chunk does not match the checksum sent with it.
    """

    def __init__(self, chunk_index: int):
        self.chunk_index = chunk_index
        super().__init__(f"Checksum mismatch for chunk {chunk_index}")


class SizeMismatchError(UploadServerError):
    """
    Raised when the assembled object size differs from the declared size.
    """

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Assembled {actual} bytes but {expected} bytes were declared")


class InvalidObjectNameError(UploadServerError):
    """
    Raised when an object name cannot be mapped to a path inside the output root.
    """
    pass
