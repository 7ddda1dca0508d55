"""Custom exception classes for the upload client."""


class UploadError(Exception):
    """
    Base exception class for all upload client errors.
    """
    pass


class TransmissionError(UploadError):
    """
    Raised when a request could not be delivered or the server failed with 5xx.
    Transmission errors are the only ones retried by the retry policy.
    """
    pass


class ChunkUploadExhaustedError(UploadError):
    """
    Raised when a chunk kept failing after every retry attempt.
    """

    def __init__(self, chunk_index: int, cause: Exception | None = None):
        self.chunk_index = chunk_index
        self.cause = cause
        message = f"Chunk {chunk_index} failed after all retries"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class SessionNotFoundError(UploadError):
    """
    Raised when the server does not know the upload session (404).
    """
    pass


class MissingChunkError(UploadError):
    """
    Raised when the server refuses to finalize because a chunk is absent.
    """

    def __init__(self, chunk_index: int, message: str | None = None):
        self.chunk_index = chunk_index
        super().__init__(message or f"Missing chunk {chunk_index}")


class UploadRejectedError(UploadError):
    """
    Raised when the server rejects a request with a 4xx other than 404.
    """

    def __init__(self, message: str, code: str = "UNKNOWN", status_code: int | None = None):
        self.code = code
        self.status_code = status_code
        super().__init__(message)


class TransferCancelledError(UploadError):
    """
    Raised inside a worker when the transfer was cancelled during a retry wait.
    """
    pass
