"""Pydantic schemas for API requests and responses."""

from upload_server.schemas.uploads import (
    InitUploadRequest,
    InitUploadResponse,
    ChunkUploadResponse,
    CompleteUploadRequest,
    CompleteUploadResponse,
    SessionStatusResponse
)
from upload_server.schemas.common import ErrorResponse

__all__ = [
    "InitUploadRequest",
    "InitUploadResponse",
    "ChunkUploadResponse",
    "CompleteUploadRequest",
    "CompleteUploadResponse",
    "SessionStatusResponse",
    "ErrorResponse"
]
