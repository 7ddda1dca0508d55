"""Pydantic schemas for upload session endpoints."""

from typing import List

from pydantic import BaseModel, Field


class InitUploadRequest(BaseModel):
    """Request model for opening an upload session."""
    object_name: str = Field(..., min_length=1)
    declared_size: int = Field(..., ge=0)
    mime_type: str = "application/octet-stream"


class InitUploadResponse(BaseModel):
    """Response model for an opened upload session."""
    session_id: str
    recommended_chunk_size: int
    already_received_indices: List[int]


class ChunkUploadResponse(BaseModel):
    """Response model for a stored chunk."""
    ok: bool = True
    stored_location: str
    byte_length: int


class CompleteUploadRequest(BaseModel):
    """Request model for finalizing an upload session."""
    total_chunks: int = Field(..., ge=0)
    object_name: str = Field(..., min_length=1)


class CompleteUploadResponse(BaseModel):
    """Response model for an assembled object."""
    ok: bool = True
    final_path: str
    original_name: str
    sanitized_name: str
    size: int
    checksum: str


class SessionStatusResponse(BaseModel):
    """Response model for a live session."""
    session_id: str
    object_name: str
    declared_size: int
    mime_type: str
    created_at: str
    received_indices: List[int]
    received_bytes: int
