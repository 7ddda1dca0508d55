"""Upload session API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from common.constants import API_PREFIX
from upload_server.schemas.uploads import (
    InitUploadRequest,
    InitUploadResponse,
    ChunkUploadResponse,
    CompleteUploadRequest,
    CompleteUploadResponse,
    SessionStatusResponse
)
from upload_server.services.upload_service import UploadService

router = APIRouter(prefix=API_PREFIX, tags=["Uploads"])


def get_upload_service(request: Request) -> UploadService:
    return request.app.state.upload_service


@router.post("/init", response_model=InitUploadResponse, status_code=status.HTTP_201_CREATED)
async def init_upload(
    body: InitUploadRequest,
    upload_service: UploadService = Depends(get_upload_service)
):
    """
    Open an upload session.

    Returns:
        - session_id: Opaque id to use for chunk and complete calls
        - recommended_chunk_size: Chunk size the client should use, in bytes
        - already_received_indices: Chunks the server already holds (empty)
    """
    result = await run_in_threadpool(
        upload_service.init_upload,
        body.object_name,
        body.declared_size,
        body.mime_type,
    )
    return InitUploadResponse(
        session_id=result.session_id,
        recommended_chunk_size=result.recommended_chunk_size,
        already_received_indices=result.already_received_indices,
    )


@router.post("/{session_id}/chunk", response_model=ChunkUploadResponse)
async def upload_chunk(
    session_id: str,
    chunk: UploadFile = File(...),
    chunk_index: int = Form(...),
    checksum: Optional[str] = Form(None),
    upload_service: UploadService = Depends(get_upload_service)
):
    """
    Store one chunk of a session, in any order.

    Parameters:
        - chunk: Chunk bytes (multipart/form-data)
        - chunk_index: Zero-based chunk index
        - checksum: Optional SHA-256 hex digest of the chunk

    Raises:
        - 400: Negative index or checksum mismatch
        - 404: Unknown or finalized session
    """
    data = await chunk.read()
    receipt = await run_in_threadpool(
        upload_service.put_chunk,
        session_id,
        chunk_index,
        data,
        checksum,
    )
    return ChunkUploadResponse(
        stored_location=receipt.stored_location,
        byte_length=receipt.byte_length,
    )


@router.post("/{session_id}/complete", response_model=CompleteUploadResponse)
async def complete_upload(
    session_id: str,
    body: CompleteUploadRequest,
    upload_service: UploadService = Depends(get_upload_service)
):
    """
    Assemble every chunk of a session into the final object.

    Raises:
        - 400: A chunk is missing (chunk_index in the body) or the size differs
        - 404: Unknown or already finalized session
    """
    result = await run_in_threadpool(
        upload_service.finalize,
        session_id,
        body.total_chunks,
        body.object_name,
    )
    return CompleteUploadResponse(
        final_path=result.final_path,
        original_name=result.original_name,
        sanitized_name=result.sanitized_name,
        size=result.size,
        checksum=result.checksum,
    )


@router.get("/{session_id}", response_model=SessionStatusResponse)
async def get_session_status(
    session_id: str,
    upload_service: UploadService = Depends(get_upload_service)
):
    """Report a live session and the chunk indices stored so far."""
    session_status = await run_in_threadpool(upload_service.get_session_status, session_id)
    return SessionStatusResponse(**session_status)
