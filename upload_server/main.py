"""Entry point for the upload server."""

import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.constants import REQUEST_ID_HEADER
from common.logging_config import setup_logging
from upload_server.config import (
    OUTPUT_ROOT,
    RECOMMENDED_CHUNK_SIZE,
    SERVER_HOST,
    SERVER_PORT,
    TEMP_ROOT,
)
from upload_server.exceptions import (
    UploadServerError,
    SessionNotFoundError,
    MissingChunkError,
    InvalidChunkError,
    ChecksumMismatchError,
    SizeMismatchError,
    InvalidObjectNameError
)
from upload_server.routes.upload_routes import router as upload_router
from upload_server.services.upload_service import UploadService

logger = setup_logging('upload_server')


def _error_response(
    request: Request,
    exc: Exception,
    status_code: int,
    code: str,
    chunk_index: Optional[int] = None,
) -> JSONResponse:
    request_id = getattr(request.state, 'request_id', 'unknown')
    log = logger.error if status_code >= 500 else logger.warning
    log(
        f"{code}: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=status_code >= 500
    )
    content = {"detail": str(exc), "code": code}
    if chunk_index is not None:
        content["chunk_index"] = chunk_index
    return JSONResponse(status_code=status_code, content=content)


def create_app(
    temp_root: Optional[Path] = None,
    output_root: Optional[Path] = None,
    recommended_chunk_size: Optional[int] = None,
) -> FastAPI:
    """
    Build the upload server application.

    Args:
        temp_root: Directory for session temp areas (defaults to UPLOAD_TEMP_ROOT)
        output_root: Directory for assembled objects (defaults to UPLOAD_OUTPUT_ROOT)
        recommended_chunk_size: Chunk size announced by init
            (defaults to UPLOAD_RECOMMENDED_CHUNK_SIZE)

    Returns:
        Configured FastAPI application
    """
    upload_service = UploadService(
        temp_root=Path(temp_root or TEMP_ROOT),
        output_root=Path(output_root or OUTPUT_ROOT),
        recommended_chunk_size=recommended_chunk_size or RECOMMENDED_CHUNK_SIZE,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Upload server starting up...")
        upload_service.ensure_storage()
        logger.info(f"Recommended chunk size: {upload_service.recommended_chunk_size} bytes")
        yield
        open_sessions = len(upload_service.registry.list_sessions())
        logger.info(f"Upload server shutting down ({open_sessions} sessions left open)")

    app = FastAPI(
        title="Chunked Upload Server",
        description="Receives large objects as independently sent chunks and assembles them",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.upload_service = upload_service

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Middleware to log all HTTP requests and responses.
        """
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()

        logger.info(
            f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
        )

        response = await call_next(request)

        duration = time.time() - start_time

        logger.info(
            f"Request completed: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
        )

        response.headers[REQUEST_ID_HEADER] = request_id

        return response

    @app.exception_handler(SessionNotFoundError)
    async def session_not_found_handler(request: Request, exc: SessionNotFoundError):
        return _error_response(request, exc, status.HTTP_404_NOT_FOUND, "SESSION_NOT_FOUND")

    @app.exception_handler(MissingChunkError)
    async def missing_chunk_handler(request: Request, exc: MissingChunkError):
        return _error_response(
            request, exc, status.HTTP_400_BAD_REQUEST, "MISSING_CHUNK", chunk_index=exc.chunk_index
        )

    @app.exception_handler(InvalidChunkError)
    async def invalid_chunk_handler(request: Request, exc: InvalidChunkError):
        return _error_response(request, exc, status.HTTP_400_BAD_REQUEST, "INVALID_CHUNK")

    @app.exception_handler(ChecksumMismatchError)
    async def checksum_mismatch_handler(request: Request, exc: ChecksumMismatchError):
        return _error_response(
            request, exc, status.HTTP_400_BAD_REQUEST, "CHECKSUM_MISMATCH", chunk_index=exc.chunk_index
        )

    @app.exception_handler(SizeMismatchError)
    async def size_mismatch_handler(request: Request, exc: SizeMismatchError):
        return _error_response(request, exc, status.HTTP_400_BAD_REQUEST, "SIZE_MISMATCH")

    @app.exception_handler(InvalidObjectNameError)
    async def invalid_object_name_handler(request: Request, exc: InvalidObjectNameError):
        return _error_response(request, exc, status.HTTP_400_BAD_REQUEST, "INVALID_OBJECT_NAME")

    @app.exception_handler(UploadServerError)
    async def upload_server_error_handler(request: Request, exc: UploadServerError):
        return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR")

    @app.exception_handler(OSError)
    async def storage_error_handler(request: Request, exc: OSError):
        return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR")

    app.include_router(upload_router)

    @app.get("/")
    async def root():
        """
        Root endpoint for health check.
        """
        return {"message": "Chunked Upload Server API", "status": "running"}

    @app.get("/health")
    async def health_check():
        """
        Health check endpoint.
        Returns 200 if service is alive.
        """
        return {"status": "healthy", "service": "upload_server"}

    return app


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "upload_server.main:create_app",
        factory=True,
        host=SERVER_HOST,
        port=SERVER_PORT
    )


if __name__ == "__main__":
    main()
