"""Service layer for upload business logic."""

from upload_server.services.upload_service import UploadService

__all__ = [
    "UploadService",
]
