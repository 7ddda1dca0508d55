"""Common schemas used across multiple endpoints."""

from typing import Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Response model for errors."""
    detail: str
    code: str
    chunk_index: Optional[int] = None
