"""Pydantic models for the JSON feeder service."""

from app.models.document import Document, StoredFileInfo
from app.models.error import ErrorResponse

__all__ = [
    "Document",
    "StoredFileInfo",
    "ErrorResponse",
]
