"""Document-related Pydantic models."""

import uuid
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field


class Document(BaseModel):
    """A single record extracted from an uploaded JSON file."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    content: str
    metadata: dict[str, str] = {}


class StoredFileInfo(BaseModel):
    """Response after a file has been stored and indexed."""

    filename: str
    file_size: int = Field(ge=0, description="File size in bytes (non-negative)")
    stored_path: Path = Field(description="Path where file is stored")
    records_indexed: int = Field(ge=0, description="Number of records sent to the vector index")
    created_at: datetime
