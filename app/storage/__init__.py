"""Storage and vector index components."""

from app.storage.file_storage import (
    FileSystemStorageService,
    StorageError,
    StorageFileNotFoundError,
    initialize_storage,
)
from app.storage.vector_store import RedisVectorStore

__all__ = [
    "FileSystemStorageService",
    "StorageError",
    "StorageFileNotFoundError",
    "RedisVectorStore",
    "initialize_storage",
]
