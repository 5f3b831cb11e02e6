"""File storage for uploaded JSON files."""

import os
import shutil
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from app.logging_config import get_logger
from app.models.document import StoredFileInfo

if TYPE_CHECKING:
    from app.services.ingestion_service import JsonIngestionService

logger = get_logger(__name__)


class StorageError(Exception):
    """Raised when a file cannot be stored, listed or the folder prepared."""

    pass


class StorageFileNotFoundError(StorageError):
    """Raised when a stored file does not exist or cannot be read."""

    pass


class FileSystemStorageService:
    """Stores uploaded files flat under a single root folder.

    Every successfully written file is handed to the ingestion service,
    which turns its records into embeddings in the vector index. No
    in-memory index of the stored files is kept; listings always read
    the folder again.
    """

    def __init__(self, location: str | Path, ingestion_service: "JsonIngestionService"):
        """Initialize storage service.

        Args:
            location: Root folder for uploaded files
            ingestion_service: Collaborator that indexes stored files

        Raises:
            StorageError: If location is blank
        """
        if str(location).strip() == "":
            raise StorageError("File upload location can not be empty.")

        self.root_location = Path(location)
        self.ingestion_service = ingestion_service

    @property
    def absolute_root(self) -> Path:
        return Path(os.path.abspath(self.root_location))

    def _destination(self, filename: str) -> Path:
        """Resolve filename to a path directly under the root folder.

        Raises:
            StorageError: If the normalized path is not a direct child of root
        """
        if "\x00" in filename:
            raise StorageError("Cannot store file with a null byte in its name.")

        root = self.absolute_root
        destination = Path(os.path.normpath(root / filename))
        if destination.parent != root:
            raise StorageError("Cannot store file outside current directory.")
        return destination

    def init(self) -> None:
        """Create the root folder and its parents if missing."""
        try:
            self.root_location.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError("Could not initialize storage") from e
        logger.info(f"Storage initialized at '{self.absolute_root}'")

    def delete_all(self) -> None:
        """Recursively remove the root folder. Missing folder is ignored."""
        if not self.root_location.exists():
            return
        shutil.rmtree(self.root_location, ignore_errors=True)
        logger.info(f"Deleted all stored files under '{self.absolute_root}'")

    async def store(self, filename: str, file_content: bytes) -> StoredFileInfo:
        """Write an uploaded file under root and index its records.

        The write replaces any file with the same name. Errors raised by the
        ingestion service are not wrapped: the file stays on disk without
        index entries.

        Args:
            filename: Declared filename, must not contain directories
            file_content: Binary content of the file

        Returns:
            StoredFileInfo describing the stored file

        Raises:
            StorageError: If content is empty, the name escapes root or the
                write fails
        """
        if not file_content:
            raise StorageError("Failed to store empty file.")

        destination = self._destination(filename)

        try:
            destination.write_bytes(file_content)
        except OSError as e:
            raise StorageError("Failed to store file.") from e

        logger.info(f"Creating embeddings for '{destination.name}'...")
        try:
            records_indexed = await self.ingestion_service.ingest(destination)
        except Exception as e:
            logger.error(
                f"Ingestion failed for '{destination.name}', file kept on disk: {e}"
            )
            raise
        logger.info(f"Embeddings created: {records_indexed} records from '{destination.name}'")

        return StoredFileInfo(
            filename=destination.name,
            file_size=len(file_content),
            stored_path=destination,
            records_indexed=records_indexed,
            created_at=datetime.now(UTC),
        )

    def load_all(self) -> Iterator[Path]:
        """Lazily yield stored entries relative to root, one level deep.

        A missing root folder yields nothing.

        Raises:
            StorageError: If the root folder cannot be read
        """
        try:
            entries = os.scandir(self.root_location)
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageError("Failed to read stored files") from e

        with entries:
            for entry in entries:
                yield Path(entry.name)

    def load(self, filename: str) -> Path:
        """Compose the path of a stored file without checking it exists.

        Raises:
            StorageError: If the name points outside the root folder
        """
        self._destination(filename)
        return self.root_location / filename

    def load_as_resource(self, filename: str) -> Path:
        """Get the path of a stored file that can be read.

        Raises:
            StorageFileNotFoundError: If the file is missing or unreadable
        """
        path = self.load(filename)
        if path.is_file() and os.access(path, os.R_OK):
            return path
        raise StorageFileNotFoundError(f"Could not read file: {filename}")


def initialize_storage(storage: FileSystemStorageService) -> None:
    """Prepare the storage folder at process startup.

    Wipes the root folder and creates it again, so uploads never survive a
    restart. Must run once, before any request is served.
    """
    logger.warning(f"Resetting storage at '{storage.absolute_root}', previous uploads are discarded")
    storage.delete_all()
    storage.init()
