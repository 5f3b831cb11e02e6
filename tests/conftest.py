"""Pytest configuration and shared fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.storage.file_storage import FileSystemStorageService


@pytest.fixture
def storage_root(tmp_path):
    """Root folder for stored files (not created)."""
    return tmp_path / "upload-dir"


@pytest.fixture
def mock_ingestion_service():
    """Mock ingestion service reporting two indexed records."""
    service = MagicMock()
    service.ingest = AsyncMock(return_value=2)
    service.vector_store.initialize = AsyncMock(return_value=True)
    service.vector_store.close = AsyncMock()
    service.vector_store.embedding_client.close = AsyncMock()
    return service


@pytest.fixture
def storage_service(storage_root, mock_ingestion_service):
    """Initialized storage service with mocked ingestion."""
    service = FileSystemStorageService(storage_root, mock_ingestion_service)
    service.init()
    return service


@pytest.fixture
def sample_records_json():
    """JSON payload with two records."""
    return (
        b'[{"area": "Ciencias", "tema": "1", "subtema": "1.1", '
        b'"nomsubtema": "Celula", "nommaterias": "Biologia", "contenido": "La celula"},'
        b'{"area": "Letras", "tema": "2", "contenido": "Gramatica"}]'
    )
