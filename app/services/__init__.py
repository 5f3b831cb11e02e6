"""Service layer for business logic."""

from app.services.ingestion_service import RECORD_KEYS, JsonIngestionService

__all__ = [
    "JsonIngestionService",
    "RECORD_KEYS",
]
