"""Ingestion of stored JSON files into the vector index."""

from collections.abc import Sequence
from pathlib import Path

from app.logging_config import get_logger
from app.parsers.json_reader import JsonReader
from app.storage.vector_store import RedisVectorStore

logger = get_logger(__name__)

# Record fields: area, topic, subtopic, subtopic name, subject names, content
RECORD_KEYS = ("area", "tema", "subtema", "nomsubtema", "nommaterias", "contenido")


class JsonIngestionService:
    """Reads records from a JSON file and indexes them.

    Errors from parsing, embedding or Redis are not caught here.
    """

    def __init__(self, vector_store: RedisVectorStore, keys: Sequence[str] = RECORD_KEYS):
        self.vector_store = vector_store
        self.keys = tuple(keys)

    async def ingest(self, path: Path) -> int:
        """Index every record of a JSON file.

        Args:
            path: Stored JSON file

        Returns:
            int: Number of records sent to the vector index
        """
        documents = JsonReader(path, self.keys).get()
        await self.vector_store.add(documents)
        logger.info(f"Indexed {len(documents)} records from '{path.name}'")
        return len(documents)
