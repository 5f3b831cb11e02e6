"""Reader turning JSON files into documents for the vector index."""

import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from app.models.document import Document

logger = logging.getLogger(__name__)


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


class JsonReader:
    """Reads a JSON file into one document per record.

    A top-level array yields one document per element; any other
    top-level value yields a single document. For each record the
    content is a ``key: value`` line per recognized key present, in
    the order the keys were given. Records holding none of the keys
    keep their full JSON text as content.
    """

    def __init__(self, path: Path, keys: Sequence[str]):
        """Initialize reader.

        Args:
            path: JSON file to read
            keys: Ordered field names to extract from every record
        """
        self.path = Path(path)
        self.keys = tuple(keys)

    def get(self) -> list[Document]:
        """Parse the file into documents.

        Returns:
            list[Document]: One document per record

        Raises:
            ValueError: If the file is not valid JSON
            OSError: If the file cannot be read
        """
        # Bytes let json detect UTF-8/16/32 and skip a byte order mark
        data = json.loads(self.path.read_bytes())

        records = data if isinstance(data, list) else [data]
        documents = [self._to_document(record) for record in records]

        logger.info(f"Read {len(documents)} records from '{self.path.name}'")
        return documents

    def _to_document(self, record: Any) -> Document:
        metadata = {"source": self.path.name}
        lines = []

        if isinstance(record, dict):
            for key in self.keys:
                if key in record:
                    text = _as_text(record[key])
                    lines.append(f"{key}: {text}")
                    metadata[key] = text

        if lines:
            content = "\n".join(lines) + "\n"
        else:
            content = _as_text(record)

        return Document(content=content, metadata=metadata)
