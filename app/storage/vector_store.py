"""Vector index storage using Redis Search."""

import json
import logging

import numpy as np
from redis.asyncio import Redis
from redis.commands.search.field import TextField, VectorField
from redis.commands.search.index_definition import IndexDefinition, IndexType
from redis.exceptions import ResponseError

from app.clients.openai_client import OpenAIClient
from app.models.document import Document

logger = logging.getLogger(__name__)

CONTENT_FIELD = "content"
METADATA_FIELD = "metadata"
EMBEDDING_FIELD = "embedding"


class RedisVectorStore:
    """Vector index stored as Redis hashes.

    Each document is written as a hash under ``<prefix><document id>``
    holding its content, its metadata as JSON and its embedding as
    packed float32 bytes. A Redis Search index over the prefix makes
    the embeddings searchable.
    """

    def __init__(
        self,
        client: Redis,
        embedding_client: OpenAIClient,
        index_name: str = "spring-ai-index",
        prefix: str = "embedding:",
        dimensions: int = 1536,
    ):
        """Initialize vector store.

        Args:
            client: Async Redis connection
            embedding_client: Client producing embeddings for document content
            index_name: Name of the Redis Search index
            prefix: Key prefix for document hashes
            dimensions: Embedding vector dimension
        """
        self._client = client
        self.embedding_client = embedding_client
        self.index_name = index_name
        self.prefix = prefix
        self.dimensions = dimensions

    @classmethod
    def from_url(
        cls,
        url: str,
        embedding_client: OpenAIClient,
        **kwargs,
    ) -> "RedisVectorStore":
        return cls(Redis.from_url(url), embedding_client, **kwargs)

    async def initialize(self) -> bool:
        """Create the search index if it does not exist.

        Returns:
            bool: True if the index was created, False if it already existed
        """
        search = self._client.ft(self.index_name)
        try:
            await search.info()
            logger.info(f"Index '{self.index_name}' already exists")
            return False
        except ResponseError:
            pass

        schema = (
            TextField(CONTENT_FIELD),
            VectorField(
                EMBEDDING_FIELD,
                "HNSW",
                {
                    "TYPE": "FLOAT32",
                    "DIM": self.dimensions,
                    "DISTANCE_METRIC": "COSINE",
                },
            ),
        )
        definition = IndexDefinition(prefix=[self.prefix], index_type=IndexType.HASH)
        await search.create_index(schema, definition=definition)

        logger.info(f"Created index '{self.index_name}' with prefix '{self.prefix}'")
        return True

    async def add(self, documents: list[Document]) -> list[str]:
        """Embed documents and write them to the index.

        Args:
            documents: Documents to store

        Returns:
            list[str]: Keys of the stored documents

        Raises:
            ValueError: If an embedding does not match the index dimension
        """
        if not documents:
            return []

        embeddings = await self.embedding_client.embed_batch(
            [document.content for document in documents]
        )

        pipe = self._client.pipeline(transaction=False)
        keys = []
        for document, embedding in zip(documents, embeddings):
            if len(embedding) != self.dimensions:
                raise ValueError(
                    f"Embedding dimension {len(embedding)} does not match "
                    f"index dimension {self.dimensions}"
                )
            key = f"{self.prefix}{document.id}"
            pipe.hset(
                key,
                mapping={
                    CONTENT_FIELD: document.content,
                    METADATA_FIELD: json.dumps(document.metadata, ensure_ascii=False),
                    EMBEDDING_FIELD: np.asarray(embedding, dtype=np.float32).tobytes(),
                },
            )
            keys.append(key)
        await pipe.execute()

        logger.info(f"Added {len(keys)} documents to index '{self.index_name}'")
        return keys

    async def close(self) -> None:
        await self._client.aclose()
