"""Embeddings for record content, computed by the OpenAI API."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from openai import AsyncOpenAI, APIError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OpenAIClient:
    """Turns record texts into embedding vectors for the Redis index.

    Any ``APIError`` (timeouts and rate limits included) is retried up to
    ``max_retries`` attempts, sleeping 1s, 2s, 4s, ... between them.
    """

    def __init__(
        self,
        api_key: str,
        embedding_model: str = "text-embedding-3-small",
        timeout: float = 30.0,
        max_retries: int = 3,
    ):
        """Create the client.

        Args:
            api_key: OpenAI API key, empty when none is configured
            embedding_model: Embeddings model used for every record
            timeout: Per-request timeout in seconds
            max_retries: Total attempts per embeddings call
        """
        # Retries live in _with_backoff, the SDK must not add its own
        self.client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        self.embedding_model = embedding_model
        self.timeout = timeout
        self.max_retries = max_retries

    async def _with_backoff(self, call: Callable[[], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                return await call()
            except APIError as e:
                if attempt >= self.max_retries:
                    logger.error(
                        f"Embeddings request gave up after {attempt} attempts: "
                        f"{type(e).__name__}: {e}"
                    )
                    raise
                delay = 2 ** (attempt - 1)
                logger.warning(
                    f"Embeddings request failed ({attempt}/{self.max_retries}), "
                    f"retrying in {delay}s: {type(e).__name__}: {e}"
                )
                await asyncio.sleep(delay)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed record texts in a single request.

        Returns:
            One vector per text, aligned with ``texts``

        Raises:
            APIError: If the last attempt still fails
        """
        if not texts:
            return []

        async def request() -> list[list[float]]:
            response = await self.client.embeddings.create(
                model=self.embedding_model,
                input=texts,
            )
            by_position = sorted(response.data, key=lambda item: item.index)
            return [item.embedding for item in by_position]

        return await self._with_backoff(request)

    async def close(self):
        await self.client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
