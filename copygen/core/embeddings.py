"""OpenAI embeddings generation with validation."""

import asyncio

from openai import OpenAI

from copygen.core.config import get_settings
from copygen.core.errors import ProviderError
from copygen.core.logging import get_logger

logger = get_logger(__name__)

EmbeddingVector = tuple[float, ...]


def _get_client() -> OpenAI:
    """Get OpenAI client instance. SDK retries are off; callers own retry policy."""
    settings = get_settings()
    return OpenAI(api_key=settings.OPENAI_API_KEY, max_retries=0)


class EmbeddingClient:
    """Turns text into fixed-length vectors using the configured OpenAI model."""

    def __init__(self, client: OpenAI, model: str, dimension: int):
        self._client = client
        self.model = model
        self.dimension = dimension

    @classmethod
    def from_settings(cls) -> "EmbeddingClient":
        settings = get_settings()
        return cls(_get_client(), settings.EMBEDDING_MODEL, settings.EMBEDDING_DIM)

    def embed_many(self, texts: list[str]) -> list[EmbeddingVector]:
        """
        Generate embeddings for a list of texts.

        Args:
            texts: List of text strings to embed

        Returns:
            One immutable vector per input text, in input order

        Raises:
            ProviderError: If the OpenAI call fails, returns the wrong number of vectors,
                or a vector has the wrong dimension
        """
        if not texts:
            return []

        try:
            response = self._client.embeddings.create(model=self.model, input=texts)
        except Exception as e:
            logger.error(f"Failed to generate embeddings: {e}")
            raise ProviderError(str(e)) from e

        if len(response.data) != len(texts):
            raise ProviderError(
                f"Embedding count mismatch: expected {len(texts)}, got {len(response.data)}"
            )

        embeddings: list[EmbeddingVector] = []
        for i, embedding_obj in enumerate(response.data):
            embedding = embedding_obj.embedding

            if len(embedding) != self.dimension:
                raise ProviderError(
                    f"Embedding dimension mismatch for text {i}: "
                    f"expected {self.dimension}, got {len(embedding)}"
                )

            embeddings.append(tuple(embedding))

        logger.debug(
            f"Generated {len(embeddings)} embeddings using {self.model}",
            extra={"extra_data": {"model": self.model, "count": len(embeddings)}},
        )
        return embeddings

    def embed(self, text: str) -> EmbeddingVector:
        """Embed a single string. Input limits are enforced by the provider."""
        return self.embed_many([text])[0]

    async def embed_async(self, text: str) -> EmbeddingVector:
        """Async wrapper around embed using thread pool."""
        return await asyncio.to_thread(self.embed, text)

    async def embed_many_async(self, texts: list[str]) -> list[EmbeddingVector]:
        """Async wrapper around embed_many using thread pool."""
        return await asyncio.to_thread(self.embed_many, texts)
