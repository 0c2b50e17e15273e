"""Embedding client backed by a mocked OpenAI SDK."""

from unittest.mock import MagicMock

from copygen.core.embeddings import EmbeddingClient


def mock_openai_response(num_embeddings: int, dimension: int = 1536, value: float = 0.1):
    """Create a mock OpenAI embeddings response."""
    mock_response = MagicMock()
    mock_response.data = []
    for _ in range(num_embeddings):
        mock_embedding = MagicMock()
        mock_embedding.embedding = [value] * dimension
        mock_response.data.append(mock_embedding)
    return mock_response


def make_embedder(dimension: int = 1536) -> EmbeddingClient:
    """EmbeddingClient whose OpenAI client answers with one vector per input."""
    openai_client = MagicMock()
    openai_client.embeddings.create.side_effect = lambda model, input: mock_openai_response(
        len(input), dimension
    )
    return EmbeddingClient(openai_client, "text-embedding-3-small", dimension)
