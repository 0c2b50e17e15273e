"""Indexing of extracted document text into an agent's knowledge base."""

import asyncio
from dataclasses import dataclass
from typing import Any

from copygen.core.chunking import chunk_knowledge_text
from copygen.core.clients import KnowledgeClients
from copygen.core.config import get_settings
from copygen.core.embeddings import EmbeddingClient
from copygen.core.errors import UpstreamError, ValidationError
from copygen.core.logging import get_logger
from copygen.db.knowledge_chunks import delete_knowledge_chunks, insert_knowledge_chunks

logger = get_logger(__name__)

UNKNOWN_FILE_NAME = "N/A"


@dataclass
class IndexingResult:
    """Outcome of one index_text call."""

    chunks_created: int
    chunks_inserted: int
    message: str


class KnowledgeIndexer:
    """Chunks, embeds and stores text for one agent."""

    def __init__(self, embedder: EmbeddingClient, supabase: Any):
        self._embedder = embedder
        self._supabase = supabase
        self._settings = get_settings()

    @classmethod
    def from_clients(cls, clients: KnowledgeClients) -> "KnowledgeIndexer":
        return cls(clients.embedder, clients.supabase)

    async def _embed_in_batches(self, texts: list[str]) -> list[tuple[float, ...]]:
        batch_size = self._settings.KNOWLEDGE_EMBED_BATCH_SIZE
        embeddings: list[tuple[float, ...]] = []
        for start in range(0, len(texts), batch_size):
            batch = texts[start : start + batch_size]
            embeddings.extend(await self._embedder.embed_many_async(batch))
            logger.debug(
                f"Embedded batch {start // batch_size + 1}/{-(-len(texts) // batch_size)}"
            )
        return embeddings

    async def index_text(
        self, agent_id: Any, text_content: Any, file_name: str | None = None
    ) -> IndexingResult:
        """
        Index extracted text for an agent.

        Args:
            agent_id: Owning agent
            text_content: Extracted document text
            file_name: Original file name stored alongside each chunk

        Returns:
            IndexingResult with counts and a human-readable message

        Raises:
            ValidationError: If agent_id is missing or text_content is not a string
            UpstreamError: If embedding or insertion fails
        """
        if not agent_id or not isinstance(agent_id, str):
            raise ValidationError("Parameter agent_id (string) is required.")
        if not isinstance(text_content, str):
            raise ValidationError("Parameter text_content (string) is required.")

        if not text_content.strip():
            return IndexingResult(0, 0, "Empty file processed.")

        settings = self._settings
        chunks = chunk_knowledge_text(
            text_content,
            max_chars=settings.KNOWLEDGE_MAX_CHUNK_CHARS,
            min_chars=settings.KNOWLEDGE_MIN_CHUNK_CHARS,
            overlap=settings.KNOWLEDGE_OVERLAP_CHARS,
        )
        logger.info(
            f"Text chunked into {len(chunks)} chunk(s)",
            extra={"agent_id": agent_id, "extra_data": {"file_name": file_name}},
        )
        if not chunks:
            return IndexingResult(0, 0, "File processed, no valid chunks.")

        contents = [chunk["content"] for chunk in chunks]
        embeddings = await self._embed_in_batches(contents)

        rows = [
            {
                "agent_id": agent_id,
                "file_path": file_name or UNKNOWN_FILE_NAME,
                "chunk_text": content,
                "embedding": list(embedding),
            }
            for content, embedding in zip(contents, embeddings, strict=True)
        ]

        try:
            inserted = await asyncio.to_thread(
                insert_knowledge_chunks,
                self._supabase,
                rows,
                settings.KNOWLEDGE_INSERT_BATCH_SIZE,
            )
        except Exception as e:
            raise UpstreamError(f"Failed to save knowledge chunks: {e}") from e

        logger.info(f"Saved {inserted} chunks", extra={"agent_id": agent_id})
        return IndexingResult(len(chunks), inserted, "File saved successfully.")

    async def clear(self, agent_id: str | None = None) -> None:
        """Remove the agent's chunks, or all chunks when agent_id is None."""
        if agent_id is not None and not isinstance(agent_id, str):
            raise ValidationError("Parameter agent_id must be a string.")
        try:
            await asyncio.to_thread(delete_knowledge_chunks, self._supabase, agent_id)
        except Exception as e:
            raise UpstreamError(f"Failed to clear knowledge chunks: {e}") from e
