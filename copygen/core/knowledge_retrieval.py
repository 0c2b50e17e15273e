"""Knowledge retrieval: query embedding + per-agent similarity search.

Usage:
    from copygen.core.knowledge_retrieval import KnowledgeRetrievalService, RetrievalRequest

    service = KnowledgeRetrievalService.from_clients(context.get())
    chunks = await service.retrieve(RetrievalRequest(agent_id="a1", query="refund policy"))

Threshold and count are passed through unclamped when the caller supplies a
number. Only missing or non-numeric values fall back to the defaults.
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass
from typing import Any

from copygen.core.clients import KnowledgeClients
from copygen.core.config import get_settings
from copygen.core.embeddings import EmbeddingClient
from copygen.core.errors import UpstreamError, ValidationError
from copygen.core.logging import get_logger
from copygen.db.knowledge_chunks import search_knowledge_chunks

logger = get_logger(__name__)

DEFAULT_MATCH_THRESHOLD = 0.45
DEFAULT_MATCH_COUNT = 5


# =============================================================================
# Models
# =============================================================================


@dataclass(frozen=True)
class RetrievalRequest:
    """A retrieval request as received from the caller, before validation."""

    agent_id: Any
    query: Any
    match_threshold: Any = None
    match_count: Any = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> RetrievalRequest:
        """Build from the endpoint's snake_case JSON body."""
        return cls(
            agent_id=payload.get("agent_id"),
            query=payload.get("query"),
            match_threshold=payload.get("match_threshold"),
            match_count=payload.get("match_count"),
        )

    def validate(self) -> None:
        """
        Raises:
            ValidationError: If agent_id is missing/not a string or query is missing/blank
        """
        if not self.agent_id or not isinstance(self.agent_id, str):
            raise ValidationError("Parameter agent_id (string) is required.")
        if not isinstance(self.query, str) or not self.query.strip():
            raise ValidationError("Parameter query (non-empty string) is required.")


@dataclass(frozen=True)
class KnowledgeChunk:
    """A retrieved knowledge fragment."""

    chunk_text: str
    similarity: float
    original_file_name: str | None
    agent_id: str
    id: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any], agent_id: str) -> KnowledgeChunk:
        chunk_id = row.get("id")
        return cls(
            chunk_text=row.get("chunk_text") or "",
            similarity=float(row.get("similarity") or 0.0),
            original_file_name=row.get("original_file_name") or row.get("file_path"),
            agent_id=row.get("agent_id") or agent_id,
            id=str(chunk_id) if chunk_id is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def resolve_match_params(
    match_threshold: Any,
    match_count: Any,
    default_threshold: float = DEFAULT_MATCH_THRESHOLD,
    default_count: int = DEFAULT_MATCH_COUNT,
) -> tuple[float, int]:
    """Effective (threshold, count). Numeric inputs are used verbatim."""
    threshold = match_threshold if _is_number(match_threshold) else default_threshold
    count = match_count if _is_number(match_count) else default_count
    return threshold, count


def normalize_chunks(
    rows: list[dict[str, Any]], agent_id: str, match_threshold: float
) -> list[KnowledgeChunk]:
    """Convert rows, drop anything under the threshold, order best first.

    The sort is stable, so equal similarities keep the order the backend gave.
    """
    chunks = [KnowledgeChunk.from_row(row, agent_id) for row in rows or []]
    chunks = [c for c in chunks if c.similarity >= match_threshold]
    chunks.sort(key=lambda c: c.similarity, reverse=True)
    return chunks


# =============================================================================
# Service
# =============================================================================


class KnowledgeRetrievalService:
    """Validates a request, embeds the query and runs the similarity search."""

    def __init__(
        self,
        embedder: EmbeddingClient,
        supabase: Any,
        default_threshold: float = DEFAULT_MATCH_THRESHOLD,
        default_count: int = DEFAULT_MATCH_COUNT,
    ):
        self._embedder = embedder
        self._supabase = supabase
        self.default_threshold = default_threshold
        self.default_count = default_count

    @classmethod
    def from_clients(cls, clients: KnowledgeClients) -> KnowledgeRetrievalService:
        settings = get_settings()
        return cls(
            clients.embedder,
            clients.supabase,
            default_threshold=settings.KNOWLEDGE_MATCH_THRESHOLD,
            default_count=settings.KNOWLEDGE_MATCH_COUNT,
        )

    async def retrieve(self, req: RetrievalRequest) -> list[KnowledgeChunk]:
        """
        Find the most relevant chunks of the agent's knowledge base.

        Args:
            req: Retrieval request

        Returns:
            Chunks sorted by similarity descending, never None

        Raises:
            ValidationError: If agent_id or query is missing/invalid
            UpstreamError: If embedding (ProviderError) or similarity search fails
        """
        req.validate()
        threshold, count = resolve_match_params(
            req.match_threshold, req.match_count, self.default_threshold, self.default_count
        )
        query = req.query.strip()

        logger.info(
            f"Searching knowledge for query '{query[:50]}'",
            extra={
                "agent_id": req.agent_id,
                "extra_data": {"match_threshold": threshold, "match_count": count},
            },
        )

        # Embedding must finish first: the search needs its output
        embedding = await self._embedder.embed_async(query)

        try:
            rows = await asyncio.to_thread(
                search_knowledge_chunks,
                self._supabase,
                req.agent_id,
                embedding,
                threshold,
                count,
            )
            # Malformed rows are a backend fault too
            chunks = normalize_chunks(rows, req.agent_id, threshold)
        except Exception as e:
            raise UpstreamError(f"Failed to search knowledge base: {e}") from e

        logger.info(f"Retrieved {len(chunks)} chunks", extra={"agent_id": req.agent_id})
        return chunks
