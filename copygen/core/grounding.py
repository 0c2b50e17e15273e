"""Caller-side grounding: retrieval failures never block the conversation."""

from copygen.core.errors import KnowledgeError
from copygen.core.knowledge_retrieval import (
    KnowledgeChunk,
    KnowledgeRetrievalService,
    RetrievalRequest,
)
from copygen.core.logging import get_logger

logger = get_logger(__name__)

KNOWLEDGE_CONTEXT_HEADER = "## Relevant Knowledge Base (retrieved dynamically):"


async def gather_grounding(
    service: KnowledgeRetrievalService, agent_id: str, query: str
) -> list[KnowledgeChunk]:
    """Retrieve chunks for a chat turn, or [] when no grounding is available."""
    try:
        return await service.retrieve(RetrievalRequest(agent_id=agent_id, query=query))
    except KnowledgeError as e:
        logger.warning(f"Proceeding without grounding: {e.message}", extra={"agent_id": agent_id})
        return []


def format_knowledge_context(chunks: list[KnowledgeChunk]) -> str:
    """Render chunks as the context block injected into the system prompt."""
    if not chunks:
        return ""

    lines = []
    for chunk in chunks:
        if chunk.original_file_name:
            lines.append(f'- Excerpt from file "{chunk.original_file_name}": {chunk.chunk_text}')
        else:
            lines.append(f"- Excerpt: {chunk.chunk_text}")

    return f"\n\n{KNOWLEDGE_CONTEXT_HEADER}\n" + "\n".join(lines)
