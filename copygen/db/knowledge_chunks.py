"""Database operations for agent knowledge chunks: similarity search, insert, clear."""

from collections.abc import Sequence
from typing import Any

from supabase import Client

from copygen.core.config import get_settings
from copygen.core.logging import get_logger

logger = get_logger(__name__)


def search_knowledge_chunks(
    supabase: Client,
    agent_id: str,
    query_embedding: Sequence[float],
    match_threshold: float,
    match_count: int,
) -> list[dict[str, Any]]:
    """
    Search an agent's knowledge chunks using vector similarity.

    The stored procedure ranks by cosine similarity, keeps rows at or above
    match_threshold and returns at most match_count rows, best first.

    Args:
        supabase: Supabase client
        agent_id: Agent whose chunks are searched
        query_embedding: Query embedding vector
        match_threshold: Minimum similarity
        match_count: Maximum number of rows

    Returns:
        List of matching rows with similarity scores (empty when nothing matches)

    Raises:
        Exception: If the RPC call fails
    """
    settings = get_settings()

    try:
        response = supabase.rpc(
            settings.KNOWLEDGE_MATCH_RPC,
            {
                "match_agent_id": agent_id,
                "query_embedding": list(query_embedding),
                "match_threshold": match_threshold,
                "match_count": match_count,
            },
        ).execute()

        if not response.data:
            logger.info("No matching knowledge chunks found", extra={"agent_id": agent_id})
            return []

        logger.info(
            f"Found {len(response.data)} matching knowledge chunks",
            extra={
                "agent_id": agent_id,
                "extra_data": {"match_count": match_count, "match_threshold": match_threshold},
            },
        )
        return response.data

    except Exception as e:
        logger.error(f"Failed to search knowledge chunks: {e}", extra={"agent_id": agent_id})
        raise


def insert_knowledge_chunks(
    supabase: Client,
    rows: list[dict[str, Any]],
    batch_size: int = 50,
) -> int:
    """
    Insert knowledge chunk rows in batches.

    Args:
        supabase: Supabase client
        rows: Rows with agent_id, file_path, chunk_text, embedding
        batch_size: Rows per insert request

    Returns:
        Number of rows sent to the database

    Raises:
        Exception: If any batch fails; earlier batches stay committed
    """
    settings = get_settings()
    inserted = 0

    for start in range(0, len(rows), batch_size):
        batch = rows[start : start + batch_size]
        try:
            supabase.table(settings.KNOWLEDGE_CHUNKS_TABLE).insert(batch).execute()
        except Exception as e:
            logger.error(
                f"Failed to insert knowledge chunk batch at offset {start}: {e}",
                extra={"extra_data": {"inserted": inserted}},
            )
            raise
        inserted += len(batch)

    logger.info(f"Inserted {inserted} knowledge chunks")
    return inserted


def delete_knowledge_chunks(supabase: Client, agent_id: str | None = None) -> None:
    """
    Delete knowledge chunks for one agent, or every chunk when agent_id is None.

    Raises:
        Exception: If database operation fails
    """
    settings = get_settings()
    query = supabase.table(settings.KNOWLEDGE_CHUNKS_TABLE).delete()

    try:
        if agent_id:
            query.eq("agent_id", agent_id).execute()
        else:
            # PostgREST refuses an unfiltered delete
            query.neq("id", 0).execute()
    except Exception as e:
        logger.error(f"Failed to delete knowledge chunks: {e}", extra={"agent_id": agent_id})
        raise

    logger.info("Deleted knowledge chunks", extra={"agent_id": agent_id or "*"})
