"""Tests for the knowledge retrieval service with a mocked embedder and Supabase."""

from unittest.mock import MagicMock

import pytest

from copygen.core.clients import KnowledgeClients
from copygen.core.errors import ProviderError, UpstreamError, ValidationError
from copygen.core.knowledge_retrieval import (
    KnowledgeChunk,
    KnowledgeRetrievalService,
    RetrievalRequest,
    normalize_chunks,
    resolve_match_params,
)
from tests.fakes.embedding import make_embedder
from tests.fakes.fake_supabase import FakeSupabase


def _row(chunk_text, similarity, file_path="faq.pdf", agent_id="agent-1", chunk_id=None):
    return {
        "id": chunk_id,
        "chunk_text": chunk_text,
        "similarity": similarity,
        "file_path": file_path,
        "agent_id": agent_id,
    }


@pytest.fixture
def embedder():
    return make_embedder()


@pytest.fixture
def supabase():
    return FakeSupabase(
        rpc_rows=[
            _row("Shipping takes two days.", 0.60, chunk_id=2),
            _row("Refunds within 30 days.", 0.81, chunk_id=1),
            _row("Contact support by email.", 0.50, chunk_id=3),
        ]
    )


@pytest.fixture
def service(embedder, supabase):
    return KnowledgeRetrievalService(embedder, supabase)


# =============================================================================
# Validation
# =============================================================================


@pytest.mark.parametrize("agent_id", [None, "", 123])
def test_validate_rejects_bad_agent_id(agent_id):
    req = RetrievalRequest(agent_id=agent_id, query="refund policy")

    with pytest.raises(ValidationError, match="agent_id") as exc_info:
        req.validate()

    assert exc_info.value.status_code == 400


@pytest.mark.parametrize("query", [None, "", "   ", 42])
def test_validate_rejects_bad_query(query):
    req = RetrievalRequest(agent_id="agent-1", query=query)

    with pytest.raises(ValidationError, match="query"):
        req.validate()


def test_from_payload_reads_snake_case_fields():
    req = RetrievalRequest.from_payload(
        {"agent_id": "agent-1", "query": "q", "match_threshold": 0.7, "match_count": 2}
    )

    assert req == RetrievalRequest("agent-1", "q", 0.7, 2)


@pytest.mark.asyncio
async def test_retrieve_invalid_request_never_embeds(supabase):
    embedder = MagicMock()
    service = KnowledgeRetrievalService(embedder, supabase)

    with pytest.raises(ValidationError):
        await service.retrieve(RetrievalRequest(agent_id="", query="refund policy"))

    embedder.embed_async.assert_not_called()
    assert supabase.rpc_calls == []


# =============================================================================
# Parameter resolution
# =============================================================================


def test_resolve_match_params_defaults():
    assert resolve_match_params(None, None) == (0.45, 5)


def test_resolve_match_params_non_numeric_falls_back():
    assert resolve_match_params("0.9", True) == (0.45, 5)


def test_resolve_match_params_passes_out_of_range_values_through():
    assert resolve_match_params(1.5, 0) == (1.5, 0)
    assert resolve_match_params(-0.2, -3) == (-0.2, -3)


# =============================================================================
# Normalization
# =============================================================================


def test_normalize_chunks_filters_and_sorts():
    rows = [_row("low", 0.2), _row("mid", 0.6), _row("high", 0.9)]

    chunks = normalize_chunks(rows, "agent-1", 0.45)

    assert [c.chunk_text for c in chunks] == ["high", "mid"]


def test_normalize_chunks_keeps_backend_order_for_ties():
    rows = [_row("first", 0.7), _row("second", 0.7), _row("third", 0.7)]

    chunks = normalize_chunks(rows, "agent-1", 0.45)

    assert [c.chunk_text for c in chunks] == ["first", "second", "third"]


def test_normalize_chunks_handles_none():
    assert normalize_chunks(None, "agent-1", 0.45) == []


def test_chunk_from_row_falls_back_to_file_path_and_request_agent():
    chunk = KnowledgeChunk.from_row(
        {"chunk_text": "text", "similarity": 0.5, "file_path": "guide.docx"}, "agent-9"
    )

    assert chunk.original_file_name == "guide.docx"
    assert chunk.agent_id == "agent-9"
    assert chunk.id is None


def test_chunk_from_row_prefers_original_file_name():
    chunk = KnowledgeChunk.from_row(
        {"chunk_text": "t", "similarity": 0.5, "original_file_name": "a.pdf", "file_path": "b.pdf"},
        "agent-1",
    )

    assert chunk.original_file_name == "a.pdf"


# =============================================================================
# Retrieval
# =============================================================================


@pytest.mark.asyncio
async def test_retrieve_returns_chunks_best_first(service):
    chunks = await service.retrieve(RetrievalRequest(agent_id="agent-1", query="refund policy"))

    assert [c.similarity for c in chunks] == [0.81, 0.60, 0.50]
    assert chunks[0].chunk_text == "Refunds within 30 days."
    assert chunks[0].original_file_name == "faq.pdf"
    assert chunks[0].id == "1"


@pytest.mark.asyncio
async def test_retrieve_sends_defaults_and_embedding(service, supabase):
    await service.retrieve(RetrievalRequest(agent_id="agent-1", query="refund policy"))

    assert len(supabase.rpc_calls) == 1
    name, params = supabase.rpc_calls[0]
    assert name == "match_knowledge_chunks"
    assert params["match_agent_id"] == "agent-1"
    assert params["match_threshold"] == 0.45
    assert params["match_count"] == 5
    assert len(params["query_embedding"]) == 1536


@pytest.mark.asyncio
async def test_retrieve_embeds_trimmed_query(service, embedder):
    await service.retrieve(RetrievalRequest(agent_id="agent-1", query="  refund policy \n"))

    embedder._client.embeddings.create.assert_called_once_with(
        model="text-embedding-3-small", input=["refund policy"]
    )


@pytest.mark.asyncio
async def test_retrieve_passes_caller_params_verbatim(service, supabase):
    chunks = await service.retrieve(
        RetrievalRequest(agent_id="agent-1", query="q", match_threshold=1.5, match_count=0)
    )

    _, params = supabase.rpc_calls[0]
    assert params["match_threshold"] == 1.5
    assert params["match_count"] == 0
    # Nothing can reach a similarity above 1.0
    assert chunks == []


@pytest.mark.asyncio
async def test_retrieve_no_matches(embedder):
    service = KnowledgeRetrievalService(embedder, FakeSupabase(rpc_rows=None))

    chunks = await service.retrieve(RetrievalRequest(agent_id="agent-1", query="unknown"))

    assert chunks == []


@pytest.mark.asyncio
async def test_retrieve_search_failure_is_upstream_error(service, supabase):
    supabase.rpc_error = RuntimeError("connection reset")

    with pytest.raises(UpstreamError, match="Failed to search knowledge base: connection reset"):
        await service.retrieve(RetrievalRequest(agent_id="agent-1", query="q"))


@pytest.mark.asyncio
async def test_retrieve_embedding_failure_skips_search(service, embedder, supabase):
    embedder._client.embeddings.create.side_effect = Exception("429 Too Many Requests")

    with pytest.raises(ProviderError, match="429"):
        await service.retrieve(RetrievalRequest(agent_id="agent-1", query="q"))

    assert supabase.rpc_calls == []


def test_from_clients_uses_configured_defaults(embedder, supabase):
    service = KnowledgeRetrievalService.from_clients(KnowledgeClients(embedder, supabase))

    assert service.default_threshold == 0.45
    assert service.default_count == 5


@pytest.mark.asyncio
async def test_retrieve_is_repeatable(service):
    req = RetrievalRequest(agent_id="agent-1", query="refund policy")

    first = await service.retrieve(req)
    second = await service.retrieve(req)

    assert first == second


@pytest.mark.asyncio
async def test_retrieve_malformed_similarity_is_upstream_error(embedder):
    supabase = FakeSupabase(rpc_rows=[_row("Refunds within 30 days.", "not-a-number")])
    service = KnowledgeRetrievalService(embedder, supabase)

    with pytest.raises(UpstreamError, match="Failed to search knowledge base"):
        await service.retrieve(RetrievalRequest(agent_id="agent-1", query="q"))
