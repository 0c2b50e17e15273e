"""Knowledge base endpoints: search, indexing of extracted text, clearing.

Every response uses the {success, ...} envelope and carries CORS headers so
browser clients can call these endpoints directly.
"""

import json
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from copygen.core.clients import KnowledgeClientContext, get_client_context
from copygen.core.errors import KnowledgeError, ValidationError
from copygen.core.knowledge_indexing import KnowledgeIndexer
from copygen.core.knowledge_retrieval import KnowledgeRetrievalService, RetrievalRequest
from copygen.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


def _respond(status_code: int, content: dict[str, Any]) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=CORS_HEADERS)


def _error_response(error: KnowledgeError) -> JSONResponse:
    if error.status_code < 500:
        logger.warning(f"Rejected request: {error.message}")
    else:
        logger.error(f"Request failed: {error.message}")
    return _respond(error.status_code, {"success": False, "error": error.message})


def _unexpected_response(e: Exception) -> JSONResponse:
    logger.exception("Unexpected error while handling knowledge request")
    return _respond(500, {"success": False, "error": f"Internal server error: {e}"})


async def _read_json_object(request: Request, allow_empty: bool = False) -> dict[str, Any]:
    """
    Parse the raw body as a JSON object.

    Raises:
        ValidationError: If the body is empty (unless allowed), not JSON, or not an object
    """
    raw = await request.body()
    if not raw or not raw.strip():
        if allow_empty:
            return {}
        raise ValidationError("Request body is empty.")

    try:
        body = json.loads(raw)
    except ValueError as e:
        raise ValidationError(f"Invalid JSON body: {e}") from e

    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object.")
    return body


@router.options("/search-knowledge")
@router.options("/process-extracted-text")
@router.options("/clear-knowledge-chunks")
async def cors_preflight() -> PlainTextResponse:
    """CORS preflight: answered without touching the body."""
    return PlainTextResponse("ok", headers=CORS_HEADERS)


@router.post("/search-knowledge")
async def search_knowledge(
    request: Request,
    context: KnowledgeClientContext = Depends(get_client_context),
) -> JSONResponse:
    """
    Find the knowledge chunks most relevant to a query for one agent.

    Body: {agent_id, query, match_threshold?, match_count?}

    Returns:
        200 {success: true, results: [...]}, 400 on bad input, 500 otherwise
    """
    try:
        payload = await _read_json_object(request)
        retrieval_request = RetrievalRequest.from_payload(payload)
        retrieval_request.validate()

        service = KnowledgeRetrievalService.from_clients(context.get())
        chunks = await service.retrieve(retrieval_request)

        return _respond(200, {"success": True, "results": [c.to_dict() for c in chunks]})

    except KnowledgeError as e:
        return _error_response(e)
    except Exception as e:
        return _unexpected_response(e)


@router.post("/process-extracted-text")
async def process_extracted_text(
    request: Request,
    context: KnowledgeClientContext = Depends(get_client_context),
) -> JSONResponse:
    """
    Chunk, embed and store extracted document text for an agent.

    Body: {agent_id, text_content, file_name?}
    """
    try:
        payload = await _read_json_object(request)
        agent_id = payload.get("agent_id")
        text_content = payload.get("text_content")
        if not agent_id or not isinstance(agent_id, str) or not isinstance(text_content, str):
            raise ValidationError("Parameters agent_id and text_content are required.")

        indexer = KnowledgeIndexer.from_clients(context.get())
        result = await indexer.index_text(agent_id, text_content, payload.get("file_name"))

        return _respond(
            200,
            {
                "success": True,
                "message": result.message,
                "chunks_created": result.chunks_created,
                "chunks_inserted": result.chunks_inserted,
            },
        )

    except KnowledgeError as e:
        return _error_response(e)
    except Exception as e:
        return _unexpected_response(e)


@router.post("/clear-knowledge-chunks")
async def clear_knowledge_chunks(
    request: Request,
    context: KnowledgeClientContext = Depends(get_client_context),
) -> JSONResponse:
    """
    Delete the chunks of one agent, or of every agent when no agent_id is given.

    Body (optional): {agent_id?}
    """
    try:
        payload = await _read_json_object(request, allow_empty=True)
        agent_id = payload.get("agent_id")

        indexer = KnowledgeIndexer.from_clients(context.get())
        await indexer.clear(agent_id)

        scope = f"agent {agent_id}" if agent_id else "all agents"
        return _respond(200, {"success": True, "message": f"Knowledge chunks cleared for {scope}."})

    except KnowledgeError as e:
        return _error_response(e)
    except Exception as e:
        return _unexpected_response(e)
