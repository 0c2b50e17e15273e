"""API router for v1 endpoints."""

from fastapi import APIRouter

from copygen.api import knowledge

router = APIRouter()

# Knowledge base search and indexing routes
router.include_router(knowledge.router, tags=["knowledge"])
