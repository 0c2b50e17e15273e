"""Process-wide context holding the embedding and similarity-search clients.

The clients are built lazily on first use and only once. A construction failure
is remembered, so every later request fails fast with the same
InitializationError instead of retrying the allocation.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from copygen.core.embeddings import EmbeddingClient
from copygen.core.errors import InitializationError
from copygen.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class KnowledgeClients:
    """Read-only pair of external clients shared by concurrent requests."""

    embedder: EmbeddingClient
    supabase: Any


def _build_default_clients() -> KnowledgeClients:
    from copygen.db.supabase_client import create_supabase

    return KnowledgeClients(embedder=EmbeddingClient.from_settings(), supabase=create_supabase())


class KnowledgeClientContext:
    """Lazily-initialized holder with an explicit construction-failure state."""

    def __init__(self, factory: Callable[[], KnowledgeClients] = _build_default_clients):
        self._factory = factory
        self._lock = threading.Lock()
        self._clients: KnowledgeClients | None = None
        self._error: InitializationError | None = None

    @property
    def initialized(self) -> bool:
        return self._clients is not None

    @property
    def failed(self) -> bool:
        return self._error is not None

    def get(self) -> KnowledgeClients:
        """
        Return the shared clients, constructing them on the first call.

        Raises:
            InitializationError: If construction failed now or on an earlier call
        """
        if self._clients is not None:
            return self._clients
        if self._error is not None:
            raise self._error

        with self._lock:
            if self._clients is None and self._error is None:
                try:
                    self._clients = self._factory()
                    logger.info("Knowledge clients initialized")
                except Exception as e:
                    logger.error(f"Knowledge client initialization failed: {e}")
                    self._error = InitializationError(
                        f"Server configuration incomplete: {e}"
                    )

        if self._error is not None:
            raise self._error
        return self._clients


_context: KnowledgeClientContext | None = None
_context_lock = threading.Lock()


def get_client_context() -> KnowledgeClientContext:
    """FastAPI dependency returning the process-wide client context."""
    global _context
    if _context is None:
        with _context_lock:
            if _context is None:
                _context = KnowledgeClientContext()
    return _context
