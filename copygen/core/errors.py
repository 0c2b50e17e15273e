"""Error taxonomy for the knowledge pipeline.

Each error carries the HTTP status the retrieval endpoint answers with, so the
endpoint is the single place that turns any failure into the response envelope.
"""


class KnowledgeError(Exception):
    """Base class for knowledge pipeline errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(KnowledgeError):
    """Malformed or missing request fields. User-correctable."""

    status_code = 400


class UpstreamError(KnowledgeError):
    """Embedding provider or similarity-search failure."""

    status_code = 500


class ProviderError(UpstreamError):
    """Failure reported by the embedding provider (rate limit, auth, network)."""


class InitializationError(KnowledgeError):
    """External clients could not be constructed from configuration."""

    status_code = 500
