"""Configuration management for the copygen knowledge pipeline."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    # Environment variables should be set directly
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")

    # OpenAI configuration (required)
    OPENAI_API_KEY: str = Field(..., description="OpenAI API key")

    # Environment
    COPYGEN_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")

    # Embedding configuration
    EMBEDDING_MODEL: str = Field(
        default="text-embedding-3-small", description="OpenAI embedding model"
    )
    EMBEDDING_DIM: int = Field(default=1536, description="Embedding vector dimension")

    # Knowledge retrieval
    KNOWLEDGE_MATCH_THRESHOLD: float = Field(
        default=0.45, description="Default minimum cosine similarity for returned chunks"
    )
    KNOWLEDGE_MATCH_COUNT: int = Field(
        default=5, description="Default maximum number of chunks returned"
    )
    KNOWLEDGE_MATCH_RPC: str = Field(
        default="match_knowledge_chunks", description="Similarity-search stored procedure"
    )
    KNOWLEDGE_CHUNKS_TABLE: str = Field(
        default="agent_knowledge_chunks", description="Table holding indexed chunks"
    )

    # Knowledge indexing
    KNOWLEDGE_MAX_CHUNK_CHARS: int = Field(default=2500, description="Max characters per chunk")
    KNOWLEDGE_MIN_CHUNK_CHARS: int = Field(default=200, description="Min characters per chunk")
    KNOWLEDGE_OVERLAP_CHARS: int = Field(default=200, description="Overlap between chunks")
    KNOWLEDGE_EMBED_BATCH_SIZE: int = Field(default=5, description="Chunks embedded per request")
    KNOWLEDGE_INSERT_BATCH_SIZE: int = Field(default=50, description="Rows per insert")

    # Presentation timing
    REVEAL_CHAR_INTERVAL_MS: int = Field(default=15, description="Delay between revealed characters")
    STAGING_DELAY_MS: int = Field(
        default=3000, description="Delay before a new assistant message is promoted"
    )
    SCROLL_SETTLE_MS: int = Field(default=50, description="Layout settle delay before scrolling")
    SCROLL_TOUCH_CORRECTION_MS: int = Field(
        default=250, description="Corrective re-scroll delay on touch platforms"
    )
    SCROLL_SAFETY_MARGIN_PX: int = Field(
        default=100, description="Extra space kept below the active message"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
