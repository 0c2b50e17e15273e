"""Supabase client initialization."""

from supabase import Client, create_client

from copygen.core.config import get_settings


def create_supabase() -> Client:
    """
    Build a Supabase client configured with the service role key.

    Returns:
        Supabase client

    Raises:
        RuntimeError: If client initialization fails
    """
    try:
        settings = get_settings()
        return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    except Exception as e:
        raise RuntimeError(f"Failed to initialize Supabase client: {e}") from e
