"""Supabase client management."""

from functools import lru_cache

from supabase import Client, create_client

from src.sessionkit.config import settings


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """
    Get Supabase client instance with anon key (singleton pattern).

    The client holds the signed-in user's session, so every table call runs
    under that user's RLS policies.

    Returns:
        Configured Supabase client

    Example:
        >>> client = get_supabase_client()
        >>> response = client.table("help_texts").select("code, text").execute()
    """
    return create_client(settings.supabase_url, settings.supabase_anon_key)
