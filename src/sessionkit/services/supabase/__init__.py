"""Supabase implementations of the remote connector contracts."""

from src.sessionkit.services.supabase.auth_connector import SupabaseAuthConnector
from src.sessionkit.services.supabase.connection import get_supabase_client
from src.sessionkit.services.supabase.data_connector import (
    SupabasePostsConnector,
    SupabaseProfileConnector,
    SupabaseReferenceConnector,
)

__all__ = [
    "get_supabase_client",
    "SupabaseAuthConnector",
    "SupabaseProfileConnector",
    "SupabasePostsConnector",
    "SupabaseReferenceConnector",
]
