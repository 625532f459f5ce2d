"""Database module."""

from .gateway import PersistenceGateway, HttpGateway, USER_ID_HEADER
from .local_cache import LocalCache
from .supabase import get_supabase_client, SupabaseGateway

__all__ = [
    "PersistenceGateway",
    "HttpGateway",
    "USER_ID_HEADER",
    "LocalCache",
    "get_supabase_client",
    "SupabaseGateway",
]
