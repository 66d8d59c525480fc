"""
Nourish - Database access.

Store protocol plus the Supabase and in-memory implementations.
"""

from nourish.db.adapter import FilterClause, Store, where
from nourish.db.client import SupabaseStore, get_client
from nourish.db.memory import MemoryStore
from nourish.db.scoping import CHILD_TABLES, USER_OWNED_TABLES

__all__ = [
    "Store",
    "FilterClause",
    "where",
    "SupabaseStore",
    "MemoryStore",
    "get_client",
    "USER_OWNED_TABLES",
    "CHILD_TABLES",
]
