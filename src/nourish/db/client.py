"""
Nourish - Supabase Store.

Low-level database access through the PostgREST query builder.
The supabase client is synchronous; each execute() runs in a worker thread so
concurrent tool calls in one agent step do not serialize on the event loop.
"""

import asyncio
from typing import Any, Sequence

from supabase import Client, create_client

from nourish.config import settings
from nourish.db.adapter import FilterClause
from nourish.db.scoping import scope_filters, scope_patch, scope_records

# Singleton client instance
_client: Client | None = None


def get_client() -> Client:
    """
    Get the Supabase client.

    Uses singleton pattern to reuse connection.
    """
    global _client

    if _client is None:
        if not settings.has_supabase:
            raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be set")
        _client = create_client(settings.supabase_url, settings.supabase_key)

    return _client


def apply_filter(query: Any, f: FilterClause) -> Any:
    """Apply a single filter clause to a Supabase query."""
    match f.op:
        case "=":
            return query.eq(f.field, f.value)
        case ">":
            return query.gt(f.field, f.value)
        case "<":
            return query.lt(f.field, f.value)
        case ">=":
            return query.gte(f.field, f.value)
        case "<=":
            return query.lte(f.field, f.value)
        case "in":
            return query.in_(f.field, list(f.value))
        case "ilike":
            return query.ilike(f.field, f.value)
        case "is_null":
            if f.value is False:
                return query.not_.is_(f.field, "null")
            return query.is_(f.field, "null")
    return query


class SupabaseStore:
    """Store implementation backed by Supabase/PostgREST."""

    def __init__(self, client: Client | None = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_client()
        return self._client

    async def _execute(self, query: Any) -> list[dict]:
        result = await asyncio.to_thread(query.execute)
        return list(result.data or [])

    async def find(
        self,
        table: str,
        filters: Sequence[FilterClause] = (),
        *,
        user_id: str | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict]:
        query = self.client.table(table).select("*")
        for f in scope_filters(table, filters, user_id):
            query = apply_filter(query, f)
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit:
            query = query.limit(limit)
        return await self._execute(query)

    async def insert(
        self,
        table: str,
        values: dict[str, Any] | list[dict[str, Any]],
        *,
        user_id: str | None = None,
    ) -> list[dict]:
        records = values if isinstance(values, list) else [values]
        if not records:
            return []
        records = scope_records(table, records, user_id)
        return await self._execute(self.client.table(table).insert(records))

    async def update(
        self,
        table: str,
        filters: Sequence[FilterClause],
        patch: dict[str, Any],
        *,
        user_id: str | None = None,
    ) -> list[dict]:
        scoped = scope_filters(table, filters, user_id)
        if not scoped:
            raise ValueError(f"Refusing to update '{table}' without filters")
        query = self.client.table(table).update(scope_patch(patch))
        for f in scoped:
            query = apply_filter(query, f)
        return await self._execute(query)

    async def delete(
        self,
        table: str,
        filters: Sequence[FilterClause],
        *,
        user_id: str | None = None,
    ) -> list[dict]:
        scoped = scope_filters(table, filters, user_id)
        if not scoped:
            raise ValueError(f"Refusing to delete from '{table}' without filters")
        query = self.client.table(table).delete()
        for f in scoped:
            query = apply_filter(query, f)
        return await self._execute(query)
