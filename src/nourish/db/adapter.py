"""
Store Protocol.

Defines the data access interface the ledgers are written against.
Implementations: SupabaseStore (PostgREST) and MemoryStore (in-process).

Every method returns the affected rows as plain dicts so callers can build
confirmation payloads from what was actually written.
"""

from typing import Any, Literal, Protocol, Sequence, runtime_checkable

from pydantic import BaseModel


class FilterClause(BaseModel):
    """A single filter condition. Clauses in a list are AND'd together."""

    field: str
    op: Literal["=", ">", "<", ">=", "<=", "in", "ilike", "is_null"]
    value: Any = None


def where(field: str, op: str, value: Any = None) -> FilterClause:
    """Shorthand for building a FilterClause."""
    return FilterClause(field=field, op=op, value=value)


@runtime_checkable
class Store(Protocol):
    """
    Transactional row store scoped by owning user.

    `user_id` is mandatory for user-owned tables (see db.scoping); omitting it
    raises OwnershipError instead of running an unscoped query.
    """

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
        ...

    async def insert(
        self,
        table: str,
        values: dict[str, Any] | list[dict[str, Any]],
        *,
        user_id: str | None = None,
    ) -> list[dict]:
        ...

    async def update(
        self,
        table: str,
        filters: Sequence[FilterClause],
        patch: dict[str, Any],
        *,
        user_id: str | None = None,
    ) -> list[dict]:
        ...

    async def delete(
        self,
        table: str,
        filters: Sequence[FilterClause],
        *,
        user_id: str | None = None,
    ) -> list[dict]:
        ...
