"""
Nourish - In-memory Store.

Same contract as SupabaseStore, kept in process memory. Used by the test
suite and by `nourish chat --memory` for a throwaway session.
"""

import copy
import re
import uuid
from datetime import datetime, timedelta
from typing import Any, Sequence

from nourish.db.adapter import FilterClause
from nourish.db.scoping import scope_filters, scope_patch, scope_records, utcnow_iso


def _ilike_to_regex(pattern: str) -> re.Pattern:
    parts = []
    escaped = False
    for ch in pattern:
        if escaped:
            parts.append(re.escape(ch))
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("^" + "".join(parts) + "$", re.IGNORECASE | re.DOTALL)


def _matches(row: dict, f: FilterClause) -> bool:
    value = row.get(f.field)
    match f.op:
        case "=":
            return value == f.value
        case "in":
            return value in f.value
        case "ilike":
            return value is not None and bool(_ilike_to_regex(str(f.value)).match(str(value)))
        case "is_null":
            return (value is None) if f.value is not False else (value is not None)
    if value is None:
        return False
    match f.op:
        case ">":
            return value > f.value
        case "<":
            return value < f.value
        case ">=":
            return value >= f.value
        case "<=":
            return value <= f.value
    return False


class MemoryStore:
    """Store implementation over plain dicts."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict]] = {}
        self._last_stamp: datetime | None = None

    def _stamp(self) -> str:
        # Strictly increasing so "newest first" never ties within one store
        now = datetime.fromisoformat(utcnow_iso())
        if self._last_stamp is not None and now <= self._last_stamp:
            now = self._last_stamp + timedelta(microseconds=1)
        self._last_stamp = now
        return now.isoformat()

    def _rows(self, table: str) -> list[dict]:
        return self.tables.setdefault(table, [])

    def _select(self, table: str, filters: list[FilterClause]) -> list[dict]:
        return [row for row in self._rows(table) if all(_matches(row, f) for f in filters)]

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
        rows = self._select(table, scope_filters(table, filters, user_id))
        if order_by:
            # Nulls sort last regardless of direction, like Postgres' default for DESC
            present = [r for r in rows if r.get(order_by) is not None]
            missing = [r for r in rows if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            rows = present + missing
        if limit:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    async def insert(
        self,
        table: str,
        values: dict[str, Any] | list[dict[str, Any]],
        *,
        user_id: str | None = None,
    ) -> list[dict]:
        records = values if isinstance(values, list) else [values]
        inserted = []
        for rec in scope_records(table, records, user_id):
            now = self._stamp()
            row = {"id": str(uuid.uuid4()), "created_at": now, "updated_at": now, **rec}
            self._rows(table).append(row)
            inserted.append(copy.deepcopy(row))
        return inserted

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
        clean = scope_patch(patch)
        updated = []
        for row in self._select(table, scoped):
            row.update(clean)
            updated.append(copy.deepcopy(row))
        return updated

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
        doomed = self._select(table, scoped)
        doomed_ids = {id(row) for row in doomed}
        self.tables[table] = [row for row in self._rows(table) if id(row) not in doomed_ids]
        return copy.deepcopy(doomed)
