"""
Ownership scoping shared by all Store implementations.

Parent tables carry user_id and are filtered by it on every call.
Child tables (shopping_list_items) carry only a foreign key to their parent;
callers must filter by that key after verifying they own the parent rows.
"""

from datetime import datetime, timezone
from typing import Any, Sequence

from nourish.db.adapter import FilterClause
from nourish.errors import OwnershipError

USER_OWNED_TABLES = {
    "profiles",
    "food_preferences",
    "pantry_items",
    "shopping_lists",
    "meal_logs",
    "weight_logs",
    "water_logs",
}

# child table -> (fk field, parent table)
CHILD_TABLES = {
    "shopping_list_items": ("list_id", "shopping_lists"),
}


def utcnow_iso() -> str:
    """Current UTC instant as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def scope_filters(
    table: str,
    filters: Sequence[FilterClause],
    user_id: str | None,
) -> list[FilterClause]:
    """Return filters with the ownership clause applied, or raise OwnershipError."""
    scoped = list(filters)

    if table in USER_OWNED_TABLES:
        if not user_id:
            raise OwnershipError(f"'{table}' is user-owned; a user_id is required")
        scoped.insert(0, FilterClause(field="user_id", op="=", value=user_id))
    elif table in CHILD_TABLES:
        fk_field, parent = CHILD_TABLES[table]
        if not any(f.field == fk_field for f in scoped):
            raise OwnershipError(
                f"'{table}' rows must be filtered by {fk_field} of owned '{parent}' rows"
            )

    return scoped


def scope_records(
    table: str,
    records: list[dict[str, Any]],
    user_id: str | None,
) -> list[dict[str, Any]]:
    """Stamp user_id onto new rows of user-owned tables."""
    if table in USER_OWNED_TABLES:
        if not user_id:
            raise OwnershipError(f"'{table}' is user-owned; a user_id is required")
        return [{**rec, "user_id": user_id} for rec in records]

    if table in CHILD_TABLES:
        fk_field, parent = CHILD_TABLES[table]
        if any(not rec.get(fk_field) for rec in records):
            raise OwnershipError(f"'{table}' rows need a {fk_field} of an owned '{parent}' row")

    return records


def scope_patch(patch: dict[str, Any]) -> dict[str, Any]:
    """Drop fields a patch must never change."""
    return {k: v for k, v in patch.items() if k not in ("id", "user_id")}
