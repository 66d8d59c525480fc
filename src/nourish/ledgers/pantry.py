"""
Nourish - Pantry ledger.

Named, optionally categorized and quantified inventory. Duplicate names are
allowed; name-based lookups resolve to the first substring match.
"""

from typing import Any

from nourish.db.adapter import Store, where
from nourish.db.scoping import utcnow_iso
from nourish.ledgers.normalize import contains_pattern
from nourish.models.entities import PantryItem

TABLE = "pantry_items"

PANTRY_FIELDS = ("name", "category", "quantity", "unit")


async def list_pantry(store: Store, user_id: str) -> list[PantryItem]:
    """All pantry items, newest first."""
    rows = await store.find(TABLE, user_id=user_id, order_by="created_at", descending=True)
    return [PantryItem.model_validate(r) for r in rows]


async def add_pantry_item(
    store: Store,
    user_id: str,
    name: str,
    category: str | None = None,
    quantity: float | None = None,
    unit: str | None = None,
) -> PantryItem:
    """Unconditional insert."""
    items = await add_pantry_items(
        store,
        user_id,
        [{"name": name, "category": category, "quantity": quantity, "unit": unit}],
    )
    return items[0]


async def add_pantry_items(
    store: Store, user_id: str, items: list[dict[str, Any]]
) -> list[PantryItem]:
    """Batch insert; only name/category/quantity/unit are copied from each dict."""
    records = [{field: item.get(field) for field in PANTRY_FIELDS} for item in items]
    rows = await store.insert(TABLE, records, user_id=user_id)
    return [PantryItem.model_validate(r) for r in rows]


async def update_pantry_item(
    store: Store, user_id: str, item_id: str, patch: dict[str, Any]
) -> PantryItem | None:
    changes = {k: v for k, v in patch.items() if k in PANTRY_FIELDS}
    changes["updated_at"] = utcnow_iso()
    rows = await store.update(TABLE, [where("id", "=", item_id)], changes, user_id=user_id)
    return PantryItem.model_validate(rows[0]) if rows else None


async def delete_pantry_item(store: Store, user_id: str, item_id: str) -> PantryItem | None:
    rows = await store.delete(TABLE, [where("id", "=", item_id)], user_id=user_id)
    return PantryItem.model_validate(rows[0]) if rows else None


async def find_pantry_item_by_name(store: Store, user_id: str, name: str) -> PantryItem | None:
    """First of the user's items whose name contains `name`, case-insensitive."""
    rows = await store.find(
        TABLE,
        [where("name", "ilike", contains_pattern(name))],
        user_id=user_id,
        order_by="created_at",
        limit=1,
    )
    return PantryItem.model_validate(rows[0]) if rows else None
