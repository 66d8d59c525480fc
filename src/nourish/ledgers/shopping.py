"""
Nourish - Shopping ledger.

Shopping lists own their items. Items only carry list_id, so every item
operation first resolves the caller's lists and then works strictly inside
that set of list ids. Any item mutation touches the parent list's updated_at,
which drives the "most recently active first" ordering.
"""

from typing import Any, Iterable

from nourish.db.adapter import Store, where
from nourish.db.scoping import utcnow_iso
from nourish.ledgers.normalize import contains_pattern
from nourish.ledgers.pantry import add_pantry_items
from nourish.models.entities import PantryItem, ShoppingList, ShoppingListItem

LISTS = "shopping_lists"
ITEMS = "shopping_list_items"

DEFAULT_LIST_NAME = "Shopping List"

ITEM_FIELDS = ("name", "category", "quantity", "unit")


# =============================================================================
# Lists
# =============================================================================


async def list_shopping_lists(store: Store, user_id: str) -> list[ShoppingList]:
    """The user's lists, most recently updated first."""
    rows = await store.find(LISTS, user_id=user_id, order_by="updated_at", descending=True)
    return [ShoppingList.model_validate(r) for r in rows]


async def get_list(store: Store, user_id: str, list_id: str) -> ShoppingList | None:
    rows = await store.find(LISTS, [where("id", "=", list_id)], user_id=user_id, limit=1)
    return ShoppingList.model_validate(rows[0]) if rows else None


async def find_list_by_name(store: Store, user_id: str, name: str) -> ShoppingList | None:
    rows = await store.find(LISTS, [where("name", "=", name)], user_id=user_id, limit=1)
    return ShoppingList.model_validate(rows[0]) if rows else None


async def create_list(store: Store, user_id: str, name: str) -> ShoppingList:
    rows = await store.insert(LISTS, {"name": name}, user_id=user_id)
    return ShoppingList.model_validate(rows[0])


async def get_or_create_list(store: Store, user_id: str, name: str) -> ShoppingList:
    existing = await find_list_by_name(store, user_id, name)
    return existing or await create_list(store, user_id, name)


async def rename_list(
    store: Store, user_id: str, list_id: str, name: str
) -> ShoppingList | None:
    rows = await store.update(
        LISTS,
        [where("id", "=", list_id)],
        {"name": name, "updated_at": utcnow_iso()},
        user_id=user_id,
    )
    return ShoppingList.model_validate(rows[0]) if rows else None


async def delete_list(store: Store, user_id: str, list_id: str) -> ShoppingList | None:
    """Delete a list and its items. Returns None if the caller doesn't own it."""
    shopping_list = await get_list(store, user_id, list_id)
    if shopping_list is None:
        return None
    await store.delete(ITEMS, [where("list_id", "=", shopping_list.id)])
    rows = await store.delete(LISTS, [where("id", "=", shopping_list.id)], user_id=user_id)
    return ShoppingList.model_validate(rows[0]) if rows else None


async def touch_lists(store: Store, user_id: str, list_ids: Iterable[str]) -> None:
    ids = sorted(set(list_ids))
    if ids:
        await store.update(
            LISTS, [where("id", "in", ids)], {"updated_at": utcnow_iso()}, user_id=user_id
        )


# =============================================================================
# Items
# =============================================================================


def _sort_items(items: list[ShoppingListItem]) -> list[ShoppingListItem]:
    # Unchecked first, then newest first
    newest_first = sorted(items, key=lambda i: i.created_at or "", reverse=True)
    return sorted(newest_first, key=lambda i: i.checked)


async def list_items(store: Store, shopping_list: ShoppingList) -> list[ShoppingListItem]:
    """Items of a list the caller already resolved through get_list/list_shopping_lists."""
    rows = await store.find(ITEMS, [where("list_id", "=", shopping_list.id)])
    return _sort_items([ShoppingListItem.model_validate(r) for r in rows])


async def add_items(
    store: Store,
    user_id: str,
    shopping_list: ShoppingList,
    items: list[dict[str, Any]],
) -> list[ShoppingListItem]:
    records = [
        {"list_id": shopping_list.id, "checked": False, **{f: item.get(f) for f in ITEM_FIELDS}}
        for item in items
    ]
    rows = await store.insert(ITEMS, records)
    await touch_lists(store, user_id, [shopping_list.id])
    return [ShoppingListItem.model_validate(r) for r in rows]


async def owned_items(
    store: Store, user_id: str, list_name: str | None = None
) -> list[tuple[ShoppingListItem, ShoppingList]]:
    """Every item on the caller's lists (optionally one list by exact name), with its list."""
    filters = [where("name", "=", list_name)] if list_name else []
    lists = {
        row["id"]: ShoppingList.model_validate(row)
        for row in await store.find(LISTS, filters, user_id=user_id)
    }
    if not lists:
        return []
    rows = await store.find(ITEMS, [where("list_id", "in", list(lists))])
    items = _sort_items([ShoppingListItem.model_validate(r) for r in rows])
    return [(item, lists[item.list_id]) for item in items]


async def _delete_items(
    store: Store, user_id: str, items: list[ShoppingListItem]
) -> list[ShoppingListItem]:
    if not items:
        return []
    list_ids = sorted({i.list_id for i in items})
    rows = await store.delete(
        ITEMS,
        [where("id", "in", [i.id for i in items]), where("list_id", "in", list_ids)],
    )
    await touch_lists(store, user_id, list_ids)
    return [ShoppingListItem.model_validate(r) for r in rows]


async def remove_items_by_id(
    store: Store, user_id: str, item_ids: list[str]
) -> list[ShoppingListItem]:
    """Remove the given items; ids that aren't on the caller's lists are skipped."""
    wanted = set(item_ids)
    targets = [item for item, _ in await owned_items(store, user_id) if item.id in wanted]
    return await _delete_items(store, user_id, targets)


async def remove_items_by_name(
    store: Store, user_id: str, names: list[str], list_name: str | None = None
) -> list[ShoppingListItem]:
    """Remove every owned item whose name contains any of `names` (case-insensitive)."""
    owned = await owned_items(store, user_id, list_name)
    if not owned:
        return []
    list_ids = sorted({shopping_list.id for _, shopping_list in owned})

    removed: list[ShoppingListItem] = []
    seen: set[str] = set()
    for name in names:
        rows = await store.find(
            ITEMS,
            [where("list_id", "in", list_ids), where("name", "ilike", contains_pattern(name))],
        )
        matches = [ShoppingListItem.model_validate(r) for r in rows if r["id"] not in seen]
        seen.update(m.id for m in matches)
        removed.extend(await _delete_items(store, user_id, matches))
    return removed


async def check_items(
    store: Store, user_id: str, item_ids: list[str]
) -> list[ShoppingListItem]:
    """Mark the caller's items as checked. Unknown or foreign ids are ignored."""
    wanted = set(item_ids)
    targets = [item for item, _ in await owned_items(store, user_id) if item.id in wanted]
    if not targets:
        return []
    list_ids = sorted({i.list_id for i in targets})
    rows = await store.update(
        ITEMS,
        [where("id", "in", [i.id for i in targets]), where("list_id", "in", list_ids)],
        {"checked": True, "updated_at": utcnow_iso()},
    )
    await touch_lists(store, user_id, list_ids)
    return [ShoppingListItem.model_validate(r) for r in rows]


async def promote_to_pantry(
    store: Store, user_id: str, item_ids: list[str], add_to_pantry: bool = True
) -> tuple[list[ShoppingListItem], list[PantryItem]]:
    """
    Check off bought items and copy them into the pantry.

    Returns (checked items, new pantry items). Pantry rows mirror each item's
    name, category, quantity and unit.
    """
    checked = await check_items(store, user_id, item_ids)
    if not checked or not add_to_pantry:
        return checked, []
    pantry = await add_pantry_items(store, user_id, [i.model_dump() for i in checked])
    return checked, pantry
