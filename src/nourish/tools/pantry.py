"""
Nourish - Pantry tools.

queryPantry and managePantryItem. Deleting by name removes the first item
whose name contains the given text; item ids are the precise alternative.
"""

from nourish.errors import NotFoundError, ToolError
from nourish.ledgers import pantry
from nourish.models.entities import PantryItem
from nourish.tools.context import ToolContext, ToolDeps, ok
from nourish.tools.schema import (
    AddPantryItem,
    DeletePantryItem,
    QueryPantryInput,
    UpdatePantryItem,
)


def item_payload(item: PantryItem) -> dict:
    return item.model_dump(include={"id", "name", "category", "quantity", "unit"})


async def query_pantry(params: QueryPantryInput, ctx: ToolContext, deps: ToolDeps) -> dict:
    items = await pantry.list_pantry(deps.store, ctx.user_id)

    if params.category:
        items = [i for i in items if i.category == params.category]
    if params.search:
        needle = params.search.lower()
        items = [i for i in items if needle in i.name.lower()]

    by_category: dict[str, list[dict]] = {}
    for item in items:
        by_category.setdefault(item.category or "other", []).append(item_payload(item))

    return ok(totalItems=len(items), byCategory=by_category)


async def manage_pantry_item(
    params: AddPantryItem | UpdatePantryItem | DeletePantryItem,
    ctx: ToolContext,
    deps: ToolDeps,
) -> dict:
    store, user_id = deps.store, ctx.user_id

    match params:
        case DeletePantryItem(item_id=str() as item_id):
            deleted = await pantry.delete_pantry_item(store, user_id, item_id)
            if deleted is None:
                raise NotFoundError("Item not found")
            return ok(deleted={"id": deleted.id, "name": deleted.name})

        case DeletePantryItem(name=str() as name):
            found = await pantry.find_pantry_item_by_name(store, user_id, name)
            if found is None:
                raise NotFoundError(f'Item "{name}" not found in pantry')
            deleted = await pantry.delete_pantry_item(store, user_id, found.id)
            if deleted is None:
                raise NotFoundError(f'Item "{name}" not found in pantry')
            return ok(deleted={"id": deleted.id, "name": deleted.name})

        case DeletePantryItem():
            raise ToolError("Item ID or name required for delete")

        case UpdatePantryItem():
            if not params.item_id:
                raise ToolError("Item ID required for update")
            patch = params.model_dump(
                include={"name", "category", "quantity", "unit"}, exclude_unset=True
            )
            # A null name would violate the column; other fields may be cleared
            if patch.get("name") is None:
                patch.pop("name", None)
            updated = await pantry.update_pantry_item(store, user_id, params.item_id, patch)
            if updated is None:
                raise NotFoundError("Item not found")
            return ok(updated=item_payload(updated))

        case AddPantryItem():
            added = await pantry.add_pantry_item(
                store,
                user_id,
                name=params.name,
                category=params.category,
                quantity=params.quantity,
                unit=params.unit,
            )
            return ok(added=item_payload(added))
