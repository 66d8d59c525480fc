"""
Nourish - Shopping tools.

queryShoppingLists, manageShoppingList, addToShoppingList,
removeFromShoppingList, markShoppingItemsBought.

Items are only reachable through lists the caller owns. An id that belongs
to someone else's list behaves exactly like an id that does not exist.
"""

from nourish.errors import NotFoundError, ToolError
from nourish.ledgers import shopping
from nourish.models.entities import ShoppingListItem
from nourish.tools.context import ToolContext, ToolDeps, ok
from nourish.tools.schema import (
    AddToShoppingListInput,
    CreateShoppingList,
    DeleteShoppingList,
    MarkShoppingItemsBoughtInput,
    QueryShoppingListsInput,
    RemoveFromShoppingListInput,
    RenameShoppingList,
)


def item_payload(item: ShoppingListItem) -> dict:
    return item.model_dump(include={"id", "name", "category", "quantity", "unit", "checked"})


def _brief(items: list[ShoppingListItem]) -> list[dict]:
    return [{"id": i.id, "name": i.name} for i in items]


async def query_shopping_lists(
    params: QueryShoppingListsInput, ctx: ToolContext, deps: ToolDeps
) -> dict:
    lists = await shopping.list_shopping_lists(deps.store, ctx.user_id)
    if params.list_name:
        needle = params.list_name.lower()
        lists = [sl for sl in lists if needle in sl.name.lower()]

    summaries = []
    for shopping_list in lists:
        items = await shopping.list_items(deps.store, shopping_list)
        summaries.append(
            {
                "id": shopping_list.id,
                "name": shopping_list.name,
                "itemCount": len(items),
                "checkedCount": sum(1 for i in items if i.checked),
                "items": [item_payload(i) for i in items],
            }
        )

    return ok(totalLists=len(summaries), lists=summaries)


async def manage_shopping_list(
    params: CreateShoppingList | RenameShoppingList | DeleteShoppingList,
    ctx: ToolContext,
    deps: ToolDeps,
) -> dict:
    store, user_id = deps.store, ctx.user_id

    match params:
        case DeleteShoppingList():
            if not params.list_id:
                raise ToolError("List ID required for delete")
            deleted = await shopping.delete_list(store, user_id, params.list_id)
            if deleted is None:
                raise NotFoundError("List not found")
            return ok(deleted={"id": deleted.id, "name": deleted.name})

        case RenameShoppingList():
            if not params.list_id:
                raise ToolError("List ID required for rename")
            renamed = await shopping.rename_list(store, user_id, params.list_id, params.name)
            if renamed is None:
                raise NotFoundError("List not found")
            return ok(updated={"id": renamed.id, "name": renamed.name})

        case CreateShoppingList():
            created = await shopping.create_list(store, user_id, params.name)
            return ok(created={"id": created.id, "name": created.name})


async def add_to_shopping_list(
    params: AddToShoppingListInput, ctx: ToolContext, deps: ToolDeps
) -> dict:
    target = await shopping.get_or_create_list(
        deps.store, ctx.user_id, params.list_name or shopping.DEFAULT_LIST_NAME
    )
    added = await shopping.add_items(
        deps.store,
        ctx.user_id,
        target,
        [item.model_dump() for item in params.items],
    )
    return ok(
        listName=target.name,
        addedCount=len(added),
        items=[item_payload(i) for i in added],
    )


async def remove_from_shopping_list(
    params: RemoveFromShoppingListInput, ctx: ToolContext, deps: ToolDeps
) -> dict:
    if not params.item_ids and not params.item_names:
        raise ToolError("Must provide itemIds or itemNames")

    removed: list[ShoppingListItem] = []
    if params.item_ids:
        removed += await shopping.remove_items_by_id(deps.store, ctx.user_id, params.item_ids)
    if params.item_names:
        removed += await shopping.remove_items_by_name(
            deps.store, ctx.user_id, params.item_names, params.list_name
        )

    return ok(removedCount=len(removed), removed=_brief(removed))


async def mark_shopping_items_bought(
    params: MarkShoppingItemsBoughtInput, ctx: ToolContext, deps: ToolDeps
) -> dict:
    checked, pantry_items = await shopping.promote_to_pantry(
        deps.store, ctx.user_id, params.item_ids, add_to_pantry=params.add_to_pantry
    )
    if not checked:
        raise NotFoundError("No valid items found")

    return ok(
        markedBought=len(checked),
        addedToPantry=len(pantry_items),
        items=_brief(checked),
    )
