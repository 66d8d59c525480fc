"""
Nourish - Preference tool.

managePreference resolves the target by (category, normalized value), so
"Mushrooms" and " mushrooms " address the same preference.
"""

from nourish.errors import NotFoundError
from nourish.ledgers import preferences
from nourish.tools.context import ToolContext, ToolDeps, ok
from nourish.tools.schema import CreatePreference, DeletePreference, UpdatePreference


async def manage_preference(
    params: CreatePreference | UpdatePreference | DeletePreference,
    ctx: ToolContext,
    deps: ToolDeps,
) -> dict:
    existing = await preferences.find_preference(
        deps.store, ctx.user_id, params.category, params.value
    )

    if params.operation == "delete":
        if existing is None:
            raise NotFoundError("Preference not found")
        await preferences.delete_preference(deps.store, ctx.user_id, existing.id)
        return ok(deleted=True)

    if params.operation == "update":
        if existing is None:
            raise NotFoundError("Preference not found")
        await preferences.set_preference_notes(deps.store, ctx.user_id, existing.id, params.notes)
        return ok(updated=True)

    if existing is not None:
        if params.notes:
            await preferences.set_preference_notes(
                deps.store, ctx.user_id, existing.id, params.notes
            )
        return ok(already_existed=True)

    await preferences.create_preference(
        deps.store, ctx.user_id, params.category, params.value, params.notes
    )
    return ok(created=True)
