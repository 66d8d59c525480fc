"""
Nourish - Meal tools.

suggestFood, queryMealHistory, deleteMeal, editMeal.
"""

import logging
from typing import Any

from nourish.errors import NotFoundError, ToolError
from nourish.ledgers import meals as meal_ledger
from nourish.models.entities import MealLogEntry
from nourish.tools.context import ToolContext, ToolDeps, ok
from nourish.tools.schema import (
    DeleteMealInput,
    EditMealInput,
    QueryMealHistoryInput,
    SuggestFoodInput,
)

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
DEFAULT_RANGE_LIMIT = 50

EDITABLE_FIELDS = ("name", "calories", "protein", "carbs", "fat", "servings")


def meal_payload(meal: MealLogEntry) -> dict[str, Any]:
    return {
        "id": meal.id,
        "name": meal.name,
        "servings": meal.servings,
        "calories": meal.calories,
        "protein": meal.protein,
        "carbs": meal.carbs,
        "fat": meal.fat,
        "date": meal.meal_date,
        "mealTime": meal.meal_time,
    }


async def suggest_food(params: SuggestFoodInput, ctx: ToolContext, deps: ToolDeps) -> dict:
    """Nothing is persisted; the client decides whether to log the suggestion."""
    return ok(suggestion=params.model_dump())


async def query_meal_history(
    params: QueryMealHistoryInput, ctx: ToolContext, deps: ToolDeps
) -> dict:
    store, user_id = deps.store, ctx.user_id

    match params.query:
        case "recent":
            meals = await meal_ledger.recent_meals(
                store, user_id, limit=params.limit or DEFAULT_LIMIT
            )
        case "by_date":
            if not params.date:
                raise ToolError("Date is required for by_date query")
            meals = await meal_ledger.meals_on(store, user_id, params.date)
        case "search":
            if not params.search_term:
                raise ToolError("Search term is required for search query")
            meals = await meal_ledger.search_meals(
                store, user_id, params.search_term, limit=params.limit or DEFAULT_LIMIT
            )
        case "date_range":
            if not params.start_date or not params.end_date:
                raise ToolError("Start and end dates are required for date_range query")
            meals = await meal_ledger.meals_between(
                store,
                user_id,
                params.start_date,
                params.end_date,
                limit=params.limit or DEFAULT_RANGE_LIMIT,
            )

    return ok(
        count=len(meals),
        meals=[meal_payload(m) for m in meals],
        totals=meal_ledger.meal_totals(meals),
    )


async def delete_meal(params: DeleteMealInput, ctx: ToolContext, deps: ToolDeps) -> dict:
    deleted = await meal_ledger.delete_meal(deps.store, ctx.user_id, params.meal_id)
    if deleted is None:
        raise NotFoundError("Meal not found")

    if deleted.image and deps.storage is not None:
        try:
            await deps.storage.delete(deleted.image)
        except Exception as e:
            # Row is already deleted; the call still succeeds
            logger.warning("Failed to delete image %s for meal %s: %s", deleted.image, deleted.id, e)

    return ok(
        deleted={
            "id": deleted.id,
            "name": deleted.name,
            "calories": deleted.calories,
            "date": deleted.meal_date,
        }
    )


async def edit_meal(params: EditMealInput, ctx: ToolContext, deps: ToolDeps) -> dict:
    patch = params.model_dump(include=set(EDITABLE_FIELDS), exclude_none=True)
    if not patch:
        raise ToolError("Provide at least one field to change")

    previous = await meal_ledger.get_meal(deps.store, ctx.user_id, params.meal_id)
    if previous is None:
        raise NotFoundError("Meal not found")

    updated = await meal_ledger.update_meal(deps.store, ctx.user_id, params.meal_id, patch)
    if updated is None:
        raise NotFoundError("Meal not found")

    return ok(
        previous={field: getattr(previous, field) for field in EDITABLE_FIELDS},
        updated=meal_payload(updated),
    )
