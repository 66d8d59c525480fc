"""
Nourish - Meal ledger.

Meal log entries keyed by user and calendar date. Calories are required,
macros are optional. Deleting an entry does not touch its stored image;
that cleanup belongs to the caller.
"""

from datetime import datetime, timezone
from typing import Any

from nourish.db.adapter import Store, where
from nourish.db.scoping import utcnow_iso
from nourish.ledgers.normalize import contains_pattern
from nourish.models.entities import MealLogEntry

TABLE = "meal_logs"

MEAL_FIELDS = ("name", "servings", "calories", "protein", "carbs", "fat", "image")
MACRO_FIELDS = ("calories", "protein", "carbs", "fat")


async def log_meal(
    store: Store,
    user_id: str,
    name: str,
    calories: int,
    meal_date: str,
    protein: int | None = None,
    carbs: int | None = None,
    fat: int | None = None,
    servings: float = 1,
    image: str | None = None,
    meal_time: datetime | None = None,
) -> MealLogEntry:
    rows = await store.insert(
        TABLE,
        {
            "name": name,
            "servings": servings,
            "calories": calories,
            "protein": protein,
            "carbs": carbs,
            "fat": fat,
            "image": image,
            "meal_date": meal_date,
            "meal_time": (meal_time or datetime.now(timezone.utc)).isoformat(),
        },
        user_id=user_id,
    )
    return MealLogEntry.model_validate(rows[0])


async def get_meal(store: Store, user_id: str, meal_id: str) -> MealLogEntry | None:
    rows = await store.find(TABLE, [where("id", "=", meal_id)], user_id=user_id, limit=1)
    return MealLogEntry.model_validate(rows[0]) if rows else None


async def _query(store: Store, user_id: str, filters: list, limit: int | None) -> list[MealLogEntry]:
    rows = await store.find(
        TABLE, filters, user_id=user_id, order_by="meal_time", descending=True, limit=limit
    )
    return [MealLogEntry.model_validate(r) for r in rows]


async def recent_meals(store: Store, user_id: str, limit: int = 10) -> list[MealLogEntry]:
    return await _query(store, user_id, [], limit)


async def meals_on(store: Store, user_id: str, meal_date: str) -> list[MealLogEntry]:
    return await _query(store, user_id, [where("meal_date", "=", meal_date)], None)


async def search_meals(
    store: Store, user_id: str, term: str, limit: int = 10
) -> list[MealLogEntry]:
    return await _query(store, user_id, [where("name", "ilike", contains_pattern(term))], limit)


async def meals_between(
    store: Store, user_id: str, start_date: str, end_date: str, limit: int = 50
) -> list[MealLogEntry]:
    filters = [where("meal_date", ">=", start_date), where("meal_date", "<=", end_date)]
    return await _query(store, user_id, filters, limit)


async def update_meal(
    store: Store, user_id: str, meal_id: str, patch: dict[str, Any]
) -> MealLogEntry | None:
    changes = {k: v for k, v in patch.items() if k in MEAL_FIELDS}
    changes["updated_at"] = utcnow_iso()
    rows = await store.update(TABLE, [where("id", "=", meal_id)], changes, user_id=user_id)
    return MealLogEntry.model_validate(rows[0]) if rows else None


async def delete_meal(store: Store, user_id: str, meal_id: str) -> MealLogEntry | None:
    rows = await store.delete(TABLE, [where("id", "=", meal_id)], user_id=user_id)
    return MealLogEntry.model_validate(rows[0]) if rows else None


def meal_totals(meals: list[MealLogEntry]) -> dict[str, int]:
    """Plain sum of calories and macros across entries; missing macros count as 0."""
    totals = {field: 0 for field in MACRO_FIELDS}
    for meal in meals:
        for field in MACRO_FIELDS:
            totals[field] += getattr(meal, field) or 0
    return totals
