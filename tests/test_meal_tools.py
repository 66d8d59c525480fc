"""
Tests for meal tools: suggestFood, queryMealHistory, deleteMeal, editMeal.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from nourish.ledgers.meals import log_meal
from nourish.tools.context import ToolDeps

from conftest import ALICE, BOB, invoke

BASE_TIME = datetime(2026, 3, 5, 8, 0, tzinfo=timezone.utc)


def run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio needed)."""
    return asyncio.run(coro)


class FakeImageStorage:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.deleted: list[str] = []

    async def delete(self, key: str) -> None:
        if self.fail:
            raise ConnectionError("bucket unavailable")
        self.deleted.append(key)


def add_meal(store, user_id=ALICE, name="oatmeal", calories=300, meal_date="2026-03-05", offset=0, **kw):
    return run(log_meal(
        store,
        user_id,
        name=name,
        calories=calories,
        meal_date=meal_date,
        meal_time=BASE_TIME + timedelta(minutes=offset),
        **kw,
    ))


# =============================================================================
# suggestFood
# =============================================================================


def test_suggest_food_echoes_without_persisting(store, deps, alice):
    result = invoke(deps, alice, "suggestFood", name="Greek yogurt bowl", calories=320, protein=25, carbs=30, fat=9)

    assert result == {
        "success": True,
        "suggestion": {"name": "Greek yogurt bowl", "calories": 320, "protein": 25, "carbs": 30, "fat": 9},
    }
    assert store.tables.get("meal_logs", []) == []


def test_suggest_food_requires_macros(deps, alice):
    result = invoke(deps, alice, "suggestFood", name="toast", calories=90)
    assert result["success"] is False
    assert result["error"].startswith("Invalid input:")


# =============================================================================
# queryMealHistory
# =============================================================================


class TestQueryMealHistory:
    def test_recent_is_newest_first_with_totals(self, store, deps, alice):
        add_meal(store, name="oatmeal", calories=300, protein=10, carbs=50, fat=5, offset=0)
        add_meal(store, name="salad", calories=450, protein=30, offset=240)
        add_meal(store, name="pasta", calories=700, protein=25, carbs=90, fat=20, offset=600)

        result = invoke(deps, alice, "queryMealHistory", query="recent")

        assert result["success"] is True
        assert result["count"] == 3
        assert [m["name"] for m in result["meals"]] == ["pasta", "salad", "oatmeal"]
        assert result["totals"] == {"calories": 1450, "protein": 65, "carbs": 140, "fat": 25}

    def test_recent_respects_limit(self, store, deps, alice):
        for i in range(5):
            add_meal(store, name=f"snack {i}", calories=100, offset=i)

        result = invoke(deps, alice, "queryMealHistory", query="recent", limit=2)
        assert [m["name"] for m in result["meals"]] == ["snack 4", "snack 3"]

    def test_by_date(self, store, deps, alice):
        add_meal(store, name="today", meal_date="2026-03-05")
        add_meal(store, name="yesterday", meal_date="2026-03-04")

        result = invoke(deps, alice, "queryMealHistory", query="by_date", date="2026-03-04")
        assert [m["name"] for m in result["meals"]] == ["yesterday"]
        assert result["meals"][0]["date"] == "2026-03-04"

    def test_by_date_requires_date(self, deps, alice):
        result = invoke(deps, alice, "queryMealHistory", query="by_date")
        assert result == {"success": False, "error": "Date is required for by_date query"}

    def test_search_is_case_insensitive_substring(self, store, deps, alice):
        add_meal(store, name="Chicken Caesar Salad")
        add_meal(store, name="Grilled chicken", offset=1)
        add_meal(store, name="Tofu stir fry", offset=2)

        result = invoke(deps, alice, "queryMealHistory", query="search", searchTerm="CHICKEN")
        assert sorted(m["name"] for m in result["meals"]) == ["Chicken Caesar Salad", "Grilled chicken"]

    def test_search_requires_term(self, deps, alice):
        result = invoke(deps, alice, "queryMealHistory", query="search")
        assert result["error"] == "Search term is required for search query"

    def test_date_range_is_inclusive(self, store, deps, alice):
        for day in ("2026-03-01", "2026-03-02", "2026-03-03", "2026-03-04"):
            add_meal(store, name=day, meal_date=day)

        result = invoke(
            deps, alice, "queryMealHistory", query="date_range", startDate="2026-03-02", endDate="2026-03-03"
        )
        assert sorted(m["name"] for m in result["meals"]) == ["2026-03-02", "2026-03-03"]

    def test_date_range_requires_both_ends(self, deps, alice):
        result = invoke(deps, alice, "queryMealHistory", query="date_range", startDate="2026-03-02")
        assert result["error"] == "Start and end dates are required for date_range query"

    def test_impossible_date_rejected(self, deps, alice):
        result = invoke(deps, alice, "queryMealHistory", query="by_date", date="2026-02-30")
        assert result["success"] is False
        assert "not a valid YYYY-MM-DD date" in result["error"]

    def test_other_users_meals_never_returned(self, store, deps, alice):
        add_meal(store, user_id=BOB, name="bob's burger", calories=900)

        result = invoke(deps, alice, "queryMealHistory", query="recent")
        assert result["count"] == 0
        assert result["totals"] == {"calories": 0, "protein": 0, "carbs": 0, "fat": 0}


# =============================================================================
# deleteMeal / editMeal
# =============================================================================


class TestDeleteMeal:
    def test_delete_reports_removed_meal(self, store, deps, alice):
        meal = add_meal(store, name="donut", calories=250)

        result = invoke(deps, alice, "deleteMeal", mealId=meal.id)

        assert result == {
            "success": True,
            "deleted": {"id": meal.id, "name": "donut", "calories": 250, "date": "2026-03-05"},
        }
        assert invoke(deps, alice, "queryMealHistory", query="recent")["count"] == 0

    def test_delete_unknown_meal(self, deps, alice):
        result = invoke(deps, alice, "deleteMeal", mealId="does-not-exist")
        assert result == {"success": False, "error": "Meal not found"}

    def test_cannot_delete_another_users_meal(self, store, deps, alice, bob):
        meal = add_meal(store, user_id=BOB, name="bob's lunch")

        result = invoke(deps, alice, "deleteMeal", mealId=meal.id)

        assert result == {"success": False, "error": "Meal not found"}
        assert invoke(deps, bob, "queryMealHistory", query="recent")["count"] == 1

    def test_delete_removes_stored_image(self, store, alice):
        storage = FakeImageStorage()
        deps = ToolDeps(store=store, storage=storage)
        meal = add_meal(store, name="photo meal", image="meals/alice/1.jpg")

        assert invoke(deps, alice, "deleteMeal", mealId=meal.id)["success"] is True
        assert storage.deleted == ["meals/alice/1.jpg"]

    def test_image_failure_does_not_fail_delete(self, store, alice, caplog):
        deps = ToolDeps(store=store, storage=FakeImageStorage(fail=True))
        meal = add_meal(store, name="photo meal", image="meals/alice/2.jpg")

        result = invoke(deps, alice, "deleteMeal", mealId=meal.id)

        assert result["success"] is True
        assert store.tables["meal_logs"] == []
        assert "Failed to delete image" in caplog.text


class TestEditMeal:
    def test_edit_returns_previous_and_updated(self, store, deps, alice):
        meal = add_meal(store, name="sandwich", calories=500, protein=20)

        result = invoke(deps, alice, "editMeal", mealId=meal.id, calories=420, servings=0.5)

        assert result["success"] is True
        assert result["previous"] == {
            "name": "sandwich", "calories": 500, "protein": 20, "carbs": None, "fat": None, "servings": 1,
        }
        assert result["updated"]["calories"] == 420
        assert result["updated"]["servings"] == 0.5
        assert result["updated"]["name"] == "sandwich"

    def test_edit_needs_a_change(self, store, deps, alice):
        meal = add_meal(store)
        result = invoke(deps, alice, "editMeal", mealId=meal.id)
        assert result == {"success": False, "error": "Provide at least one field to change"}

    @pytest.mark.parametrize("field,value", [("calories", 0), ("servings", 0), ("protein", -1)])
    def test_edit_rejects_out_of_range(self, store, deps, alice, field, value):
        meal = add_meal(store)
        result = invoke(deps, alice, "editMeal", mealId=meal.id, **{field: value})
        assert result["success"] is False
        assert field in result["error"]

    def test_cannot_edit_another_users_meal(self, store, deps, alice):
        meal = add_meal(store, user_id=BOB, calories=600)

        result = invoke(deps, alice, "editMeal", mealId=meal.id, calories=1)

        assert result == {"success": False, "error": "Meal not found"}
        assert store.tables["meal_logs"][0]["calories"] == 600
