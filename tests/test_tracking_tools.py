"""
Tests for tracking tools: logWeight, queryWeightHistory, logWater, updateGoals.
"""

import asyncio
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from nourish.tools.context import ToolContext

from conftest import ALICE, BOB, invoke


def run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio needed)."""
    return asyncio.run(coro)


def today() -> date:
    return datetime.now(timezone.utc).date()


def days_ago(n: int) -> str:
    return (today() - timedelta(days=n)).isoformat()


def set_profile(store, user_id=ALICE, **fields):
    run(store.insert("profiles", fields, user_id=user_id))


# =============================================================================
# logWeight
# =============================================================================


class TestLogWeight:
    def test_first_entry_has_no_previous(self, deps, alice):
        result = invoke(deps, alice, "logWeight", weight=180, date="2026-03-01")

        assert result == {
            "success": True,
            "created": True,
            "weight": 180,
            "weightUnit": "lbs",
            "date": "2026-03-01",
            "previousWeight": None,
            "change": None,
            "weightGoal": None,
        }

    def test_same_day_updates_in_place(self, store, deps, alice):
        invoke(deps, alice, "logWeight", weight=180, date="2026-03-01")
        result = invoke(deps, alice, "logWeight", weight=181.2, date="2026-03-01")

        assert result["updated"] is True
        assert "created" not in result
        rows = store.tables["weight_logs"]
        assert len(rows) == 1
        assert rows[0]["weight"] == 181.2

    def test_change_against_previous_day(self, deps, alice):
        invoke(deps, alice, "logWeight", weight=180, date="2026-03-01")
        result = invoke(deps, alice, "logWeight", weight=178.5, date="2026-03-03")

        assert result["previousWeight"] == 180
        assert result["change"] == -1.5

    def test_backfilled_day_compares_to_earlier_entry(self, deps, alice):
        invoke(deps, alice, "logWeight", weight=180, date="2026-03-01")
        invoke(deps, alice, "logWeight", weight=176, date="2026-03-05")
        result = invoke(deps, alice, "logWeight", weight=179, date="2026-03-03")

        assert result["previousWeight"] == 180
        assert result["change"] == -1.0

    def test_defaults_to_today_in_context_timezone(self, deps, alice):
        result = invoke(deps, alice, "logWeight", weight=170)
        assert result["date"] == today().isoformat()

    def test_metric_profile_and_goal(self, store, deps, alice):
        set_profile(store, units="metric", weight_goal=70)
        result = invoke(deps, alice, "logWeight", weight=75, date="2026-03-01")
        assert result["weightUnit"] == "kg"
        assert result["weightGoal"] == 70

    @pytest.mark.parametrize("weight", [0, -10, 2000])
    def test_rejects_impossible_weight(self, store, deps, alice, weight):
        result = invoke(deps, alice, "logWeight", weight=weight)
        assert result["success"] is False
        assert store.tables.get("weight_logs", []) == []

    def test_users_do_not_share_days(self, store, deps, alice, bob):
        invoke(deps, alice, "logWeight", weight=180, date="2026-03-01")
        result = invoke(deps, bob, "logWeight", weight=150, date="2026-03-01")

        assert result["created"] is True
        assert result["previousWeight"] is None
        assert len(store.tables["weight_logs"]) == 2


# =============================================================================
# queryWeightHistory
# =============================================================================


class TestQueryWeightHistory:
    def test_recent_newest_first(self, deps, alice):
        for day, weight in [("2026-03-01", 180), ("2026-03-02", 179), ("2026-03-03", 178)]:
            invoke(deps, alice, "logWeight", weight=weight, date=day)

        result = invoke(deps, alice, "queryWeightHistory", query="recent", limit=2)

        assert result["count"] == 2
        assert [e["date"] for e in result["entries"]] == ["2026-03-03", "2026-03-02"]
        assert result["weightUnit"] == "lbs"

    def test_date_range(self, deps, alice):
        for day in ("2026-02-27", "2026-03-01", "2026-03-04"):
            invoke(deps, alice, "logWeight", weight=180, date=day)

        result = invoke(
            deps, alice, "queryWeightHistory", query="date_range", startDate="2026-03-01", endDate="2026-03-31"
        )
        assert [e["date"] for e in result["entries"]] == ["2026-03-04", "2026-03-01"]

    def test_date_range_requires_dates(self, deps, alice):
        result = invoke(deps, alice, "queryWeightHistory", query="date_range")
        assert result == {"success": False, "error": "Start and end dates required for date_range query"}

    def test_progress_without_entries(self, deps, alice):
        result = invoke(deps, alice, "queryWeightHistory", query="progress")
        assert result["success"] is True
        assert result["message"] == "No weight entries recorded yet"

    def test_progress_summary(self, store, deps, alice):
        set_profile(store, weight_goal=180)
        invoke(deps, alice, "logWeight", weight=200, date=days_ago(40))
        invoke(deps, alice, "logWeight", weight=195, date=days_ago(10))
        invoke(deps, alice, "logWeight", weight=190, date=days_ago(0))

        result = invoke(deps, alice, "queryWeightHistory", query="progress")

        assert result["currentWeight"] == 190
        assert result["startingWeight"] == 200
        assert result["totalChange"] == -10.0
        assert result["remainingToGoal"] == 10.0
        assert result["weeklyChange"] == -5.0
        assert result["monthlyChange"] == -10.0
        assert result["totalEntries"] == 3
        assert result["firstEntry"] == days_ago(40)
        assert result["lastEntry"] == days_ago(0)

    def test_progress_without_old_entries_has_no_period_change(self, deps, alice):
        invoke(deps, alice, "logWeight", weight=190, date=days_ago(2))
        invoke(deps, alice, "logWeight", weight=189, date=days_ago(0))

        result = invoke(deps, alice, "queryWeightHistory", query="progress")

        assert result["weeklyChange"] is None
        assert result["monthlyChange"] is None
        assert result["remainingToGoal"] is None

    def test_only_own_entries(self, deps, alice, bob):
        invoke(deps, bob, "logWeight", weight=150, date="2026-03-01")
        assert invoke(deps, alice, "queryWeightHistory", query="recent")["count"] == 0


# =============================================================================
# logWater
# =============================================================================


class TestLogWater:
    def test_amounts_accumulate_per_day(self, store, deps, alice):
        first = invoke(deps, alice, "logWater", amount=16, date="2026-03-05")
        second = invoke(deps, alice, "logWater", amount=16, date="2026-03-05")

        assert first["total"] == 16
        assert second == {
            "success": True,
            "logged": 16,
            "total": 32,
            "waterUnit": "oz",
            "waterGoal": 64,
            "remaining": 32,
            "percentComplete": 50,
            "goalReached": False,
            "date": "2026-03-05",
        }
        assert len(store.tables["water_logs"]) == 1

    def test_goal_reached(self, deps, alice):
        invoke(deps, alice, "logWater", amount=40, date="2026-03-05")
        result = invoke(deps, alice, "logWater", amount=30, date="2026-03-05")

        assert result["total"] == 70
        assert result["remaining"] == 0
        assert result["goalReached"] is True
        assert result["percentComplete"] == 109

    def test_days_are_separate(self, deps, alice):
        invoke(deps, alice, "logWater", amount=40, date="2026-03-04")
        result = invoke(deps, alice, "logWater", amount=8, date="2026-03-05")
        assert result["total"] == 8

    def test_metric_default_goal(self, store, deps, alice):
        set_profile(store, units="metric")
        result = invoke(deps, alice, "logWater", amount=500, date="2026-03-05")

        assert result["waterUnit"] == "ml"
        assert result["waterGoal"] == 2000
        assert result["percentComplete"] == 25

    def test_profile_goal_wins(self, store, deps, alice):
        set_profile(store, water_goal=100)
        assert invoke(deps, alice, "logWater", amount=50)["percentComplete"] == 50

    def test_today_follows_timezone(self, deps):
        ctx = ToolContext(user_id=ALICE, timezone="Pacific/Kiritimati")
        result = invoke(deps, ctx, "logWater", amount=8)
        expected = datetime.now(timezone.utc).astimezone(ZoneInfo("Pacific/Kiritimati")).date()
        assert result["date"] == expected.isoformat()

    def test_rejects_zero(self, deps, alice):
        result = invoke(deps, alice, "logWater", amount=0)
        assert result["success"] is False


# =============================================================================
# updateGoals
# =============================================================================


class TestUpdateGoals:
    def test_requires_a_goal(self, deps, alice):
        result = invoke(deps, alice, "updateGoals")
        assert result == {
            "success": False,
            "error": "At least one goal (calorieGoal or weightGoal) must be provided",
        }

    def test_creates_then_updates_profile(self, store, deps, alice):
        first = invoke(deps, alice, "updateGoals", calorieGoal=1800)
        second = invoke(deps, alice, "updateGoals", weightGoal=165)

        assert first["updated"] == {"calorieGoal": 1800, "weightGoal": None}
        assert second["updated"] == {"calorieGoal": 1800, "weightGoal": 165}
        assert len(store.tables["profiles"]) == 1

    @pytest.mark.parametrize("goal", [999, 5001])
    def test_calorie_goal_bounds(self, deps, alice, goal):
        result = invoke(deps, alice, "updateGoals", calorieGoal=goal)
        assert result["success"] is False
        assert "calorieGoal" in result["error"]

    def test_goals_are_per_user(self, store, deps, alice, bob):
        invoke(deps, alice, "updateGoals", calorieGoal=1800)
        invoke(deps, bob, "updateGoals", calorieGoal=2600)

        goals = {row["user_id"]: row["calorie_goal"] for row in store.tables["profiles"]}
        assert goals == {ALICE: 1800, BOB: 2600}
