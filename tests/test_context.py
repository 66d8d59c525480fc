"""
Tests for context assembly and rendering.

Tests cover:
- Snapshot validation (camelCase, bounds, timezone, non-objects)
- Server-side preferences/pantry merge
- Deterministic briefing rendering
- System prompt structure
"""

import asyncio
from datetime import datetime, timezone

import pytest

from nourish.context import (
    build_assistant_context,
    format_pantry,
    format_preferences,
    parse_snapshot,
    render_briefing,
)
from nourish.context.builders import AssistantContext
from nourish.context.render import EMPTY_PANTRY, NO_PREFERENCES, budget_status, time_of_day
from nourish.errors import ContextValidationError
from nourish.ledgers.pantry import add_pantry_item
from nourish.ledgers.preferences import create_preference
from nourish.models.entities import PantryItem, PreferenceEntry
from nourish.prompts.system import build_system_prompt

from conftest import ALICE, BOB

NOW = datetime(2026, 3, 5, 9, 30, tzinfo=timezone.utc)


def run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio needed)."""
    return asyncio.run(coro)


def make_context(**overrides) -> AssistantContext:
    values = {
        "calorie_goal": 2000,
        "calories_consumed": 1200,
        "protein_consumed": 60,
        "carbs_consumed": 150,
        "fat_consumed": 40,
        "water_goal": 64,
        "water_consumed": 32,
        "current_weight": 180,
        "weight_goal": 170,
    }
    values.update(overrides)
    return AssistantContext(**values)


# =============================================================================
# Snapshot Validation
# =============================================================================


class TestParseSnapshot:
    def test_accepts_camel_case(self):
        snapshot = parse_snapshot({"calorieGoal": 2000, "caloriesConsumed": 500, "waterGoal": 64})
        assert snapshot.calorie_goal == 2000
        assert snapshot.calories_consumed == 500
        assert snapshot.water_goal == 64
        assert snapshot.timezone == "UTC"

    def test_accepts_fractional_totals(self):
        snapshot = parse_snapshot({"calorieGoal": 2000, "caloriesConsumed": 499.5})
        assert snapshot.calories_consumed == 499.5

    def test_water_goal_unset_by_default(self):
        assert parse_snapshot({"calorieGoal": 2000}).water_goal is None

    def test_accepts_snake_case(self):
        snapshot = parse_snapshot({"calorie_goal": 1800, "units": "metric"})
        assert snapshot.calorie_goal == 1800
        assert snapshot.units == "metric"

    def test_negative_goal_rejected(self):
        with pytest.raises(ContextValidationError) as exc:
            parse_snapshot({"calorieGoal": -5})
        assert any("calorieGoal" in issue for issue in exc.value.issues)

    def test_missing_goal_rejected(self):
        with pytest.raises(ContextValidationError):
            parse_snapshot({"caloriesConsumed": 100})

    def test_unknown_timezone_rejected(self):
        with pytest.raises(ContextValidationError) as exc:
            parse_snapshot({"calorieGoal": 2000, "timezone": "Mars/Olympus"})
        assert "unknown timezone" in str(exc.value)

    def test_empty_timezone_falls_back_to_utc(self):
        assert parse_snapshot({"calorieGoal": 2000, "timezone": ""}).timezone == "UTC"

    @pytest.mark.parametrize("raw", [None, [], "calorieGoal=2000", 42])
    def test_non_object_rejected(self, raw):
        with pytest.raises(ContextValidationError) as exc:
            parse_snapshot(raw)
        assert exc.value.issues == ["context must be an object"]

    def test_all_issues_reported(self):
        with pytest.raises(ContextValidationError) as exc:
            parse_snapshot({"calorieGoal": -1, "units": "furlongs"})
        assert len(exc.value.issues) == 2

    def test_client_preferences_and_pantry_ignored(self):
        snapshot = parse_snapshot({
            "calorieGoal": 2000,
            "preferences": [{"id": "x", "category": "allergy", "value": "peanuts"}],
            "pantry": [{"id": "y", "name": "caviar"}],
        })
        assert not hasattr(snapshot, "preferences")
        assert "pantry" not in snapshot.model_dump()


class TestBuildAssistantContext:
    def test_merges_server_records(self, store):
        run(create_preference(store, ALICE, "allergy", "Peanuts"))
        run(add_pantry_item(store, ALICE, "rice", "grain", 2, "lbs"))
        run(create_preference(store, BOB, "like", "sushi"))

        snapshot = parse_snapshot({
            "calorieGoal": 2000,
            "preferences": [{"id": "x", "category": "like", "value": "caviar"}],
        })
        context = run(build_assistant_context(store, ALICE, snapshot))

        assert [p.value for p in context.preferences] == ["peanuts"]
        assert [p.name for p in context.pantry] == ["rice"]
        assert context.calorie_goal == 2000

    def test_new_user_has_empty_records(self, store):
        context = run(build_assistant_context(store, ALICE, parse_snapshot({"calorieGoal": 2000})))
        assert context.preferences == ()
        assert context.pantry == ()


# =============================================================================
# Rendering
# =============================================================================


class TestFormatting:
    def test_empty_sentinels(self):
        assert format_preferences([]) == NO_PREFERENCES
        assert format_pantry([]) == EMPTY_PANTRY

    def test_preferences_grouped_in_first_seen_order(self):
        prefs = [
            PreferenceEntry(id="1", category="allergy", value="peanuts", notes="severe"),
            PreferenceEntry(id="2", category="like", value="salmon"),
            PreferenceEntry(id="3", category="allergy", value="shellfish"),
        ]
        assert format_preferences(prefs) == (
            "- Allergies: peanuts (severe), shellfish\n"
            "- Likes: salmon"
        )

    def test_unknown_category_uses_raw_name(self):
        prefs = [PreferenceEntry(id="1", category="texture", value="crunchy")]
        assert format_preferences(prefs) == "- texture: crunchy"

    def test_pantry_quantities_and_missing_category(self):
        pantry = [
            PantryItem(id="1", name="eggs", category="protein", quantity=12, unit="count"),
            PantryItem(id="2", name="mystery jar"),
            PantryItem(id="3", name="flour", category="grain", quantity=2.5, unit="lbs"),
        ]
        assert format_pantry(pantry) == (
            "- Proteins: eggs (12 count)\n"
            "- Other: mystery jar\n"
            "- Grains: flour (2.5 lbs)"
        )


class TestDerivedValues:
    @pytest.mark.parametrize(
        "remaining,expected",
        [(301, "comfortable"), (300, "tight"), (1, "tight"), (0, "over"), (-250, "over")],
    )
    def test_budget_status(self, remaining, expected):
        assert budget_status(remaining) == expected

    @pytest.mark.parametrize(
        "hour,expected",
        [(0, "morning"), (10, "morning"), (11, "midday"), (13, "midday"), (14, "afternoon"), (17, "evening"), (23, "evening")],
    )
    def test_time_of_day(self, hour, expected):
        assert time_of_day(hour) == expected


class TestRenderBriefing:
    def test_deterministic_for_fixed_now(self):
        context = make_context()
        assert render_briefing(context, NOW) == render_briefing(context, NOW)

    def test_sections_and_values(self):
        text = render_briefing(make_context(), NOW)

        assert "Date: Thursday, March 5, 2026" in text
        assert "Time of day: morning" in text
        assert "- Calories: 1200 / 2000 kcal (800 remaining) [comfortable]" in text
        assert "- Protein: 60g (~20% of intake)" in text
        assert "- Water: 32 / 64 oz (50%), 32 to go" in text
        assert "- Progress: 10.0 lbs to lose" in text
        assert text.endswith("PANTRY:\n" + EMPTY_PANTRY)

    def test_over_budget_and_goal_reached(self):
        text = render_briefing(make_context(calories_consumed=2400, water_consumed=70), NOW)
        assert "(0 remaining) [over]" in text
        assert "goal reached" in text

    def test_zero_intake_has_no_protein_share(self):
        text = render_briefing(make_context(calories_consumed=0, protein_consumed=0), NOW)
        assert "- Protein: 0g (~0% of intake)" in text

    def test_metric_units(self):
        text = render_briefing(make_context(units="metric", water_goal=2000, water_consumed=500), NOW)
        assert "Units: metric (kg, ml)" in text
        assert "- Water: 500 / 2000 ml (25%)" in text

    def test_fractional_calories_are_rounded(self):
        text = render_briefing(make_context(calorie_goal=1999.6, calories_consumed=499.4), NOW)
        assert "- Calories: 2000 kcal per day" in text
        assert "- Calories: 499 / 2000 kcal (1501 remaining) [comfortable]" in text

    @pytest.mark.parametrize(
        "units,expected",
        [("imperial", "- Water: 16 / 64 oz (25%), 48 to go"), ("metric", "- Water: 16 / 2000 ml (1%), 1984 to go")],
    )
    def test_missing_water_goal_uses_unit_default(self, units, expected):
        text = render_briefing(make_context(units=units, water_goal=None, water_consumed=16), NOW)
        assert expected in text
        assert "goal reached" not in text

    def test_weight_unset(self):
        text = render_briefing(make_context(current_weight=None, weight_goal=None), NOW)
        assert "- Current: Not logged recently" in text
        assert "Set a weight goal to track progress" in text

    def test_uses_local_date_of_context_timezone(self):
        # 03:00 UTC on the 5th is still the evening of the 4th in Los Angeles
        late = datetime(2026, 3, 5, 3, 0, tzinfo=timezone.utc)
        text = render_briefing(make_context(timezone="America/Los_Angeles"), late)
        assert "March 4, 2026" in text
        assert "Time of day: evening" in text

    def test_profile_lists_safety_preferences(self):
        context = make_context(
            preferences=(
                PreferenceEntry(id="1", category="allergy", value="peanuts"),
                PreferenceEntry(id="2", category="dislike", value="olives"),
            )
        )
        text = render_briefing(context, NOW)
        assert "- Allergies: peanuts" in text
        assert "- Dislikes: olives" in text
        assert "- Dietary restrictions: None specified" in text


def test_system_prompt_sections():
    prompt = build_system_prompt(make_context(), NOW)
    for tag in ("identity", "constraints", "user_state", "tools"):
        assert f"<{tag}>" in prompt
        assert f"</{tag}>" in prompt
    assert render_briefing(make_context(), NOW) in prompt
