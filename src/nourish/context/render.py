"""
Nourish - Context rendering.

Deterministic natural-language briefing of an AssistantContext. Given the
same context and the same `now`, output is byte-identical.
"""

from datetime import datetime, timezone
from typing import Callable, Iterable, TypeVar
from zoneinfo import ZoneInfo

from nourish.context.builders import AssistantContext
from nourish.models.entities import (
    PantryItem,
    PreferenceEntry,
    default_water_goal,
    water_unit,
    weight_unit,
)

T = TypeVar("T")


# =============================================================================
# Label Tables
# =============================================================================

PREFERENCE_CATEGORY_LABELS: dict[str, str] = {
    "like": "Likes",
    "dislike": "Dislikes",
    "allergy": "Allergies",
    "dietary": "Dietary restrictions",
    "cuisine": "Cuisine preferences",
    "timing": "Meal timing",
    "portion": "Portion preferences",
    "other": "Other preferences",
}

PANTRY_CATEGORY_LABELS: dict[str, str] = {
    "protein": "Proteins",
    "vegetable": "Vegetables",
    "fruit": "Fruits",
    "dairy": "Dairy",
    "grain": "Grains",
    "pantry": "Pantry staples",
    "beverage": "Beverages",
    "other": "Other",
}

NO_PREFERENCES = "No preferences recorded yet."
EMPTY_PANTRY = "Pantry is empty."


# =============================================================================
# Grouping
# =============================================================================


def _num(value: float) -> str:
    """Render 3.0 as '3' and 2.5 as '2.5'."""
    return f"{value:g}"


def format_grouped(
    items: Iterable[T],
    get_category: Callable[[T], str],
    format_item: Callable[[T], str],
    labels: dict[str, str],
    empty_message: str,
) -> str:
    """One '- Label: a, b' line per category, in first-seen order."""
    grouped: dict[str, list[str]] = {}
    for item in items:
        grouped.setdefault(get_category(item), []).append(format_item(item))

    if not grouped:
        return empty_message

    return "\n".join(
        f"- {labels.get(category, category)}: {', '.join(entries)}"
        for category, entries in grouped.items()
    )


def format_preferences(preferences: Iterable[PreferenceEntry]) -> str:
    return format_grouped(
        preferences,
        lambda p: p.category,
        lambda p: f"{p.value} ({p.notes})" if p.notes else p.value,
        PREFERENCE_CATEGORY_LABELS,
        NO_PREFERENCES,
    )


def format_pantry(pantry: Iterable[PantryItem]) -> str:
    return format_grouped(
        pantry,
        lambda p: p.category or "other",
        lambda p: f"{p.name} ({_num(p.quantity)} {p.unit})" if p.quantity and p.unit else p.name,
        PANTRY_CATEGORY_LABELS,
        EMPTY_PANTRY,
    )


# =============================================================================
# Derived Values
# =============================================================================


def budget_status(remaining: int) -> str:
    if remaining > 300:
        return "comfortable"
    if remaining > 0:
        return "tight"
    return "over"


def time_of_day(hour: int) -> str:
    if hour < 11:
        return "morning"
    if hour < 14:
        return "midday"
    if hour < 17:
        return "afternoon"
    return "evening"


def _values(context: AssistantContext, category: str) -> list[str]:
    return [p.value for p in context.preferences if p.category == category]


def _weight_progress(context: AssistantContext, unit: str) -> str:
    if not (context.weight_goal and context.current_weight):
        return "Set a weight goal to track progress"
    to_goal = context.current_weight - context.weight_goal
    if to_goal > 0:
        return f"{to_goal:.1f} {unit} to lose"
    if to_goal < 0:
        return f"{abs(to_goal):.1f} {unit} below goal"
    return "At goal"


# =============================================================================
# Briefing
# =============================================================================


def render_briefing(context: AssistantContext, now: datetime | None = None) -> str:
    """Render the user's current state, grouped by goals, today, weight, profile, pantry."""
    local_now = (now or datetime.now(timezone.utc)).astimezone(ZoneInfo(context.timezone))

    calorie_goal = round(context.calorie_goal)
    consumed = round(context.calories_consumed)
    remaining = calorie_goal - consumed
    protein_share = (
        round(context.protein_consumed * 4 / context.calories_consumed * 100)
        if context.calories_consumed > 0
        else 0
    )
    w_unit = weight_unit(context.units)
    h2o_unit = water_unit(context.units)
    water_goal = context.water_goal or default_water_goal(context.units)
    water_left = max(0.0, water_goal - context.water_consumed)
    water_pct = round(context.water_consumed / water_goal * 100)

    allergies = _values(context, "allergy")
    dietary = _values(context, "dietary")
    dislikes = _values(context, "dislike")
    likes = _values(context, "like")

    lines = [
        "CURRENT STATE:",
        f"Date: {local_now.strftime('%A, %B %d, %Y').replace(' 0', ' ')}",
        f"Time of day: {time_of_day(local_now.hour)}",
        f"Units: {context.units} ({w_unit}, {h2o_unit})",
    ]
    if context.sex:
        lines.append(f"Sex: {context.sex}")
    lines += [
        f"Activity: {context.activity_level}",
        "",
        "GOALS:",
        f"- Calories: {calorie_goal} kcal per day",
        f"- Water: {_num(water_goal)} {h2o_unit} per day",
        f"- Weight: {_num(context.weight_goal) + ' ' + w_unit if context.weight_goal else 'Not set'}",
        "",
        "TODAY:",
        f"- Calories: {consumed} / {calorie_goal} kcal "
        f"({max(0, remaining)} remaining) [{budget_status(remaining)}]",
        f"- Protein: {_num(context.protein_consumed)}g (~{protein_share}% of intake)",
        f"- Carbs: {_num(context.carbs_consumed)}g",
        f"- Fat: {_num(context.fat_consumed)}g",
        f"- Water: {_num(context.water_consumed)} / {_num(water_goal)} {h2o_unit} "
        f"({water_pct}%)" + (f", {_num(water_left)} to go" if water_left > 0 else ", goal reached"),
        "",
        "WEIGHT:",
        f"- Current: {_num(context.current_weight) + ' ' + w_unit if context.current_weight else 'Not logged recently'}",
        f"- Progress: {_weight_progress(context, w_unit)}",
        "",
        "PROFILE:",
        f"- Allergies: {', '.join(allergies) if allergies else 'None known'}",
        f"- Dietary restrictions: {', '.join(dietary) if dietary else 'None specified'}",
        f"- Dislikes: {', '.join(dislikes) if dislikes else 'None recorded'}",
        f"- Favorites: {', '.join(likes) if likes else 'None recorded'}",
        "",
        "ALL PREFERENCES:",
        format_preferences(context.preferences),
        "",
        "PANTRY:",
        format_pantry(context.pantry),
    ]
    return "\n".join(lines)
