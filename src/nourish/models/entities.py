"""
Nourish - Entity models.

Row shapes for every ledger. Rows coming back from the store carry extra
columns (created_at, user_id, ...); models ignore anything they don't declare.
"""

from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict


# =============================================================================
# Categories
# =============================================================================

PreferenceCategory = Literal[
    "like", "dislike", "allergy", "dietary", "cuisine", "timing", "portion", "other"
]
PantryCategory = Literal[
    "protein", "vegetable", "fruit", "dairy", "grain", "pantry", "beverage", "other"
]
Units = Literal["imperial", "metric"]
Sex = Literal["male", "female"]

PREFERENCE_CATEGORIES: tuple[str, ...] = get_args(PreferenceCategory)
PANTRY_CATEGORIES: tuple[str, ...] = get_args(PantryCategory)

DEFAULT_CALORIE_GOAL = 2200


class _Row(BaseModel):
    model_config = ConfigDict(extra="ignore")


# =============================================================================
# Profile
# =============================================================================


class Profile(_Row):
    user_id: str
    calorie_goal: int = DEFAULT_CALORIE_GOAL
    weight_goal: float | None = None
    water_goal: int | None = None
    units: Units = "imperial"
    sex: Sex | None = None
    activity_level: str = "moderate"
    timezone: str | None = None


def weight_unit(units: str | None) -> str:
    return "kg" if units == "metric" else "lbs"


def water_unit(units: str | None) -> str:
    return "ml" if units == "metric" else "oz"


def default_water_goal(units: str | None) -> int:
    return 2000 if units == "metric" else 64


# =============================================================================
# Preferences / Pantry
# =============================================================================


class PreferenceEntry(_Row):
    id: str
    category: str
    value: str
    notes: str | None = None


class PantryItem(_Row):
    id: str
    name: str
    category: str | None = None
    quantity: float | None = None
    unit: str | None = None


# =============================================================================
# Shopping
# =============================================================================


class ShoppingList(_Row):
    id: str
    name: str
    updated_at: str | None = None


class ShoppingListItem(_Row):
    id: str
    list_id: str
    name: str
    category: str | None = None
    quantity: float | None = None
    unit: str | None = None
    checked: bool = False
    created_at: str | None = None


# =============================================================================
# Logs
# =============================================================================


class MealLogEntry(_Row):
    id: str
    name: str
    servings: float = 1
    calories: int
    protein: int | None = None
    carbs: int | None = None
    fat: int | None = None
    image: str | None = None
    meal_date: str
    meal_time: str


class WeightLogEntry(_Row):
    id: str
    weight: float
    date: str


class WaterLogEntry(_Row):
    id: str
    date: str
    amount: int
