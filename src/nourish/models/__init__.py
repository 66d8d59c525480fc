"""Nourish - Entity models."""

from nourish.models.entities import (
    PANTRY_CATEGORIES,
    PREFERENCE_CATEGORIES,
    MealLogEntry,
    PantryCategory,
    PantryItem,
    PreferenceCategory,
    PreferenceEntry,
    Profile,
    ShoppingList,
    ShoppingListItem,
    WaterLogEntry,
    WeightLogEntry,
)

__all__ = [
    "PANTRY_CATEGORIES",
    "PREFERENCE_CATEGORIES",
    "PantryCategory",
    "PreferenceCategory",
    "Profile",
    "PreferenceEntry",
    "PantryItem",
    "ShoppingList",
    "ShoppingListItem",
    "MealLogEntry",
    "WeightLogEntry",
    "WaterLogEntry",
]
