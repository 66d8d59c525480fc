"""
Nourish - Tool input schemas.

One model per tool. Field names are snake_case in Python and camelCase on the
wire (what the model sees and sends). Everything is bounded so nothing
unvalidated reaches a ledger. Tools with several operations use tagged unions
keyed by `operation`.
"""

from datetime import date
from typing import Annotated, Literal, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from nourish.models.entities import PantryCategory, PreferenceCategory


def _calendar_date(value: str) -> str:
    try:
        date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"'{value}' is not a valid YYYY-MM-DD date")
    return value


IsoDate = Annotated[
    str,
    Field(pattern=r"^\d{4}-\d{2}-\d{2}$", description="Date in YYYY-MM-DD format"),
    AfterValidator(_calendar_date),
]
Name = Annotated[str, Field(min_length=1, max_length=200)]
Unit = Annotated[str, Field(max_length=50)]
Identifier = Annotated[str, Field(min_length=1, max_length=100)]


class ToolInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# =============================================================================
# Food / Meals
# =============================================================================


class SuggestFoodInput(ToolInput):
    name: Name = Field(description="The name of the food or meal")
    calories: int = Field(ge=0, le=50_000, description="Estimated calories")
    protein: int = Field(ge=0, le=5_000, description="Protein in grams")
    carbs: int = Field(ge=0, le=5_000, description="Carbohydrates in grams")
    fat: int = Field(ge=0, le=5_000, description="Fat in grams")


class QueryMealHistoryInput(ToolInput):
    query: Literal["recent", "by_date", "search", "date_range"] = Field(
        description="Type of query to perform"
    )
    date: IsoDate | None = Field(default=None, description="Date for by_date queries")
    start_date: IsoDate | None = Field(default=None, description="Start date for date_range")
    end_date: IsoDate | None = Field(default=None, description="End date for date_range")
    search_term: str | None = Field(
        default=None, min_length=1, max_length=200, description="Food name for search queries"
    )
    limit: int | None = Field(
        default=None, ge=1, le=100, description="Maximum number of results (1-100)"
    )


class DeleteMealInput(ToolInput):
    meal_id: Identifier = Field(description="The ID of the meal to delete")


class EditMealInput(ToolInput):
    meal_id: Identifier = Field(description="The ID of the meal to edit")
    name: Name | None = Field(default=None, description="New name for the meal")
    calories: int | None = Field(default=None, gt=0, le=50_000, description="Updated calories")
    protein: int | None = Field(default=None, ge=0, le=5_000, description="Updated protein (g)")
    carbs: int | None = Field(default=None, ge=0, le=5_000, description="Updated carbs (g)")
    fat: int | None = Field(default=None, ge=0, le=5_000, description="Updated fat (g)")
    servings: float | None = Field(default=None, gt=0, le=100, description="Updated servings")


# =============================================================================
# Tracking / Goals
# =============================================================================


class QueryWeightHistoryInput(ToolInput):
    query: Literal["recent", "progress", "date_range"] = Field(
        description="recent entries, progress summary, or date range"
    )
    limit: int = Field(default=10, ge=1, le=100, description="Entries to return for recent")
    start_date: IsoDate | None = None
    end_date: IsoDate | None = None


class UpdateGoalsInput(ToolInput):
    calorie_goal: int | None = Field(
        default=None, ge=1000, le=5000, description="New daily calorie goal (1000-5000)"
    )
    weight_goal: float | None = Field(
        default=None, gt=0, le=1500, description="New target weight in the user's unit"
    )


class LogWeightInput(ToolInput):
    weight: float = Field(gt=0, le=1500, description="Weight in the user's unit")
    date: IsoDate | None = Field(default=None, description="Defaults to today")


class LogWaterInput(ToolInput):
    amount: int = Field(gt=0, le=5000, description="Amount in oz (imperial) or ml (metric)")
    date: IsoDate | None = Field(default=None, description="Defaults to today")


# =============================================================================
# Preferences
# =============================================================================


class _PreferenceFields(ToolInput):
    category: PreferenceCategory = Field(description="Type of preference")
    value: Name = Field(description='The preference value, e.g. "mushrooms", "vegetarian"')
    notes: str | None = Field(
        default=None, max_length=500, description='Optional context, e.g. "texture issue"'
    )


class CreatePreference(_PreferenceFields):
    operation: Literal["create"]


class UpdatePreference(_PreferenceFields):
    operation: Literal["update"]


class DeletePreference(_PreferenceFields):
    operation: Literal["delete"]


ManagePreferenceInput = Annotated[
    Union[CreatePreference, UpdatePreference, DeletePreference],
    Field(discriminator="operation"),
]


# =============================================================================
# Pantry
# =============================================================================


class QueryPantryInput(ToolInput):
    category: PantryCategory | None = Field(default=None, description="Filter by category")
    search: str | None = Field(default=None, max_length=200, description="Name contains")


class AddPantryItem(ToolInput):
    operation: Literal["add"]
    name: Name
    category: PantryCategory | None = None
    quantity: float | None = Field(default=None, gt=0, le=10_000)
    unit: Unit | None = None


class UpdatePantryItem(ToolInput):
    operation: Literal["update"]
    item_id: Identifier | None = Field(default=None, description="Required for update")
    name: Name | None = None
    category: PantryCategory | None = None
    quantity: float | None = Field(default=None, gt=0, le=10_000)
    unit: Unit | None = None


class DeletePantryItem(ToolInput):
    operation: Literal["delete"]
    item_id: Identifier | None = Field(default=None, description="Exact item to delete")
    name: Name | None = Field(default=None, description="Falls back to first name match")


ManagePantryItemInput = Annotated[
    Union[AddPantryItem, UpdatePantryItem, DeletePantryItem],
    Field(discriminator="operation"),
]


# =============================================================================
# Shopping
# =============================================================================


class QueryShoppingListsInput(ToolInput):
    list_name: str | None = Field(default=None, max_length=100, description="List name contains")


class CreateShoppingList(ToolInput):
    operation: Literal["create"]
    name: str = Field(min_length=1, max_length=100)


class RenameShoppingList(ToolInput):
    operation: Literal["rename"]
    name: str = Field(min_length=1, max_length=100)
    list_id: Identifier | None = Field(default=None, description="Required for rename")


class DeleteShoppingList(ToolInput):
    operation: Literal["delete"]
    name: str | None = Field(default=None, max_length=100)
    list_id: Identifier | None = Field(default=None, description="Required for delete")


ManageShoppingListInput = Annotated[
    Union[CreateShoppingList, RenameShoppingList, DeleteShoppingList],
    Field(discriminator="operation"),
]


class ShoppingItemInput(ToolInput):
    name: Name
    category: PantryCategory | None = None
    quantity: float | None = Field(default=None, gt=0, le=10_000)
    unit: Unit | None = None


class AddToShoppingListInput(ToolInput):
    items: list[ShoppingItemInput] = Field(min_length=1, max_length=100)
    list_name: str | None = Field(
        default=None, min_length=1, max_length=100, description='Defaults to "Shopping List"'
    )


class RemoveFromShoppingListInput(ToolInput):
    item_ids: list[Identifier] | None = Field(default=None, max_length=100)
    item_names: list[Name] | None = Field(default=None, max_length=100)
    list_name: str | None = Field(
        default=None, max_length=100, description="Only remove from this list"
    )


class MarkShoppingItemsBoughtInput(ToolInput):
    item_ids: list[Identifier] = Field(min_length=1, max_length=100)
    add_to_pantry: bool = Field(default=True, description="Also add bought items to the pantry")
