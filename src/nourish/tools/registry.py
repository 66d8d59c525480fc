"""
Nourish - Tool registry.

The closed set of tools the assistant may call. Every ToolName must have a
ToolSpec; the module refuses to import otherwise, so a tool can't be added to
the enum and silently left without a handler.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from functools import cached_property
from typing import Any, Awaitable, Callable

from pydantic import TypeAdapter

from nourish.tools import meals, pantry, preferences, shopping, tracking
from nourish.tools.context import ToolContext, ToolDeps
from nourish.tools.schema import (
    AddToShoppingListInput,
    DeleteMealInput,
    EditMealInput,
    LogWaterInput,
    LogWeightInput,
    ManagePantryItemInput,
    ManagePreferenceInput,
    ManageShoppingListInput,
    MarkShoppingItemsBoughtInput,
    QueryMealHistoryInput,
    QueryPantryInput,
    QueryShoppingListsInput,
    QueryWeightHistoryInput,
    RemoveFromShoppingListInput,
    SuggestFoodInput,
    UpdateGoalsInput,
)

Handler = Callable[[Any, ToolContext, ToolDeps], Awaitable[dict[str, Any]]]


class ToolName(StrEnum):
    SUGGEST_FOOD = "suggestFood"
    MANAGE_PREFERENCE = "managePreference"
    QUERY_MEAL_HISTORY = "queryMealHistory"
    QUERY_WEIGHT_HISTORY = "queryWeightHistory"
    UPDATE_GOALS = "updateGoals"
    LOG_WEIGHT = "logWeight"
    LOG_WATER = "logWater"
    DELETE_MEAL = "deleteMeal"
    EDIT_MEAL = "editMeal"
    QUERY_PANTRY = "queryPantry"
    MANAGE_PANTRY_ITEM = "managePantryItem"
    QUERY_SHOPPING_LISTS = "queryShoppingLists"
    MANAGE_SHOPPING_LIST = "manageShoppingList"
    ADD_TO_SHOPPING_LIST = "addToShoppingList"
    REMOVE_FROM_SHOPPING_LIST = "removeFromShoppingList"
    MARK_SHOPPING_ITEMS_BOUGHT = "markShoppingItemsBought"


@dataclass(frozen=True)
class ToolSpec:
    name: ToolName
    description: str
    input_model: Any
    handler: Handler = field(repr=False)

    @cached_property
    def adapter(self) -> TypeAdapter:
        return TypeAdapter(self.input_model)

    def validate(self, arguments: dict[str, Any]) -> Any:
        return self.adapter.validate_python(arguments)

    def parameters(self) -> dict[str, Any]:
        """JSON schema for the tool's arguments, always a single object."""
        schema = self.adapter.json_schema()
        if "oneOf" in schema or "anyOf" in schema:
            schema = _flatten_union(schema)
        return schema


# =============================================================================
# Schema helpers
# =============================================================================


def _ref_name(schema: dict) -> str | None:
    ref = schema.get("$ref")
    return ref.rsplit("/", 1)[-1] if ref else None


def _flatten_union(schema: dict) -> dict:
    """
    Merge a tagged union into one object schema.

    Function-calling APIs require an object at the top level. The merged
    schema lists every variant's properties, enumerates the `operation` tags,
    and requires only what all variants require. Per-variant rules are still
    enforced when the arguments are validated.
    """
    defs = schema.get("$defs", {})
    options = schema.get("oneOf") or schema.get("anyOf")
    variant_names = {_ref_name(o) for o in options}
    variants = [defs[_ref_name(o)] if _ref_name(o) else o for o in options]

    properties: dict[str, Any] = {}
    operations: list[str] = []
    required: set[str] | None = None
    for variant in variants:
        for name, prop in variant.get("properties", {}).items():
            if name == "operation":
                tag = prop.get("const") or prop.get("enum", [None])[0]
                operations.append(tag)
                continue
            properties.setdefault(name, prop)
        variant_required = set(variant.get("required", []))
        required = variant_required if required is None else required & variant_required

    flattened: dict[str, Any] = {
        "type": "object",
        "properties": {
            "operation": {"type": "string", "enum": operations, "description": "Operation to perform"},
            **properties,
        },
        "required": sorted(required or {"operation"}),
    }
    nested = {k: v for k, v in defs.items() if k not in variant_names}
    if nested:
        flattened["$defs"] = nested
    return flattened


# =============================================================================
# Registry
# =============================================================================

TOOLS: dict[ToolName, ToolSpec] = {
    spec.name: spec
    for spec in [
        ToolSpec(
            ToolName.SUGGEST_FOOD,
            "Suggest a food item that the user can log to their diary.",
            SuggestFoodInput,
            meals.suggest_food,
        ),
        ToolSpec(
            ToolName.MANAGE_PREFERENCE,
            "Remember, update or forget a food preference (like, dislike, allergy, dietary "
            "rule, cuisine, timing, portion). When a preference flips, delete the old one "
            "and create the new one.",
            ManagePreferenceInput,
            preferences.manage_preference,
        ),
        ToolSpec(
            ToolName.QUERY_MEAL_HISTORY,
            "Query the user's meal log: recent meals, meals on a date, a name search, or a "
            "date range. Returns meal ids and totals. Query before editing or deleting.",
            QueryMealHistoryInput,
            meals.query_meal_history,
        ),
        ToolSpec(
            ToolName.QUERY_WEIGHT_HISTORY,
            "Query weight entries: recent entries, a date range, or a progress summary with "
            "weekly, monthly and total change.",
            QueryWeightHistoryInput,
            tracking.query_weight_history,
        ),
        ToolSpec(
            ToolName.UPDATE_GOALS,
            "Update the daily calorie goal and/or the target weight.",
            UpdateGoalsInput,
            tracking.update_goals,
        ),
        ToolSpec(
            ToolName.LOG_WEIGHT,
            "Log the user's weight for a day (defaults to today). Logging the same day "
            "again replaces that day's entry.",
            LogWeightInput,
            tracking.log_weight,
        ),
        ToolSpec(
            ToolName.LOG_WATER,
            "Log water intake (oz for imperial, ml for metric). Amounts on the same day add up. "
            "A glass is about 8 oz / 240 ml; a bottle about 16-20 oz / 500 ml.",
            LogWaterInput,
            tracking.log_water,
        ),
        ToolSpec(
            ToolName.DELETE_MEAL,
            "Delete a logged meal by id. Use queryMealHistory first to find the id.",
            DeleteMealInput,
            meals.delete_meal,
        ),
        ToolSpec(
            ToolName.EDIT_MEAL,
            "Correct a logged meal's name, calories, macros or servings. Use "
            "queryMealHistory first to find the id.",
            EditMealInput,
            meals.edit_meal,
        ),
        ToolSpec(
            ToolName.QUERY_PANTRY,
            "See what the user has in their pantry, optionally filtered by category or name.",
            QueryPantryInput,
            pantry.query_pantry,
        ),
        ToolSpec(
            ToolName.MANAGE_PANTRY_ITEM,
            "Add, update or delete a pantry item. Update needs itemId; delete takes itemId "
            "or a name (removes the first match).",
            ManagePantryItemInput,
            pantry.manage_pantry_item,
        ),
        ToolSpec(
            ToolName.QUERY_SHOPPING_LISTS,
            "View the user's shopping lists and their items, optionally one list by name.",
            QueryShoppingListsInput,
            shopping.query_shopping_lists,
        ),
        ToolSpec(
            ToolName.MANAGE_SHOPPING_LIST,
            "Create, rename or delete a shopping list. Rename and delete need listId.",
            ManageShoppingListInput,
            shopping.manage_shopping_list,
        ),
        ToolSpec(
            ToolName.ADD_TO_SHOPPING_LIST,
            'Add items to a shopping list. Defaults to "Shopping List", created if missing.',
            AddToShoppingListInput,
            shopping.add_to_shopping_list,
        ),
        ToolSpec(
            ToolName.REMOVE_FROM_SHOPPING_LIST,
            "Remove shopping items by id and/or by name (name matches are substring, "
            "optionally limited to one list).",
            RemoveFromShoppingListInput,
            shopping.remove_from_shopping_list,
        ),
        ToolSpec(
            ToolName.MARK_SHOPPING_ITEMS_BOUGHT,
            "Check off bought shopping items and, unless addToPantry is false, add them "
            "to the pantry.",
            MarkShoppingItemsBoughtInput,
            shopping.mark_shopping_items_bought,
        ),
    ]
}

_missing = set(ToolName) - set(TOOLS)
if _missing:
    raise RuntimeError(f"Tools without a spec: {sorted(_missing)}")


def get_tool(name: str) -> ToolSpec | None:
    try:
        return TOOLS[ToolName(name)]
    except ValueError:
        return None


def tool_catalog() -> list[dict[str, Any]]:
    """Tool definitions in the OpenAI function-calling format."""
    return [
        {
            "type": "function",
            "function": {
                "name": spec.name.value,
                "description": spec.description,
                "parameters": spec.parameters(),
            },
        }
        for spec in TOOLS.values()
    ]
