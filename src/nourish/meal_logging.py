"""
Nourish - Meal logging from text.

Turns a free-text description ("2 eggs and toast") into a meal log entry:
a structured model call estimates name, calories and macros, then the entry
is written to the meal ledger. Photo analysis and uploads live with the UI.
"""

import logging
from datetime import datetime
from typing import Awaitable, Callable

from pydantic import BaseModel, Field

from nourish.db.adapter import Store
from nourish.errors import MealAnalysisError
from nourish.ledgers import meals, profiles
from nourish.llm.client import call_llm
from nourish.models.entities import MealLogEntry
from nourish.tools.context import today_in_timezone

logger = logging.getLogger(__name__)

MIN_DESCRIPTION_LENGTH = 3
NOT_FOOD_MESSAGE = "This does not appear to be a valid food description."


class MealAnalysis(BaseModel):
    """Nutrition estimate for everything a description mentions."""

    is_food: bool = Field(description="Whether the text describes food or drink")
    rejection_reason: str | None = Field(
        default=None,
        description='If not food, explain why (e.g., "This describes a car")',
    )
    name: str = Field(
        default="",
        max_length=200,
        description='Concise, descriptive meal name (e.g., "Scrambled Eggs with Toast")',
    )
    calories: int = Field(default=0, ge=0, le=50_000, description="Total calories, nearest 10")
    protein: int = Field(default=0, ge=0, le=5_000, description="Protein in grams")
    carbs: int = Field(default=0, ge=0, le=5_000, description="Carbohydrates in grams")
    fat: int = Field(default=0, ge=0, le=5_000, description="Fat in grams")


MealAnalyzer = Callable[[str], Awaitable[MealAnalysis]]


# =============================================================================
# Prompts
# =============================================================================

SYSTEM_PROMPT = """<role>
You are an expert nutritionist with comprehensive knowledge of food composition,
portion sizes, restaurant menus, home cooking and USDA FoodData Central.
</role>

<validation>
If the text does NOT describe food (e.g. "a car", "hello", random words):
set is_food=false and give a rejection_reason.
</validation>

<parsing_rules>
- Explicit quantities: "3 tacos" = 3 tacos, "2 slices of pizza" = 2 slices
- Size modifiers: "large" = 1.5x standard, "small" = 0.7x standard
- Vague quantities: "some fries" = medium serving, "a few cookies" = 3 cookies
- No quantity: assume 1 standard serving
- Assume restaurant portions unless "homemade" is mentioned
- Include sauces, dressings, oils and drinks; sum all components
- When uncertain, estimate on the higher end
</parsing_rules>

<output_format>
- Calories rounded to the nearest 10, macros to the nearest gram
- A clear, descriptive meal name reflecting what was described
</output_format>"""

USER_PROMPT = """Analyze this food and provide accurate nutritional information:

"{description}"

Calculate total calories and macros for EVERYTHING described."""


async def analyze_meal_text(description: str) -> MealAnalysis:
    """Estimate nutrition for a meal description with a structured model call."""
    return await call_llm(
        response_model=MealAnalysis,
        system_prompt=SYSTEM_PROMPT,
        user_prompt=USER_PROMPT.format(description=description),
        label="meal_analysis",
    )


# =============================================================================
# Logging
# =============================================================================


async def log_meal_from_description(
    store: Store,
    user_id: str,
    description: str,
    meal_date: str | None = None,
    *,
    analyzer: MealAnalyzer | None = None,
    now: datetime | None = None,
) -> MealLogEntry:
    """
    Analyze `description` and log the result for `user_id`.

    `meal_date` defaults to today in the user's profile timezone.

    Raises:
        MealAnalysisError: description too short, not food, or no calorie estimate
    """
    description = description.strip()
    if len(description) < MIN_DESCRIPTION_LENGTH:
        raise MealAnalysisError("Describe the meal in at least a few characters.")

    analysis = await (analyzer or analyze_meal_text)(description)
    if not analysis.is_food:
        raise MealAnalysisError(analysis.rejection_reason or NOT_FOOD_MESSAGE)
    if analysis.calories <= 0:
        raise MealAnalysisError("Could not estimate calories for that meal.")

    if meal_date is None:
        profile = await profiles.get_profile(store, user_id)
        meal_date = today_in_timezone(profile.timezone if profile else None, now)

    meal = await meals.log_meal(
        store,
        user_id,
        name=analysis.name or description[:200],
        calories=analysis.calories,
        meal_date=meal_date,
        protein=analysis.protein,
        carbs=analysis.carbs,
        fat=analysis.fat,
    )
    logger.info("Logged meal %s (%d kcal) for %s on %s", meal.id, meal.calories, user_id, meal_date)
    return meal
