"""
Nourish - Context Builder.

Turns the client's per-turn snapshot (goals and today's running totals) into
a full AssistantContext by merging in the server's own preference and pantry
records. Preferences and pantry are never taken from the client.
"""

import asyncio
import logging
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from nourish.db.adapter import Store
from nourish.errors import ContextValidationError
from nourish.ledgers.pantry import list_pantry
from nourish.ledgers.preferences import list_preferences
from nourish.models.entities import PantryItem, PreferenceEntry, Sex, Units

logger = logging.getLogger(__name__)

MAX_CALORIES = 100_000
MAX_MACRO_GRAMS = 100_000
MAX_WATER = 100_000
MAX_WEIGHT = 2_000


class ContextSnapshot(BaseModel):
    """
    Client-supplied goals and same-session totals.

    Accepts camelCase (as sent by the web client) or snake_case keys.
    Unknown keys, including any client attempt at preferences/pantry, are dropped.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    calorie_goal: float = Field(ge=0, le=MAX_CALORIES)
    calories_consumed: float = Field(default=0, ge=0, le=MAX_CALORIES)
    protein_consumed: float = Field(default=0, ge=0, le=MAX_MACRO_GRAMS)
    carbs_consumed: float = Field(default=0, ge=0, le=MAX_MACRO_GRAMS)
    fat_consumed: float = Field(default=0, ge=0, le=MAX_MACRO_GRAMS)
    # Unset falls back to default_water_goal(units)
    water_goal: float | None = Field(default=None, ge=0, le=MAX_WATER)
    water_consumed: float = Field(default=0, ge=0, le=MAX_WATER)
    current_weight: float | None = Field(default=None, ge=0, le=MAX_WEIGHT)
    weight_goal: float | None = Field(default=None, ge=0, le=MAX_WEIGHT)
    units: Units = "imperial"
    sex: Sex | None = None
    activity_level: str = Field(default="moderate", max_length=50)
    timezone: str = "UTC"

    @field_validator("timezone", mode="before")
    @classmethod
    def _valid_timezone(cls, value: Any) -> str:
        if value in (None, ""):
            return "UTC"
        if not isinstance(value, str):
            raise ValueError("timezone must be an IANA zone name")
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone '{value}'")
        return value


class AssistantContext(ContextSnapshot):
    """Snapshot plus server-authoritative preferences and pantry. Built per turn."""

    preferences: tuple[PreferenceEntry, ...] = ()
    pantry: tuple[PantryItem, ...] = ()


def parse_snapshot(raw: Any) -> ContextSnapshot:
    """
    Validate a raw snapshot. Any problem rejects the whole snapshot.

    Raises:
        ContextValidationError: listing every issue found
    """
    if not isinstance(raw, dict):
        raise ContextValidationError(["context must be an object"])
    try:
        return ContextSnapshot.model_validate(raw)
    except ValidationError as e:
        issues = [
            f"{'.'.join(str(part) for part in err['loc']) or 'context'}: {err['msg']}"
            for err in e.errors()
        ]
        raise ContextValidationError(issues) from e


async def build_assistant_context(
    store: Store, user_id: str, snapshot: ContextSnapshot
) -> AssistantContext:
    """Merge the snapshot with the user's stored preferences and pantry."""
    preferences, pantry = await asyncio.gather(
        list_preferences(store, user_id),
        list_pantry(store, user_id),
    )
    logger.debug(
        "Built context for %s: %d preferences, %d pantry items",
        user_id, len(preferences), len(pantry),
    )
    return AssistantContext(
        **snapshot.model_dump(),
        preferences=tuple(preferences),
        pantry=tuple(pantry),
    )
