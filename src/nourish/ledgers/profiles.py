"""
Nourish - Profile ledger.

One profile row per user holding goals and display units.
"""

from nourish.db.adapter import Store
from nourish.db.scoping import utcnow_iso
from nourish.models.entities import DEFAULT_CALORIE_GOAL, Profile

TABLE = "profiles"


async def get_profile(store: Store, user_id: str) -> Profile | None:
    """Get the user's profile, if one exists."""
    rows = await store.find(TABLE, user_id=user_id, limit=1)
    return Profile.model_validate(rows[0]) if rows else None


async def update_goals(
    store: Store,
    user_id: str,
    calorie_goal: int | None = None,
    weight_goal: float | None = None,
) -> Profile:
    """
    Upsert calorie and/or weight goals onto the user's profile.

    A missing profile is created with the default calorie goal for any field
    not supplied.
    """
    patch: dict = {"updated_at": utcnow_iso()}
    if calorie_goal is not None:
        patch["calorie_goal"] = calorie_goal
    if weight_goal is not None:
        patch["weight_goal"] = weight_goal

    existing = await get_profile(store, user_id)
    if existing:
        rows = await store.update(TABLE, [], patch, user_id=user_id)
        return Profile.model_validate(rows[0])

    rows = await store.insert(
        TABLE,
        {
            "calorie_goal": calorie_goal or DEFAULT_CALORIE_GOAL,
            "weight_goal": weight_goal,
        },
        user_id=user_id,
    )
    return Profile.model_validate(rows[0])
