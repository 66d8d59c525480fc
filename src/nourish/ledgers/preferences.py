"""
Nourish - Preference ledger.

Food preferences keyed by (user, category, normalized value). Uniqueness is
enforced by lookup-before-insert, so two concurrent creates can still race to
a duplicate; the next update/delete resolves to the first match.
"""

from nourish.db.adapter import Store, where
from nourish.db.scoping import utcnow_iso
from nourish.ledgers.normalize import normalize_name
from nourish.models.entities import PreferenceEntry

TABLE = "food_preferences"


async def list_preferences(store: Store, user_id: str) -> list[PreferenceEntry]:
    """All of the user's preferences, oldest first."""
    rows = await store.find(TABLE, user_id=user_id, order_by="created_at")
    return [PreferenceEntry.model_validate(r) for r in rows]


async def find_preference(
    store: Store, user_id: str, category: str, value: str
) -> PreferenceEntry | None:
    rows = await store.find(
        TABLE,
        [where("category", "=", category), where("value", "=", normalize_name(value))],
        user_id=user_id,
        limit=1,
    )
    return PreferenceEntry.model_validate(rows[0]) if rows else None


async def create_preference(
    store: Store, user_id: str, category: str, value: str, notes: str | None = None
) -> PreferenceEntry:
    rows = await store.insert(
        TABLE,
        {"category": category, "value": normalize_name(value), "notes": notes},
        user_id=user_id,
    )
    return PreferenceEntry.model_validate(rows[0])


async def set_preference_notes(
    store: Store, user_id: str, preference_id: str, notes: str | None
) -> PreferenceEntry | None:
    rows = await store.update(
        TABLE,
        [where("id", "=", preference_id)],
        {"notes": notes, "updated_at": utcnow_iso()},
        user_id=user_id,
    )
    return PreferenceEntry.model_validate(rows[0]) if rows else None


async def delete_preference(
    store: Store, user_id: str, preference_id: str
) -> PreferenceEntry | None:
    rows = await store.delete(TABLE, [where("id", "=", preference_id)], user_id=user_id)
    return PreferenceEntry.model_validate(rows[0]) if rows else None
