"""
Nourish - Water ledger.

One row per (user, date) holding the running total for that day.
"""

from nourish.db.adapter import Store, where
from nourish.db.scoping import utcnow_iso
from nourish.models.entities import WaterLogEntry

TABLE = "water_logs"


async def find_water_on(store: Store, user_id: str, date: str) -> WaterLogEntry | None:
    rows = await store.find(TABLE, [where("date", "=", date)], user_id=user_id, limit=1)
    return WaterLogEntry.model_validate(rows[0]) if rows else None


async def add_water(store: Store, user_id: str, amount: int, date: str) -> WaterLogEntry:
    """Add `amount` to the day's total, creating the day if needed."""
    existing = await find_water_on(store, user_id, date)
    if existing:
        rows = await store.update(
            TABLE,
            [where("id", "=", existing.id)],
            {"amount": existing.amount + amount, "updated_at": utcnow_iso()},
            user_id=user_id,
        )
    else:
        rows = await store.insert(TABLE, {"date": date, "amount": amount}, user_id=user_id)
    return WaterLogEntry.model_validate(rows[0])
