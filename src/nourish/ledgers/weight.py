"""
Nourish - Weight ledger.

At most one entry per (user, calendar date): re-logging a day updates the
existing row in place.
"""

from dataclasses import dataclass

from nourish.db.adapter import Store, where
from nourish.db.scoping import utcnow_iso
from nourish.models.entities import WeightLogEntry

TABLE = "weight_logs"


@dataclass
class WeightLogResult:
    entry: WeightLogEntry
    created: bool
    previous: WeightLogEntry | None = None


async def weight_history(
    store: Store,
    user_id: str,
    start_date: str | None = None,
    end_date: str | None = None,
    limit: int | None = None,
) -> list[WeightLogEntry]:
    """Entries newest first, optionally bounded by an inclusive date range."""
    filters = []
    if start_date:
        filters.append(where("date", ">=", start_date))
    if end_date:
        filters.append(where("date", "<=", end_date))
    rows = await store.find(
        TABLE, filters, user_id=user_id, order_by="date", descending=True, limit=limit
    )
    return [WeightLogEntry.model_validate(r) for r in rows]


async def find_weight_on(store: Store, user_id: str, date: str) -> WeightLogEntry | None:
    rows = await store.find(TABLE, [where("date", "=", date)], user_id=user_id, limit=1)
    return WeightLogEntry.model_validate(rows[0]) if rows else None


async def log_weight(store: Store, user_id: str, weight: float, date: str) -> WeightLogResult:
    """
    Record the day's weight.

    Updates the same-day entry if there is one; otherwise inserts and reports
    the most recent earlier entry as `previous`.
    """
    existing = await find_weight_on(store, user_id, date)
    if existing:
        rows = await store.update(
            TABLE,
            [where("id", "=", existing.id)],
            {"weight": weight, "updated_at": utcnow_iso()},
            user_id=user_id,
        )
        return WeightLogResult(entry=WeightLogEntry.model_validate(rows[0]), created=False)

    earlier = await store.find(
        TABLE,
        [where("date", "<", date)],
        user_id=user_id,
        order_by="date",
        descending=True,
        limit=1,
    )
    rows = await store.insert(TABLE, {"weight": weight, "date": date}, user_id=user_id)
    return WeightLogResult(
        entry=WeightLogEntry.model_validate(rows[0]),
        created=True,
        previous=WeightLogEntry.model_validate(earlier[0]) if earlier else None,
    )
