"""
Nourish - Tracking tools.

logWeight, queryWeightHistory, logWater, updateGoals. Units and goals come
from the caller's profile; a user without a profile gets imperial units and
default goals.
"""

from datetime import date, timedelta

from nourish.errors import ToolError
from nourish.ledgers import profiles, water, weight
from nourish.models.entities import (
    WeightLogEntry,
    default_water_goal,
    water_unit,
    weight_unit,
)
from nourish.tools.context import ToolContext, ToolDeps, ok, today_in_timezone
from nourish.tools.schema import (
    LogWaterInput,
    LogWeightInput,
    QueryWeightHistoryInput,
    UpdateGoalsInput,
)


def _round1(value: float) -> float:
    return round(value, 1)


def _entries(entries: list[WeightLogEntry]) -> list[dict]:
    return [{"id": e.id, "weight": e.weight, "date": e.date} for e in entries]


def _change_since(entries: list[WeightLogEntry], cutoff: str) -> float | None:
    """Current weight minus the newest entry dated on or before `cutoff`."""
    baseline = next((e for e in entries if e.date <= cutoff), None)
    if baseline is None:
        return None
    return _round1(entries[0].weight - baseline.weight)


# =============================================================================
# Weight
# =============================================================================


async def log_weight(params: LogWeightInput, ctx: ToolContext, deps: ToolDeps) -> dict:
    profile = await profiles.get_profile(deps.store, ctx.user_id)
    units = profile.units if profile else None
    day = params.date or today_in_timezone(ctx.timezone)

    result = await weight.log_weight(deps.store, ctx.user_id, params.weight, day)
    if not result.created:
        return ok(updated=True, weight=params.weight, weightUnit=weight_unit(units), date=day)

    previous = result.previous.weight if result.previous else None
    return ok(
        created=True,
        weight=params.weight,
        weightUnit=weight_unit(units),
        date=day,
        previousWeight=previous,
        change=_round1(params.weight - previous) if previous is not None else None,
        weightGoal=profile.weight_goal if profile else None,
    )


async def query_weight_history(
    params: QueryWeightHistoryInput, ctx: ToolContext, deps: ToolDeps
) -> dict:
    profile = await profiles.get_profile(deps.store, ctx.user_id)
    unit = weight_unit(profile.units if profile else None)
    goal = profile.weight_goal if profile else None

    match params.query:
        case "recent":
            entries = await weight.weight_history(deps.store, ctx.user_id, limit=params.limit)
        case "date_range":
            if not params.start_date or not params.end_date:
                raise ToolError("Start and end dates required for date_range query")
            entries = await weight.weight_history(
                deps.store, ctx.user_id, params.start_date, params.end_date
            )
        case "progress":
            entries = await weight.weight_history(deps.store, ctx.user_id)
            if not entries:
                return ok(message="No weight entries recorded yet", weightUnit=unit, weightGoal=goal)

            today = date.fromisoformat(today_in_timezone(ctx.timezone))
            current, starting = entries[0].weight, entries[-1].weight
            return ok(
                currentWeight=current,
                startingWeight=starting,
                totalChange=_round1(current - starting),
                weightGoal=goal,
                remainingToGoal=_round1(current - goal) if goal else None,
                weeklyChange=_change_since(entries, (today - timedelta(days=7)).isoformat()),
                monthlyChange=_change_since(entries, (today - timedelta(days=30)).isoformat()),
                totalEntries=len(entries),
                firstEntry=entries[-1].date,
                lastEntry=entries[0].date,
                weightUnit=unit,
            )

    return ok(count=len(entries), entries=_entries(entries), weightUnit=unit, weightGoal=goal)


# =============================================================================
# Water
# =============================================================================


async def log_water(params: LogWaterInput, ctx: ToolContext, deps: ToolDeps) -> dict:
    profile = await profiles.get_profile(deps.store, ctx.user_id)
    units = profile.units if profile else None
    goal = (profile.water_goal if profile else None) or default_water_goal(units)
    day = params.date or today_in_timezone(ctx.timezone)

    entry = await water.add_water(deps.store, ctx.user_id, params.amount, day)

    return ok(
        logged=params.amount,
        total=entry.amount,
        waterUnit=water_unit(units),
        waterGoal=goal,
        remaining=max(0, goal - entry.amount),
        percentComplete=round(entry.amount / goal * 100),
        goalReached=entry.amount >= goal,
        date=day,
    )


# =============================================================================
# Goals
# =============================================================================


async def update_goals(params: UpdateGoalsInput, ctx: ToolContext, deps: ToolDeps) -> dict:
    if params.calorie_goal is None and params.weight_goal is None:
        raise ToolError("At least one goal (calorieGoal or weightGoal) must be provided")

    profile = await profiles.update_goals(
        deps.store,
        ctx.user_id,
        calorie_goal=params.calorie_goal,
        weight_goal=params.weight_goal,
    )
    return ok(updated={"calorieGoal": profile.calorie_goal, "weightGoal": profile.weight_goal})
