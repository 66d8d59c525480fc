"""
Nourish - Tool execution context.

Identity comes only from ToolContext, which the server builds from the
authenticated session. Nothing in a tool's model-supplied input can name or
imply a user.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from nourish.db.adapter import Store
from nourish.errors import ToolContextError
from nourish.storage import ImageStorage


@dataclass(frozen=True)
class ToolContext:
    """Who a tool call runs as, and which calendar 'today' means for them."""

    user_id: str
    timezone: str = "UTC"


@dataclass(frozen=True)
class ToolDeps:
    """Collaborators tools execute against."""

    store: Store
    storage: ImageStorage | None = None


def require_tool_context(context: Any) -> ToolContext:
    """Fail closed unless `context` is a ToolContext with a user id."""
    if not isinstance(context, ToolContext) or not context.user_id:
        raise ToolContextError("Invalid tool execution context: missing userId")
    return context


def today_in_timezone(tz: str | None, now: datetime | None = None) -> str:
    """Calendar date (YYYY-MM-DD) of `now` in the IANA zone `tz`, UTC when unset."""
    try:
        zone = ZoneInfo(tz or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        zone = ZoneInfo("UTC")
    return (now or datetime.now(timezone.utc)).astimezone(zone).date().isoformat()


def ok(**payload: Any) -> dict[str, Any]:
    """Successful tool result."""
    return {"success": True, **payload}
