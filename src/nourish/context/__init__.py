"""
Nourish - Context assembly.

Builds the per-turn AssistantContext and renders it for the model.
"""

from nourish.context.builders import (
    AssistantContext,
    ContextSnapshot,
    build_assistant_context,
    parse_snapshot,
)
from nourish.context.render import (
    PANTRY_CATEGORY_LABELS,
    PREFERENCE_CATEGORY_LABELS,
    format_pantry,
    format_preferences,
    render_briefing,
)

__all__ = [
    "AssistantContext",
    "ContextSnapshot",
    "build_assistant_context",
    "parse_snapshot",
    "render_briefing",
    "format_preferences",
    "format_pantry",
    "PREFERENCE_CATEGORY_LABELS",
    "PANTRY_CATEGORY_LABELS",
]
