"""
Nourish - Tools.

The assistant's tool catalog and the dispatcher that executes it under an
authenticated ToolContext.
"""

from nourish.tools.context import ToolContext, ToolDeps, require_tool_context, today_in_timezone
from nourish.tools.dispatcher import ToolCall, ToolResult, execute_tool, execute_tool_calls
from nourish.tools.registry import TOOLS, ToolName, ToolSpec, get_tool, tool_catalog

__all__ = [
    "ToolContext",
    "ToolDeps",
    "require_tool_context",
    "today_in_timezone",
    "ToolCall",
    "ToolResult",
    "execute_tool",
    "execute_tool_calls",
    "TOOLS",
    "ToolName",
    "ToolSpec",
    "get_tool",
    "tool_catalog",
]
