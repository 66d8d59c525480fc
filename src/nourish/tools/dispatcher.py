"""
Nourish - Tool dispatcher.

Turns a model-issued tool call into a structured result. Nothing a tool does
escapes as an exception: bad context, unknown names, malformed arguments,
validation failures, expected tool errors, timeouts and crashes all become
`{"success": False, "error": ...}` so the model can read them and recover.
"""

import asyncio
import json
import logging
import time
from typing import Any

from pydantic import BaseModel, ValidationError

from nourish.errors import ToolContextError, ToolError
from nourish.tools.context import ToolContext, ToolDeps, require_tool_context
from nourish.tools.registry import get_tool

logger = logging.getLogger(__name__)


class ToolCall(BaseModel):
    """A tool invocation requested by the model."""

    id: str
    name: str
    arguments: str | dict[str, Any] = "{}"


class ToolResult(BaseModel):
    """Outcome of one tool call, correlated to it by call_id."""

    call_id: str
    name: str
    payload: dict[str, Any]

    @property
    def success(self) -> bool:
        return bool(self.payload.get("success"))


def failure(message: str) -> dict[str, Any]:
    return {"success": False, "error": message}


def _parse_arguments(arguments: str | dict[str, Any]) -> dict[str, Any]:
    if isinstance(arguments, dict):
        return arguments
    if not arguments.strip():
        return {}
    parsed = json.loads(arguments)
    if not isinstance(parsed, dict):
        raise ValueError("arguments must be a JSON object")
    return parsed


def _format_validation_error(e: ValidationError) -> str:
    issues = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err["loc"])
        issues.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "Invalid input: " + "; ".join(issues)


async def execute_tool(
    call: ToolCall,
    context: ToolContext | Any,
    deps: ToolDeps,
    timeout: float | None = None,
) -> ToolResult:
    """
    Execute one tool call under the caller's context.

    The context is checked before anything else; without a user id no input
    is parsed and no store call is made.
    """
    try:
        ctx = require_tool_context(context)
    except ToolContextError as e:
        logger.error("Refusing tool call %s: %s", call.name, e)
        return ToolResult(call_id=call.id, name=call.name, payload=failure(str(e)))

    spec = get_tool(call.name)
    if spec is None:
        logger.warning("Model requested unknown tool %s", call.name)
        return ToolResult(call_id=call.id, name=call.name, payload=failure(f"Unknown tool: {call.name}"))

    try:
        params = spec.validate(_parse_arguments(call.arguments))
    except ValidationError as e:
        message = _format_validation_error(e)
        logger.info("Tool %s rejected input: %s", call.name, message)
        return ToolResult(call_id=call.id, name=call.name, payload=failure(message))
    except ValueError as e:
        logger.info("Tool %s got unparseable arguments: %s", call.name, e)
        return ToolResult(
            call_id=call.id, name=call.name, payload=failure(f"Invalid arguments: {e}")
        )

    start = time.perf_counter()
    try:
        payload = await asyncio.wait_for(spec.handler(params, ctx, deps), timeout=timeout)
    except ToolError as e:
        payload = failure(e.message)
    except TimeoutError:
        logger.warning("Tool %s timed out after %ss", call.name, timeout)
        payload = failure(f"Tool timed out after {timeout:g} seconds")
    except Exception as e:
        logger.exception("Tool %s failed: %s", call.name, e)
        payload = failure("Tool execution failed. Please try again.")

    duration_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "Tool %s user=%s success=%s (%.0fms)",
        call.name,
        ctx.user_id,
        payload.get("success"),
        duration_ms,
    )
    return ToolResult(call_id=call.id, name=call.name, payload=payload)


async def execute_tool_calls(
    calls: list[ToolCall],
    context: ToolContext | Any,
    deps: ToolDeps,
    timeout: float | None = None,
) -> list[ToolResult]:
    """Run sibling calls concurrently; results come back in call order."""
    return list(
        await asyncio.gather(*(execute_tool(call, context, deps, timeout) for call in calls))
    )
