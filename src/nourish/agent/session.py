"""
Nourish - Agent session loop.

One agent turn: offer the model the system prompt, the conversation and the
tool catalog; execute whatever tools it calls; feed the results back; repeat
until it answers in plain text or the step ceiling is reached.

    AWAITING_MODEL -> TEXT_ONLY -> DONE
    AWAITING_MODEL -> TOOL_CALLS_EMITTED -> EXECUTING_TOOLS -> AWAITING_MODEL

Events are yielded as they happen:
- {"type": "text", "text": ...}
- {"type": "tool_call", "id", "name", "arguments"}
- {"type": "tool_result", "id", "name", "result"}
- {"type": "error", "message": ...}
- {"type": "done", "response", "steps", "stop_reason", "messages"}

Tool failures are conversation content, never turn failures. A model error
ends the turn with a generic message; details stay in the server log.
"""

import asyncio
import logging
import time
from enum import StrEnum
from typing import Any, AsyncIterator, Awaitable, Callable

from nourish.agent.messages import ChatMessage
from nourish.config import settings
from nourish.llm.client import ModelClient, TextDelta, ToolCallRequest
from nourish.observability.session_logger import SessionLogger
from nourish.tools.context import ToolContext, ToolDeps
from nourish.tools.dispatcher import ToolCall, execute_tool_calls
from nourish.tools.registry import tool_catalog

logger = logging.getLogger(__name__)

STEP_LIMIT_MESSAGE = (
    "I've done as much as I can for this message. "
    "Let me know if you'd like me to keep going."
)
MODEL_ERROR_MESSAGE = "An unexpected error occurred. Please try again."


class AgentState(StrEnum):
    AWAITING_MODEL = "awaiting_model"
    TEXT_ONLY = "text_only"
    TOOL_CALLS_EMITTED = "tool_calls_emitted"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"


class StopReason(StrEnum):
    COMPLETE = "complete"
    STEP_LIMIT = "step_limit"
    MODEL_ERROR = "model_error"
    DISCONNECTED = "disconnected"


async def run_agent_turn(
    model: ModelClient,
    system_prompt: str,
    messages: list[ChatMessage],
    ctx: ToolContext,
    deps: ToolDeps,
    *,
    tools: list[dict[str, Any]] | None = None,
    max_steps: int | None = None,
    tool_timeout: float | None = None,
    is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    session_logger: SessionLogger | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """
    Drive one bounded agent turn, yielding events as they happen.

    Args:
        model: Streaming model client
        system_prompt: Rendered system prompt for this turn
        messages: Conversation so far (not mutated)
        ctx: Authenticated tool context; every tool call runs as this user
        deps: Store and image storage the tools act on
        tools: Tool definitions (default: the full catalog)
        max_steps: Ceiling on model invocations (default: settings.agent_max_steps)
        tool_timeout: Per-call tool timeout (default: settings.tool_timeout_seconds)
        is_disconnected: Checked before every model invocation
        session_logger: Optional JSONL event log
    """
    tools = tool_catalog() if tools is None else tools
    max_steps = max_steps or settings.agent_max_steps
    tool_timeout = settings.tool_timeout_seconds if tool_timeout is None else tool_timeout
    log = session_logger or SessionLogger(enabled=False)

    conversation = list(messages)
    response_parts: list[str] = []
    steps = 0
    state = AgentState.AWAITING_MODEL
    stop_reason = StopReason.COMPLETE

    while state is AgentState.AWAITING_MODEL:
        if steps >= max_steps:
            stop_reason = StopReason.STEP_LIMIT
            log.step_limit(steps)
            logger.warning("Agent turn for %s hit the %d-step ceiling", ctx.user_id, max_steps)
            break
        if is_disconnected is not None and await is_disconnected():
            stop_reason = StopReason.DISCONNECTED
            logger.info("Client disconnected after %d steps; not calling the model again", steps)
            break

        steps += 1
        step_text: list[str] = []
        calls: list[ToolCallRequest] = []
        start = time.perf_counter()

        try:
            async for event in model.stream(
                system_prompt, [m.to_openai() for m in conversation], tools, step=steps
            ):
                if isinstance(event, TextDelta):
                    step_text.append(event.text)
                    yield {"type": "text", "text": event.text}
                else:
                    calls.append(event)
        except Exception as e:
            logger.exception("Model call failed on step %d: %s", steps, e)
            log.model_call(steps, model.model, error=str(e))
            yield {"type": "error", "message": MODEL_ERROR_MESSAGE}
            response_parts.append(MODEL_ERROR_MESSAGE)
            stop_reason = StopReason.MODEL_ERROR
            break

        log.model_call(
            steps,
            model.model,
            duration_ms=int((time.perf_counter() - start) * 1000),
            tool_calls=len(calls),
        )
        text = "".join(step_text)
        if text:
            response_parts.append(text)
        conversation.append(ChatMessage.assistant(text, calls))

        if not calls:
            state = AgentState.TEXT_ONLY
            break

        state = AgentState.TOOL_CALLS_EMITTED
        for call in calls:
            log.tool_call(call.name, call.id, call.arguments)
            yield {"type": "tool_call", "id": call.id, "name": call.name, "arguments": call.arguments}

        state = AgentState.EXECUTING_TOOLS
        # Started writes run to completion even if the consumer goes away
        results = await asyncio.shield(
            execute_tool_calls(
                [ToolCall(id=c.id, name=c.name, arguments=c.arguments) for c in calls],
                ctx,
                deps,
                timeout=tool_timeout,
            )
        )
        for result in results:
            log.tool_result(result.name, result.call_id, result.payload)
            conversation.append(ChatMessage.tool_result(result.call_id, result.payload))
            yield {
                "type": "tool_result",
                "id": result.call_id,
                "name": result.name,
                "result": result.payload,
            }
        state = AgentState.AWAITING_MODEL

    if stop_reason is StopReason.STEP_LIMIT and not "".join(response_parts).strip():
        response_parts.append(STEP_LIMIT_MESSAGE)
        conversation.append(ChatMessage.assistant(STEP_LIMIT_MESSAGE))
        yield {"type": "text", "text": STEP_LIMIT_MESSAGE}

    state = AgentState.DONE
    response = "\n\n".join(response_parts)
    log.turn_end(response, steps, stop_reason.value)
    yield {
        "type": "done",
        "response": response,
        "steps": steps,
        "stop_reason": stop_reason.value,
        "messages": [m.model_dump() for m in conversation],
    }
