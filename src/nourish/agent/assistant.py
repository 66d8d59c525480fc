"""
Nourish - Assistant entry point.

Glue between a transport (web request, CLI prompt) and the agent loop:
validate the client's snapshot, build the context, render the system prompt,
then run the turn as the authenticated user.
"""

import logging
from datetime import datetime
from typing import Any, AsyncIterator, Awaitable, Callable

from nourish.agent.messages import ChatMessage
from nourish.agent.session import run_agent_turn
from nourish.context.builders import AssistantContext, build_assistant_context, parse_snapshot
from nourish.db.adapter import Store
from nourish.llm.client import ModelClient
from nourish.observability.session_logger import SessionLogger
from nourish.prompts.system import build_system_prompt
from nourish.storage import ImageStorage
from nourish.tools.context import ToolContext, ToolDeps

logger = logging.getLogger(__name__)


async def prepare_turn(
    store: Store,
    user_id: str,
    raw_context: Any,
    now: datetime | None = None,
) -> tuple[AssistantContext, str]:
    """
    Validate the snapshot and render the system prompt for one turn.

    Raises:
        ContextValidationError: before any model call if the snapshot is bad
    """
    snapshot = parse_snapshot(raw_context)
    context = await build_assistant_context(store, user_id, snapshot)
    return context, build_system_prompt(context, now)


async def run_prepared_turn(
    model: ModelClient,
    store: Store,
    user_id: str,
    context: AssistantContext,
    system_prompt: str,
    messages: list[ChatMessage],
    *,
    storage: ImageStorage | None = None,
    is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    session_logger: SessionLogger | None = None,
    max_steps: int | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """Run a turn whose context was already validated by prepare_turn()."""
    ctx = ToolContext(user_id=user_id, timezone=context.timezone)

    last_user = next((m.content for m in reversed(messages) if m.role == "user"), "")
    if session_logger is not None:
        session_logger.turn_start(last_user, user_id=user_id)
    logger.info("Assistant turn for %s (%d messages)", user_id, len(messages))

    async for event in run_agent_turn(
        model,
        system_prompt,
        messages,
        ctx,
        ToolDeps(store=store, storage=storage),
        max_steps=max_steps,
        is_disconnected=is_disconnected,
        session_logger=session_logger,
    ):
        yield event


async def stream_assistant_reply(
    model: ModelClient,
    store: Store,
    user_id: str,
    raw_context: Any,
    messages: list[ChatMessage],
    **kwargs: Any,
) -> AsyncIterator[dict[str, Any]]:
    """Run one assistant turn for `user_id`, yielding agent events."""
    context, system_prompt = await prepare_turn(store, user_id, raw_context)
    async for event in run_prepared_turn(
        model, store, user_id, context, system_prompt, messages, **kwargs
    ):
        yield event
