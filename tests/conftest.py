"""
Pytest configuration and fixtures for Nourish tests.
"""

import asyncio
import os

import pytest

# Set test environment before importing nourish modules
os.environ["NOURISH_ENV"] = "development"
os.environ["NOURISH_LOG_SESSIONS"] = "0"
os.environ["NOURISH_LOG_PROMPTS"] = "0"
os.environ.setdefault("OPENAI_API_KEY", "test-key-not-real")

from nourish.db.memory import MemoryStore
from nourish.tools.context import ToolContext, ToolDeps
from nourish.tools.dispatcher import ToolCall, execute_tool

ALICE = "11111111-1111-1111-1111-111111111111"
BOB = "22222222-2222-2222-2222-222222222222"


@pytest.fixture
def store() -> MemoryStore:
    """Fresh in-memory store per test."""
    return MemoryStore()


@pytest.fixture
def deps(store) -> ToolDeps:
    return ToolDeps(store=store)


@pytest.fixture
def alice() -> ToolContext:
    return ToolContext(user_id=ALICE, timezone="UTC")


@pytest.fixture
def bob() -> ToolContext:
    return ToolContext(user_id=BOB, timezone="UTC")


def invoke(deps: ToolDeps, ctx: ToolContext, name: str, /, **arguments) -> dict:
    """Run one tool call through the dispatcher and return its payload."""
    call = ToolCall(id=f"call_{name}", name=name, arguments=arguments)
    return asyncio.run(execute_tool(call, ctx, deps)).payload
