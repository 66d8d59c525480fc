"""
Nourish - Model access.

Streaming chat completions with tool calling, plus structured one-shot calls.
"""

from nourish.llm.client import (
    ModelClient,
    ModelEvent,
    OpenAIChatModel,
    TextDelta,
    ToolCallRequest,
    call_llm,
    get_model_client,
)

__all__ = [
    "ModelClient",
    "ModelEvent",
    "OpenAIChatModel",
    "TextDelta",
    "ToolCallRequest",
    "call_llm",
    "get_model_client",
]
