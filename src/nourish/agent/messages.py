"""
Nourish - Conversation messages.

The conversation an agent turn works on: the client's user/assistant history
plus the assistant tool-call turns and tool results the loop appends.
"""

import json
from typing import Any, Literal

from pydantic import BaseModel, Field

from nourish.llm.client import ToolCallRequest


class ToolCallRecord(BaseModel):
    id: str
    name: str
    arguments: str = "{}"


class ChatMessage(BaseModel):
    role: Literal["user", "assistant", "tool"]
    content: str = ""
    tool_calls: list[ToolCallRecord] = Field(default_factory=list)
    tool_call_id: str | None = None

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role="user", content=content)

    @classmethod
    def assistant(
        cls, content: str, tool_calls: list[ToolCallRequest] | None = None
    ) -> "ChatMessage":
        return cls(
            role="assistant",
            content=content,
            tool_calls=[
                ToolCallRecord(id=c.id, name=c.name, arguments=c.arguments)
                for c in tool_calls or []
            ],
        )

    @classmethod
    def tool_result(cls, call_id: str, payload: dict[str, Any]) -> "ChatMessage":
        return cls(role="tool", content=json.dumps(payload, default=str), tool_call_id=call_id)

    def to_openai(self) -> dict[str, Any]:
        """Chat Completions wire format."""
        if self.role == "tool":
            return {"role": "tool", "tool_call_id": self.tool_call_id, "content": self.content}
        message: dict[str, Any] = {"role": self.role, "content": self.content or None}
        if self.tool_calls:
            message["tool_calls"] = [
                {
                    "id": c.id,
                    "type": "function",
                    "function": {"name": c.name, "arguments": c.arguments},
                }
                for c in self.tool_calls
            ]
        elif message["content"] is None:
            message["content"] = ""
        return message


class ClientMessage(BaseModel):
    """A message as the client sends it: only its own user/assistant history."""

    role: Literal["user", "assistant"]
    content: str = Field(max_length=20_000)

    def to_chat(self) -> ChatMessage:
        return ChatMessage(role=self.role, content=self.content)
