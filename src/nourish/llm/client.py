"""
Nourish - Model Client.

Streams chat completions with function tools from any OpenAI-compatible
endpoint. The agent loop depends only on the ModelClient protocol, so tests
drive it with scripted fakes.

A stream yields TextDelta events as text arrives and, once the provider
finishes, one ToolCallRequest per requested tool call in the order the model
issued them.

One-shot structured calls (meal analysis) go through call_llm(), which wraps
the same provider with Instructor for schema-validated responses.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, AsyncIterator, Protocol, TypeVar

import instructor
from openai import AsyncOpenAI
from pydantic import BaseModel

from nourish.config import settings
from nourish.llm.prompt_logger import log_prompt

logger = logging.getLogger(__name__)

# Type variable for generic structured output
T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True)
class TextDelta:
    text: str


@dataclass(frozen=True)
class ToolCallRequest:
    id: str
    name: str
    arguments: str


ModelEvent = TextDelta | ToolCallRequest


class ModelClient(Protocol):
    model: str

    def stream(
        self,
        system_prompt: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
        step: int = 1,
    ) -> AsyncIterator[ModelEvent]:
        ...


class OpenAIChatModel:
    """Streaming chat completions via openai.AsyncOpenAI."""

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        model: str | None = None,
        temperature: float | None = None,
    ):
        self._client = client or AsyncOpenAI(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
        )
        self.model = model or settings.model_name
        self.temperature = settings.model_temperature if temperature is None else temperature

    async def stream(
        self,
        system_prompt: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]],
        step: int = 1,
    ) -> AsyncIterator[ModelEvent]:
        """Stream one call; `step` is the caller's step number within its turn, used for prompt logs."""
        api_kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "system", "content": system_prompt}, *messages],
            "temperature": self.temperature,
            "stream": True,
        }
        if tools:
            api_kwargs["tools"] = tools

        start = time.perf_counter()
        text_parts: list[str] = []
        # Tool call fragments arrive keyed by index; ids and names come once,
        # arguments are split across chunks
        pending: dict[int, dict[str, str]] = {}

        try:
            response = await self._client.chat.completions.create(**api_kwargs)
            async for chunk in response:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                if delta.content:
                    text_parts.append(delta.content)
                    yield TextDelta(delta.content)
                for fragment in delta.tool_calls or []:
                    slot = pending.setdefault(fragment.index, {"id": "", "name": "", "arguments": ""})
                    if fragment.id:
                        slot["id"] = fragment.id
                    if fragment.function and fragment.function.name:
                        slot["name"] += fragment.function.name
                    if fragment.function and fragment.function.arguments:
                        slot["arguments"] += fragment.function.arguments
        except Exception as e:
            log_prompt(
                step=step,
                model=self.model,
                system_prompt=system_prompt,
                messages=messages,
                error=str(e),
            )
            raise

        calls = [ToolCallRequest(**pending[index]) for index in sorted(pending)]
        logger.debug(
            "Model %s answered in %.0fms (%d chars, %d tool calls)",
            self.model,
            (time.perf_counter() - start) * 1000,
            sum(len(t) for t in text_parts),
            len(calls),
        )
        log_prompt(
            step=step,
            model=self.model,
            system_prompt=system_prompt,
            messages=messages,
            response={
                "text": "".join(text_parts),
                "tool_calls": [{"id": c.id, "name": c.name, "arguments": c.arguments} for c in calls],
            },
        )
        for call in calls:
            yield call


_model: OpenAIChatModel | None = None


def get_model_client() -> OpenAIChatModel:
    """
    Get the shared model client.

    Uses singleton pattern to reuse the HTTP connection pool.
    """
    global _model
    if _model is None:
        if not settings.openai_api_key:
            raise RuntimeError("OPENAI_API_KEY must be set to talk to the model")
        _model = OpenAIChatModel()
    return _model


# =============================================================================
# Structured Output
# =============================================================================

_structured_client: instructor.AsyncInstructor | None = None


def get_structured_client() -> instructor.AsyncInstructor:
    """
    Get the Instructor-wrapped async OpenAI client.

    Uses singleton pattern to reuse connection.
    """
    global _structured_client
    if _structured_client is None:
        _structured_client = instructor.from_openai(
            AsyncOpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)
        )
    return _structured_client


async def call_llm(
    *,
    response_model: type[T],
    system_prompt: str,
    user_prompt: str,
    label: str,
    max_retries: int = 2,
    temperature: float = 0.2,
) -> T:
    """
    Make a structured model call with guaranteed schema compliance.

    Args:
        response_model: Pydantic model class for the response
        system_prompt: System message setting context
        user_prompt: User message with the actual request
        label: Name for the prompt log file
        max_retries: Number of retries if response doesn't match schema

    Returns:
        Instance of response_model with validated data
    """
    client = get_structured_client()
    model = settings.analysis_model_name or settings.model_name
    messages = [{"role": "user", "content": user_prompt}]

    try:
        response = await client.chat.completions.create(
            model=model,
            messages=[{"role": "system", "content": system_prompt}, *messages],
            response_model=response_model,
            max_retries=max_retries,
            temperature=temperature,
        )
    except Exception as e:
        log_prompt(
            model=model,
            system_prompt=system_prompt,
            messages=messages,
            error=str(e),
            label=label,
        )
        raise

    log_prompt(
        model=model,
        system_prompt=system_prompt,
        messages=messages,
        response=response.model_dump(),
        label=label,
    )
    return response
