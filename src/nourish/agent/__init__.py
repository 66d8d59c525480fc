"""
Nourish - Agent.

Bounded multi-step assistant turns over the tool catalog.
"""

from nourish.agent.assistant import prepare_turn, run_prepared_turn, stream_assistant_reply
from nourish.agent.messages import ChatMessage, ClientMessage
from nourish.agent.session import AgentState, StopReason, run_agent_turn

__all__ = [
    "AgentState",
    "ChatMessage",
    "ClientMessage",
    "StopReason",
    "prepare_turn",
    "run_agent_turn",
    "run_prepared_turn",
    "stream_assistant_reply",
]
