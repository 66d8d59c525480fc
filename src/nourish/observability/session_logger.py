"""
Nourish - Session Logger.

Optional JSONL event log for agent sessions, one file per session.

Events:
- session_start / session_end
- turn_start / turn_end (response preview, steps used, stop reason)
- model_call (step, duration, tool calls requested)
- tool_call / tool_result (arguments and payloads truncated)
- step_limit

Usage:
    from nourish.observability.session_logger import SessionLogger

    log = SessionLogger()
    log.turn_start("I had oatmeal")
    log.tool_result("queryMealHistory", "call_1", {"success": True, ...})
    log.close()

When disabled, every method is a no-op.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, TextIO


# =============================================================================
# Configuration
# =============================================================================

LOG_DIR = Path("session_logs")

MAX_STRING_LEN = 200
MAX_LIST_ITEMS = 5
MAX_DICT_KEYS = 10

# Keys that hold large free text
HEAVY_FIELDS = {"content", "system_prompt", "response", "notes", "image"}


# =============================================================================
# Truncation
# =============================================================================


def _truncate_value(value: Any, depth: int = 0) -> Any:
    """
    Shrink a value for logging.

    Long strings are cut with a length marker, long lists and dicts keep
    their first few entries plus a count, and anything nested deeper than
    three levels is replaced with "<nested>".
    """
    if depth > 3:
        return "<nested>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        if len(value) > MAX_STRING_LEN:
            return value[:MAX_STRING_LEN] + f"... ({len(value)} chars)"
        return value

    if isinstance(value, (list, tuple)):
        head = [_truncate_value(v, depth + 1) for v in value[:MAX_LIST_ITEMS]]
        if len(value) > MAX_LIST_ITEMS:
            head.append(f"... +{len(value) - MAX_LIST_ITEMS} more")
        return head

    if isinstance(value, dict):
        result = {}
        for key in list(value)[:MAX_DICT_KEYS]:
            item = value[key]
            if key in HEAVY_FIELDS and isinstance(item, str) and len(item) > 50:
                result[key] = item[:50] + f"... ({len(item)} chars)"
            else:
                result[key] = _truncate_value(item, depth + 1)
        if len(value) > MAX_DICT_KEYS:
            result["_truncated"] = f"+{len(value) - MAX_DICT_KEYS} keys"
        return result

    if hasattr(value, "model_dump"):
        return _truncate_value(value.model_dump(), depth)

    return str(value)[:MAX_STRING_LEN]


def _preview(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text


# =============================================================================
# Session Logger
# =============================================================================


class SessionLogger:
    """Per-session logger that appends JSONL entries to a file."""

    def __init__(
        self,
        session_id: str | None = None,
        enabled: bool = True,
        log_dir: Path | None = None,
    ):
        self.enabled = enabled
        self._turn = 0
        self.log_file: TextIO | None = None

        if not enabled:
            return

        directory = log_dir or LOG_DIR
        directory.mkdir(parents=True, exist_ok=True)

        self.session_id = session_id or datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        self.log_path = directory / f"session_{self.session_id}.jsonl"
        self.log_file = open(self.log_path, "a", encoding="utf-8")

        self._write({"event": "session_start", "session_id": self.session_id})

    def _write(self, data: dict) -> None:
        if self.log_file is None:
            return
        entry = {"ts": datetime.now().isoformat(), **data}
        self.log_file.write(json.dumps(entry, default=str) + "\n")
        self.log_file.flush()

    # =========================================================================
    # Turns
    # =========================================================================

    def turn_start(self, user_message: str, user_id: str | None = None) -> None:
        self._turn += 1
        self._write({
            "event": "turn_start",
            "turn": self._turn,
            "user_id": user_id,
            "user_message": _preview(user_message, 200),
        })

    def turn_end(self, response: str, steps: int, stop_reason: str) -> None:
        self._write({
            "event": "turn_end",
            "turn": self._turn,
            "steps": steps,
            "stop_reason": stop_reason,
            "response_len": len(response),
            "response_preview": _preview(response, 150),
        })

    # =========================================================================
    # Model / Tools
    # =========================================================================

    def model_call(
        self,
        step: int,
        model: str,
        duration_ms: int | None = None,
        tool_calls: int = 0,
        error: str | None = None,
    ) -> None:
        """Summary of one model invocation (never the full prompt)."""
        self._write({
            "event": "model_call",
            "turn": self._turn,
            "step": step,
            "model": model,
            "duration_ms": duration_ms,
            "tool_calls": tool_calls,
            "error": error,
        })

    def tool_call(self, tool: str, call_id: str, arguments: Any) -> None:
        self._write({
            "event": "tool_call",
            "turn": self._turn,
            "tool": tool,
            "call_id": call_id,
            "arguments": _truncate_value(arguments),
        })

    def tool_result(self, tool: str, call_id: str, payload: dict) -> None:
        self._write({
            "event": "tool_result",
            "turn": self._turn,
            "tool": tool,
            "call_id": call_id,
            "success": payload.get("success"),
            "error": payload.get("error"),
            "payload": _truncate_value(payload),
        })

    def step_limit(self, steps: int) -> None:
        self._write({"event": "step_limit", "turn": self._turn, "steps": steps})

    def log(self, event_type: str, **kwargs: Any) -> None:
        """Log a custom event."""
        self._write({"event": event_type, "turn": self._turn, **_truncate_value(kwargs)})

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> str | None:
        """Close the log file. Returns its path when logging was enabled."""
        if self.log_file is None:
            return None
        self._write({"event": "session_end", "total_turns": self._turn})
        self.log_file.close()
        self.log_file = None
        return str(self.log_path)


# =============================================================================
# Factory
# =============================================================================


def create_session_logger(session_id: str | None = None) -> SessionLogger:
    """Session logger honoring NOURISH_LOG_SESSIONS."""
    from nourish.config import settings

    return SessionLogger(session_id=session_id, enabled=settings.nourish_log_sessions)
