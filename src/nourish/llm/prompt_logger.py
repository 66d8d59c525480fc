"""
Nourish - Prompt Logger.

Dumps every model call (system prompt, conversation, response summary) to a
markdown file for debugging. Enabled via NOURISH_LOG_PROMPTS=1 or the
--log-prompts CLI flag. Development only: files contain user data.
"""

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any

LOG_PROMPTS = os.getenv("NOURISH_LOG_PROMPTS", "0") == "1"
LOG_DIR = Path("prompt_logs")

_session_id: str | None = None
_call_counter: int = 0


def enable_prompt_logging(enabled: bool = True) -> None:
    """Enable or disable prompt logging."""
    global LOG_PROMPTS
    LOG_PROMPTS = enabled


def _get_session_dir() -> Path:
    global _session_id
    if _session_id is None:
        _session_id = datetime.now().strftime("%Y%m%d_%H%M%S")
    session_dir = LOG_DIR / _session_id
    session_dir.mkdir(parents=True, exist_ok=True)
    return session_dir


def _format_message(message: dict[str, Any]) -> str:
    role = message.get("role", "?")
    lines = [f"### {role}"]
    if message.get("content"):
        lines.append(str(message["content"]))
    for call in message.get("tool_calls") or []:
        fn = call.get("function", {})
        lines.append(f"-> {fn.get('name')}({fn.get('arguments')}) [{call.get('id')}]")
    if message.get("tool_call_id"):
        lines.append(f"(result for {message['tool_call_id']})")
    return "\n".join(lines)


def log_prompt(
    *,
    step: int = 1,
    model: str,
    system_prompt: str,
    messages: list[dict[str, Any]],
    response: Any = None,
    error: str | None = None,
    label: str | None = None,
) -> Path | None:
    """
    Write one model call to prompt_logs/<session>/<NN>_step<step>.md.

    Calls outside the agent loop pass a `label` (e.g. "meal_analysis") that
    replaces the step in the file name.

    Returns the file path, or None when logging is disabled.
    """
    if not LOG_PROMPTS:
        return None

    global _call_counter
    _call_counter += 1

    name = label or f"step{step}"
    filepath = _get_session_dir() / f"{_call_counter:02d}_{name}.md"
    conversation = "\n\n".join(_format_message(m) for m in messages)

    content = f"""# Model Call: {name}

**Time:** {datetime.now().isoformat()}
**Model:** {model}

---

## System Prompt

```
{system_prompt}
```

---

## Conversation

{conversation}

---

## Response

"""
    if error:
        content += f"**ERROR:** {error}\n"
    elif response is not None:
        content += f"```json\n{json.dumps(response, indent=2, default=str)}\n```\n"
    else:
        content += "(No response)\n"

    filepath.write_text(content, encoding="utf-8")
    return filepath


def reset_session() -> None:
    """Start a new log directory on the next call."""
    global _session_id, _call_counter
    _session_id = None
    _call_counter = 0
