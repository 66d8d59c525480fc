"""
Nourish - Observability.

Provides:
- Process-wide logging setup
- Optional per-session JSONL event logs
"""

import logging

from nourish.observability.session_logger import SessionLogger, create_session_logger

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Apply the configured log level to the root logger (first call wins)."""
    if level is None:
        from nourish.config import settings

        level = settings.log_level

    logging.basicConfig(level=level, format=LOG_FORMAT)
    # Supabase/httpx request lines are noise at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


__all__ = [
    "SessionLogger",
    "configure_logging",
    "create_session_logger",
]
