"""Nourish - Prompt assembly."""

from nourish.prompts.system import build_system_prompt

__all__ = ["build_system_prompt"]
