"""Prompt templates for the coding agent.

Templates are stored as .md.j2 files next to this package and rendered
through a shared PromptLoader.

Usage:
    from vibe_agent.agent.prompts import get_loader

    prompt = get_loader().get_system_prompt(working_directory="/home/daytona")
"""

from .loader import (
    FAILURE_SUMMARY,
    STALL_NUDGE,
    TASK_SUMMARY_MARKER,
    PromptLoader,
    get_loader,
    reset_loader,
)

__all__ = [
    "FAILURE_SUMMARY",
    "STALL_NUDGE",
    "TASK_SUMMARY_MARKER",
    "PromptLoader",
    "get_loader",
    "reset_loader",
]
