"""Vibe Builder coding agent.

- state: run state, ToolResult/ToolOutcome and FileSet merging
- tools: sandbox tools and the ToolRegistry
- loop: the bounded AgentLoop
- generators: title and response generation
"""

from .state import (
    AgentRunResult,
    AgentRunState,
    ConversationMessage,
    FileSet,
    ToolOutcome,
    ToolResult,
    merge_files,
)
from .tools import ToolRegistry, create_tool_registry, get_all_tools
from .loop import AgentLoop, build_degraded_summary
from .generators import DEFAULT_RESPONSE, DEFAULT_TITLE, generate_response, generate_title

__all__ = [
    "DEFAULT_RESPONSE",
    "DEFAULT_TITLE",
    "AgentLoop",
    "AgentRunResult",
    "AgentRunState",
    "ConversationMessage",
    "FileSet",
    "ToolOutcome",
    "ToolRegistry",
    "ToolResult",
    "build_degraded_summary",
    "create_tool_registry",
    "generate_response",
    "generate_title",
    "get_all_tools",
    "merge_files",
]
