"""Vibe Builder agent tools.

This package contains all tools available to the coding agent:
- terminal: shell command execution in the sandbox
- createOrUpdateFiles / readFiles / listFiles: sandbox file operations
"""

from typing import Any

from .file_ops import create_filesystem_tools
from .registry import ToolRegistry
from .terminal import create_terminal_tool
from .utils import AgentTool, tool_error_handler

__all__ = [
    "AgentTool",
    "ToolRegistry",
    "create_filesystem_tools",
    "create_terminal_tool",
    "create_tool_registry",
    "get_all_tools",
    "tool_error_handler",
]


def get_all_tools(sandbox: Any, terminal_timeout: float = 30.0) -> list[AgentTool]:
    """Create and return all available tools for the coding agent.

    Args:
        sandbox: SandboxHandle instance for command execution and file operations
        terminal_timeout: Seconds before a terminal command is abandoned

    Returns:
        List of all configured tools ready for use by the agent
    """
    write_files, read_files, list_files = create_filesystem_tools(sandbox)

    return [
        create_terminal_tool(sandbox, timeout=terminal_timeout),
        write_files,
        read_files,
        list_files,
    ]


def create_tool_registry(sandbox: Any, terminal_timeout: float = 30.0) -> ToolRegistry:
    """Build a ToolRegistry over every tool bound to `sandbox`."""
    return ToolRegistry(get_all_tools(sandbox, terminal_timeout=terminal_timeout))
