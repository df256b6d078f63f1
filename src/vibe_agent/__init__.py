"""Vibe Builder agent - an autonomous coding agent working in a remote sandbox.

This package provides:
- Configuration system (agent_config.yaml)
- Core infrastructure (Daytona sandbox handle, health probe)
- LLM factory (models.json manifest)
- Agent implementation (tools, loop, auxiliary generations)

Quick start:
    from vibe_agent import AgentLoop, SandboxHandle, create_llm, create_tool_registry
    from vibe_agent.config import load_from_files

    config = await load_from_files()
    sandbox = await SandboxHandle.create(config.to_core_config())
    registry = create_tool_registry(sandbox, config.agent.terminal_timeout)
    loop = AgentLoop(create_llm(config.llm.name), registry)
    result = await loop.run("Build a todo app")
"""

__version__ = "0.1.0"

from vibe_agent.config import (
    AgentConfig,
    CoreConfig,
    LLMConfig,
    LoopConfig,
    load_from_files,
)
from vibe_agent.core import SandboxHandle, check_sandbox_health
from vibe_agent.llms import create_llm
from vibe_agent.agent import (
    AgentLoop,
    AgentRunResult,
    ConversationMessage,
    ToolRegistry,
    create_tool_registry,
    merge_files,
)

__all__ = [
    "AgentConfig",
    "AgentLoop",
    "AgentRunResult",
    "ConversationMessage",
    "CoreConfig",
    "LLMConfig",
    "LoopConfig",
    "SandboxHandle",
    "ToolRegistry",
    "__version__",
    "check_sandbox_health",
    "create_llm",
    "create_tool_registry",
    "load_from_files",
    "merge_files",
]
