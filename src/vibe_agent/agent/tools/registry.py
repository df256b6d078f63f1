"""Tool registry: name lookup, argument validation and failure-safe dispatch."""

from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from langchain_core.tools import BaseTool
from pydantic import ValidationError

from vibe_agent.agent.state import ToolOutcome, ToolResult
from vibe_agent.agent.tools.utils import AgentTool

logger = structlog.get_logger(__name__)


class ToolRegistry:
    """Holds the tools available to one agent run.

    `dispatch` never raises: unknown tools, invalid arguments and handler
    exceptions all come back as a failed ToolResult.
    """

    def __init__(self, tools: Iterable[AgentTool]) -> None:
        self._tools: dict[str, AgentTool] = {}
        for agent_tool in tools:
            if agent_tool.name in self._tools:
                raise ValueError(f"Duplicate tool name: {agent_tool.name}")
            self._tools[agent_tool.name] = agent_tool
        self._langchain_tools: list[BaseTool] | None = None

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    @property
    def tools(self) -> list[BaseTool]:
        """Tool contracts for `bind_tools`."""
        if self._langchain_tools is None:
            self._langchain_tools = [t.as_langchain_tool() for t in self._tools.values()]
        return self._langchain_tools

    def get(self, name: str) -> AgentTool | None:
        return self._tools.get(name)

    async def dispatch(self, name: str, args: Mapping[str, Any] | None) -> ToolOutcome:
        """Validate arguments against the tool schema and run its handler."""
        agent_tool = self._tools.get(name)
        if agent_tool is None:
            logger.warning("Unknown tool requested", tool=name)
            return ToolOutcome(
                ToolResult.fail(f"Unknown tool: {name}. Available tools: {', '.join(self.names)}")
            )

        try:
            validated = agent_tool.args_schema.model_validate(dict(args or {}))
        except ValidationError as e:
            logger.warning("Invalid tool arguments", tool=name, error=str(e))
            return ToolOutcome(ToolResult.fail(f"Invalid arguments for {name}: {e}"))

        kwargs = {field: getattr(validated, field) for field in type(validated).model_fields}

        outcome = await agent_tool.run(**kwargs)

        logger.debug("Tool dispatched", tool=name, success=outcome.result.success, files=len(outcome.files))
        return outcome
