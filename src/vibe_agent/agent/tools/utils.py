"""Shared utilities for agent tools."""

import functools
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog
from langchain_core.tools import BaseTool, StructuredTool
from pydantic import BaseModel

from vibe_agent.agent.state import ToolOutcome, ToolResult

logger = structlog.get_logger(__name__)

ToolHandler = Callable[..., Awaitable[ToolOutcome]]


def tool_error_handler(operation_name: str) -> Callable[[ToolHandler], ToolHandler]:
    """Decorator turning handler exceptions into a failed ToolOutcome.

    Args:
        operation_name: Human-readable name of the operation for logging

    Usage:
        @tool_error_handler("file read")
        async def my_handler(...) -> ToolOutcome:
            ...
    """
    def decorator(func: ToolHandler) -> ToolHandler:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> ToolOutcome:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"{operation_name} failed",
                    error=str(e),
                    exc_info=True
                )
                return ToolOutcome(ToolResult.fail(f"{operation_name} failed - {e!s}"))
        return wrapper
    return decorator


@dataclass
class AgentTool:
    """A named tool: parameter schema plus an async handler returning a ToolOutcome."""

    name: str
    description: str
    args_schema: type[BaseModel]
    handler: ToolHandler

    async def run(self, **kwargs: Any) -> ToolOutcome:
        """Run the handler; an exception comes back as a failed ToolOutcome."""
        return await tool_error_handler(self.name)(self.handler)(**kwargs)

    def as_langchain_tool(self) -> BaseTool:
        """Expose the tool contract to chat models via bind_tools.

        The returned tool is also directly invocable and renders its result
        as tool message text.
        """
        async def _run(**kwargs: Any) -> str:
            outcome = await self.run(**kwargs)
            return outcome.result.to_text()

        return StructuredTool.from_function(
            coroutine=_run,
            name=self.name,
            description=self.description,
            args_schema=self.args_schema,
        )
