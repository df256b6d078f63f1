"""Tests for ToolRegistry dispatch."""

import pytest
from pydantic import BaseModel

from vibe_agent.agent.state import ToolOutcome, ToolResult
from vibe_agent.agent.tools import AgentTool, ToolRegistry, create_tool_registry


class EchoInput(BaseModel):
    text: str


async def _echo(text: str) -> ToolOutcome:
    return ToolOutcome(ToolResult.ok(text))


async def _explode(text: str) -> ToolOutcome:
    raise RuntimeError("kaboom")


def _tool(name: str, handler=_echo) -> AgentTool:
    return AgentTool(name=name, description=f"{name} tool", args_schema=EchoInput, handler=handler)


class TestToolRegistry:
    """Tests for ToolRegistry."""

    @pytest.mark.asyncio
    async def test_dispatch_runs_handler(self):
        registry = ToolRegistry([_tool("echo")])

        outcome = await registry.dispatch("echo", {"text": "hi"})

        assert outcome.result.success is True
        assert outcome.result.result == "hi"

    @pytest.mark.asyncio
    async def test_unknown_tool_fails_without_raising(self):
        registry = ToolRegistry([_tool("echo")])

        outcome = await registry.dispatch("rm_rf", {})

        assert outcome.result.success is False
        assert "Unknown tool: rm_rf" in outcome.result.error
        assert "echo" in outcome.result.error

    @pytest.mark.asyncio
    async def test_invalid_arguments_fail_without_raising(self):
        registry = ToolRegistry([_tool("echo")])

        outcome = await registry.dispatch("echo", {"wrong": 1})

        assert outcome.result.success is False
        assert "Invalid arguments for echo" in outcome.result.error

    @pytest.mark.asyncio
    async def test_handler_exception_becomes_failure(self):
        """Test dispatch routes handler exceptions through tool_error_handler."""
        registry = ToolRegistry([_tool("explode", _explode)])

        outcome = await registry.dispatch("explode", {"text": "x"})

        assert outcome.result.success is False
        assert outcome.result.error == "explode failed - kaboom"
        assert outcome.files == {}

    def test_duplicate_names_rejected(self):
        with pytest.raises(ValueError, match="Duplicate tool name"):
            ToolRegistry([_tool("echo"), _tool("echo")])

    def test_default_registry_exposes_four_tools(self, fake_sandbox):
        registry = create_tool_registry(fake_sandbox)

        assert registry.names == ["terminal", "createOrUpdateFiles", "readFiles", "listFiles"]
        assert [t.name for t in registry.tools] == registry.names

    @pytest.mark.asyncio
    async def test_langchain_tool_returns_text(self):
        """Test the bound tool contract renders failures as ERROR text."""
        registry = ToolRegistry([_tool("explode", _explode)])

        text = await registry.tools[0].ainvoke({"text": "x"})

        assert text.startswith("ERROR: explode failed")
