"""Tests for the AgentLoop."""

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage

from tests.conftest import FakeChatModel, summary_message, tool_call, write_call
from vibe_agent.agent.loop import AgentLoop
from vibe_agent.agent.prompts import FAILURE_SUMMARY, STALL_NUDGE
from vibe_agent.agent.state import ConversationMessage
from vibe_agent.agent.tools import create_tool_registry


def _loop(model, sandbox, max_iterations=15):
    return AgentLoop(
        model,
        create_tool_registry(sandbox),
        max_iterations=max_iterations,
        system_prompt="You are a test agent.",
    )


class TestAgentLoop:
    """Tests for AgentLoop.run."""

    @pytest.mark.asyncio
    async def test_summary_on_first_iteration_stops(self, fake_sandbox):
        """Test a summary in the first reply ends the run after one model call."""
        model = FakeChatModel([summary_message("Nothing to do.")])

        result = await _loop(model, fake_sandbox).run("hello")

        assert result.success is True
        assert result.degraded is False
        assert result.iterations == 1
        assert len(model.calls) == 1
        assert "<task_summary>" in result.summary
        assert result.files == {}

    @pytest.mark.asyncio
    async def test_writes_then_summary(self, fake_sandbox):
        """Test files written by tool calls end up in the result FileSet."""
        model = FakeChatModel([
            write_call({"app/page.tsx": "v1"}, "c1"),
            write_call({"app/page.tsx": "v2", "lib/util.ts": "u"}, "c2"),
            summary_message(),
        ])

        result = await _loop(model, fake_sandbox).run("build a page")

        assert result.success is True
        assert result.iterations == 3
        assert result.files == {"app/page.tsx": "v2", "lib/util.ts": "u"}
        tool_messages = [m for m in result.messages if isinstance(m, ToolMessage)]
        assert [m.tool_call_id for m in tool_messages] == ["c1", "c2"]

    @pytest.mark.asyncio
    async def test_tool_calls_in_summary_reply_are_dispatched(self, fake_sandbox):
        """Test a reply carrying the marker and tool calls still runs the calls."""
        reply = AIMessage(
            content="<task_summary>done</task_summary>",
            tool_calls=[tool_call("createOrUpdateFiles", {"files": [{"path": "a.txt", "content": "a"}]})],
        )
        model = FakeChatModel([reply])

        result = await _loop(model, fake_sandbox).run("go")

        assert result.success is True
        assert result.files == {"a.txt": "a"}
        assert len(model.calls) == 1

    @pytest.mark.asyncio
    async def test_run_to_cap_without_files_fails(self, fake_sandbox):
        """Test hitting the iteration cap with no files is a failure."""
        model = FakeChatModel([AIMessage(content="", tool_calls=[tool_call("listFiles", {})])])

        result = await _loop(model, fake_sandbox, max_iterations=4).run("go")

        assert result.success is False
        assert result.summary == FAILURE_SUMMARY
        assert result.files == {}
        assert result.iterations == 4
        assert len(model.calls) == 4
        assert "limit of 4 iterations" in result.error

    @pytest.mark.asyncio
    async def test_run_to_cap_with_files_is_degraded(self, fake_sandbox):
        """Test hitting the cap after writing files is a degraded success."""
        model = FakeChatModel([write_call({"app/page.tsx": "x"})])

        result = await _loop(model, fake_sandbox, max_iterations=3).run("go")

        assert result.success is True
        assert result.degraded is True
        assert result.files == {"app/page.tsx": "x"}
        assert "Partially completed" in result.summary
        assert "app/page.tsx" in result.summary

    @pytest.mark.asyncio
    async def test_model_error_after_writes_is_degraded(self, fake_sandbox):
        """Test a model failure keeps the files written so far."""
        model = FakeChatModel([write_call({"a.txt": "a"}), RuntimeError("rate limited")])

        result = await _loop(model, fake_sandbox).run("go")

        assert result.success is True
        assert result.degraded is True
        assert result.iterations == 2
        assert "rate limited" in result.error

    @pytest.mark.asyncio
    async def test_model_error_without_files_fails(self, fake_sandbox):
        model = FakeChatModel([RuntimeError("bad key")])

        result = await _loop(model, fake_sandbox).run("go")

        assert result.success is False
        assert result.summary == FAILURE_SUMMARY

    @pytest.mark.asyncio
    async def test_empty_reply_is_nudged(self, fake_sandbox):
        """Test an empty reply appends a nudge and consumes an iteration."""
        model = FakeChatModel([AIMessage(content=""), summary_message()])

        result = await _loop(model, fake_sandbox).run("go")

        assert result.success is True
        assert result.iterations == 2
        second_call = model.calls[1]
        assert isinstance(second_call[-1], HumanMessage)
        assert second_call[-1].content == STALL_NUDGE

    @pytest.mark.asyncio
    async def test_failed_tool_call_continues(self, fake_sandbox):
        """Test tool failures are fed back and the loop keeps going."""
        model = FakeChatModel([
            AIMessage(content="", tool_calls=[tool_call("readFiles", {"paths": ["missing.ts"]})]),
            summary_message(),
        ])

        result = await _loop(model, fake_sandbox).run("go")

        tool_message = next(m for m in result.messages if isinstance(m, ToolMessage))
        assert tool_message.status == "error"
        assert tool_message.content.startswith("ERROR:")
        assert result.success is True

    @pytest.mark.asyncio
    async def test_seeding_order(self, fake_sandbox):
        """Test system prompt, prior turns, then the request."""
        model = FakeChatModel([summary_message()])
        prior = [
            ConversationMessage("user", "make a todo app"),
            ConversationMessage("assistant", "Here you go."),
        ]

        await _loop(model, fake_sandbox).run("add dark mode", {"app/page.tsx": "old"}, prior)

        first_call = model.calls[0]
        assert isinstance(first_call[0], SystemMessage)
        assert [m.content for m in first_call[1:]] == ["make a todo app", "Here you go.", "add dark mode"]
        assert isinstance(first_call[2], AIMessage)

    @pytest.mark.asyncio
    async def test_prior_files_are_extended(self, fake_sandbox):
        """Test the run starts from the prior FileSet."""
        model = FakeChatModel([write_call({"app/new.tsx": "n"}), summary_message()])

        result = await _loop(model, fake_sandbox).run("go", {"app/page.tsx": "old"})

        assert result.files == {"app/page.tsx": "old", "app/new.tsx": "n"}

    def test_tools_are_bound(self, fake_sandbox):
        model = FakeChatModel([summary_message()])

        _loop(model, fake_sandbox)

        assert [t.name for t in model.bound_tools] == [
            "terminal", "createOrUpdateFiles", "readFiles", "listFiles",
        ]

    def test_max_iterations_must_be_positive(self, fake_sandbox):
        with pytest.raises(ValueError):
            _loop(FakeChatModel([]), fake_sandbox, max_iterations=0)
