"""Tests for FileSet merging and run state bookkeeping."""

import json

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from vibe_agent.agent.state import (
    AgentRunState,
    ConversationMessage,
    ToolOutcome,
    ToolResult,
    merge_files,
)


class TestMergeFiles:
    """Tests for merge_files."""

    def test_delta_wins_on_conflict(self):
        """Test later writes replace earlier content for the same path."""
        merged = merge_files({"a.txt": "old", "b.txt": "keep"}, {"a.txt": "new"})

        assert merged == {"a.txt": "new", "b.txt": "keep"}

    def test_inputs_not_mutated(self):
        """Test neither input dict is modified."""
        base = {"a.txt": "1"}
        delta = {"b.txt": "2"}

        merge_files(base, delta)

        assert base == {"a.txt": "1"}
        assert delta == {"b.txt": "2"}

    def test_left_fold_keeps_last_write(self):
        """Test folding several deltas keeps the last content per path."""
        state = AgentRunState()
        for content in ("v1", "v2", "v3"):
            state.apply(ToolOutcome(ToolResult.ok("ok"), files={"app/page.tsx": content}))
        state.apply(ToolOutcome(ToolResult.ok("ok"), files={"README.md": "hi"}))

        assert state.files == {"app/page.tsx": "v3", "README.md": "hi"}

    def test_failed_outcome_without_files_leaves_state(self):
        """Test an outcome with no files does not touch the FileSet."""
        state = AgentRunState(files={"a": "1"})

        state.apply(ToolOutcome(ToolResult.fail("boom")))

        assert state.files == {"a": "1"}


class TestToolResult:
    """Tests for ToolResult constructors and text rendering."""

    def test_ok_serializes_non_string_results(self):
        result = ToolResult.ok([{"path": "a", "type": "file"}])

        assert result.success is True
        assert json.loads(result.result) == [{"path": "a", "type": "file"}]

    def test_failure_text_is_prefixed(self):
        assert ToolResult.fail("disk full").to_text() == "ERROR: disk full"

    def test_failure_text_includes_partial_result(self):
        text = ToolResult.fail("No files could be read", result="{}").to_text()

        assert text == "ERROR: No files could be read\n{}"


class TestAgentRunState:
    """Tests for AgentRunState.record_summary."""

    def test_first_summary_wins(self):
        state = AgentRunState()

        assert state.record_summary("first") is True
        assert state.record_summary("second") is False
        assert state.summary == "first"


class TestConversationMessage:
    """Tests for ConversationMessage.to_langchain."""

    def test_roles_map_to_message_types(self):
        assert isinstance(ConversationMessage("user", "hi").to_langchain(), HumanMessage)
        assert isinstance(ConversationMessage("assistant", "hello").to_langchain(), AIMessage)
        assert isinstance(ConversationMessage("system", "rules").to_langchain(), SystemMessage)
