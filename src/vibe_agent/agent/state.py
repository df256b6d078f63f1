"""Run state and data model shared by the agent loop and its tools."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

# Path -> full file content
FileSet = dict[str, str]

Role = Literal["system", "user", "assistant"]


def merge_files(base: Mapping[str, str], delta: Mapping[str, str]) -> FileSet:
    """Merge two FileSets without mutating either; `delta` wins on conflict."""
    merged = dict(base)
    merged.update(delta)
    return merged


@dataclass(frozen=True)
class ConversationMessage:
    """One turn of prior conversation."""

    role: Role
    content: str

    def to_langchain(self) -> BaseMessage:
        if self.role == "system":
            return SystemMessage(content=self.content)
        if self.role == "assistant":
            return AIMessage(content=self.content)
        return HumanMessage(content=self.content)


@dataclass
class ToolResult:
    """Outcome of a single tool call. Every call resolves to exactly one."""

    success: bool
    result: str = ""
    error: str | None = None

    @classmethod
    def ok(cls, result: str | Any) -> ToolResult:
        if not isinstance(result, str):
            result = json.dumps(result, indent=2)
        return cls(success=True, result=result)

    @classmethod
    def fail(cls, error: str, result: str = "") -> ToolResult:
        return cls(success=False, result=result, error=error)

    def to_text(self) -> str:
        """Text fed back to the model as the tool message content."""
        if self.success:
            return self.result
        if self.result:
            return f"ERROR: {self.error}\n{self.result}"
        return f"ERROR: {self.error}"


@dataclass
class ToolOutcome:
    """A tool's result plus the FileSet delta it produced."""

    result: ToolResult
    files: FileSet = field(default_factory=dict)


@dataclass
class AgentRunState:
    """Mutable state owned by exactly one agent run."""

    summary: str = ""
    files: FileSet = field(default_factory=dict)
    messages: list[BaseMessage] = field(default_factory=list)
    iteration_count: int = 0

    def record_summary(self, text: str) -> bool:
        """Record the terminal summary. The first one wins."""
        if self.summary:
            return False
        self.summary = text
        return True

    def apply(self, outcome: ToolOutcome) -> None:
        if outcome.files:
            self.files = merge_files(self.files, outcome.files)


@dataclass
class AgentRunResult:
    """Final result of an agent run."""

    summary: str
    files: FileSet
    messages: list[BaseMessage]
    success: bool
    degraded: bool = False
    iterations: int = 0
    error: str | None = None
