"""Pytest configuration and shared fixtures for vibe-builder tests."""

import posixpath
import sys
from pathlib import Path
from typing import Any
from unittest.mock import Mock

import pytest
from langchain_core.messages import AIMessage

# Add src to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from vibe_agent.core.sandbox import CommandResult, SandboxFileNotFoundError  # noqa: E402


# ============================================================================
# Sandbox Fixtures
# ============================================================================


class FakeSandbox:
    """In-memory stand-in for SandboxHandle.

    Files live in a dict keyed by relative path. Commands are answered from
    `command_results` (command -> CommandResult or exception); anything else
    exits 0 with empty output.
    """

    def __init__(self, files: dict[str, str] | None = None, sandbox_id: str = "sbx-test"):
        self.files: dict[str, str] = dict(files or {})
        self.dirs: set[str] = set()
        self.sandbox_id = sandbox_id
        self.commands: list[str] = []
        self.command_results: dict[str, Any] = {}
        self.fail_writes: set[str] = set()
        self.timeout_minutes: int | None = None
        self.deleted = False
        self.preview_url = f"https://3000-{sandbox_id}.proxy.daytona.works"

    async def read_file(self, path: str) -> str:
        if path not in self.files:
            raise SandboxFileNotFoundError(path)
        return self.files[path]

    async def write_file(self, path: str, content: str) -> None:
        if path in self.fail_writes:
            raise PermissionError(f"Permission denied: {path}")
        self.files[path] = content

    async def write_files(self, files: dict[str, str]) -> None:
        for path, content in files.items():
            parent = posixpath.dirname(path)
            if parent:
                await self.make_dir(parent)
            await self.write_file(path, content)

    async def make_dir(self, path: str) -> None:
        self.dirs.add(path)

    async def list_files(self, path: str = ".", recursive: bool = False) -> list[dict[str, Any]]:
        prefix = "" if path in ("", ".") else path.rstrip("/") + "/"
        entries: dict[str, bool] = {}
        for file_path in self.files:
            if not file_path.startswith(prefix):
                continue
            rest = file_path[len(prefix):].split("/")
            if recursive:
                for depth in range(1, len(rest)):
                    entries[prefix + "/".join(rest[:depth])] = True
                entries[file_path] = False
            else:
                entries[prefix + rest[0]] = len(rest) > 1
        return [
            {"name": p.rsplit("/", 1)[-1], "path": p, "is_dir": is_dir, "size": None}
            for p, is_dir in sorted(entries.items())
        ]

    async def snapshot_files(self, path: str = ".") -> dict[str, str]:
        return dict(self.files)

    async def run_command(self, command, *, timeout=30.0, working_dir=None, on_stdout=None, on_stderr=None):
        self.commands.append(command)
        outcome = self.command_results.get(command, CommandResult("", "", 0, "cmd_0001"))
        if isinstance(outcome, Exception):
            raise outcome
        if on_stdout and outcome.stdout:
            on_stdout(outcome.stdout)
        if on_stderr and outcome.stderr:
            on_stderr(outcome.stderr)
        return outcome

    async def set_timeout(self, minutes: int | None = None) -> None:
        self.timeout_minutes = minutes

    async def get_preview_url(self, port: int | None = None) -> str:
        return self.preview_url

    async def delete(self) -> None:
        self.deleted = True


@pytest.fixture
def fake_sandbox():
    """Empty in-memory sandbox."""
    return FakeSandbox()


# ============================================================================
# Chat Model Fixtures
# ============================================================================


class FakeChatModel:
    """Scripted chat model.

    Each ainvoke() pops the next scripted item: an AIMessage is returned,
    an exception is raised. Once the script runs out the last item repeats.
    """

    def __init__(self, script: list[Any]):
        self.script = list(script)
        self.calls: list[list[Any]] = []
        self.bound_tools: list[Any] = []

    def bind_tools(self, tools, **kwargs):
        self.bound_tools = list(tools)
        return self

    async def ainvoke(self, messages, **kwargs):
        self.calls.append(list(messages))
        index = min(len(self.calls), len(self.script)) - 1
        item = self.script[index]
        if isinstance(item, BaseException):
            raise item
        return item


def tool_call(name: str, args: dict, call_id: str = "call_1") -> dict:
    """Build a LangChain tool call dict."""
    return {"name": name, "args": args, "id": call_id, "type": "tool_call"}


def write_call(files: dict[str, str], call_id: str = "call_1") -> AIMessage:
    """AIMessage requesting createOrUpdateFiles for `files`."""
    return AIMessage(
        content="",
        tool_calls=[
            tool_call(
                "createOrUpdateFiles",
                {"files": [{"path": p, "content": c} for p, c in files.items()]},
                call_id,
            )
        ],
    )


def summary_message(text: str = "Built a landing page.") -> AIMessage:
    return AIMessage(content=f"<task_summary>\n{text}\n</task_summary>")


@pytest.fixture
def fake_chat_model():
    """Factory for scripted chat models."""
    return FakeChatModel


# ============================================================================
# Config Fixtures
# ============================================================================


@pytest.fixture
def agent_config():
    """AgentConfig with test defaults (no files or env required)."""
    from vibe_agent.config import AgentConfig

    return AgentConfig()


@pytest.fixture
def mock_dispatcher():
    """EventDispatcher double whose send() records dispatches."""
    from unittest.mock import AsyncMock

    dispatcher = Mock()
    dispatcher.send = AsyncMock(return_value=Mock(job_id="job-1"))
    return dispatcher
