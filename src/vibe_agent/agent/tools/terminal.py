"""Run shell commands in the sandbox."""

from typing import Any

import structlog
from pydantic import BaseModel, Field

from vibe_agent.agent.state import ToolOutcome, ToolResult
from vibe_agent.agent.tools.utils import AgentTool
from vibe_agent.core.sandbox import CommandTimeoutError

logger = structlog.get_logger(__name__)


class TerminalInput(BaseModel):
    command: str = Field(description="The command to run in the terminal.")


def _format_failure(error: str, stdout: str, stderr: str) -> str:
    return f"Command failed: {error}\nstdout: {stdout}\nstderr: {stderr}"


def create_terminal_tool(sandbox: Any, timeout: float = 30.0) -> AgentTool:
    """Factory function to create the terminal tool bound to a sandbox.

    Args:
        sandbox: SandboxHandle the command runs in
        timeout: Seconds before the command is abandoned

    Returns:
        Configured terminal tool
    """

    async def terminal(command: str) -> ToolOutcome:
        buffers = {"stdout": "", "stderr": ""}

        def on_stdout(data: str) -> None:
            buffers["stdout"] += data

        def on_stderr(data: str) -> None:
            buffers["stderr"] += data

        logger.info("Executing terminal command", command=command[:100], timeout=timeout)

        try:
            result = await sandbox.run_command(
                command,
                timeout=timeout,
                on_stdout=on_stdout,
                on_stderr=on_stderr,
            )
        except CommandTimeoutError as e:
            logger.warning("Terminal command timed out", command=command[:100])
            return ToolOutcome(ToolResult.fail(_format_failure(str(e), buffers["stdout"], buffers["stderr"])))
        except Exception as e:
            logger.error("Terminal command failed", command=command[:100], error=str(e))
            return ToolOutcome(ToolResult.fail(_format_failure(str(e), buffers["stdout"], buffers["stderr"])))

        if result.exit_code in (0, None):
            return ToolOutcome(ToolResult.ok(buffers["stdout"]))

        logger.info("Terminal command exited non-zero", command=command[:50], exit_code=result.exit_code)
        return ToolOutcome(
            ToolResult.fail(
                _format_failure(f"exit code {result.exit_code}", buffers["stdout"], buffers["stderr"])
            )
        )

    return AgentTool(
        name="terminal",
        description="Use the terminal to run commands in the sandbox environment.",
        args_schema=TerminalInput,
        handler=terminal,
    )
