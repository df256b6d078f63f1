"""File operation tools: createOrUpdateFiles, readFiles, listFiles."""

from __future__ import annotations

import json
import posixpath
from typing import Any

import structlog
from pydantic import BaseModel, Field

from vibe_agent.agent.state import FileSet, ToolOutcome, ToolResult
from vibe_agent.agent.tools.utils import AgentTool

logger = structlog.get_logger(__name__)


class FileEntry(BaseModel):
    path: str = Field(description="The path of the file to create or update.")
    content: str = Field(description="The content of the file to create or update.")


class CreateOrUpdateFilesInput(BaseModel):
    files: list[FileEntry] = Field(description="Files to create or update.")


class ReadFilesInput(BaseModel):
    paths: list[str] = Field(description="The paths of the files to read.")


class ListFilesInput(BaseModel):
    path: str = Field(default=".", description="Directory to list, relative to the project root.")
    recursive: bool = Field(default=False, description="List subdirectories recursively.")


def create_filesystem_tools(sandbox: Any) -> tuple[AgentTool, AgentTool, AgentTool]:
    """Factory function to create filesystem tools (write, read, list).

    Args:
        sandbox: SandboxHandle instance for file operations.
    """

    async def create_or_update_files(files: list[FileEntry]) -> ToolOutcome:
        written: FileSet = {}
        failures: list[str] = []

        for entry in files:
            path = entry.path
            content = entry.content

            parent = posixpath.dirname(path)
            if parent:
                try:
                    await sandbox.make_dir(parent)
                except Exception as e:
                    # Best effort - the write below reports the real failure
                    logger.warning("Failed to create parent directory", path=parent, error=str(e))

            try:
                await sandbox.write_file(path, content)
            except Exception as e:
                logger.error("Failed to write file", file_path=path, error=str(e))
                failures.append(f"{path}: {e!s}")
                continue

            written[path] = content
            logger.info("Wrote file", file_path=path, size=len(content))

        if not written:
            return ToolOutcome(
                ToolResult.fail("Failed to create or update files:\n" + "\n".join(f"- {f}" for f in failures))
            )

        message = f"Wrote {len(written)} file(s): {', '.join(written)}"
        if failures:
            message += "\nFailed:\n" + "\n".join(f"- {f}" for f in failures)
        return ToolOutcome(ToolResult.ok(message), files=written)

    async def read_files(paths: list[str]) -> ToolOutcome:
        successful_reads: list[dict[str, str]] = []
        failed_reads: list[dict[str, str]] = []

        for path in paths:
            try:
                content = await sandbox.read_file(path)
            except Exception as e:
                logger.warning("Failed to read file", file_path=path, error=str(e))
                failed_reads.append({"path": path, "error": str(e)})
                continue
            successful_reads.append({"path": path, "content": content})

        payload = json.dumps(
            {"successful_reads": successful_reads, "failed_reads": failed_reads},
            indent=2,
        )
        if not successful_reads:
            return ToolOutcome(ToolResult.fail("No files could be read", result=payload))
        return ToolOutcome(ToolResult.ok(payload))

    async def list_files(path: str = ".", recursive: bool = False) -> ToolOutcome:
        logger.info("Listing files", path=path, recursive=recursive)
        entries = await sandbox.list_files(path, recursive=recursive)
        listing = [
            {"path": entry["path"], "type": "dir" if entry["is_dir"] else "file"}
            for entry in entries
        ]
        return ToolOutcome(ToolResult.ok(listing))

    write_tool = AgentTool(
        name="createOrUpdateFiles",
        description="Create or update files in the sandbox environment.",
        args_schema=CreateOrUpdateFilesInput,
        handler=create_or_update_files,
    )
    read_tool = AgentTool(
        name="readFiles",
        description="Read files from the sandbox environment.",
        args_schema=ReadFilesInput,
        handler=read_files,
    )
    list_tool = AgentTool(
        name="listFiles",
        description=(
            "List files in a sandbox directory. Recursive listings skip dependency "
            "and build directories such as node_modules and .next."
        ),
        args_schema=ListFilesInput,
        handler=list_files,
    )
    return write_tool, read_tool, list_tool
