"""Sandbox handle - wraps one Daytona sandbox used as the agent's workspace."""

import asyncio
import shlex
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from types import TracebackType
from typing import Any
from urllib.parse import urlparse

import structlog
from daytona_sdk import AsyncDaytona, DaytonaConfig
from daytona_sdk.common.daytona import CreateSandboxFromSnapshotParams

from vibe_agent.config.core import CoreConfig

logger = structlog.get_logger(__name__)

OutputCallback = Callable[[str], None]


class SandboxError(RuntimeError):
    """Base error for sandbox operations."""


class SandboxTransientError(SandboxError):
    """Transient sandbox transport error.

    Raised when an operation fails due to transient transport issues and cannot be
    safely retried automatically.
    """


class SandboxFileNotFoundError(SandboxError):
    """Raised when a file read targets a path that does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"File not found: {path}")
        self.path = path


class CommandTimeoutError(SandboxError):
    """Raised when a command exceeds its timeout."""


class _DaytonaRetryPolicy(Enum):
    SAFE = "safe"
    UNSAFE = "unsafe"


@dataclass
class CommandResult:
    """Result of a command executed in the sandbox."""

    stdout: str
    stderr: str
    exit_code: int | None
    command_id: str


class SandboxHandle:
    """Capability over one remote Daytona sandbox.

    Exposes file read/write, directory listing, command execution and the
    externally reachable preview URL. Safe SDK calls are retried with
    backoff; a dropped connection triggers one coalesced reconnect.
    """

    COMMAND_TIMEOUT_GRACE_S = 5.0

    def __init__(self, config: CoreConfig, client: Any | None = None) -> None:
        """Initialize the handle.

        Args:
            config: Core configuration (Daytona + filesystem)
            client: Optional preconfigured AsyncDaytona client
        """
        self.config = config

        if client is None:
            client = AsyncDaytona(
                DaytonaConfig(
                    api_key=config.daytona.api_key,
                    api_url=config.daytona.base_url,
                    target=config.daytona.target,
                )
            )
        self.daytona_client = client

        # External Daytona SDK sandbox object - Any type is required since it's from external SDK
        self.sandbox: Any | None = None
        self.sandbox_id: str | None = None
        self.command_count = 0

        self._reconnect_lock = asyncio.Lock()
        self._reconnect_inflight: asyncio.Future[None] | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @classmethod
    async def create(
        cls,
        config: CoreConfig,
        template: str | None = None,
        *,
        client: Any | None = None,
    ) -> "SandboxHandle":
        """Create a fresh sandbox from a template snapshot."""
        handle = cls(config, client=client)
        snapshot = template or config.daytona.snapshot
        logger.info("Creating sandbox from snapshot", snapshot=snapshot)

        handle.sandbox = await handle._daytona_call(
            handle.daytona_client.create,
            CreateSandboxFromSnapshotParams(
                snapshot=snapshot,
                auto_stop_interval=config.daytona.auto_stop_interval,
            ),
            timeout=config.daytona.create_timeout,
            retry_policy=_DaytonaRetryPolicy.SAFE,
            allow_reconnect=False,
        )
        handle.sandbox_id = str(getattr(handle.sandbox, "id", id(handle.sandbox)))
        logger.info("Sandbox created", sandbox_id=handle.sandbox_id, snapshot=snapshot)
        return handle

    @classmethod
    async def connect(
        cls,
        config: CoreConfig,
        sandbox_id: str,
        *,
        client: Any | None = None,
    ) -> "SandboxHandle":
        """Connect to an existing sandbox by id, starting it if stopped."""
        handle = cls(config, client=client)
        await handle.reconnect(sandbox_id)
        return handle

    async def reconnect(self, sandbox_id: str) -> None:
        """Attach to an existing sandbox, starting it when it is stopped.

        Raises:
            SandboxError: If sandbox cannot be found or is in invalid state
        """
        logger.info("Connecting to sandbox", sandbox_id=sandbox_id)

        try:
            self.sandbox = await self._daytona_call(
                self.daytona_client.get,
                sandbox_id,
                retry_policy=_DaytonaRetryPolicy.SAFE,
                allow_reconnect=False,
            )
        except Exception as e:
            raise SandboxError(
                f"Failed to find sandbox {sandbox_id}. It may have been deleted. "
                f"Original error: {e}"
            ) from e

        self.sandbox_id = sandbox_id
        state = getattr(self.sandbox, "state", None)
        state_value = state.value if hasattr(state, "value") else state

        if state_value == "started":
            logger.debug("Sandbox already started", sandbox_id=sandbox_id)
        elif state_value in (None, "stopped", "starting"):
            logger.info("Starting sandbox", sandbox_id=sandbox_id, state=state_value)
            await self._daytona_call(
                self.sandbox.start,
                timeout=60,
                retry_policy=_DaytonaRetryPolicy.SAFE,
                allow_reconnect=False,
            )
        else:
            raise SandboxError(
                f"Cannot connect to sandbox in state: {state_value}. "
                f"Expected 'stopped' or 'started'."
            )

    async def set_timeout(self, minutes: int | None = None) -> None:
        """Keep the sandbox alive for `minutes` of inactivity."""
        interval = minutes if minutes is not None else self.config.daytona.auto_stop_interval
        await self._daytona_call(
            self._require_sandbox().set_autostop_interval,
            interval,
            retry_policy=_DaytonaRetryPolicy.SAFE,
        )
        logger.debug("Sandbox autostop interval set", sandbox_id=self.sandbox_id, minutes=interval)

    async def delete(self) -> None:
        """Delete the sandbox. Errors are logged, never raised."""
        if self.sandbox is None:
            return
        try:
            await self._daytona_call(
                self.sandbox.delete,
                retry_policy=_DaytonaRetryPolicy.SAFE,
                allow_reconnect=False,
            )
            logger.info("Sandbox deleted", sandbox_id=self.sandbox_id)
        except Exception as e:
            logger.warning("Failed to delete sandbox", sandbox_id=self.sandbox_id, error=str(e))
        finally:
            self.sandbox = None

    async def get_preview_url(self, port: int | None = None) -> str:
        """Externally reachable URL for a port exposed by the sandbox."""
        target_port = port or self.config.daytona.preview_port
        link = await self._daytona_call(
            self._require_sandbox().get_preview_link,
            target_port,
            retry_policy=_DaytonaRetryPolicy.SAFE,
        )
        url = str(getattr(link, "url", link))
        if "://" not in url:
            url = f"https://{url}"
        return url

    async def get_host(self, port: int | None = None) -> str:
        """Hostname serving the given port."""
        return urlparse(await self.get_preview_url(port)).netloc

    # ------------------------------------------------------------------
    # Filesystem
    # ------------------------------------------------------------------

    def normalize_path(self, path: str) -> str:
        """Normalize a relative path to an absolute sandbox path.

            "" or "." -> {working_directory}
            "app/page.tsx" -> {working_directory}/app/page.tsx
            "/tmp/x" -> unchanged
        """
        work_dir = self.config.filesystem.working_directory
        path = (path or "").strip()
        if path in ("", "."):
            return work_dir
        if path.startswith("/"):
            return str(PurePosixPath(path))
        return str(PurePosixPath(work_dir) / path)

    def virtualize_path(self, path: str) -> str:
        """Strip the working directory prefix from an absolute sandbox path."""
        work_dir = self.config.filesystem.working_directory
        if path.startswith(work_dir + "/"):
            return path[len(work_dir) + 1:]
        if path == work_dir:
            return "."
        return path

    async def read_file(self, path: str) -> str:
        """Read a UTF-8 text file.

        Raises:
            SandboxFileNotFoundError: If the path does not exist.
            SandboxTransientError: If a transient transport error persists.
        """
        normalized = self.normalize_path(path)
        try:
            content = await self._daytona_call(
                self._require_sandbox().fs.download_file,
                normalized,
                retry_policy=_DaytonaRetryPolicy.SAFE,
            )
        except SandboxTransientError:
            raise
        except Exception as e:
            message = str(e).lower()
            if "not found" in message or "404" in message or "no such file" in message:
                raise SandboxFileNotFoundError(path) from e
            raise SandboxError(f"Failed to read {path}: {e}") from e

        if content is None:
            raise SandboxFileNotFoundError(path)
        if isinstance(content, bytes):
            return content.decode("utf-8")
        return str(content)

    async def write_file(self, path: str, content: str) -> None:
        """Write UTF-8 text to a sandbox file (overwrites).

        This path is safe to retry automatically because uploads overwrite the target.
        """
        normalized = self.normalize_path(path)
        await self._daytona_call(
            self._require_sandbox().fs.upload_file,
            content.encode("utf-8"),
            normalized,
            retry_policy=_DaytonaRetryPolicy.SAFE,
        )

    async def write_files(self, files: dict[str, str]) -> None:
        """Write a whole FileSet, creating parent directories first."""
        parents = sorted({str(PurePosixPath(path).parent) for path in files} - {"."})
        for parent in parents:
            await self.make_dir(parent)
        for path, content in files.items():
            await self.write_file(path, content)
        logger.info("Wrote file set", sandbox_id=self.sandbox_id, files=len(files))

    async def make_dir(self, path: str) -> None:
        """Create a directory and its parents."""
        normalized = self.normalize_path(path)
        await self._daytona_call(
            self._require_sandbox().process.exec,
            f"mkdir -p {shlex.quote(normalized)}",
            retry_policy=_DaytonaRetryPolicy.SAFE,
        )

    async def list_files(self, path: str = ".", recursive: bool = False) -> list[dict[str, Any]]:
        """List directory entries as dicts with name, path, is_dir and size.

        Entry paths are relative to the working directory, even when `path`
        is absolute. Recursive listings skip dependency and build directories.
        """
        skip_dirs = set(self.config.filesystem.skip_directories)
        results: list[dict[str, Any]] = []

        async def walk(directory: str) -> None:
            entries = await self._daytona_call(
                self._require_sandbox().fs.list_files,
                self.normalize_path(directory),
                retry_policy=_DaytonaRetryPolicy.SAFE,
            )
            for entry in entries or []:
                name = str(getattr(entry, "name", entry))
                is_dir = bool(getattr(entry, "is_dir", False))
                entry_path = name if directory in ("", ".") else f"{directory.rstrip('/')}/{name}"
                results.append({
                    "name": name,
                    "path": self.virtualize_path(entry_path),
                    "is_dir": is_dir,
                    "size": getattr(entry, "size", None),
                })
                if recursive and is_dir and name not in skip_dirs:
                    await walk(entry_path)

        await walk(path)
        return results

    async def snapshot_files(self, path: str = ".") -> dict[str, str]:
        """Read every project file under `path` into a FileSet.

        Dependency/build directories and noise files are skipped; unreadable
        files are logged and left out.
        """
        skip_files = set(self.config.filesystem.skip_files)
        files: dict[str, str] = {}

        for entry in await self.list_files(path, recursive=True):
            if entry["is_dir"] or entry["name"] in skip_files:
                continue
            if any(part in self.config.filesystem.skip_directories for part in entry["path"].split("/")[:-1]):
                continue
            try:
                files[entry["path"]] = await self.read_file(entry["path"])
            except (SandboxError, UnicodeDecodeError) as e:
                logger.warning("Could not read file for snapshot", path=entry["path"], error=str(e))

        return files

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def run_command(
        self,
        command: str,
        *,
        timeout: float = 30.0,
        working_dir: str | None = None,
        on_stdout: OutputCallback | None = None,
        on_stderr: OutputCallback | None = None,
    ) -> CommandResult:
        """Execute a shell command in the sandbox.

        stderr is redirected to a scratch file and read back so both streams
        reach the callbacks separately.

        Raises:
            CommandTimeoutError: If the command outlives `timeout` seconds.
            SandboxTransientError: If the connection drops mid-command.
        """
        self.command_count += 1
        command_id = f"cmd_{self.command_count:04d}"
        cwd = self.normalize_path(working_dir or ".")
        stderr_path = f"/tmp/.vibe_{command_id}.stderr"
        wrapped = f"bash -c {shlex.quote(f'( {command} ) 2> {stderr_path}')}"

        logger.info("Executing command", command_id=command_id, command=command[:100], cwd=cwd)

        try:
            response = await asyncio.wait_for(
                self._daytona_call(
                    self._require_sandbox().process.exec,
                    wrapped,
                    cwd=cwd,
                    timeout=int(timeout),
                    retry_policy=_DaytonaRetryPolicy.UNSAFE,
                ),
                timeout=timeout + self.COMMAND_TIMEOUT_GRACE_S,
            )
        except asyncio.TimeoutError as e:
            raise CommandTimeoutError(f"Command timed out after {timeout:g} seconds") from e

        stdout = str(getattr(response, "result", "") or "")
        if on_stdout and stdout:
            on_stdout(stdout)

        stderr = await self._collect_stderr(stderr_path)
        if on_stderr and stderr:
            on_stderr(stderr)

        exit_code = getattr(response, "exit_code", None)
        logger.debug("Command finished", command_id=command_id, exit_code=exit_code)
        return CommandResult(stdout=stdout, stderr=stderr, exit_code=exit_code, command_id=command_id)

    async def _collect_stderr(self, stderr_path: str) -> str:
        try:
            stderr = await self.read_file(stderr_path)
        except SandboxError as e:
            logger.debug("No stderr captured", path=stderr_path, error=str(e))
            return ""
        try:
            await self._daytona_call(
                self._require_sandbox().process.exec,
                f"rm -f {shlex.quote(stderr_path)}",
                retry_policy=_DaytonaRetryPolicy.SAFE,
            )
        except Exception as e:
            logger.debug("Failed to remove stderr file", path=stderr_path, error=str(e))
        return stderr

    # ------------------------------------------------------------------
    # Daytona call plumbing
    # ------------------------------------------------------------------

    def _require_sandbox(self) -> Any:
        if self.sandbox is None:
            raise SandboxError("Sandbox not initialized")
        return self.sandbox

    def _is_transient_daytona_error(self, e: Exception) -> bool:
        message = str(e).lower()
        transient_markers = (
            "remote end closed connection",
            "remotedisconnected",
            "connection aborted",
            "connection reset",
            "broken pipe",
            "timed out",
            "timeout",
            "service unavailable",
            "502",
            "503",
            "504",
        )
        return any(marker in message for marker in transient_markers)

    async def _ensure_sandbox_connected(self) -> None:
        if self.sandbox_id is None:
            raise SandboxTransientError("Sandbox disconnected and no sandbox_id is available")

        # Coalesce concurrent reconnect attempts.
        async with self._reconnect_lock:
            if self._reconnect_inflight is not None and not self._reconnect_inflight.done():
                await self._reconnect_inflight
                return

            loop = asyncio.get_running_loop()
            self._reconnect_inflight = loop.create_future()
            inflight = self._reconnect_inflight

            try:
                await self.reconnect(self.sandbox_id)
                inflight.set_result(None)
            except Exception as e:
                inflight.set_exception(e)
                raise
            finally:
                self._reconnect_inflight = None

    async def _daytona_call(
        self,
        func: Callable[..., Any],
        *args: Any,
        retry_policy: _DaytonaRetryPolicy,
        allow_reconnect: bool = True,
        retries: int = 5,
        initial_delay_s: float = 0.25,
        **kwargs: Any,
    ) -> Any:
        delay_s = initial_delay_s
        reconnected = False

        for attempt in range(1, retries + 1):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if not self._is_transient_daytona_error(e):
                    raise

                if allow_reconnect and not reconnected:
                    try:
                        await self._ensure_sandbox_connected()
                        reconnected = True
                    except Exception as reconnect_error:
                        logger.debug(
                            "Reconnect attempt failed during retry",
                            error=str(reconnect_error),
                        )

                if retry_policy == _DaytonaRetryPolicy.UNSAFE:
                    logger.warning(
                        "Sandbox disconnected during unsafe operation; not retrying automatically",
                        func=getattr(func, "__name__", str(func)),
                        attempt=attempt,
                        error=str(e),
                    )
                    raise SandboxTransientError(
                        "Sandbox disconnected during command execution; please retry."
                    ) from e

                if attempt == retries:
                    raise SandboxTransientError(
                        "Transient sandbox transport error; operation failed after retries"
                    ) from e

                logger.debug(
                    "Retrying Daytona SDK call after transient error",
                    func=getattr(func, "__name__", str(func)),
                    attempt=attempt,
                    error=str(e),
                )
                await asyncio.sleep(delay_s)
                delay_s *= 2

        raise SandboxTransientError("Transient sandbox transport error")

    async def __aenter__(self) -> "SandboxHandle":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.delete()
