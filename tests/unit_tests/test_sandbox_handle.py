"""Tests for SandboxHandle with a mocked Daytona SDK."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock, patch

import pytest
import pytest_asyncio

from vibe_agent.config import CoreConfig
from vibe_agent.core.sandbox import (
    SandboxError,
    SandboxFileNotFoundError,
    SandboxHandle,
    SandboxTransientError,
)


def _daytona_sandbox():
    sandbox = Mock()
    sandbox.id = "sbx-1"
    sandbox.state = "started"
    sandbox.fs = Mock()
    sandbox.fs.download_file = AsyncMock(return_value=b"content")
    sandbox.fs.upload_file = AsyncMock()
    sandbox.fs.list_files = AsyncMock(return_value=[])
    sandbox.process = Mock()
    sandbox.process.exec = AsyncMock(return_value=SimpleNamespace(result="", exit_code=0))
    sandbox.set_autostop_interval = AsyncMock()
    sandbox.get_preview_link = AsyncMock(return_value=SimpleNamespace(url="3000-sbx-1.proxy.daytona.works"))
    sandbox.delete = AsyncMock()
    sandbox.start = AsyncMock()
    return sandbox


@pytest.fixture
def daytona_sandbox():
    return _daytona_sandbox()


@pytest_asyncio.fixture
async def handle(daytona_sandbox):
    client = Mock()
    client.create = AsyncMock(return_value=daytona_sandbox)
    client.get = AsyncMock(return_value=daytona_sandbox)
    return await SandboxHandle.create(CoreConfig(), client=client)


class TestLifecycle:
    """Tests for create / connect / delete."""

    @pytest.mark.asyncio
    async def test_create_uses_configured_snapshot(self, handle):
        params = handle.daytona_client.create.await_args.args[0]

        assert params.snapshot == CoreConfig().daytona.snapshot
        assert handle.sandbox_id == "sbx-1"

    @pytest.mark.asyncio
    async def test_connect_starts_stopped_sandbox(self, daytona_sandbox):
        daytona_sandbox.state = "stopped"
        client = Mock(get=AsyncMock(return_value=daytona_sandbox))

        handle = await SandboxHandle.connect(CoreConfig(), "sbx-1", client=client)

        daytona_sandbox.start.assert_awaited_once()
        assert handle.sandbox_id == "sbx-1"

    @pytest.mark.asyncio
    async def test_connect_unknown_sandbox(self):
        client = Mock(get=AsyncMock(side_effect=Exception("Sandbox not found")))

        with pytest.raises(SandboxError, match="Failed to find sandbox"):
            await SandboxHandle.connect(CoreConfig(), "gone", client=client)

    @pytest.mark.asyncio
    async def test_delete_never_raises(self, handle, daytona_sandbox):
        daytona_sandbox.delete.side_effect = Exception("forbidden")

        await handle.delete()

        assert handle.sandbox is None

    @pytest.mark.asyncio
    async def test_set_timeout(self, handle, daytona_sandbox):
        await handle.set_timeout(10)

        daytona_sandbox.set_autostop_interval.assert_awaited_once_with(10)

    @pytest.mark.asyncio
    async def test_preview_url_is_https(self, handle, daytona_sandbox):
        assert await handle.get_preview_url() == "https://3000-sbx-1.proxy.daytona.works"
        daytona_sandbox.get_preview_link.assert_awaited_once_with(3000)


class TestFilesystem:
    """Tests for file operations."""

    @pytest.mark.asyncio
    async def test_normalize_path(self, handle):
        assert handle.normalize_path(".") == "/home/daytona"
        assert handle.normalize_path("app/page.tsx") == "/home/daytona/app/page.tsx"
        assert handle.normalize_path("/tmp/x") == "/tmp/x"
        assert handle.virtualize_path("/home/daytona/app/page.tsx") == "app/page.tsx"

    @pytest.mark.asyncio
    async def test_read_file_decodes_bytes(self, handle, daytona_sandbox):
        assert await handle.read_file("app/page.tsx") == "content"
        daytona_sandbox.fs.download_file.assert_awaited_once_with("/home/daytona/app/page.tsx")

    @pytest.mark.asyncio
    async def test_read_missing_file(self, handle, daytona_sandbox):
        daytona_sandbox.fs.download_file.side_effect = Exception("File not found")

        with pytest.raises(SandboxFileNotFoundError):
            await handle.read_file("missing.ts")

    @pytest.mark.asyncio
    async def test_write_files_creates_parents(self, handle, daytona_sandbox):
        await handle.write_files({"app/page.tsx": "a", "app/ui/button.tsx": "b", "README.md": "c"})

        commands = [c.args[0] for c in daytona_sandbox.process.exec.await_args_list]
        assert commands == [
            "mkdir -p /home/daytona/app",
            "mkdir -p /home/daytona/app/ui",
        ]
        uploaded = {c.args[1]: c.args[0] for c in daytona_sandbox.fs.upload_file.await_args_list}
        assert uploaded["/home/daytona/README.md"] == b"c"
        assert len(uploaded) == 3

    @pytest.mark.asyncio
    async def test_recursive_listing_skips_dependency_dirs(self, handle, daytona_sandbox):
        listings = {
            "/home/daytona": [
                SimpleNamespace(name="app", is_dir=True, size=0),
                SimpleNamespace(name="node_modules", is_dir=True, size=0),
                SimpleNamespace(name="package.json", is_dir=False, size=10),
            ],
            "/home/daytona/app": [SimpleNamespace(name="page.tsx", is_dir=False, size=5)],
        }
        daytona_sandbox.fs.list_files.side_effect = lambda path: listings[path]

        entries = await handle.list_files(".", recursive=True)

        assert [e["path"] for e in entries] == ["app", "app/page.tsx", "node_modules", "package.json"]
        listed = [c.args[0] for c in daytona_sandbox.fs.list_files.call_args_list]
        assert "/home/daytona/node_modules" not in listed

    @pytest.mark.asyncio
    async def test_absolute_listing_reports_relative_paths(self, handle, daytona_sandbox):
        """Test entries under an absolute path come back relative to the working directory."""
        listings = {
            "/home/daytona/app": [SimpleNamespace(name="ui", is_dir=True, size=0)],
            "/home/daytona/app/ui": [SimpleNamespace(name="button.tsx", is_dir=False, size=5)],
        }
        daytona_sandbox.fs.list_files.side_effect = lambda path: listings[path]

        entries = await handle.list_files("/home/daytona/app", recursive=True)

        assert [e["path"] for e in entries] == ["app/ui", "app/ui/button.tsx"]


class TestCommands:
    """Tests for run_command and the retry policy."""

    @pytest.mark.asyncio
    async def test_run_command_collects_streams(self, handle, daytona_sandbox):
        daytona_sandbox.process.exec.return_value = SimpleNamespace(result="out", exit_code=2)
        daytona_sandbox.fs.download_file.return_value = b"err"
        stdout, stderr = [], []

        result = await handle.run_command("npm test", on_stdout=stdout.append, on_stderr=stderr.append)

        assert result.exit_code == 2
        assert stdout == ["out"]
        assert stderr == ["err"]

    @pytest.mark.asyncio
    async def test_safe_call_retries_transient_errors(self, handle, daytona_sandbox):
        daytona_sandbox.fs.upload_file.side_effect = [Exception("503 Service Unavailable"), None]

        with patch("asyncio.sleep", new=AsyncMock()):
            await handle.write_file("a.txt", "a")

        assert daytona_sandbox.fs.upload_file.await_count == 2

    @pytest.mark.asyncio
    async def test_unsafe_call_is_not_retried(self, handle, daytona_sandbox):
        daytona_sandbox.process.exec.side_effect = Exception("Connection reset by peer")

        with pytest.raises(SandboxTransientError):
            await handle.run_command("npm install")

        assert daytona_sandbox.process.exec.await_count == 1
