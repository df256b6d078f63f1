"""Tests for createOrUpdateFiles, readFiles and listFiles."""

import json

import pytest

from vibe_agent.agent.tools.file_ops import FileEntry, create_filesystem_tools


@pytest.fixture
def tools(fake_sandbox):
    write_tool, read_tool, list_tool = create_filesystem_tools(fake_sandbox)
    return {"write": write_tool, "read": read_tool, "list": list_tool}


class TestCreateOrUpdateFiles:
    """Tests for the createOrUpdateFiles tool."""

    @pytest.mark.asyncio
    async def test_writes_files_and_returns_delta(self, tools, fake_sandbox):
        """Test written files land in the sandbox and in the outcome delta."""
        outcome = await tools["write"].handler(files=[
            FileEntry(path="app/page.tsx", content="export default 1"),
            FileEntry(path="README.md", content="# hi"),
        ])

        assert outcome.result.success is True
        assert outcome.files == {"app/page.tsx": "export default 1", "README.md": "# hi"}
        assert fake_sandbox.files["app/page.tsx"] == "export default 1"
        assert "app" in fake_sandbox.dirs

    @pytest.mark.asyncio
    async def test_partial_failure_reports_failed_path(self, tools, fake_sandbox):
        """Test one failing path does not stop the others."""
        fake_sandbox.fail_writes.add("locked.txt")

        outcome = await tools["write"].handler(files=[
            FileEntry(path="locked.txt", content="x"),
            FileEntry(path="ok.txt", content="y"),
        ])

        assert outcome.result.success is True
        assert outcome.files == {"ok.txt": "y"}
        assert "locked.txt" in outcome.result.result

    @pytest.mark.asyncio
    async def test_all_writes_failing_is_a_failure(self, tools, fake_sandbox):
        """Test no successful write means a failed result with no delta."""
        fake_sandbox.fail_writes.add("locked.txt")

        outcome = await tools["write"].handler(files=[FileEntry(path="locked.txt", content="x")])

        assert outcome.result.success is False
        assert outcome.files == {}
        assert "locked.txt" in outcome.result.error


class TestReadFiles:
    """Tests for the readFiles tool."""

    @pytest.mark.asyncio
    async def test_mixed_reads(self, tools, fake_sandbox):
        """Test an existing and a missing path give one success and one failure."""
        fake_sandbox.files["app/page.tsx"] = "page"

        outcome = await tools["read"].handler(paths=["app/page.tsx", "missing.tsx"])
        payload = json.loads(outcome.result.result)

        assert outcome.result.success is True
        assert payload["successful_reads"] == [{"path": "app/page.tsx", "content": "page"}]
        assert [f["path"] for f in payload["failed_reads"]] == ["missing.tsx"]
        assert outcome.files == {}

    @pytest.mark.asyncio
    async def test_all_reads_failing(self, tools):
        """Test the tool fails when nothing could be read."""
        outcome = await tools["read"].handler(paths=["nope.txt"])

        assert outcome.result.success is False
        assert "failed_reads" in outcome.result.to_text()


class TestListFiles:
    """Tests for the listFiles tool."""

    @pytest.mark.asyncio
    async def test_lists_top_level(self, tools, fake_sandbox):
        fake_sandbox.files.update({"app/page.tsx": "", "package.json": "{}"})

        outcome = await tools["list"].handler(path=".", recursive=False)
        listing = json.loads(outcome.result.result)

        assert {"path": "app", "type": "dir"} in listing
        assert {"path": "package.json", "type": "file"} in listing
        assert outcome.files == {}

    def test_tool_names(self, tools):
        assert [t.name for t in tools.values()] == ["createOrUpdateFiles", "readFiles", "listFiles"]
