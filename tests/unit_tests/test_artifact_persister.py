"""Tests for ArtifactPersister."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from vibe_agent.agent.prompts import FAILURE_SUMMARY
from vibe_server.services.artifact_persister import ArtifactPersister

MODULE = "vibe_server.services.artifact_persister"
PROJECT_ID = "3f0c5a7e-9b7d-4c55-8d0e-2a4f6b1c9e01"


@pytest.fixture
def conn():
    return MagicMock()


@pytest.fixture
def db(conn):
    @asynccontextmanager
    async def fake_connection():
        yield conn

    with patch(f"{MODULE}.get_db_connection", new=fake_connection), \
         patch(f"{MODULE}.create_message", new=AsyncMock(return_value={"id": "msg-1"})) as create_message, \
         patch(f"{MODULE}.create_artifact", new=AsyncMock(return_value={"id": "art-1"})) as create_artifact, \
         patch(f"{MODULE}.touch_project", new=AsyncMock()) as touch_project:
        yield MagicMock(
            create_message=create_message,
            create_artifact=create_artifact,
            touch_project=touch_project,
        )


class TestArtifactPersister:
    """Tests for persist_result / persist_error."""

    @pytest.mark.asyncio
    async def test_result_and_artifact_in_one_transaction(self, db, conn):
        message = await ArtifactPersister().persist_result(
            project_id=PROJECT_ID,
            content="Here you go.",
            sandbox_url="https://3000-x.proxy.daytona.works",
            title="Todo",
            files={"app/page.tsx": "page"},
            sandbox_id="sbx-1",
        )

        conn.transaction.assert_called_once()
        db.create_message.assert_awaited_once_with(PROJECT_ID, "Here you go.", "ASSISTANT", "RESULT", conn=conn)
        kwargs = db.create_artifact.await_args.kwargs
        assert kwargs["message_id"] == "msg-1"
        assert kwargs["files"] == {"app/page.tsx": "page"}
        assert kwargs["conn"] is conn
        assert message["artifact"] == {"id": "art-1"}

    @pytest.mark.asyncio
    async def test_error_has_no_artifact(self, db, conn):
        message = await ArtifactPersister().persist_error(PROJECT_ID)

        db.create_message.assert_awaited_once_with(PROJECT_ID, FAILURE_SUMMARY, "ASSISTANT", "ERROR", conn=conn)
        db.create_artifact.assert_not_awaited()
        assert message["artifact"] is None
