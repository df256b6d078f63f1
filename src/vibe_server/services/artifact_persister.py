"""
Artifact Persister

Writes the outcome of a code agent run: a RESULT message with its artifact,
or a single ERROR message. The message and artifact are committed in one
transaction so a RESULT never exists without its artifact.
"""

import logging
from typing import Any, Dict, Optional

from vibe_agent.agent.prompts import FAILURE_SUMMARY
from vibe_server.database.artifacts import create_artifact
from vibe_server.database.connection import get_db_connection
from vibe_server.database.messages import create_message
from vibe_server.database.projects import touch_project
from vibe_server.models.message import MessageRole, MessageType

logger = logging.getLogger(__name__)


class ArtifactPersister:
    """Persists RESULT / ERROR outcomes of agent runs."""

    async def persist_result(
        self,
        project_id: str,
        content: str,
        sandbox_url: str,
        title: str,
        files: Dict[str, str],
        sandbox_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Store an assistant RESULT message and its artifact atomically.

        Returns:
            The message record with an 'artifact' key
        """
        async with get_db_connection() as conn:
            async with conn.transaction():
                message = await create_message(
                    project_id,
                    content,
                    MessageRole.ASSISTANT.value,
                    MessageType.RESULT.value,
                    conn=conn,
                )
                artifact = await create_artifact(
                    message_id=message["id"],
                    sandbox_url=sandbox_url,
                    sandbox_id=sandbox_id,
                    title=title,
                    files=files,
                    conn=conn,
                )
                await touch_project(project_id, conn=conn)

        logger.info(
            f"Persisted RESULT for project {project_id}: artifact {artifact['id']} "
            f"({len(files)} files, title={title!r})"
        )
        return {**message, "artifact": artifact}

    async def persist_error(
        self,
        project_id: str,
        content: str = FAILURE_SUMMARY,
    ) -> Dict[str, Any]:
        """
        Store a single assistant ERROR message. No files are exposed.
        """
        async with get_db_connection() as conn:
            async with conn.transaction():
                message = await create_message(
                    project_id,
                    content,
                    MessageRole.ASSISTANT.value,
                    MessageType.ERROR.value,
                    conn=conn,
                )
                await touch_project(project_id, conn=conn)

        logger.info(f"Persisted ERROR for project {project_id}")
        return {**message, "artifact": None}
