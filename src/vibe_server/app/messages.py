"""
Project Messages API Router.

Endpoints:
- GET /api/v1/projects/{project_id}/messages - Conversation with artifacts
- POST /api/v1/projects/{project_id}/messages - Follow-up prompt, starts a run
"""

import logging
from uuid import UUID

from fastapi import APIRouter

from vibe_server.database.messages import create_message, get_messages_with_artifacts
from vibe_server.database.projects import get_project
from vibe_server.models.events import CODE_AGENT_RUN
from vibe_server.models.message import (
    ArtifactResponse,
    MessageAccepted,
    MessageCreate,
    MessageListResponse,
    MessageResponse,
    MessageRole,
    MessageType,
)
from vibe_server.services.event_dispatcher import EventDispatcher
from vibe_server.services.errors import ProjectNotFoundError
from vibe_server.utils.api import handle_api_exceptions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/projects", tags=["Messages"])


def _message_to_response(message: dict) -> MessageResponse:
    """Convert message dict (with optional 'artifact') to response model."""
    artifact = message.get("artifact")
    return MessageResponse(
        id=str(message["id"]),
        project_id=str(message["project_id"]),
        content=message["content"],
        role=message["role"],
        type=message["type"],
        created_at=message["created_at"],
        updated_at=message["updated_at"],
        artifact=ArtifactResponse(
            id=str(artifact["id"]),
            sandbox_url=artifact["sandbox_url"],
            title=artifact["title"],
            files=artifact.get("files") or {},
            created_at=artifact.get("created_at"),
        ) if artifact else None,
    )


async def _require_project(project_id: UUID) -> str:
    project = await get_project(str(project_id))
    if project is None:
        raise ProjectNotFoundError(str(project_id))
    return str(project["id"])


@router.get("/{project_id}/messages", response_model=MessageListResponse)
@handle_api_exceptions("list messages", logger)
async def list_messages(project_id: UUID):
    """All messages of a project, oldest first, with their artifacts."""
    pid = await _require_project(project_id)
    messages = await get_messages_with_artifacts(pid)
    return MessageListResponse(messages=[_message_to_response(m) for m in messages])


@router.post("/{project_id}/messages", response_model=MessageAccepted, status_code=202)
@handle_api_exceptions("create message", logger)
async def create_project_message(project_id: UUID, request: MessageCreate):
    """
    Store a follow-up prompt and dispatch a code-agent/run job.

    The run extends the project's latest artifact; its outcome arrives as a
    new assistant message.
    """
    pid = await _require_project(project_id)
    message = await create_message(
        pid,
        request.value,
        MessageRole.USER.value,
        MessageType.RESULT.value,
    )

    job = await EventDispatcher.get_instance().send(
        CODE_AGENT_RUN,
        {"content": request.value, "project_id": pid},
    )
    logger.info(f"Follow-up for project {pid} dispatched as job {job.job_id}")

    return MessageAccepted(
        message=_message_to_response({**message, "artifact": None}),
        job_id=job.job_id,
    )
