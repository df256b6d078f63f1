"""
Projects API Router.

Endpoints:
- POST /api/v1/projects - Create a project from a first prompt and start a run
- GET /api/v1/projects - List projects, most recently updated first
"""

import logging

from fastapi import APIRouter, Query

from vibe_server.database.connection import get_db_connection
from vibe_server.database.messages import create_message
from vibe_server.database.projects import create_project as db_create_project
from vibe_server.database.projects import list_projects as db_list_projects
from vibe_server.models.events import CODE_AGENT_RUN
from vibe_server.models.message import MessageRole, MessageType
from vibe_server.models.project import (
    ProjectCreate,
    ProjectCreated,
    ProjectListResponse,
    ProjectResponse,
)
from vibe_server.services.event_dispatcher import EventDispatcher
from vibe_server.utils.api import handle_api_exceptions
from vibe_server.utils.naming import generate_slug

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/projects", tags=["Projects"])


def _project_to_response(project: dict) -> ProjectResponse:
    """Convert project dict to response model."""
    return ProjectResponse(
        id=str(project["id"]),
        name=project["name"],
        created_at=project["created_at"],
        updated_at=project["updated_at"],
    )


@router.post("", response_model=ProjectCreated, status_code=201)
@handle_api_exceptions("create project", logger)
async def create_project(request: ProjectCreate):
    """
    Create a project from the user's first prompt.

    The project gets a generated kebab-case name, the prompt is stored as
    the first USER message and a code-agent/run job is dispatched.
    """
    async with get_db_connection() as conn:
        async with conn.transaction():
            project = await db_create_project(generate_slug(), conn=conn)
            await create_message(
                str(project["id"]),
                request.value,
                MessageRole.USER.value,
                MessageType.RESULT.value,
                conn=conn,
            )

    project_id = str(project["id"])
    job = await EventDispatcher.get_instance().send(
        CODE_AGENT_RUN,
        {"content": request.value, "project_id": project_id},
    )
    logger.info(f"Project {project_id} created, run dispatched as job {job.job_id}")

    return ProjectCreated(project=_project_to_response(project), job_id=job.job_id)


@router.get("", response_model=ProjectListResponse)
@handle_api_exceptions("list projects", logger)
async def list_projects(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    """List projects, most recently updated first."""
    projects = await db_list_projects(limit=limit, offset=offset)
    return ProjectListResponse(projects=[_project_to_response(p) for p in projects])
