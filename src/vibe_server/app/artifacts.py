"""
Artifact Sandbox API Router.

Endpoints:
- GET /api/v1/artifacts/{artifact_id}/sandbox - Validate the preview sandbox,
  starting a recreation when it is unreachable
- GET /api/v1/artifacts/{artifact_id}/sandbox/status - Poll while recreating
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from vibe_server.config.settings import get_poll_interval
from vibe_server.models.sandbox import SandboxStatus, SandboxStatusResponse
from vibe_server.services.sandbox_lifecycle import SandboxLifecycleManager
from vibe_server.utils.api import handle_api_exceptions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/artifacts", tags=["Artifacts"])

_lifecycle_manager: Optional[SandboxLifecycleManager] = None


def get_lifecycle_manager() -> SandboxLifecycleManager:
    """FastAPI dependency returning the shared SandboxLifecycleManager."""
    global _lifecycle_manager
    if _lifecycle_manager is None:
        _lifecycle_manager = SandboxLifecycleManager()
    return _lifecycle_manager


def _to_response(status: SandboxStatus) -> SandboxStatusResponse:
    return SandboxStatusResponse(
        url=status.url,
        status=status.status,
        poll_interval=get_poll_interval(),
    )


@router.get("/{artifact_id}/sandbox", response_model=SandboxStatusResponse)
@handle_api_exceptions("check sandbox", logger)
async def check_sandbox(
    artifact_id: UUID,
    manager: SandboxLifecycleManager = Depends(get_lifecycle_manager),
):
    """
    Probe the artifact's sandbox.

    Returns READY with the URL when it answers; otherwise a recreation is
    started (at most one per artifact) and RECREATING is returned.
    """
    status = await manager.check_validity(str(artifact_id))
    return _to_response(status)


@router.get("/{artifact_id}/sandbox/status", response_model=SandboxStatusResponse)
@handle_api_exceptions("get sandbox status", logger)
async def get_sandbox_status(
    artifact_id: UUID,
    manager: SandboxLifecycleManager = Depends(get_lifecycle_manager),
):
    """Current status without triggering a recreation."""
    status = await manager.poll_status(str(artifact_id))
    return _to_response(status)
