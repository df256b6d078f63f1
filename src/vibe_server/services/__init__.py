"""Background jobs and domain services for the vibe server."""

from vibe_server.services.artifact_persister import ArtifactPersister
from vibe_server.services.code_agent_job import CodeAgentJob, build_prior_messages
from vibe_server.services.errors import (
    ArtifactNotFoundError,
    ProjectNotFoundError,
    RecreationError,
)
from vibe_server.services.event_dispatcher import (
    DispatcherBusyError,
    EventDispatcher,
    JobInfo,
    JobStatus,
)
from vibe_server.services.sandbox_lifecycle import RecreationJob, SandboxLifecycleManager

__all__ = [
    "ArtifactNotFoundError",
    "ArtifactPersister",
    "CodeAgentJob",
    "DispatcherBusyError",
    "EventDispatcher",
    "JobInfo",
    "JobStatus",
    "ProjectNotFoundError",
    "RecreationError",
    "RecreationJob",
    "SandboxLifecycleManager",
    "build_prior_messages",
]
