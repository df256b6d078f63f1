"""Pydantic models for the HTTP API and background event payloads."""

from vibe_server.models.events import (
    CODE_AGENT_RUN,
    SANDBOX_RECREATE,
    CodeAgentRunPayload,
    PriorArtifact,
    SandboxRecreatePayload,
)
from vibe_server.models.message import (
    ArtifactResponse,
    MessageAccepted,
    MessageCreate,
    MessageListResponse,
    MessageResponse,
    MessageRole,
    MessageType,
)
from vibe_server.models.project import (
    ProjectCreate,
    ProjectCreated,
    ProjectListResponse,
    ProjectResponse,
)
from vibe_server.models.sandbox import SandboxState, SandboxStatus, SandboxStatusResponse

__all__ = [
    "CODE_AGENT_RUN",
    "SANDBOX_RECREATE",
    "ArtifactResponse",
    "CodeAgentRunPayload",
    "MessageAccepted",
    "MessageCreate",
    "MessageListResponse",
    "MessageResponse",
    "MessageRole",
    "MessageType",
    "PriorArtifact",
    "ProjectCreate",
    "ProjectCreated",
    "ProjectListResponse",
    "ProjectResponse",
    "SandboxRecreatePayload",
    "SandboxState",
    "SandboxStatus",
    "SandboxStatusResponse",
]
