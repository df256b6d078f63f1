"""
Request and response models for project messages and their artifacts.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class MessageRole(str, Enum):
    USER = "USER"
    ASSISTANT = "ASSISTANT"


class MessageType(str, Enum):
    RESULT = "RESULT"
    ERROR = "ERROR"


class MessageCreate(BaseModel):
    """Request model for a follow-up prompt in an existing project."""

    value: str = Field(
        ...,
        min_length=1,
        max_length=10000,
        description="The user's request",
    )


class ArtifactResponse(BaseModel):
    """Artifact attached to an assistant message."""

    id: str
    sandbox_url: str
    title: str
    files: Dict[str, str] = Field(default_factory=dict)
    created_at: Optional[datetime] = None


class MessageResponse(BaseModel):
    """Response model for one message."""

    id: str
    project_id: str
    content: str
    role: MessageRole
    type: MessageType
    created_at: datetime
    updated_at: datetime
    artifact: Optional[ArtifactResponse] = None


class MessageListResponse(BaseModel):
    messages: List[MessageResponse] = Field(default_factory=list)


class MessageAccepted(BaseModel):
    """Returned when a prompt was stored and a run dispatched."""

    message: MessageResponse
    job_id: str = Field(description="Background job running the agent")
