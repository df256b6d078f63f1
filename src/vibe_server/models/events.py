"""
Payload models for background events.
"""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field

CODE_AGENT_RUN = "code-agent/run"
SANDBOX_RECREATE = "sandbox/recreate"


class PriorArtifact(BaseModel):
    """Artifact context supplied by the caller instead of the stored one."""

    files: Dict[str, str] = Field(default_factory=dict)
    title: Optional[str] = None
    sandbox_url: Optional[str] = None


class CodeAgentRunPayload(BaseModel):
    """Payload of a code-agent/run event."""

    content: str = Field(..., min_length=1)
    project_id: Optional[str] = None
    prior_artifact: Optional[PriorArtifact] = None


class SandboxRecreatePayload(BaseModel):
    """Payload of a sandbox/recreate event."""

    artifact_id: str
    claimed_at: Optional[datetime] = Field(
        None, description="recreation_started_at of the claim this job holds"
    )
