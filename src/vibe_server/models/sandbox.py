"""
Sandbox status models.

SandboxStatus is derived on every request and never stored.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class SandboxState(str, Enum):
    READY = "ready"
    RECREATING = "recreating"
    FAILED = "failed"


class SandboxStatus(BaseModel):
    """Wire form: {url: str | null, status: ready | recreating | failed}."""

    url: Optional[str] = Field(None, description="Sandbox URL when ready")
    status: SandboxState

    @classmethod
    def ready(cls, url: str) -> "SandboxStatus":
        return cls(url=url, status=SandboxState.READY)

    @classmethod
    def recreating(cls) -> "SandboxStatus":
        return cls(url=None, status=SandboxState.RECREATING)

    @classmethod
    def failed(cls) -> "SandboxStatus":
        return cls(url=None, status=SandboxState.FAILED)


class SandboxStatusResponse(SandboxStatus):
    poll_interval: int = Field(3, description="Suggested seconds between status polls")
