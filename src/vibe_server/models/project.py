"""
Request and response models for the Projects API.
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class ProjectCreate(BaseModel):
    """Request model for creating a project from a first prompt."""

    value: str = Field(
        ...,
        min_length=1,
        max_length=10000,
        description="The user's first build request",
    )


class ProjectResponse(BaseModel):
    """Response model for project details."""

    id: str = Field(description="Unique project identifier")
    name: str = Field(description="Kebab-case project name")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")


class ProjectListResponse(BaseModel):
    """Response model for the project list."""

    projects: List[ProjectResponse] = Field(default_factory=list)


class ProjectCreated(BaseModel):
    """Returned when a project was created and its first run dispatched."""

    project: ProjectResponse
    job_id: str = Field(description="Background job running the agent")
