"""
Pydantic models for infrastructure configuration.

These models define the schema for config.yaml (infrastructure settings).
"""

from typing import Dict, List

from pydantic import BaseModel, Field


class JobExecutionConfig(BaseModel):
    """Configuration for background job execution."""

    max_concurrent_jobs: int = Field(
        default=20, description="Maximum number of jobs running at the same time"
    )
    cleanup_interval: int = Field(
        default=300, description="Background cleanup task interval in seconds (5 minutes)"
    )
    job_result_ttl: int = Field(
        default=3600, description="How long finished job records are kept in seconds (1 hour)"
    )
    event_retries: Dict[str, int] = Field(
        default_factory=dict,
        description="Extra attempts per event name, e.g. {'sandbox/recreate': 1}",
    )


class LifecycleConfig(BaseModel):
    """Sandbox validity and recreation settings."""

    probe_timeout: float = Field(default=5.0, description="Health probe timeout in seconds")
    recreation_lease: int = Field(
        default=600,
        description="Seconds after which a stuck recreation claim may be taken over",
    )
    poll_interval: int = Field(
        default=3, description="Suggested client polling interval in seconds"
    )


class InfrastructureConfig(BaseModel):
    """Schema of config.yaml."""

    debug: bool = False
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    module_log_levels: Dict[str, str] = Field(default_factory=dict)
    allowed_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    job_execution: JobExecutionConfig = Field(default_factory=JobExecutionConfig)
    lifecycle: LifecycleConfig = Field(default_factory=LifecycleConfig)
