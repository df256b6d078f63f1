"""Server configuration: config.yaml models, settings getters and logging setup."""

from vibe_server.config.models import (
    InfrastructureConfig,
    JobExecutionConfig,
    LifecycleConfig,
)
from vibe_server.config.settings import load_infrastructure_config

__all__ = [
    "InfrastructureConfig",
    "JobExecutionConfig",
    "LifecycleConfig",
    "load_infrastructure_config",
]
