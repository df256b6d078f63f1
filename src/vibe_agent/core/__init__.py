"""Vibe Builder - core sandbox infrastructure.

This package provides:
- SandboxHandle: Daytona sandbox management (files, commands, preview URL)
- check_sandbox_health: HTTP liveness probe for a sandbox preview URL
"""

from vibe_agent.config.core import CoreConfig

from .health import check_sandbox_health
from .sandbox import (
    CommandResult,
    CommandTimeoutError,
    SandboxError,
    SandboxFileNotFoundError,
    SandboxHandle,
    SandboxTransientError,
)

__all__ = [
    "CommandResult",
    "CommandTimeoutError",
    "CoreConfig",
    "SandboxError",
    "SandboxFileNotFoundError",
    "SandboxHandle",
    "SandboxTransientError",
    "check_sandbox_health",
]
