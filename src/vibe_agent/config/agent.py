"""Agent configuration management.

This module contains pure data classes for agent-specific configuration
that builds on top of the core configuration (sandbox, filesystem).

Use vibe_agent.config.loaders for file-based loading.
"""

from pathlib import Path

from pydantic import BaseModel, Field

from vibe_agent.config.core import (
    CoreConfig,
    DaytonaConfig,
    FilesystemConfig,
    LoggingConfig,
)


class LLMConfig(BaseModel):
    """LLM configuration - references models from models.json."""

    name: str = "gemini-2.5-pro"  # Model driving the agent loop
    auxiliary: str | None = "gemini-2.0-flash"  # Title/response model, defaults to main llm if None


class LoopConfig(BaseModel):
    """Bounds and knobs for the agent loop."""

    max_iterations: int = Field(default=15, ge=1, le=50)
    history_limit: int = Field(default=3, ge=0, le=20)
    terminal_timeout: float = Field(default=30.0, gt=0)
    # Merge a snapshot of the sandbox workspace under the agent's files
    snapshot_workspace: bool = False


class AgentConfig(BaseModel):
    """Agent-specific configuration.

    Holds the LLM and loop settings alongside the core sandbox settings.
    """

    llm: LLMConfig = Field(default_factory=LLMConfig)
    agent: LoopConfig = Field(default_factory=LoopConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    daytona: DaytonaConfig = Field(default_factory=DaytonaConfig)
    filesystem: FilesystemConfig = Field(default_factory=FilesystemConfig)

    # Runtime data (not from config files)
    config_file_dir: Path | None = Field(default=None, exclude=True)

    def to_core_config(self) -> CoreConfig:
        """Project the sandbox-facing subset into a CoreConfig."""
        return CoreConfig(
            daytona=self.daytona,
            filesystem=self.filesystem,
            logging=self.logging,
            config_file_dir=self.config_file_dir,
        )

    def validate_api_keys(self) -> None:
        """Validate that required API keys are present.

        Raises:
            ValueError: If required API keys are missing
        """
        self.to_core_config().validate_api_keys()
