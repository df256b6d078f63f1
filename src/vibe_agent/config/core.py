"""Core configuration classes for Vibe Builder agent infrastructure.

This module defines pure data classes for core configuration:
- Daytona sandbox settings
- Filesystem settings inside the sandbox
- Logging settings

Use vibe_agent.config.loaders for file-based loading.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class DaytonaConfig(BaseModel):
    """Daytona sandbox configuration.

    All fields have sensible defaults. Only api_key needs to be set
    (via DAYTONA_API_KEY environment variable).
    """

    api_key: str = ""  # Set via DAYTONA_API_KEY env var, validated later
    base_url: str = "https://app.daytona.io/api"
    target: str | None = None

    # Template snapshot with the Next.js base app preinstalled
    snapshot: str = "vibe-nextjs-base"

    # Minutes of inactivity before Daytona stops the sandbox
    auto_stop_interval: int = 10
    preview_port: int = 3000
    create_timeout: float = 120.0


class FilesystemConfig(BaseModel):
    """Filesystem layout inside the sandbox."""

    working_directory: str = "/home/daytona"
    skip_directories: list[str] = Field(default_factory=lambda: [
        ".git", "node_modules", ".next", "dist", "build",
        "prisma", "generated", "nextjs-app", "ui",
    ])
    skip_files: list[str] = Field(default_factory=lambda: [
        ".DS_Store", "Thumbs.db", "favicon.ico", ".bash_logout",
        ".bashrc", ".profile", ".wh.nextjs-app", "package-lock.json",
    ])


class LoggingConfig(BaseModel):
    """Logging configuration with sensible defaults."""

    level: str = "INFO"
    file: str = "logs/vibe.log"


class CoreConfig(BaseModel):
    """Core infrastructure configuration.

    Contains settings for the sandbox, its filesystem, and logging.
    LLM and loop configuration is handled in vibe_agent.config.agent.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    daytona: DaytonaConfig = Field(default_factory=DaytonaConfig)
    filesystem: FilesystemConfig = Field(default_factory=FilesystemConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    config_file_dir: Path | None = Field(default=None, exclude=True)

    def validate_api_keys(self) -> None:
        """Validate that required API keys are present.

        Raises:
            ValueError: If required API keys are missing
        """
        missing_keys = []

        if not self.daytona.api_key:
            missing_keys.append("DAYTONA_API_KEY")

        if missing_keys:
            raise ValueError(
                f"Missing required credentials in .env file:\n"
                f"  - {chr(10).join(missing_keys)}\n"
                f"Please add these credentials to your .env file."
            )
