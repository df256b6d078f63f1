"""Configuration loaders for file-based config.

This module provides functions to load AgentConfig from files.

Usage:
    from vibe_agent.config import load_from_files
    config = await load_from_files()

Config Search Paths:
    When no explicit path is provided, agent_config.yaml is searched in order:
    1. Current working directory
    2. Project root (git repository root)
    3. ~/.vibe-builder/ (user config directory)

    Environment variable overrides:
    - VIBE_CONFIG_FILE: explicit path to agent_config.yaml

LLM Configuration:
    LLM models are configured by name in agent_config.yaml and resolved
    at runtime via vibe_agent.llms.create_llm() using models.json.
"""

import asyncio
import os
from pathlib import Path
from typing import Any

from vibe_agent.config.agent import AgentConfig, LLMConfig, LoopConfig
from vibe_agent.config.core import DaytonaConfig, FilesystemConfig, LoggingConfig
from vibe_agent.config.files import (
    AGENT_CONFIG_FILE,
    find_config_file,
    get_config_search_paths,
    load_yaml_config,
)
from vibe_agent.config.utils import (
    load_dotenv_async,
    validate_required_sections,
    validate_section_fields,
)

REQUIRED_SECTIONS = ["llm", "daytona"]
DAYTONA_REQUIRED_FIELDS = ["base_url", "snapshot"]


async def load_from_files(
    config_file: Path | None = None,
    env_file: Path | None = None,
    *,
    search_paths: bool = True,
) -> AgentConfig:
    """Load AgentConfig from config files (agent_config.yaml, .env).

    Args:
        config_file: Optional path to agent_config.yaml file
        env_file: Optional path to .env file
        search_paths: If True, search multiple paths for config files

    Returns:
        Configured AgentConfig instance

    Raises:
        FileNotFoundError: If agent_config.yaml is not found
        ValueError: If required configuration is missing or invalid
    """
    cwd = await asyncio.to_thread(Path.cwd)

    if config_file is None:
        if search_paths:
            config_file = await asyncio.to_thread(
                find_config_file,
                AGENT_CONFIG_FILE,
                None,
                "VIBE_CONFIG_FILE",
            )
        else:
            config_file = cwd / AGENT_CONFIG_FILE

    if config_file is None or not config_file.exists():
        searched = (
            await asyncio.to_thread(get_config_search_paths)
            if search_paths
            else [cwd]
        )
        raise FileNotFoundError(
            f"agent_config.yaml not found in search paths:\n"
            f"  {chr(10).join(str(p) for p in searched)}\n"
            f"Create one or set VIBE_CONFIG_FILE environment variable."
        )

    # Credentials come from the environment
    await load_dotenv_async(env_file)

    config_data = await asyncio.to_thread(load_yaml_config, str(config_file))

    config = load_from_dict(config_data)
    config.config_file_dir = config_file.parent
    return config


def load_from_dict(config_data: dict[str, Any]) -> AgentConfig:
    """Create AgentConfig from a dictionary (e.g., parsed YAML).

    Args:
        config_data: Configuration dictionary (same structure as agent_config.yaml)

    Returns:
        Configured AgentConfig instance

    Raises:
        ValueError: If required configuration is missing or invalid
    """
    validate_required_sections(config_data, REQUIRED_SECTIONS)

    llm_data = config_data["llm"]
    if isinstance(llm_data, str):
        # Simple string format: "gemini-2.5-pro"
        llm_config = LLMConfig(name=llm_data)
    elif isinstance(llm_data, dict):
        llm_config = LLMConfig(**llm_data)
    else:
        raise ValueError(
            f"Invalid llm configuration: expected a model name or mapping, got {type(llm_data).__name__}"
        )

    daytona_data = config_data["daytona"]
    validate_section_fields(daytona_data, DAYTONA_REQUIRED_FIELDS, "daytona")
    daytona_config = DaytonaConfig(
        api_key=os.getenv("DAYTONA_API_KEY", ""),
        **{k: v for k, v in daytona_data.items() if k != "api_key"},
    )

    return AgentConfig(
        llm=llm_config,
        agent=LoopConfig(**config_data.get("agent", {})),
        logging=LoggingConfig(**config_data.get("logging", {})),
        daytona=daytona_config,
        filesystem=FilesystemConfig(**config_data.get("filesystem", {})),
    )
