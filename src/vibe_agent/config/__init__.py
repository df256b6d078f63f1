"""Unified configuration package for the Vibe Builder agent.

This package consolidates all configuration-related code:
- core.py: Core infrastructure configs (Daytona, Filesystem, Logging)
- agent.py: Agent-specific configs (AgentConfig, LLMConfig, LoopConfig)
- files.py: Config file discovery and YAML loading
- loaders.py: File-based configuration loading
- utils.py: Shared utilities for config parsing

Usage:
    # Programmatic configuration
    from vibe_agent.config import AgentConfig
    config = AgentConfig()

    # File-based configuration
    from vibe_agent.config import load_from_files
    config = await load_from_files()
"""

from vibe_agent.config.agent import AgentConfig, LLMConfig, LoopConfig
from vibe_agent.config.core import (
    CoreConfig,
    DaytonaConfig,
    FilesystemConfig,
    LoggingConfig,
)
from vibe_agent.config.files import (
    find_config_file,
    find_project_root,
    get_config_search_paths,
    get_default_config_dir,
    load_yaml_config,
)
from vibe_agent.config.loaders import load_from_dict, load_from_files
from vibe_agent.config.utils import configure_logging

__all__ = [
    "AgentConfig",
    "CoreConfig",
    "DaytonaConfig",
    "FilesystemConfig",
    "LLMConfig",
    "LoggingConfig",
    "LoopConfig",
    "configure_logging",
    "find_config_file",
    "find_project_root",
    "get_config_search_paths",
    "get_default_config_dir",
    "load_from_dict",
    "load_from_files",
    "load_yaml_config",
]
