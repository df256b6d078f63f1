"""
Config file discovery and YAML loading shared by agent and server configs.

Provides:
- Support for both $VAR and ${VAR} environment variable formats
- Config file search paths: CWD → project root → ~/.vibe-builder/
- Caching to avoid repeated file reads

Config Files:
- config.yaml: Infrastructure settings (server, logging, CORS, jobs, lifecycle)
- agent_config.yaml: Agent capabilities (LLM, loop, sandbox)
"""

import os
import re
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

INFRASTRUCTURE_CONFIG_FILE = "config.yaml"
AGENT_CONFIG_FILE = "agent_config.yaml"


# =============================================================================
# Environment Variable Substitution
# =============================================================================


def substitute_env_vars(value: str) -> str:
    """
    Replace environment variables in string values.

    Supports both formats:
    - $VAR - Simple format, only when the whole value is the reference
    - ${VAR} - Bash-style format with braces, anywhere in the value

    Unknown ${VAR} references are left untouched.
    """
    if not isinstance(value, str):
        return value

    result = re.sub(
        r"\$\{([^}]+)\}",
        lambda m: os.getenv(m.group(1), m.group(0)),
        value,
    )

    if result.startswith("$") and not result.startswith("${"):
        env_var = result[1:]
        if env_var.isidentifier():
            return os.getenv(env_var, env_var)

    return result


def _process_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _process_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_process_value(item) for item in value]
    if isinstance(value, str):
        return substitute_env_vars(value)
    return value


# =============================================================================
# Config File Search
# =============================================================================


def find_project_root(start_path: Path | None = None) -> Path | None:
    """Find git repository root by walking up from start_path."""
    current = start_path or Path.cwd()
    while current != current.parent:
        if (current / ".git").exists():
            return current
        current = current.parent
    return None


def get_default_config_dir() -> Path:
    """Get the default config directory (~/.vibe-builder/)."""
    return Path.home() / ".vibe-builder"


def get_config_search_paths(start_path: Path | None = None) -> list[Path]:
    """Ordered config search paths: CWD → project root → ~/.vibe-builder/."""
    cwd = start_path or Path.cwd()

    paths = [cwd]
    project_root = find_project_root(cwd)
    if project_root and project_root != cwd:
        paths.append(project_root)
    paths.append(get_default_config_dir())
    return paths


def find_config_file(
    filename: str,
    search_paths: list[Path] | None = None,
    env_var: str | None = None,
) -> Path | None:
    """
    Find first existing config file in search paths.

    Args:
        filename: Name of the file to find
        search_paths: Paths to search (default: get_config_search_paths())
        env_var: Environment variable to check for override

    Returns:
        Path to the first existing file, or None if not found
    """
    if env_var:
        env_path = os.getenv(env_var)
        if env_path:
            path = Path(env_path)
            if path.exists():
                return path

    if search_paths is None:
        search_paths = get_config_search_paths()

    for search_path in search_paths:
        candidate = search_path / filename
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# YAML Loading with Caching
# =============================================================================

_config_cache: dict[str, dict[str, Any]] = {}


def load_yaml_config(file_path: str, use_cache: bool = True) -> dict[str, Any]:
    """
    Load and process YAML configuration file.

    Returns:
        Processed configuration dictionary with environment variables replaced,
        or an empty dict when the file is missing or empty.
    """
    if not os.path.exists(file_path):
        logger.warning("Configuration file not found", file_path=file_path)
        return {}

    if use_cache and file_path in _config_cache:
        return _config_cache[file_path]

    with open(file_path, encoding="utf-8") as f:
        raw_config = yaml.safe_load(f)

    if not raw_config:
        logger.warning("Empty configuration file", file_path=file_path)
        return {}

    processed_config = _process_value(raw_config)

    logger.debug("Loaded configuration", file_path=file_path, sections=len(processed_config))

    if use_cache:
        _config_cache[file_path] = processed_config
    return processed_config


def clear_config_cache() -> None:
    """Clear the configuration cache. Useful for testing or when config files change."""
    _config_cache.clear()
