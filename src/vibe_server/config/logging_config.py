"""
Centralized Logging Configuration

Reads settings from config.yaml and configures the root logger as well as
module-specific loggers. The agent package logs through structlog, whose
level is aligned with the root level here.

Usage:
    from vibe_server.config.logging_config import configure_logging

    # Call once at application startup
    configure_logging()
"""

import logging

from vibe_agent.config.utils import configure_logging as configure_agent_logging
from vibe_server.config.settings import (
    get_log_format,
    get_log_level,
    get_module_log_levels,
)

# Flag to ensure configuration is only applied once
_logging_configured = False


# =============================================================================
# Library Group Mappings for Grouped Logging Configuration
# =============================================================================

# Third-party libraries (Network/HTTP/LLM clients)
THIRD_PARTY_LIBRARIES = [
    'openai',
    'anthropic',
    'google_genai',
    'httpx',
    'httpcore',
    'urllib3',
    'daytona_sdk',
]

# LangChain ecosystem libraries
LANGCHAIN_LIBRARIES = [
    'langchain',
    'langchain_core',
    'langchain_openai',
    'langchain_anthropic',
    'langchain_google_genai',
]

# Infrastructure libraries (Databases/Server)
INFRASTRUCTURE_LIBRARIES = [
    'fastapi',
    'uvicorn',
    'psycopg',
    'psycopg_pool',
]

LIBRARY_GROUPS = {
    'third_party_libraries': THIRD_PARTY_LIBRARIES,
    'langchain_libraries': LANGCHAIN_LIBRARIES,
    'infrastructure_libraries': INFRASTRUCTURE_LIBRARIES,
}


def expand_module_log_levels(raw_config: dict) -> dict:
    """
    Expand grouped logger configurations to individual parent logger names.

    Supports two formats:
    1. Grouped: 'group:third_party_libraries: WARNING'
    2. Individual: 'vibe_server.services: DEBUG'

    Example:
        Input:  {'group:third_party_libraries': 'WARNING', 'vibe_server': 'DEBUG'}
        Output: {'openai': 'WARNING', 'httpx': 'WARNING', ..., 'vibe_server': 'DEBUG'}
    """
    expanded = {}

    for key, level in raw_config.items():
        if key.startswith('group:'):
            group_name = key.replace('group:', '')

            if group_name in LIBRARY_GROUPS:
                # Parent loggers only, children inherit
                for logger_name in LIBRARY_GROUPS[group_name]:
                    expanded[logger_name] = level
            else:
                logging.warning(
                    f"Unknown logger group '{group_name}'. "
                    f"Valid groups: {list(LIBRARY_GROUPS.keys())}"
                )
        else:
            expanded[key] = level

    return expanded


def configure_logging(force: bool = False) -> None:
    """
    Configure logging based on settings from config.yaml.

    Args:
        force: If True, reconfigure logging even if already configured.
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    log_level = get_log_level()
    log_format = get_log_format()
    module_log_levels = expand_module_log_levels(get_module_log_levels())

    logging.basicConfig(
        level=getattr(logging, log_level),
        format=log_format,
        force=True  # Override any existing basicConfig calls
    )

    for module_name, level_str in module_log_levels.items():
        module_logger = logging.getLogger(module_name)
        try:
            module_logger.setLevel(getattr(logging, level_str))
        except AttributeError:
            logging.warning(
                f"Invalid log level '{level_str}' for module '{module_name}'. "
                f"Valid levels: DEBUG, INFO, WARNING, ERROR, CRITICAL"
            )

    configure_agent_logging(module_log_levels.get('vibe_agent', log_level))

    _logging_configured = True

    logging.getLogger().debug(
        f"Logging configured: root_level={log_level}, "
        f"modules={list(module_log_levels.keys())}"
    )


def reset_logging_config() -> None:
    """Reset the configuration flag so configure_logging() can run again."""
    global _logging_configured
    _logging_configured = False


def is_logging_configured() -> bool:
    """Check if logging has been configured."""
    return _logging_configured
