"""
Centralized configuration access module.

Configuration loading strategy:
1. Credentials come from environment variables (.env)
2. Infrastructure settings come from config.yaml
3. Agent settings come from agent_config.yaml (see vibe_agent.config)
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Optional

from vibe_agent.config.files import (
    INFRASTRUCTURE_CONFIG_FILE,
    find_config_file,
    load_yaml_config,
)
from vibe_server.config.models import InfrastructureConfig

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def load_infrastructure_config(config_path: Optional[Path] = None) -> InfrastructureConfig:
    """
    Load and validate config.yaml.

    The file is searched in CWD, the git root and ~/.vibe-builder/ unless
    VIBE_INFRA_CONFIG_FILE points elsewhere. A missing file yields defaults.
    """
    if config_path is None:
        config_path = find_config_file(INFRASTRUCTURE_CONFIG_FILE, env_var="VIBE_INFRA_CONFIG_FILE")

    if config_path is None:
        logger.info("config.yaml not found, using default infrastructure settings")
        return InfrastructureConfig()

    return InfrastructureConfig(**load_yaml_config(str(config_path)))


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a top-level configuration value from config.yaml.

    Args:
        key: Configuration key (e.g., 'debug', 'log_level')
        default: Default value if key not found
    """
    value = getattr(load_infrastructure_config(), key, None)
    return default if value is None else value


# =============================================================================
# Application Settings
# =============================================================================

def get_debug_mode() -> bool:
    """Get debug mode flag from config.yaml."""
    return bool(get_config('debug', False))


# =============================================================================
# Logging Settings
# =============================================================================

def get_log_level() -> str:
    """
    Get root logger level from config.yaml.

    Returns:
        Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = str(get_config('log_level', 'INFO')).upper()
    valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}

    if level in valid_levels:
        return level
    logger.warning(
        f"Invalid log_level value: {level}. "
        f"Using default 'INFO'."
    )
    return 'INFO'


def get_log_format() -> str:
    """Get log format string from config.yaml."""
    return str(get_config(
        'log_format',
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))


def get_module_log_levels() -> dict:
    """
    Get module-specific log levels from config.yaml.

    Returns:
        Dictionary mapping module names to log levels
    """
    module_levels = get_config('module_log_levels', {})
    return {k: str(v).upper() for k, v in module_levels.items()}


# =============================================================================
# CORS Settings
# =============================================================================

def get_allowed_origins() -> List[str]:
    """Get allowed CORS origins from config.yaml."""
    return list(get_config('allowed_origins', ['http://localhost:3000']))


# =============================================================================
# Job Execution Settings
# =============================================================================

def get_max_concurrent_jobs(default: int = 20) -> int:
    """Get maximum number of concurrent background jobs."""
    return int(load_infrastructure_config().job_execution.max_concurrent_jobs or default)


def get_cleanup_interval(default: int = 300) -> int:
    """Get background cleanup interval in seconds (default: 5 minutes)."""
    return int(load_infrastructure_config().job_execution.cleanup_interval or default)


def get_job_result_ttl(default: int = 3600) -> int:
    """Get finished job retention in seconds (default: 1 hour)."""
    return int(load_infrastructure_config().job_execution.job_result_ttl or default)


def get_event_retries(event: str) -> int:
    """Get extra attempts configured for an event name."""
    return int(load_infrastructure_config().job_execution.event_retries.get(event, 0))


# =============================================================================
# Sandbox Lifecycle Settings
# =============================================================================

def get_probe_timeout(default: float = 5.0) -> float:
    """Get the sandbox health probe timeout in seconds."""
    return float(load_infrastructure_config().lifecycle.probe_timeout or default)


def get_recreation_lease(default: int = 600) -> int:
    """Get the recreation claim lease in seconds (default: 10 minutes)."""
    return int(load_infrastructure_config().lifecycle.recreation_lease or default)


def get_poll_interval(default: int = 3) -> int:
    """Get the suggested status polling interval in seconds."""
    return int(load_infrastructure_config().lifecycle.poll_interval or default)


# =============================================================================
# Database Settings
# =============================================================================

def get_db_connection_string() -> str:
    """
    Get PostgreSQL connection string from environment variables.

    Environment variables:
        DB_HOST: PostgreSQL host (default: localhost)
        DB_PORT: PostgreSQL port (default: 5432)
        DB_NAME: Database name (default: postgres)
        DB_USER: Database user (default: postgres)
        DB_PASSWORD: Database password (default: postgres)
        DB_SSLMODE: sslmode (default: disable, require for supabase hosts)
    """
    db_host = os.getenv("DB_HOST", "localhost")
    db_port = os.getenv("DB_PORT", "5432")
    db_name = os.getenv("DB_NAME", "postgres")
    db_user = os.getenv("DB_USER", "postgres")
    db_password = os.getenv("DB_PASSWORD", "postgres")

    default_sslmode = "require" if "supabase.com" in db_host else "disable"
    sslmode = os.getenv("DB_SSLMODE", default_sslmode)
    return f"postgresql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}?sslmode={sslmode}"
