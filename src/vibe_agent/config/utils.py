"""Shared configuration utilities.

This module provides common helpers for env loading, config validation
and structlog setup.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import structlog
from dotenv import load_dotenv


async def load_dotenv_async(env_file: Path | None = None) -> None:
    """Load environment variables from .env file asynchronously.

    Args:
        env_file: Optional path to .env file. If None, searches default locations.
    """
    if env_file:
        await asyncio.to_thread(load_dotenv, env_file)
    else:
        await asyncio.to_thread(load_dotenv)


def validate_section_fields(
    section_data: dict[str, Any],
    required_fields: list[str],
    section_name: str,
) -> None:
    """Validate that all required fields exist in a config section.

    Raises:
        ValueError: If any required fields are missing
    """
    missing = [f for f in required_fields if f not in section_data]
    if missing:
        raise ValueError(
            f"Missing required fields in {section_name} section: {', '.join(missing)}"
        )


def validate_required_sections(
    config_data: dict[str, Any],
    required_sections: list[str],
    config_name: str = "agent_config.yaml",
) -> None:
    """Validate that all required sections exist in config data.

    Raises:
        ValueError: If any required sections are missing
    """
    missing = [s for s in required_sections if s not in config_data]
    if missing:
        raise ValueError(
            f"Missing required sections in {config_name}: {', '.join(missing)}\n"
            f"Please add these sections to your {config_name} file."
        )


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog to respect log level from config.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )
