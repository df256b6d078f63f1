"""
API utilities for FastAPI routers.

Provides common patterns for exception handling and path validation.
"""

import functools
import inspect
import logging
from typing import Callable, Optional, TypeVar

from fastapi import HTTPException

from vibe_server.services.errors import ArtifactNotFoundError, ProjectNotFoundError
from vibe_server.services.event_dispatcher import DispatcherBusyError

# Type variable for generic return type preservation
T = TypeVar("T")


def handle_api_exceptions(
    action: str,
    logger: logging.Logger,
    *,
    conflict_on_value_error: bool = False,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator to handle common API exception patterns.

    Catches exceptions and converts them to appropriate HTTP responses:
    - HTTPException: Re-raised as-is
    - ProjectNotFoundError / ArtifactNotFoundError: 404 Not Found
    - ValueError: 409 Conflict (if conflict_on_value_error=True) or re-raised
    - DispatcherBusyError: 503 Service Unavailable
    - Exception: Logged and converted to 500 Internal Server Error

    Usage:
        @router.post("/projects")
        @handle_api_exceptions("create project", logger)
        async def create_project(...):
            ...
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except ProjectNotFoundError:
                raise HTTPException(status_code=404, detail="Project not found")
            except ArtifactNotFoundError:
                raise HTTPException(status_code=404, detail="Artifact not found")
            except DispatcherBusyError as e:
                logger.warning(f"Rejected {action}: {e}")
                raise HTTPException(status_code=503, detail="Too many running jobs, retry later")
            except ValueError as e:
                if conflict_on_value_error:
                    raise HTTPException(status_code=409, detail=str(e))
                raise
            except Exception as e:
                logger.exception(f"Error {action}: {e}")
                raise HTTPException(
                    status_code=500,
                    detail=f"Failed to {action}",
                )
        # Preserve function signature for FastAPI dependency injection
        wrapper.__signature__ = inspect.signature(func)
        return wrapper
    return decorator


def raise_not_found(resource: str, resource_id: Optional[str] = None) -> None:
    """
    Raise a 404 Not Found HTTPException.

    Args:
        resource: Name of the resource (e.g., "Project", "Artifact")
        resource_id: Optional ID, logged by callers but kept out of the response

    Raises:
        HTTPException: 404 Not Found
    """
    detail = f"{resource} not found"
    raise HTTPException(status_code=404, detail=detail)

