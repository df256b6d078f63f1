"""
FastAPI application setup, initialization, and middleware configuration.

This module contains:
- Application lifespan management (startup/shutdown)
- Global state initialization (agent_config, event handlers)
- Middleware setup (CORS, request ID)
- Router registration
"""

# ============================================================================
# Imports and Global Variables
# ============================================================================
import logging
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vibe_server import __version__
from vibe_server.config.logging_config import configure_logging
from vibe_server.config.settings import get_allowed_origins
from vibe_server.database.connection import close_pool, open_pool
from vibe_server.models.events import CODE_AGENT_RUN, SANDBOX_RECREATE
from vibe_server.services.code_agent_job import CodeAgentJob
from vibe_server.services.event_dispatcher import EventDispatcher
from vibe_server.services.sandbox_lifecycle import RecreationJob

logger = logging.getLogger(__name__)

# Global variables
agent_config = None  # Vibe agent configuration (loaded from agent_config.yaml)


# ============================================================================
# Lifespan Context Manager
# ============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize resources when server starts, cleanup when stops."""
    global agent_config

    # Configure logging based on environment settings (first thing on startup)
    configure_logging()

    # Open database pool (validated with a simple query)
    try:
        await open_pool()
        logger.info("Database: Connected successfully")
    except Exception as e:
        logger.error(f"Database: Failed to connect - {e}")
        raise

    # Load agent configuration and register background event handlers
    from vibe_agent.config import load_from_files

    logger.info("Loading agent configuration...")
    agent_config = await load_from_files()
    agent_config.validate_api_keys()
    logger.info(f"Agent configuration loaded (model={agent_config.llm.name})")

    dispatcher = EventDispatcher.get_instance()
    dispatcher.register(CODE_AGENT_RUN, CodeAgentJob(agent_config))
    dispatcher.register(SANDBOX_RECREATE, RecreationJob(agent_config.to_core_config()))

    # Start EventDispatcher cleanup task
    try:
        await dispatcher.start_cleanup_task()
    except Exception as e:
        logger.warning(f"Failed to start EventDispatcher cleanup task: {e}")

    yield  # Server is running

    # Shutdown
    logger.info("Application shutdown started...")

    # 1. FIRST: Cancel background jobs while the pool is still open
    try:
        await dispatcher.shutdown(timeout=25.0)
    except Exception as e:
        logger.error(f"Error during EventDispatcher shutdown: {e}")

    # 2. THEN: Close database pool
    try:
        logger.info("Closing database pool...")
        await close_pool()
        logger.info("Database pool closed successfully")
    except Exception as e:
        logger.warning(f"Error closing database pool: {e}")

    logger.info("Application shutdown complete")


# ============================================================================
# FastAPI App Initialization and Middleware Setup
# ============================================================================
app = FastAPI(
    title="Vibe Builder",
    version=__version__,
    lifespan=lifespan,
)


class RequestIDMiddleware:
    """Add request ID for tracing without using BaseHTTPMiddleware"""
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        # Let OPTIONS requests pass through immediately for CORS preflight
        if scope.get("method") == "OPTIONS":
            await self.app(scope, receive, send)
            return

        trace_id = str(uuid4())
        scope.setdefault("state", {})["trace_id"] = trace_id

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((b"x-trace-id", trace_id.encode()))
                message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_wrapper)

# Middleware runs in reverse order of registration, so CORS (added last) runs first
app.add_middleware(RequestIDMiddleware)

allowed_origins = get_allowed_origins()
logger.info(f"Allowed origins: {allowed_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


# ============================================================================
# Router Registration
# ============================================================================
from vibe_server.app.artifacts import router as artifacts_router  # noqa: E402
from vibe_server.app.messages import router as messages_router  # noqa: E402
from vibe_server.app.projects import router as projects_router  # noqa: E402
from vibe_server.app.utilities import health_router  # noqa: E402

app.include_router(projects_router)  # /api/v1/projects - Project creation and listing
app.include_router(messages_router)  # /api/v1/projects/{id}/messages - Conversation
app.include_router(artifacts_router)  # /api/v1/artifacts/{id}/sandbox - Sandbox validity
app.include_router(health_router)  # /health - Health check
