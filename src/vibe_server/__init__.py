"""
Vibe Builder server: HTTP API, persistence and background jobs.

The FastAPI application lives in vibe_server.app:
    from vibe_server.app import app
"""

import asyncio
import sys

__version__ = "0.1.0"

if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
