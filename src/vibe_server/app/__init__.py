"""
FastAPI application entry point with router registration.
"""

from vibe_server.app.setup import app

__all__ = ["app"]
