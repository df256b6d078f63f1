"""Helpers shared by the API routers and services."""
