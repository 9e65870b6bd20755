"""FastAPI dependencies for dependency injection."""

from fastapi import Request

from core.config import Settings
from database.store import Store


def get_store(request: Request) -> Store:
    """The store the application was created with."""
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    """The settings the application was created with."""
    return request.app.state.settings
