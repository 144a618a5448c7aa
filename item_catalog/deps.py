"""Dependency helpers for the FastAPI routes.

Objects are created once in ``create_app`` and stored on ``app.state``.
"""

from __future__ import annotations

from fastapi import Request

from .config import Settings
from .storage import RecordStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_stats_cache(request: Request):
    """Return the application's ``StatsCache``."""
    return request.app.state.stats_cache
