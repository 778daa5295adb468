"""FastAPI dependency wiring shared by the routers."""

from __future__ import annotations

from fastapi import Request

from .config import Settings
from .db.session import get_database, get_session_dependency
from .identity import Actor, get_actor


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


__all__ = [
    "Actor",
    "get_actor",
    "get_app_settings",
    "get_database",
    "get_session_dependency",
]
