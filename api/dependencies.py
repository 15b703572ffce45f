"""
FastAPI dependencies (shared across routes).
"""

from __future__ import annotations

from fastapi import Request

from auth.dependencies import AuthContext, db_session, require_user  # noqa: F401
from config.settings import Settings


def get_settings(request: Request) -> Settings:
    """The immutable settings the running app was built with."""
    return request.app.state.settings
