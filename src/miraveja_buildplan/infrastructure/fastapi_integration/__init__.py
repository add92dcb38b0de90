"""
FastAPI integration module.

Provides helpers for resolving miraveja-buildplan objects from FastAPI endpoints.
"""

from .integration import (
    BuildSessionMiddleware,
    create_fastapi_dependency,
    create_session_dependency,
)

__all__ = [
    "create_fastapi_dependency",
    "create_session_dependency",
    "BuildSessionMiddleware",
]
