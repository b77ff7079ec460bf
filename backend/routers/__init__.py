"""Routers package."""

from .profiles import router as profiles_router

__all__ = [
    "profiles_router",
]
