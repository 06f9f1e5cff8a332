"""
API router configuration. Mounted under /api by splenex.main.

File: backend/splenex/api/__init__.py
"""

from __future__ import annotations

from fastapi import APIRouter

from . import providers, quotes

api_router = APIRouter()
api_router.include_router(quotes.router)
api_router.include_router(providers.router)

__all__ = ["api_router"]
