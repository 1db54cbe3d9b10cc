"""Clients domain - Photographer client records"""

from .router import router

__all__ = ["router"]
