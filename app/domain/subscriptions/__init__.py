"""Subscriptions domain - Trial and paid plans for photographers"""

from .router import router, webhooks_router

__all__ = ["router", "webhooks_router"]
