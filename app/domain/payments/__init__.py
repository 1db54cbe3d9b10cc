"""Payments domain - Mercado Pago reconciliation, order payments and audit log"""

from .router import public_router, router, webhooks_router

__all__ = ["router", "public_router", "webhooks_router"]
