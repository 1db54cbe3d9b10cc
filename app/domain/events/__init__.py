"""Events domain - Photo session bookings with calendar and WhatsApp sync"""

from .router import public_router, router

__all__ = ["router", "public_router"]
