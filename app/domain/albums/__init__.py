"""Albums domain - Albums, photos, public selection and pricing"""

from .router import public_router, router

__all__ = ["router", "public_router"]
