"""Album checkout - PIX payment for a client's pending selection order"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Album, Order
from ...services.mercadopago_client import MercadoPagoClient
from ..payments.checkout import PixCheckoutService
from ..payments.repository import OrderRepository
from ..payments.schemas import OrderPaymentRequest
from .repository import AlbumRepository

logger = logging.getLogger(__name__)


class OrderPaymentService:
    """Selection orders reached through an album's share token"""

    def __init__(self, db: Session, mp_client: Optional[MercadoPagoClient] = None):
        self.db = db
        self.repo = OrderRepository()
        self.album_repo = AlbumRepository()
        self.checkout = PixCheckoutService(db, mp_client)

    def get_album_order(self, share_token: str, order_id: str) -> tuple[Album, Order]:
        album = self.album_repo.get_album_by_share_token(self.db, share_token)
        if not album or not album.is_active:
            raise HTTPException(status_code=404, detail="Album not found")

        order = self.repo.get_order_by_id(self.db, order_id)
        if not order or order.event_id != album.event_id:
            raise HTTPException(status_code=404, detail="Order not found")
        return album, order

    async def create_order_payment(self, share_token: str, order_id: str, data: OrderPaymentRequest) -> dict:
        album, order = self.get_album_order(share_token, order_id)
        selected_photos = order.selected_photos or []
        return await self.checkout.create_pix_payment(
            album.event.photographer,
            order,
            f"Fotos selecionadas - {album.name}",
            data.payer,
            metadata={"selected_photos": selected_photos, "photo_count": len(selected_photos)},
        )
