"""Public booking - Clients book a session themselves and pay the advance by PIX"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Event, Order, Photographer
from ...security_utils import decrypt_credential
from ...services.google_calendar_service import SESSION_TYPE_LABELS
from ...services.mercadopago_client import MercadoPagoClient
from ...services.side_effects import OperationResult, run_side_effect
from ..payments.checkout import PixCheckoutService, advance_payment_amount
from .schemas import EventCreate, PublicBookingCreate
from .service import EventService

logger = logging.getLogger(__name__)

DEFAULT_STUDIO_LOCATION = "Estúdio Fotográfico"


@dataclass
class Booking:
    event: Event
    advance_order: Optional[Order] = None
    payment: Optional[dict] = None


def accepts_online_payment(photographer: Photographer) -> bool:
    return advance_payment_amount(photographer) > 0 and bool(
        decrypt_credential(photographer.mercadopago_access_token)
    )


class PublicBookingService:
    """Unauthenticated booking on behalf of one photographer"""

    def __init__(self, db: Session, mp_client: Optional[MercadoPagoClient] = None):
        self.db = db
        self.events = EventService(db)
        self.checkout = PixCheckoutService(db, mp_client)

    def get_photographer(self, photographer_id: str) -> Photographer:
        photographer = self.db.query(Photographer).filter(Photographer.id == photographer_id).first()
        if not photographer:
            raise HTTPException(status_code=404, detail="Photographer not found")
        return photographer

    def get_studio(self, photographer_id: str) -> dict:
        photographer = self.get_photographer(photographer_id)
        online_payment = accepts_online_payment(photographer)
        return {
            "photographerId": photographer.id,
            "businessName": photographer.business_name,
            "studioAddress": photographer.studio_address,
            "sessionTypes": [{"value": value, "label": label} for value, label in SESSION_TYPE_LABELS.items()],
            "onlinePayment": online_payment,
            "advancePaymentPercentage": photographer.advance_payment_percentage if online_payment else 0,
            "advancePaymentAmount": advance_payment_amount(photographer) if online_payment else 0,
        }

    async def create_booking(self, photographer_id: str, data: PublicBookingCreate) -> OperationResult[Booking]:
        """
        Book the session, then open its advance payment.

        The booking is kept when the PIX payment cannot be created: the pending
        advance order stays open and the client can retry its payment.
        Studios without Mercado Pago (or with a 0% advance) book without payment.
        """
        photographer = self.get_photographer(photographer_id)
        logger.info(f"📥 Public booking for photographer {photographer.id}")

        booking = EventCreate(
            clientName=data.clientName,
            clientEmail=data.clientEmail,
            clientPhone=data.clientPhone,
            sessionType=data.sessionType,
            eventDate=data.eventDate,
            location=photographer.studio_address or DEFAULT_STUDIO_LOCATION,
            notes=data.notes,
            createAlbum=False,
            sendConfirmation=True,
        )
        created = await self.events.create_event(booking, photographer)

        result = OperationResult(Booking(event=created.value), list(created.side_effects))
        if not accepts_online_payment(photographer):
            return result

        order = self.checkout.create_advance_order(photographer, created.value)
        result.value.advance_order = order

        outcome = result.add(
            await run_side_effect("advance_payment", self.checkout.create_advance_payment(order, data.payer_info()))
        )
        if outcome.success:
            result.value.payment = outcome.result
        return result
