"""PIX checkout - Mercado Pago payments for pending orders on the photographer's account"""

import logging
import uuid
from typing import Optional

import httpx
from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import MERCADOPAGO_STATEMENT_DESCRIPTOR, PUBLIC_API_URL
from ...models import Order, Photographer
from ...security_utils import decrypt_credential
from ...services.google_calendar_service import session_type_label
from ...services.mercadopago_client import MercadoPagoAPIError, MercadoPagoClient, extract_pix_data
from ...services.webhook_log_service import log_webhook
from .repository import OrderRepository
from .schemas import PayerInfo

logger = logging.getLogger(__name__)

ADVANCE_PAYMENT_ORDER_TYPE = "advance_payment"


def advance_payment_amount(photographer: Photographer) -> float:
    """Share of the minimum package price charged up front to confirm a booking"""
    percentage = photographer.advance_payment_percentage or 0
    return round((photographer.minimum_package_price or 0) * percentage / 100, 2)


def is_advance_payment_order(order: Order) -> bool:
    return (order.order_metadata or {}).get("type") == ADVANCE_PAYMENT_ORDER_TYPE


class PixCheckoutService:
    """Creates PIX payments for orders and keeps the order's payment id current"""

    def __init__(self, db: Session, mp_client: Optional[MercadoPagoClient] = None):
        self.db = db
        self.repo = OrderRepository()
        self.mp_client = mp_client or MercadoPagoClient()

    def photographer_token(self, photographer: Photographer) -> str:
        access_token = decrypt_credential(photographer.mercadopago_access_token)
        if not access_token:
            raise HTTPException(status_code=503, detail="Photographer has not configured Mercado Pago")
        return access_token

    async def create_pix_payment(
        self,
        photographer: Photographer,
        order: Order,
        description: str,
        payer: PayerInfo,
        metadata: Optional[dict] = None,
    ) -> dict:
        """
        Create the PIX payment for a pending order.

        The order's payment_intent_id is replaced by the new payment id, so the
        webhook matches the latest attempt directly and earlier attempts by
        external reference.
        """
        if order.status != "pending":
            raise HTTPException(status_code=400, detail=f"Order is already {order.status}")

        access_token = self.photographer_token(photographer)

        payer_data = {
            "email": payer.email,
            "first_name": payer.firstName,
            "last_name": payer.lastName or payer.firstName,
        }
        if payer.cpf:
            payer_data["identification"] = {"type": "CPF", "number": payer.cpf}

        payment_metadata = {
            "order_id": order.id,
            "event_id": order.event_id,
            "client_email": order.client_email,
        }
        payment_metadata.update(metadata or {})

        payment_data = {
            "transaction_amount": order.total_amount,
            "description": description,
            "payment_method_id": "pix",
            "statement_descriptor": MERCADOPAGO_STATEMENT_DESCRIPTOR,
            "payer": payer_data,
            "external_reference": f"order_{order.id}",
            "notification_url": f"{PUBLIC_API_URL}/webhooks/mercadopago?photographer_id={photographer.id}",
            "metadata": payment_metadata,
        }

        try:
            payment = await self.mp_client.create_payment(
                payment_data,
                access_token,
                idempotency_key=f"order_{order.id}_{uuid.uuid4()}",
            )
        except MercadoPagoAPIError as e:
            log_webhook(
                self.db,
                "mercadopago_payment_create_error",
                {"orderId": order.id, "error": e.body, "statusCode": e.status_code},
                status="failed",
                photographer_id=photographer.id,
            )
            raise HTTPException(status_code=502, detail="Payment provider rejected the payment")
        except httpx.HTTPError as e:
            logger.error(f"❌ Mercado Pago request failed for order {order.id}: {str(e)}")
            raise HTTPException(status_code=502, detail="Payment provider unavailable")

        payment_id = str(payment.get("id"))
        self.repo.set_payment_intent(self.db, order, payment_id)
        log_webhook(
            self.db,
            "mercadopago_payment_created",
            {"orderId": order.id, "paymentId": payment_id, "status": payment.get("status")},
            status="success",
            photographer_id=photographer.id,
        )
        logger.info(f"✅ PIX payment {payment_id} created for order {order.id}")

        pix = extract_pix_data(payment)
        return {
            "paymentId": payment_id,
            "status": payment.get("status"),
            "orderId": order.id,
            "amount": order.total_amount,
            "qrCode": pix["qr_code"],
            "qrCodeBase64": pix["qr_code_base64"],
            "ticketUrl": pix["ticket_url"],
        }

    # ------------------------------------------------------------------
    # Booking advance payments
    # ------------------------------------------------------------------

    def create_advance_order(self, photographer: Photographer, event) -> Order:
        amount = advance_payment_amount(photographer)
        order = self.repo.create_order(
            self.db,
            event.id,
            event.client_email,
            [],
            amount,
            metadata={
                "type": ADVANCE_PAYMENT_ORDER_TYPE,
                "percentage": photographer.advance_payment_percentage,
                "source": "public_booking",
            },
        )
        logger.info(f"🧾 Advance payment order {order.id} of R$ {amount:.2f} for event {event.id}")
        return order

    def get_advance_order(self, order_id: str) -> Order:
        order = self.repo.get_order_by_id(self.db, order_id)
        if not order or not is_advance_payment_order(order):
            raise HTTPException(status_code=404, detail="Order not found")
        return order

    async def create_advance_payment(self, order: Order, payer: PayerInfo) -> dict:
        event = order.event
        description = f"Pagamento antecipado - {session_type_label(event.session_type)} - {event.client_name}"
        return await self.create_pix_payment(
            event.photographer,
            order,
            description,
            payer,
            metadata={"type": ADVANCE_PAYMENT_ORDER_TYPE},
        )
