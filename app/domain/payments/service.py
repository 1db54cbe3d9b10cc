"""Payment service - Mercado Pago webhook reconciliation"""

import logging
from datetime import datetime
from typing import Optional

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import Order
from ...services.credentials import CredentialLookupError, resolve_mercadopago_token
from ...services.mercadopago_client import (
    MercadoPagoAPIError,
    MercadoPagoClient,
    PaymentDetails,
)
from ...services.webhook_log_service import log_webhook
from ...utils.retry import with_retry
from .references import map_payment_status, normalize_reference
from .repository import OrderRepository
from .schemas import WebhookResult

logger = logging.getLogger(__name__)


def build_payment_metadata(details: PaymentDetails) -> dict:
    """Fee and payment fields merged into the order metadata"""
    return {
        "mercadopago_fee": details.total_fees,
        "net_amount": details.net_amount,
        "payment_method": details.payment_method_id,
        "fee_details": details.fee_details,
        "status_detail": details.status_detail,
        "payer_email": details.payer_email,
        "updated_by_webhook": True,
        "webhook_timestamp": datetime.utcnow().isoformat(),
    }


class PaymentWebhookService:
    """Reconciles Mercado Pago payment notifications with local orders"""

    def __init__(self, db: Session, mp_client: Optional[MercadoPagoClient] = None):
        self.db = db
        self.repo = OrderRepository()
        self.mp_client = mp_client or MercadoPagoClient()

    async def handle_notification(self, payload: dict, photographer_id: Optional[str] = None) -> WebhookResult:
        notification_type = payload.get("type")
        owner_id = photographer_id
        data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
        payment_id = data.get("id")

        logger.info(f"📥 Mercado Pago notification: type={notification_type}, id={payment_id}")

        if notification_type != "payment":
            log_webhook(
                self.db,
                f"mercadopago_{notification_type or 'unknown'}",
                payload,
                status="success",
                photographer_id=owner_id,
            )
            return WebhookResult(200, {"received": True})

        if payment_id in (None, ""):
            logger.warning("⚠️ Payment notification without data.id")
            return WebhookResult(400, {"error": "Payment ID missing"})

        payment_id = str(payment_id)

        # Credentials
        try:
            access_token = resolve_mercadopago_token(self.db, photographer_id)
        except CredentialLookupError as e:
            logger.error(f"❌ Mercado Pago credentials unavailable: {str(e)}")
            log_webhook(
                self.db,
                "mercadopago_credentials_error",
                {"paymentId": payment_id, "photographerId": photographer_id, "error": str(e)},
                status="failed",
                photographer_id=owner_id,
            )
            return WebhookResult(500, {"error": "Config not found"})

        # Authoritative payment state
        try:
            payment_data = await self.mp_client.get_payment(payment_id, access_token)
        except MercadoPagoAPIError as e:
            log_webhook(
                self.db,
                "mercadopago_payment_fetch_error",
                {"paymentId": payment_id, "error": e.body, "statusCode": e.status_code},
                status="failed",
                photographer_id=owner_id,
            )
            return WebhookResult(500, {"error": "Failed to fetch payment"})
        except httpx.HTTPError as e:
            logger.error(f"❌ Mercado Pago request failed for payment {payment_id}: {str(e)}")
            log_webhook(
                self.db,
                "mercadopago_payment_fetch_error",
                {"paymentId": payment_id, "error": str(e)},
                status="failed",
                photographer_id=owner_id,
            )
            return WebhookResult(500, {"error": "Failed to fetch payment"})

        details = PaymentDetails.from_api(payment_id, payment_data)
        logger.info(
            f"💳 Payment {payment_id}: status={details.status}, amount={details.transaction_amount}, "
            f"fees={details.total_fees}, reference={details.external_reference}"
        )

        # Order lookup
        try:
            order, matched_by = await self._find_order(details)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Order lookup failed for payment {payment_id}: {str(e)}")
            log_webhook(
                self.db,
                "mercadopago_order_fetch_error",
                {"paymentId": payment_id, "error": str(e)},
                status="failed",
                photographer_id=owner_id,
            )
            return WebhookResult(500, {"error": "Failed to fetch order"})

        if order is None:
            logger.warning(f"⚠️ Orphan payment {payment_id}: no matching order")
            log_webhook(
                self.db,
                "mercadopago_payment_orphan",
                {"paymentId": payment_id, "paymentData": payment_data},
                status="success",
                photographer_id=owner_id,
            )
            return WebhookResult(200, {"message": "Payment processed but no matching order found"})

        order_id = order.id
        owner_id = order.event.photographer_id
        event_id = order.event_id
        old_status = order.status
        new_status = map_payment_status(details.status)

        # A late notification for a superseded payment must not undo a paid order
        if matched_by == "external_reference" and old_status == "paid" and new_status != "paid":
            logger.warning(
                f"⚠️ Ignoring {details.status} payment {payment_id} for already paid order {order_id}"
            )
            log_webhook(
                self.db,
                "mercadopago_payment_superseded",
                {"paymentId": payment_id, "orderId": order_id, "providerStatus": details.status},
                status="success",
                photographer_id=owner_id,
            )
            return WebhookResult(
                200, {"success": True, "orderId": order_id, "oldStatus": old_status, "newStatus": old_status}
            )

        # Order update
        metadata_updates = build_payment_metadata(details)

        def update_order():
            # Re-read after a rolled back attempt
            current = self.repo.get_order_by_id(self.db, order_id)
            return self.repo.apply_payment_update(self.db, current, new_status, payment_id, metadata_updates)

        try:
            order = await self._retry(update_order)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update order {order_id}: {str(e)}")
            log_webhook(
                self.db,
                "mercadopago_order_update_error",
                {"orderId": order_id, "paymentId": payment_id, "error": str(e)},
                status="failed",
                photographer_id=owner_id,
            )
            return WebhookResult(500, {"error": "Failed to update order"})

        logger.info(f"✅ Order {order_id} status: {old_status} → {new_status}")

        album_id = None
        if new_status == "paid":
            try:
                album = await self._retry(lambda: self.repo.mark_event_album_paid(self.db, order))
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"❌ Failed to mark album paid for order {order_id}: {str(e)}")
                log_webhook(
                    self.db,
                    "mercadopago_album_update_error",
                    {"orderId": order_id, "eventId": event_id, "error": str(e)},
                    status="failed",
                    photographer_id=owner_id,
                )
                return WebhookResult(500, {"error": "Failed to update album"})

            if album:
                album_id = album.id
                logger.info(f"✅ Album {album.id} marked as paid")
            else:
                logger.info(f"ℹ️ No album found for event {event_id}")

        response_body = {
            "success": True,
            "orderId": order_id,
            "oldStatus": old_status,
            "newStatus": new_status,
        }
        log_webhook(
            self.db,
            "mercadopago_payment_processed",
            {
                "paymentId": payment_id,
                "orderId": order_id,
                "matchedBy": matched_by,
                "oldStatus": old_status,
                "newStatus": new_status,
                "albumId": album_id,
                "netAmount": details.net_amount,
                "payment": details.summary(),
            },
            status="success",
            photographer_id=owner_id,
            response=response_body,
        )
        return WebhookResult(200, response_body)

    async def _retry(self, operation):
        """Store call with transient-error retries; the session is rolled back between attempts"""
        return await with_retry(operation, on_retry=self.db.rollback)

    async def _find_order(self, details: PaymentDetails) -> tuple[Optional[Order], Optional[str]]:
        """Exact payment id match first, then the normalized external reference"""
        order = await self._retry(lambda: self.repo.get_order_by_payment_intent_id(self.db, details.payment_id))
        if order:
            return order, "payment_intent_id"

        reference = normalize_reference(details.external_reference)
        if not reference:
            return None, None

        order = await self._retry(lambda: self.repo.get_order_by_external_reference(self.db, reference))
        if order:
            logger.info(
                f"🔗 Payment {details.payment_id} matched order {order.id} by reference '{reference}' "
                f"(stored payment id: {order.payment_intent_id})"
            )
            return order, "external_reference"

        return None, None

