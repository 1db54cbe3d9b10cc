"""Payment router - Mercado Pago webhook, orders, public order status and audit log endpoints"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ...auth import get_current_photographer
from ...database import get_db
from ...models import Order, Photographer
from ...services.mercadopago_client import MercadoPagoClient
from ...services.webhook_log_service import list_webhook_logs, log_webhook
from .checkout import PixCheckoutService
from .repository import OrderRepository
from .schemas import (
    OrderPaymentRequest,
    OrderResponse,
    OrderStatusResponse,
    PixPaymentResponse,
    WebhookLogResponse,
)
from .service import PaymentWebhookService

logger = logging.getLogger(__name__)

webhooks_router = APIRouter(prefix="/webhooks", tags=["Webhooks"])
router = APIRouter(tags=["Orders"])
public_router = APIRouter(prefix="/public/orders", tags=["Public Orders"])


def get_mercadopago_client() -> MercadoPagoClient:
    """Dependency injection for the Mercado Pago API client"""
    return MercadoPagoClient()


def get_payment_webhook_service(
    db: Session = Depends(get_db),
    mp_client: MercadoPagoClient = Depends(get_mercadopago_client),
) -> PaymentWebhookService:
    """Dependency injection for PaymentWebhookService"""
    return PaymentWebhookService(db, mp_client)


def get_pix_checkout_service(
    db: Session = Depends(get_db),
    mp_client: MercadoPagoClient = Depends(get_mercadopago_client),
) -> PixCheckoutService:
    """Dependency injection for PixCheckoutService"""
    return PixCheckoutService(db, mp_client)


async def read_json_payload(request: Request) -> Optional[dict]:
    """Parsed JSON object body, None when the body is not a JSON object"""
    body = await request.body()
    try:
        payload = json.loads(body.decode("utf-8") or "null")
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    return payload if isinstance(payload, dict) else None


def order_status_response(order: Order) -> OrderStatusResponse:
    return OrderStatusResponse(
        orderId=order.id,
        status=order.status,
        paid=order.status == "paid",
        amount=order.total_amount,
        paymentId=order.payment_intent_id,
    )


def order_to_response(order: Order) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        eventId=order.event_id,
        clientEmail=order.client_email,
        selectedPhotos=order.selected_photos or [],
        totalAmount=order.total_amount,
        status=order.status,
        paymentIntentId=order.payment_intent_id,
        externalReference=order.external_reference,
        metadata=order.order_metadata,
        created_at=order.created_at,
    )


# ============================================================================
# MERCADO PAGO WEBHOOK
# ============================================================================


@webhooks_router.post("/mercadopago")
async def handle_mercadopago_webhook(
    request: Request,
    photographer_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    service: PaymentWebhookService = Depends(get_payment_webhook_service),
):
    """
    Handle Mercado Pago payment notifications

    Responses:
    - 200: handled, orphan, or a notification type this endpoint ignores
    - 400: payment notification without data.id
    - 500: provider or database failure; Mercado Pago redelivers later

    The notification signature is not verified.
    """
    payload = await read_json_payload(request)
    if payload is None:
        logger.error("❌ Invalid JSON payload")
        return JSONResponse(status_code=400, content={"error": "Invalid JSON"})

    try:
        result = await service.handle_notification(payload, photographer_id=photographer_id)
    except Exception as e:
        logger.error(f"❌ Mercado Pago webhook processing error: {str(e)}")
        db.rollback()
        log_webhook(
            db,
            "mercadopago_webhook_error",
            {"error": str(e), "payload": payload},
            status="failed",
            photographer_id=photographer_id,
        )
        return JSONResponse(status_code=500, content={"error": str(e)})

    return JSONResponse(status_code=result.status_code, content=result.body)


# ============================================================================
# ORDERS
# ============================================================================


@router.get("/orders", response_model=list[OrderResponse])
async def get_orders(
    status: Optional[str] = Query(None),
    photographer: Photographer = Depends(get_current_photographer),
    db: Session = Depends(get_db),
):
    """Get all orders across the photographer's events"""
    orders = OrderRepository.get_orders_for_photographer(db, photographer.id, status)
    return [order_to_response(o) for o in orders]


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    photographer: Photographer = Depends(get_current_photographer),
    db: Session = Depends(get_db),
):
    order = OrderRepository.get_order_for_photographer(db, order_id, photographer.id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order_to_response(order)


# ============================================================================
# AUDIT LOG
# ============================================================================


@router.get("/webhook-logs", response_model=list[WebhookLogResponse])
async def get_webhook_logs(
    event_type: Optional[str] = Query(None, description="Event type prefix, e.g. mercadopago_"),
    limit: int = Query(50, ge=1, le=500),
    photographer: Photographer = Depends(get_current_photographer),
    db: Session = Depends(get_db),
):
    """Recent webhook audit entries recorded for the calling photographer"""
    logs = list_webhook_logs(db, photographer.id, limit=limit, event_type=event_type)
    return [
        WebhookLogResponse(
            id=entry.id,
            eventType=entry.event_type,
            payload=entry.payload,
            response=entry.response,
            status=entry.status,
            created_at=entry.created_at,
        )
        for entry in logs
    ]


# ============================================================================
# PUBLIC BOOKING ORDERS
# ============================================================================


@public_router.get("/{order_id}", response_model=OrderStatusResponse)
async def get_advance_order_status(
    order_id: str,
    service: PixCheckoutService = Depends(get_pix_checkout_service),
):
    """Poll a booking's advance payment; the webhook moves it to paid or cancelled"""
    return order_status_response(service.get_advance_order(order_id))


@public_router.post("/{order_id}/payment", response_model=PixPaymentResponse)
async def create_advance_order_payment(
    order_id: str,
    data: OrderPaymentRequest,
    service: PixCheckoutService = Depends(get_pix_checkout_service),
):
    """Create a new PIX payment for a pending advance payment order"""
    order = service.get_advance_order(order_id)
    return await service.create_advance_payment(order, data.payer)
