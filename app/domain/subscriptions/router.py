"""Subscription router - Plan status, subscription payment and its webhook"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ...auth import get_current_photographer
from ...database import get_db
from ...models import Photographer
from ...services.mercadopago_client import MercadoPagoClient
from ...services.webhook_log_service import log_webhook
from ..payments.router import get_mercadopago_client, read_json_payload
from ..payments.schemas import PixPaymentResponse
from .schemas import SubscriptionPaymentRequest, SubscriptionResponse
from .service import SubscriptionService, SubscriptionWebhookService, subscription_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])
webhooks_router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


def get_subscription_service(
    db: Session = Depends(get_db),
    mp_client: MercadoPagoClient = Depends(get_mercadopago_client),
) -> SubscriptionService:
    """Dependency injection for SubscriptionService"""
    return SubscriptionService(db, mp_client)


def get_subscription_webhook_service(
    db: Session = Depends(get_db),
    mp_client: MercadoPagoClient = Depends(get_mercadopago_client),
) -> SubscriptionWebhookService:
    return SubscriptionWebhookService(db, mp_client)


@router.get("/me", response_model=SubscriptionResponse)
async def get_my_subscription(
    photographer: Photographer = Depends(get_current_photographer),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Current plan and access state; starts a trial on first access"""
    subscription = service.get_or_create_subscription(photographer)
    return subscription_to_dict(subscription)


@router.post("/payment", response_model=PixPaymentResponse)
async def create_subscription_payment(
    data: SubscriptionPaymentRequest,
    photographer: Photographer = Depends(get_current_photographer),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Create the monthly subscription PIX payment"""
    return await service.create_subscription_payment(photographer, data)


@webhooks_router.post("/subscription")
async def handle_subscription_webhook(
    request: Request,
    db: Session = Depends(get_db),
    service: SubscriptionWebhookService = Depends(get_subscription_webhook_service),
):
    """
    Handle Mercado Pago notifications for subscription payments

    Approved payments tagged as subscription_payment activate the paid plan
    for SUBSCRIPTION_DURATION_DAYS. Other statuses are only logged.
    """
    payload = await read_json_payload(request)
    if payload is None:
        logger.error("❌ Invalid JSON payload")
        return JSONResponse(status_code=400, content={"error": "Invalid JSON"})

    try:
        result = await service.handle_notification(payload)
    except Exception as e:
        logger.error(f"❌ Subscription webhook error: {str(e)}")
        db.rollback()
        log_webhook(db, "subscription_webhook_error", {"error": str(e), "payload": payload}, status="failed")
        return JSONResponse(status_code=500, content={"error": str(e)})

    return JSONResponse(status_code=result.status_code, content=result.body)
