"""Subscription service - Trial/paid plan state and the subscription payment webhook"""

import logging
import math
import uuid
from datetime import datetime, timedelta
from typing import Optional

import httpx
from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import (
    MASTER_USER_EMAILS,
    MERCADOPAGO_PLATFORM_ACCESS_TOKEN,
    PUBLIC_API_URL,
    SUBSCRIPTION_DURATION_DAYS,
    SUBSCRIPTION_PRICE,
    TRIAL_DURATION_DAYS,
)
from ...models import Photographer
from ...models_billing import Subscription
from ...services.credentials import CredentialLookupError, resolve_mercadopago_token
from ...services.mercadopago_client import MercadoPagoAPIError, MercadoPagoClient, extract_pix_data
from ...services.webhook_log_service import log_webhook
from ...utils.retry import with_retry
from ..payments.references import normalize_reference
from ..payments.schemas import WebhookResult
from .repository import SubscriptionRepository
from .schemas import SubscriptionPaymentRequest

logger = logging.getLogger(__name__)

SUBSCRIPTION_PAYMENT_TYPE = "subscription_payment"
SUBSCRIPTION_STATEMENT_DESCRIPTOR = "TRIAGEM ASSIN"
MASTER_DAYS_REMAINING = 999


def is_master_email(email: Optional[str]) -> bool:
    return bool(email) and email.strip().lower() in MASTER_USER_EMAILS


def has_active_access(subscription: Optional[Subscription], now: Optional[datetime] = None) -> bool:
    """Active status and not past expires_at (no expiry means no limit)"""
    if subscription is None:
        return False
    if subscription.plan_type == "master":
        return True
    now = now or datetime.utcnow()
    return subscription.status == "active" and (
        subscription.expires_at is None or subscription.expires_at > now
    )


def is_trial_expired(subscription: Optional[Subscription], now: Optional[datetime] = None) -> bool:
    if subscription is None or subscription.plan_type != "trial" or subscription.trial_end_date is None:
        return False
    return (now or datetime.utcnow()) > subscription.trial_end_date


def days_remaining(subscription: Optional[Subscription], now: Optional[datetime] = None) -> int:
    if subscription is None:
        return 0
    if subscription.plan_type == "master":
        return MASTER_DAYS_REMAINING
    end = subscription.expires_at or subscription.trial_end_date
    if end is None:
        return 0
    seconds = (end - (now or datetime.utcnow())).total_seconds()
    return max(0, math.ceil(seconds / 86400))


def subscription_to_dict(subscription: Subscription, now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    return {
        "id": subscription.id,
        "planType": subscription.plan_type,
        "status": subscription.status,
        "trialStartDate": subscription.trial_start_date,
        "trialEndDate": subscription.trial_end_date,
        "paymentDate": subscription.payment_date,
        "paymentAmount": subscription.payment_amount,
        "expiresAt": subscription.expires_at,
        "hasAccess": has_active_access(subscription, now),
        "isTrialExpired": is_trial_expired(subscription, now),
        "daysRemaining": days_remaining(subscription, now),
    }


class SubscriptionService:
    """Plan state for the photographer using the platform"""

    def __init__(
        self,
        db: Session,
        mp_client: Optional[MercadoPagoClient] = None,
        platform_token: Optional[str] = MERCADOPAGO_PLATFORM_ACCESS_TOKEN,
    ):
        self.db = db
        self.repo = SubscriptionRepository()
        self.mp_client = mp_client or MercadoPagoClient()
        self.platform_token = platform_token

    def get_or_create_subscription(self, photographer: Photographer) -> Subscription:
        """Current subscription; the first access starts a trial (or the master plan)"""
        subscription = self.repo.get_by_user_id(self.db, photographer.user_id)

        if subscription is None:
            now = datetime.utcnow()
            if is_master_email(photographer.email):
                logger.info(f"👑 Creating master subscription for {photographer.user_id}")
                return self.repo.create_subscription(
                    self.db, photographer.user_id, plan_type="master", status="active"
                )

            trial_end = now + timedelta(days=TRIAL_DURATION_DAYS)
            logger.info(f"🆕 Creating trial subscription for {photographer.user_id} until {trial_end}")
            return self.repo.create_subscription(
                self.db,
                photographer.user_id,
                plan_type="trial",
                status="active",
                trial_start_date=now,
                trial_end_date=trial_end,
                expires_at=trial_end,
            )

        # Emails added to the master list later are upgraded on next access
        if subscription.plan_type != "master" and is_master_email(photographer.email):
            subscription.plan_type = "master"
            subscription.status = "active"
            self.db.commit()
            self.db.refresh(subscription)

        return subscription

    async def create_subscription_payment(
        self, photographer: Photographer, data: SubscriptionPaymentRequest
    ) -> dict:
        """Create the monthly PIX payment on the platform Mercado Pago account"""
        if not self.platform_token:
            raise HTTPException(status_code=503, detail="Subscription payments are not configured")
        if not photographer.email:
            raise HTTPException(status_code=400, detail="An email address is required to pay")

        subscription = self.get_or_create_subscription(photographer)
        if subscription.plan_type == "master":
            raise HTTPException(status_code=400, detail="Master accounts do not need a subscription")

        payer_name = (data.payerName or photographer.business_name or photographer.email.split("@")[0]).strip()
        first_name, _, last_name = payer_name.partition(" ")
        payer = {
            "email": photographer.email,
            "first_name": first_name,
            "last_name": last_name.strip() or first_name,
        }
        if data.cpf:
            payer["identification"] = {"type": "CPF", "number": data.cpf}

        payment_data = {
            "transaction_amount": SUBSCRIPTION_PRICE,
            "description": f"Assinatura Mensal - Sistema Triagem - {payer_name}",
            "payment_method_id": "pix",
            "statement_descriptor": SUBSCRIPTION_STATEMENT_DESCRIPTOR,
            "payer": payer,
            "notification_url": f"{PUBLIC_API_URL}/webhooks/subscription",
            "external_reference": f"subscription_{subscription.id}",
            "metadata": {
                "user_id": subscription.user_id,
                "subscription_id": subscription.id,
                "type": SUBSCRIPTION_PAYMENT_TYPE,
                "client_name": payer_name,
            },
        }

        try:
            payment = await self.mp_client.create_payment(
                payment_data,
                self.platform_token,
                idempotency_key=f"subscription_{subscription.id}_{uuid.uuid4()}",
            )
        except MercadoPagoAPIError as e:
            log_webhook(
                self.db,
                "subscription_payment_create_error",
                {"subscriptionId": subscription.id, "error": e.body, "statusCode": e.status_code},
                status="failed",
                photographer_id=photographer.id,
            )
            raise HTTPException(status_code=502, detail="Payment provider rejected the payment")
        except httpx.HTTPError as e:
            logger.error(f"❌ Mercado Pago request failed for subscription {subscription.id}: {str(e)}")
            raise HTTPException(status_code=502, detail="Payment provider unavailable")

        payment_id = str(payment.get("id"))
        self.repo.create_transaction(
            self.db,
            subscription,
            amount=SUBSCRIPTION_PRICE,
            payment_intent_id=payment_id,
            status=payment.get("status") or "pending",
            metadata={
                "external_reference": payment.get("external_reference"),
                "payment_method_id": payment.get("payment_method_id"),
            },
        )

        # Users still inside a trial or paid period keep access while the PIX is pending
        if not has_active_access(subscription):
            self.repo.set_status(self.db, subscription, "pending_payment")

        pix = extract_pix_data(payment)
        return {
            "paymentId": payment_id,
            "status": payment.get("status"),
            "amount": SUBSCRIPTION_PRICE,
            "qrCode": pix["qr_code"],
            "qrCodeBase64": pix["qr_code_base64"],
            "ticketUrl": pix["ticket_url"],
        }


class SubscriptionWebhookService:
    """Activates subscriptions from approved Mercado Pago payments"""

    def __init__(
        self,
        db: Session,
        mp_client: Optional[MercadoPagoClient] = None,
        platform_token: Optional[str] = MERCADOPAGO_PLATFORM_ACCESS_TOKEN,
    ):
        self.db = db
        self.repo = SubscriptionRepository()
        self.mp_client = mp_client or MercadoPagoClient()
        self.platform_token = platform_token

    def _access_token(self) -> str:
        if self.platform_token:
            return self.platform_token
        return resolve_mercadopago_token(self.db)

    async def handle_notification(self, payload: dict) -> WebhookResult:
        notification_type = payload.get("type")
        data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
        payment_id = data.get("id")

        logger.info(f"📥 Subscription notification: type={notification_type}, id={payment_id}")

        if notification_type != "payment":
            return WebhookResult(200, {"received": True})

        if payment_id in (None, ""):
            logger.warning("⚠️ Subscription notification without data.id")
            return WebhookResult(400, {"error": "Payment ID missing"})

        payment_id = str(payment_id)

        try:
            access_token = self._access_token()
        except CredentialLookupError as e:
            logger.error(f"❌ Subscription webhook credentials unavailable: {str(e)}")
            log_webhook(
                self.db,
                "subscription_credentials_error",
                {"paymentId": payment_id, "error": str(e)},
                status="failed",
            )
            return WebhookResult(500, {"error": "Config not found"})

        try:
            payment_data = await self.mp_client.get_payment(payment_id, access_token)
        except MercadoPagoAPIError as e:
            log_webhook(
                self.db,
                "subscription_payment_fetch_error",
                {"paymentId": payment_id, "error": e.body, "statusCode": e.status_code},
                status="failed",
            )
            return WebhookResult(500, {"error": "Failed to fetch payment details"})
        except httpx.HTTPError as e:
            log_webhook(
                self.db,
                "subscription_payment_fetch_error",
                {"paymentId": payment_id, "error": str(e)},
                status="failed",
            )
            return WebhookResult(500, {"error": "Failed to fetch payment details"})

        metadata = payment_data.get("metadata") or {}
        activated_subscription_id = None

        if metadata.get("type") == SUBSCRIPTION_PAYMENT_TYPE and payment_data.get("status") == "approved":
            subscription_id = metadata.get("subscription_id") or normalize_reference(
                payment_data.get("external_reference")
            )
            try:
                subscription = await with_retry(
                    lambda: self.repo.get_by_id(self.db, subscription_id), on_retry=self.db.rollback
                )
                if subscription is None:
                    logger.warning(f"⚠️ Approved subscription payment {payment_id} for unknown subscription")
                    log_webhook(
                        self.db,
                        "subscription_payment_orphan",
                        {"paymentId": payment_id, "paymentData": payment_data},
                        status="success",
                    )
                    return WebhookResult(200, {"message": "Payment processed but no matching subscription found"})

                def activate():
                    # Re-read after a rolled back attempt
                    current = self.repo.get_by_id(self.db, subscription_id)
                    return self.repo.activate_paid_plan(
                        self.db,
                        current,
                        payment_intent_id=payment_id,
                        amount=float(payment_data.get("transaction_amount") or 0),
                        duration_days=SUBSCRIPTION_DURATION_DAYS,
                    )

                subscription = await with_retry(activate, on_retry=self.db.rollback)
                await with_retry(
                    lambda: self.repo.mark_transactions_status(self.db, payment_id, "approved"),
                    on_retry=self.db.rollback,
                )
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"❌ Failed to activate subscription {subscription_id}: {str(e)}")
                log_webhook(
                    self.db,
                    "subscription_update_error",
                    {"paymentId": payment_id, "subscriptionId": subscription_id, "error": str(e)},
                    status="failed",
                )
                return WebhookResult(500, {"error": "Failed to update subscription"})

            activated_subscription_id = subscription.id
            logger.info(f"✅ Subscription {subscription.id} activated until {subscription.expires_at}")
        else:
            # Rejected or cancelled subscription payments are only recorded
            logger.info(
                f"ℹ️ Payment {payment_id} not activating a subscription "
                f"(type={metadata.get('type')}, status={payment_data.get('status')})"
            )

        log_webhook(
            self.db,
            "subscription_payment_webhook",
            {
                "paymentId": payment_id,
                "paymentData": payment_data,
                "processed": True,
                "subscriptionId": activated_subscription_id,
            },
            status="success",
        )
        return WebhookResult(200, {"success": True})
