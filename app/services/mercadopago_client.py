"""
Mercado Pago API client
Fetches payment details for webhook reconciliation and creates PIX payments
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from ..config import HTTP_TIMEOUT_SECONDS, MERCADOPAGO_API_BASE

logger = logging.getLogger(__name__)


class MercadoPagoAPIError(Exception):
    """Raised when the Mercado Pago API answers with a non-2xx status"""

    def __init__(self, status_code: int, body: Any):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Mercado Pago API error {status_code}: {body}")


@dataclass
class PaymentDetails:
    """The fields of a Mercado Pago payment the reconciliation flow needs"""

    payment_id: str
    status: Optional[str]
    status_detail: Optional[str]
    external_reference: Optional[str]
    transaction_amount: float
    fee_details: list = field(default_factory=list)
    payment_method_id: Optional[str] = None
    payer_email: Optional[str] = None
    metadata: dict = field(default_factory=dict)

    @property
    def total_fees(self) -> float:
        return sum(float(fee.get("amount") or 0) for fee in self.fee_details if isinstance(fee, dict))

    @property
    def net_amount(self) -> float:
        return self.transaction_amount - self.total_fees

    @classmethod
    def from_api(cls, payment_id: str, data: dict) -> "PaymentDetails":
        payer = data.get("payer") or {}
        return cls(
            payment_id=str(payment_id),
            status=data.get("status"),
            status_detail=data.get("status_detail"),
            external_reference=data.get("external_reference"),
            transaction_amount=float(data.get("transaction_amount") or 0),
            fee_details=list(data.get("fee_details") or []),
            payment_method_id=data.get("payment_method_id"),
            payer_email=payer.get("email") if isinstance(payer, dict) else None,
            metadata=data.get("metadata") or {},
        )

    def summary(self) -> dict:
        return {
            "status": self.status,
            "statusDetail": self.status_detail,
            "transactionAmount": self.transaction_amount,
            "paymentMethodId": self.payment_method_id,
            "payerEmail": self.payer_email,
        }


class MercadoPagoClient:
    """Thin async wrapper over the Mercado Pago payments REST API"""

    def __init__(
        self,
        base_url: str = MERCADOPAGO_API_BASE,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    @staticmethod
    def _headers(access_token: str, idempotency_key: Optional[str] = None) -> dict:
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }
        if idempotency_key:
            headers["X-Idempotency-Key"] = idempotency_key
        return headers

    @staticmethod
    def _error_body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text

    async def get_payment(self, payment_id: str, access_token: str) -> dict:
        """GET /v1/payments/{id}"""
        logger.info(f"🔎 Fetching Mercado Pago payment {payment_id}")
        async with self._client() as client:
            response = await client.get(f"/v1/payments/{payment_id}", headers=self._headers(access_token))

        if response.status_code < 200 or response.status_code >= 300:
            body = self._error_body(response)
            logger.error(f"❌ Mercado Pago payment fetch failed [{response.status_code}]: {body}")
            raise MercadoPagoAPIError(response.status_code, body)

        return response.json()

    async def create_payment(self, payment_data: dict, access_token: str, idempotency_key: str) -> dict:
        """POST /v1/payments"""
        logger.info(
            f"💳 Creating Mercado Pago payment: amount={payment_data.get('transaction_amount')}, "
            f"reference={payment_data.get('external_reference')}"
        )
        async with self._client() as client:
            response = await client.post(
                "/v1/payments",
                headers=self._headers(access_token, idempotency_key),
                json=payment_data,
            )

        if response.status_code < 200 or response.status_code >= 300:
            body = self._error_body(response)
            logger.error(f"❌ Mercado Pago payment creation failed [{response.status_code}]: {body}")
            raise MercadoPagoAPIError(response.status_code, body)

        result = response.json()
        logger.info(f"✅ Mercado Pago payment created: {result.get('id')} ({result.get('status')})")
        return result


def extract_pix_data(payment: dict) -> dict:
    """QR code fields from a created PIX payment"""
    transaction_data = (payment.get("point_of_interaction") or {}).get("transaction_data") or {}
    return {
        "qr_code": transaction_data.get("qr_code"),
        "qr_code_base64": transaction_data.get("qr_code_base64"),
        "ticket_url": transaction_data.get("ticket_url"),
    }
