import json

import httpx
import pytest

from app.services.mercadopago_client import (
    MercadoPagoAPIError,
    MercadoPagoClient,
    PaymentDetails,
    extract_pix_data,
)


def make_client(handler):
    return MercadoPagoClient(base_url="https://mp.test", transport=httpx.MockTransport(handler))


class TestMercadoPagoClient:
    @pytest.mark.asyncio
    async def test_get_payment_sends_bearer_token(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(200, json={"id": 555, "status": "approved"})

        data = await make_client(handler).get_payment("555", "APP_USR-token")

        assert data["status"] == "approved"
        assert seen["url"] == "https://mp.test/v1/payments/555"
        assert seen["auth"] == "Bearer APP_USR-token"

    @pytest.mark.asyncio
    async def test_get_payment_error_raises_with_body(self):
        def handler(request):
            return httpx.Response(404, json={"message": "Payment not found"})

        with pytest.raises(MercadoPagoAPIError) as exc_info:
            await make_client(handler).get_payment("1", "token")

        assert exc_info.value.status_code == 404
        assert exc_info.value.body == {"message": "Payment not found"}

    @pytest.mark.asyncio
    async def test_create_payment_sends_idempotency_key(self):
        seen = {}

        def handler(request):
            seen["idempotency"] = request.headers.get("X-Idempotency-Key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"id": 777, "status": "pending"})

        result = await make_client(handler).create_payment(
            {"transaction_amount": 30.0, "payment_method_id": "pix"}, "token", idempotency_key="order_o1_abc"
        )

        assert result["id"] == 777
        assert seen["idempotency"] == "order_o1_abc"
        assert seen["body"]["payment_method_id"] == "pix"

    @pytest.mark.asyncio
    async def test_create_payment_error_with_text_body(self):
        def handler(request):
            return httpx.Response(500, text="Internal error")

        with pytest.raises(MercadoPagoAPIError) as exc_info:
            await make_client(handler).create_payment({}, "token", idempotency_key="k")

        assert exc_info.value.body == "Internal error"


class TestPaymentDetails:
    def test_net_amount_subtracts_all_fees(self):
        details = PaymentDetails.from_api(
            "555",
            {
                "status": "approved",
                "transaction_amount": 100,
                "fee_details": [{"amount": 3.5}, {"amount": 1.5}, {"amount": None}],
                "payer": {"email": "maria@example.com"},
            },
        )

        assert details.total_fees == 5.0
        assert details.net_amount == 95.0
        assert details.payer_email == "maria@example.com"

    def test_missing_fields_default_to_zero(self):
        details = PaymentDetails.from_api("1", {})

        assert details.transaction_amount == 0
        assert details.net_amount == 0
        assert details.status is None


def test_extract_pix_data():
    payment = {
        "point_of_interaction": {
            "transaction_data": {"qr_code": "000201...", "qr_code_base64": "iVBOR...", "ticket_url": "https://mp/t"}
        }
    }

    assert extract_pix_data(payment) == {
        "qr_code": "000201...",
        "qr_code_base64": "iVBOR...",
        "ticket_url": "https://mp/t",
    }
    assert extract_pix_data({}) == {"qr_code": None, "qr_code_base64": None, "ticket_url": None}
