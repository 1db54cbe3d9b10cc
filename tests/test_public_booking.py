from datetime import datetime, timedelta

import pytest

from app.domain.events.schemas import PublicBookingCreate
from app.domain.payments.checkout import advance_payment_amount
from app.models import Client, Event, Order, WebhookLog
from app.services.mercadopago_client import MercadoPagoAPIError

PIX_PAYMENT = {
    "id": 9001,
    "status": "pending",
    "point_of_interaction": {
        "transaction_data": {"qr_code": "000201-advance", "qr_code_base64": "b64", "ticket_url": "https://mp/t"}
    },
}


def next_month():
    return (datetime.now() + timedelta(days=30)).replace(hour=14, minute=0, second=0, microsecond=0)


def booking_body(**overrides):
    data = {
        "clientName": "Ana Paula Souza",
        "clientEmail": "ana@example.com",
        "clientPhone": "(11) 97777-6666",
        "sessionType": "gestante",
        "eventDate": next_month().isoformat(),
        "notes": "Primeira sessão",
    }
    data.update(overrides)
    return data


def booking_url(photographer):
    return f"/public/photographers/{photographer.id}/bookings"


def outcomes(body):
    return {effect["name"]: effect for effect in body["sideEffects"]}


class TestAdvancePaymentAmount:
    def test_default_is_half_the_package(self, photographer):
        assert advance_payment_amount(photographer) == 150.0

    def test_rounds_to_cents(self, photographer):
        photographer.minimum_package_price = 333.33
        photographer.advance_payment_percentage = 30

        assert advance_payment_amount(photographer) == 100.0

    def test_zero_percentage(self, photographer):
        photographer.advance_payment_percentage = 0

        assert advance_payment_amount(photographer) == 0


class TestPublicBookingSchema:
    def test_payer_derived_from_client(self):
        data = PublicBookingCreate(**booking_body())

        payer = data.payer_info()
        assert payer.email == "ana@example.com"
        assert payer.firstName == "Ana"
        assert payer.lastName == "Paula Souza"

    def test_single_name_used_for_both_payer_names(self):
        payer = PublicBookingCreate(**booking_body(clientName="Ana")).payer_info()

        assert payer.firstName == payer.lastName == "Ana"

    def test_past_date_rejected(self):
        with pytest.raises(ValueError):
            PublicBookingCreate(**booking_body(eventDate=(datetime.now() - timedelta(days=1)).isoformat()))

    def test_unknown_session_type_rejected(self):
        with pytest.raises(ValueError):
            PublicBookingCreate(**booking_body(sessionType="casamento"))


class TestPublicStudio:
    def test_studio_details(self, api_client, photographer):
        response = api_client.get(f"/public/photographers/{photographer.id}")

        assert response.status_code == 200
        body = response.json()
        assert body["businessName"] == "Estúdio Luz"
        assert body["onlinePayment"] is True
        assert body["advancePaymentPercentage"] == 50
        assert body["advancePaymentAmount"] == 150.0
        assert {"value": "gestante", "label": "Sessão Gestante"} in body["sessionTypes"]

    def test_studio_without_mercadopago(self, api_client, db, photographer):
        photographer.mercadopago_access_token = None
        db.commit()

        body = api_client.get(f"/public/photographers/{photographer.id}").json()

        assert body["onlinePayment"] is False
        assert body["advancePaymentAmount"] == 0

    def test_unknown_photographer(self, api_client):
        assert api_client.get("/public/photographers/missing").status_code == 404


class TestPublicBooking:
    def test_booking_opens_advance_payment(self, api_client, db, photographer, mp_client):
        mp_client.create_payment.return_value = PIX_PAYMENT

        response = api_client.post(booking_url(photographer), json=booking_body())

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "scheduled"
        assert body["advanceAmount"] == 150.0
        assert body["payment"]["paymentId"] == "9001"
        assert body["payment"]["qrCode"] == "000201-advance"
        assert outcomes(body)["advance_payment"]["success"] is True

        event = db.query(Event).filter(Event.id == body["eventId"]).one()
        assert event.location == "Rua das Flores, 100"
        assert event.client_phone == "11977776666"
        assert db.query(Client).filter(Client.email == "ana@example.com").count() == 1

        order = db.query(Order).filter(Order.id == body["orderId"]).one()
        assert order.event_id == event.id
        assert order.total_amount == 150.0
        assert order.status == "pending"
        assert order.payment_intent_id == "9001"
        assert order.order_metadata["type"] == "advance_payment"

        payment_data, token = mp_client.create_payment.await_args.args
        assert token == "APP_USR-photographer-token"
        assert payment_data["transaction_amount"] == 150.0
        assert payment_data["description"] == "Pagamento antecipado - Sessão Gestante - Ana Paula Souza"
        assert payment_data["external_reference"] == f"order_{order.id}"
        assert payment_data["payer"]["first_name"] == "Ana"

    def test_provider_failure_keeps_booking(self, api_client, db, photographer, mp_client):
        mp_client.create_payment.side_effect = MercadoPagoAPIError(400, {"message": "invalid payer"})

        response = api_client.post(booking_url(photographer), json=booking_body())

        assert response.status_code == 200
        body = response.json()
        assert body["payment"] is None
        assert body["orderId"] is not None
        effect = outcomes(body)["advance_payment"]
        assert effect["success"] is False
        assert "502" in effect["detail"]

        db.expire_all()
        assert db.query(Event).count() == 1
        assert db.query(Order).filter(Order.id == body["orderId"]).one().status == "pending"
        assert db.query(WebhookLog).filter(WebhookLog.event_type == "mercadopago_payment_create_error").count() == 1

    def test_studio_without_mercadopago_books_without_payment(self, api_client, db, photographer, mp_client):
        photographer.mercadopago_access_token = None
        db.commit()

        response = api_client.post(booking_url(photographer), json=booking_body())

        assert response.status_code == 200
        body = response.json()
        assert body["orderId"] is None
        assert body["advanceAmount"] == 0
        assert "advance_payment" not in outcomes(body)
        assert db.query(Order).count() == 0
        mp_client.create_payment.assert_not_awaited()

    def test_zero_percent_advance_books_without_payment(self, api_client, db, photographer, mp_client):
        photographer.advance_payment_percentage = 0
        db.commit()

        body = api_client.post(booking_url(photographer), json=booking_body()).json()

        assert body["orderId"] is None
        mp_client.create_payment.assert_not_awaited()

    def test_unknown_photographer(self, api_client, mp_client):
        response = api_client.post("/public/photographers/missing/bookings", json=booking_body())

        assert response.status_code == 404

    def test_past_date_returns_422(self, api_client, photographer):
        body = booking_body(eventDate=(datetime.now() - timedelta(days=2)).isoformat())

        assert api_client.post(booking_url(photographer), json=body).status_code == 422


class TestAdvanceOrderStatus:
    PAYER = {"payer": {"email": "ana@example.com", "firstName": "Ana", "lastName": "Souza"}}

    def test_status_follows_payment_webhook(self, api_client, photographer, mp_client, payment_body):
        mp_client.create_payment.return_value = PIX_PAYMENT
        order_id = api_client.post(booking_url(photographer), json=booking_body()).json()["orderId"]

        before = api_client.get(f"/public/orders/{order_id}")
        mp_client.get_payment.return_value = payment_body(amount=150.0, fees=(1.49,))
        webhook = api_client.post(
            "/webhooks/mercadopago",
            params={"photographer_id": photographer.id},
            json={"type": "payment", "data": {"id": "9001"}},
        )
        after = api_client.get(f"/public/orders/{order_id}")

        assert before.json() == {
            "orderId": order_id,
            "status": "pending",
            "paid": False,
            "amount": 150.0,
            "paymentId": "9001",
        }
        assert webhook.status_code == 200
        assert after.json()["status"] == "paid"
        assert after.json()["paid"] is True

    def test_selection_orders_are_not_exposed(self, api_client, pending_order):
        assert api_client.get("/public/orders/o1").status_code == 404

    def test_retry_payment_for_pending_order(self, api_client, db, photographer, mp_client):
        mp_client.create_payment.side_effect = MercadoPagoAPIError(500, {"message": "internal error"})
        order_id = api_client.post(booking_url(photographer), json=booking_body()).json()["orderId"]
        mp_client.create_payment.side_effect = None
        mp_client.create_payment.return_value = dict(PIX_PAYMENT, id=9002)

        response = api_client.post(f"/public/orders/{order_id}/payment", json=self.PAYER)

        assert response.status_code == 200
        assert response.json()["paymentId"] == "9002"
        db.expire_all()
        assert db.query(Order).filter(Order.id == order_id).one().payment_intent_id == "9002"

    def test_retry_rejected_once_paid(self, api_client, db, photographer, mp_client):
        mp_client.create_payment.return_value = PIX_PAYMENT
        order_id = api_client.post(booking_url(photographer), json=booking_body()).json()["orderId"]
        db.query(Order).filter(Order.id == order_id).update({"status": "paid"})
        db.commit()

        response = api_client.post(f"/public/orders/{order_id}/payment", json=self.PAYER)

        assert response.status_code == 400
