from datetime import datetime, timedelta

import pytest

from app.domain.albums.pricing import calculate_selection_price
from app.models import Order, Photo, WebhookLog
from app.services.mercadopago_client import MercadoPagoAPIError

PUBLIC = "/albums/public/share-token-1"


class TestSelectionPricing:
    @pytest.mark.parametrize(
        "count,total,discount,extras",
        [
            (0, 0.0, 0.0, 0),
            (5, 150.0, 0.0, 0),
            (10, 300.0, 0.0, 0),
            (15, 450.0, 0.0, 5),
            (16, 471.0, 9.0, 6),
            (21, 597.0, 33.0, 11),
        ],
    )
    def test_default_studio_prices(self, count, total, discount, extras):
        price = calculate_selection_price(count)

        assert price.total == total
        assert price.discount == discount
        assert price.extra_photos_count == extras

    def test_full_package_flag(self):
        assert calculate_selection_price(10).is_minimum_package
        assert not calculate_selection_price(9).is_minimum_package
        assert not calculate_selection_price(11).is_minimum_package

    def test_custom_package(self):
        price = calculate_selection_price(8, minimum_package_price=500.0, package_photo_count=5, extra_photo_price=50.0)

        assert price.package_photos == 5
        assert price.extra_photos_original_total == 150.0
        assert price.total == 650.0

    def test_invalid_inputs(self):
        with pytest.raises(ValueError):
            calculate_selection_price(-1)
        with pytest.raises(ValueError):
            calculate_selection_price(3, package_photo_count=0)


class TestPublicAlbum:
    def test_album_with_pricing(self, api_client, photos):
        response = api_client.get(PUBLIC)

        assert response.status_code == 200
        body = response.json()
        assert body["studioName"] == "Estúdio Luz"
        assert body["paymentStatus"] == "unpaid"
        assert len(body["photos"]) == 12
        assert body["photos"][0]["filename"] == "IMG_001.jpg"
        assert body["pricing"]["selectedCount"] == 0

    def test_unknown_token(self, api_client, db):
        assert api_client.get("/albums/public/nope").status_code == 404

    def test_inactive_album(self, api_client, db, album):
        album.is_active = False
        db.commit()

        assert api_client.get(PUBLIC).status_code == 404

    def test_expired_album(self, api_client, db, album):
        album.expires_at = datetime.utcnow() - timedelta(hours=1)
        db.commit()

        assert api_client.get(PUBLIC).status_code == 410

    def test_pricing_preview(self, api_client, album):
        response = api_client.get(f"{PUBLIC}/pricing", params={"count": 16})

        assert response.status_code == 200
        assert response.json()["total"] == 471.0
        assert response.json()["hasDiscount"] is True

    def test_toggle_selection(self, api_client, db, photos):
        photo = photos[0]

        first = api_client.post(f"{PUBLIC}/photos/{photo.id}/toggle")
        second = api_client.post(f"{PUBLIC}/photos/{photo.id}/toggle")

        assert first.json()["isSelected"] is True
        assert first.json()["pricing"]["total"] == 30.0
        assert second.json()["isSelected"] is False
        assert second.json()["pricing"]["selectedCount"] == 0

    def test_toggle_closed_for_paid_album(self, api_client, db, album, photos):
        album.payment_status = "paid"
        db.commit()

        response = api_client.post(f"{PUBLIC}/photos/{photos[0].id}/toggle")

        assert response.status_code == 409

    def test_submit_selection_creates_pending_order(self, api_client, db, photos):
        chosen = [p.id for p in photos[:11]]

        response = api_client.post(
            f"{PUBLIC}/selection", json={"clientEmail": "Maria@Example.com", "photoIds": chosen}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "pending"
        assert body["totalAmount"] == 330.0
        assert body["clientEmail"] == "maria@example.com"
        assert sorted(body["selectedPhotos"]) == sorted(chosen)
        assert body["externalReference"] == body["id"]
        assert body["metadata"]["source"] == "public_selection"

        db.expire_all()
        assert db.query(Photo).filter(Photo.is_selected.is_(True)).count() == 11

    def test_submit_uses_toggled_photos_by_default(self, api_client, db, photos):
        api_client.post(f"{PUBLIC}/photos/{photos[2].id}/toggle")

        response = api_client.post(f"{PUBLIC}/selection", json={"clientEmail": "maria@example.com"})

        assert response.json()["selectedPhotos"] == [photos[2].id]
        assert response.json()["totalAmount"] == 30.0

    def test_submit_requires_photos(self, api_client, photos):
        response = api_client.post(f"{PUBLIC}/selection", json={"clientEmail": "maria@example.com"})

        assert response.status_code == 400

    def test_submit_rejects_foreign_photos(self, api_client, photos):
        response = api_client.post(
            f"{PUBLIC}/selection", json={"clientEmail": "maria@example.com", "photoIds": ["not-in-album"]}
        )

        assert response.status_code == 400


class TestOrderCheckout:
    PAYER = {"payer": {"email": "maria@example.com", "firstName": "Maria", "lastName": "Silva", "cpf": "123.456.789-09"}}

    def test_creates_pix_payment(self, api_client, db, photographer, album, pending_order, mp_client):
        mp_client.create_payment.return_value = {
            "id": 123456,
            "status": "pending",
            "point_of_interaction": {
                "transaction_data": {"qr_code": "000201", "qr_code_base64": "b64", "ticket_url": "https://mp/t"}
            },
        }

        response = api_client.post(f"{PUBLIC}/orders/o1/payment", json=self.PAYER)

        assert response.status_code == 200
        assert response.json() == {
            "paymentId": "123456",
            "status": "pending",
            "orderId": "o1",
            "amount": 100.0,
            "qrCode": "000201",
            "qrCodeBase64": "b64",
            "ticketUrl": "https://mp/t",
        }

        payment_data, token = mp_client.create_payment.await_args.args
        assert token == "APP_USR-photographer-token"
        assert payment_data["payment_method_id"] == "pix"
        assert payment_data["external_reference"] == "order_o1"
        assert payment_data["notification_url"].endswith(f"/webhooks/mercadopago?photographer_id={photographer.id}")
        assert payment_data["payer"]["identification"] == {"type": "CPF", "number": "12345678909"}
        assert payment_data["metadata"]["photo_count"] == 2

        db.expire_all()
        assert db.query(Order).filter(Order.id == "o1").one().payment_intent_id == "123456"
        assert db.query(WebhookLog).filter(WebhookLog.event_type == "mercadopago_payment_created").count() == 1

    def test_paid_order_rejected(self, api_client, db, album, pending_order, mp_client):
        pending_order.status = "paid"
        db.commit()

        response = api_client.post(f"{PUBLIC}/orders/o1/payment", json=self.PAYER)

        assert response.status_code == 400
        mp_client.create_payment.assert_not_awaited()

    def test_order_from_other_event_not_found(self, api_client, album, mp_client):
        response = api_client.post(f"{PUBLIC}/orders/missing/payment", json=self.PAYER)

        assert response.status_code == 404

    def test_provider_error_returns_502(self, api_client, db, album, pending_order, mp_client):
        mp_client.create_payment.side_effect = MercadoPagoAPIError(400, {"message": "invalid payer"})

        response = api_client.post(f"{PUBLIC}/orders/o1/payment", json=self.PAYER)

        assert response.status_code == 502
        db.expire_all()
        assert db.query(WebhookLog).filter(WebhookLog.event_type == "mercadopago_payment_create_error").count() == 1

    def test_photographer_without_mercadopago(self, api_client, db, photographer, album, pending_order):
        photographer.mercadopago_access_token = None
        db.commit()

        response = api_client.post(f"{PUBLIC}/orders/o1/payment", json=self.PAYER)

        assert response.status_code == 503

    def test_order_status_polling(self, api_client, db, album, pending_order):
        pending = api_client.get(f"{PUBLIC}/orders/o1")

        pending_order.status = "paid"
        db.commit()
        paid = api_client.get(f"{PUBLIC}/orders/o1")

        assert pending.status_code == 200
        assert pending.json() == {
            "orderId": "o1",
            "status": "pending",
            "paid": False,
            "amount": 100.0,
            "paymentId": "555",
        }
        assert paid.json()["status"] == "paid"
        assert paid.json()["paid"] is True

    def test_order_status_requires_matching_album(self, api_client, album, pending_order):
        assert api_client.get("/albums/public/unknown-token/orders/o1").status_code == 404
        assert api_client.get(f"{PUBLIC}/orders/other-order").status_code == 404

    def test_invalid_cpf_returns_422(self, api_client, album, pending_order):
        payer = {"payer": {"email": "maria@example.com", "firstName": "Maria", "lastName": "Silva", "cpf": "123"}}

        assert api_client.post(f"{PUBLIC}/orders/o1/payment", json=payer).status_code == 422


class TestAlbumManagement:
    def test_create_album_and_add_photos(self, api_client, auth_headers, event):
        created = api_client.post("/albums", headers=auth_headers, json={"eventId": event.id, "name": "Principal"})

        assert created.status_code == 200
        album = created.json()
        assert album["shareUrl"].endswith(f"/album/{album['shareToken']}")
        assert album["paymentStatus"] == "unpaid"

        added = api_client.post(
            f"/albums/{album['id']}/photos",
            headers=auth_headers,
            json={"photos": [{"filename": "b.jpg", "path": "/up/b.jpg"}, {"filename": "a.jpg", "path": "/up/a.jpg", "price": 40}]},
        )
        assert added.status_code == 200
        assert {p["thumbnailPath"] for p in added.json()} == {"/up/a.jpg", "/up/b.jpg"}

        listed = api_client.get(f"/albums/{album['id']}/photos", headers=auth_headers).json()
        assert [p["filename"] for p in listed] == ["a.jpg", "b.jpg"]
        assert [p["price"] for p in listed] == [40.0, 25.0]

    def test_album_for_unknown_event(self, api_client, auth_headers):
        response = api_client.post("/albums", headers=auth_headers, json={"eventId": "nope", "name": "X"})

        assert response.status_code == 404

    def test_update_clears_expiry(self, api_client, auth_headers, db, album):
        album.expires_at = datetime(2026, 12, 1)
        db.commit()

        response = api_client.put(f"/albums/{album.id}", headers=auth_headers, json={"expiresAt": None})

        assert response.status_code == 200
        assert response.json()["expiresAt"] is None

    def test_notify_client_simulated(self, api_client, auth_headers, db, album):
        response = api_client.post(f"/albums/{album.id}/notify", headers=auth_headers, json={})

        assert response.status_code == 200
        body = response.json()
        assert body["simulated"] is True
        assert body["albumUrl"].endswith("/album/share-token-1")

        db.expire_all()
        log = db.query(WebhookLog).filter(WebhookLog.event_type == "whatsapp_album_ready").one()
        assert "share-token-1" in log.payload["message"]

    def test_orders_listed_for_photographer(self, api_client, auth_headers, pending_order):
        response = api_client.get("/orders", headers=auth_headers)

        assert [o["id"] for o in response.json()] == ["o1"]
        assert api_client.get("/orders/o1", headers=auth_headers).json()["paymentIntentId"] == "555"
