import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from app.models import WebhookLog
from app.security_utils import encrypt_credential
from app.services.whatsapp_service import (
    WhatsAppError,
    WhatsAppService,
    get_whatsapp_service,
    normalize_whatsapp_phone,
    render_template,
    send_whatsapp_message,
)


class TestHelpers:
    def test_render_template_replaces_known_placeholders(self):
        text = render_template("Olá {{clientName}}, {{ studioName }} {{unknown}}", {"clientName": "Ana", "studioName": "Luz"})

        assert text == "Olá Ana, Luz {{unknown}}"

    @pytest.mark.parametrize(
        "phone,expected",
        [("(11) 98888-7777", "5511988887777"), ("+55 11 98888-7777", "5511988887777"), ("5521999991234", "5521999991234")],
    )
    def test_normalize_phone(self, phone, expected):
        assert normalize_whatsapp_phone(phone) == expected

    def test_normalize_phone_requires_digits(self):
        with pytest.raises(ValueError):
            normalize_whatsapp_phone("--")


class TestWhatsAppService:
    @pytest.mark.asyncio
    async def test_send_text_posts_to_instance(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["apikey"] = request.headers["apikey"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"key": {"id": "msg-1"}})

        service = WhatsAppService("https://evo.test/", "evo-key", "studio", transport=httpx.MockTransport(handler))

        result = await service.send_text("11 98888-7777", "Oi")

        assert result == {"key": {"id": "msg-1"}}
        assert seen["url"] == "https://evo.test/message/sendText/studio"
        assert seen["apikey"] == "evo-key"
        assert seen["body"] == {"number": "5511988887777", "text": "Oi"}

    @pytest.mark.asyncio
    async def test_gateway_error_raises(self):
        service = WhatsAppService(
            "https://evo.test", "k", "studio", transport=httpx.MockTransport(lambda r: httpx.Response(400, text="bad number"))
        )

        with pytest.raises(WhatsAppError) as exc_info:
            await service.send_text("11988887777", "Oi")

        assert exc_info.value.status_code == 400
        assert exc_info.value.details == "bad number"

    def test_service_requires_full_configuration(self, db, photographer):
        assert get_whatsapp_service(photographer) is None

        photographer.evolution_api_url = "https://evo.test"
        photographer.evolution_api_key = encrypt_credential("evo-key")
        photographer.evolution_instance = "studio"

        service = get_whatsapp_service(photographer)
        assert service.api_key == "evo-key"


class TestSendWhatsAppMessage:
    @pytest.mark.asyncio
    async def test_simulated_when_not_configured(self, db, photographer):
        result = await send_whatsapp_message(db, photographer, "11988887777", "Oi", "album_ready", event_id="e1")

        assert result == {"success": True, "simulated": True}
        log = db.query(WebhookLog).filter(WebhookLog.event_type == "whatsapp_album_ready").one()
        assert log.payload["simulated"] is True
        assert log.payload["event_id"] == "e1"

    @pytest.mark.asyncio
    async def test_sent_message_is_logged(self, db, photographer):
        service = MagicMock()
        service.send_text = AsyncMock(return_value={"key": {"id": "m1"}})

        result = await send_whatsapp_message(
            db, photographer, "11988887777", "Oi", "google_drive_share", service=service
        )

        assert result["simulated"] is False
        log = db.query(WebhookLog).filter(WebhookLog.event_type == "whatsapp_google_drive_share").one()
        assert log.payload["phone"] == "5511988887777"
        assert log.payload["evolutionResult"] == {"key": {"id": "m1"}}

    @pytest.mark.asyncio
    async def test_failure_is_logged_and_raised(self, db, photographer):
        service = MagicMock()
        service.send_text = AsyncMock(side_effect=WhatsAppError("Failed", 500, "instance offline"))

        with pytest.raises(WhatsAppError):
            await send_whatsapp_message(db, photographer, "11988887777", "Oi", "selection_reminder", service=service)

        log = db.query(WebhookLog).filter(WebhookLog.event_type == "whatsapp_selection_reminder_error").one()
        assert log.status == "failed"
        assert log.payload["error"] == "instance offline"

    @pytest.mark.asyncio
    async def test_unknown_type_rejected(self, db, photographer):
        with pytest.raises(ValueError):
            await send_whatsapp_message(db, photographer, "11988887777", "Oi", "marketing")


class TestWhatsAppEndpoint:
    def test_send_simulated(self, api_client, auth_headers, event):
        response = api_client.post(
            "/whatsapp/send",
            headers=auth_headers,
            json={"phone": "11988887777", "message": "Suas fotos", "type": "google_drive_share", "eventId": event.id},
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "simulated": True}

    def test_unknown_event(self, api_client, auth_headers):
        response = api_client.post(
            "/whatsapp/send",
            headers=auth_headers,
            json={"phone": "11988887777", "message": "Oi", "type": "album_ready", "eventId": "missing"},
        )

        assert response.status_code == 404

    def test_invalid_type(self, api_client, auth_headers):
        response = api_client.post(
            "/whatsapp/send", headers=auth_headers, json={"phone": "11988887777", "message": "Oi", "type": "spam"}
        )

        assert response.status_code == 422
