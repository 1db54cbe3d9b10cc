import json
from datetime import datetime

import httpx
import pytest

from app.models import Event
from app.security_utils import encrypt_credential
from app.services.google_calendar_service import (
    GoogleCalendarError,
    GoogleCalendarService,
    build_calendar_event,
    get_calendar_service,
    session_type_label,
)


def make_event(**overrides):
    data = {
        "id": "e1",
        "client_name": "Maria Silva",
        "client_email": "maria@example.com",
        "client_phone": "11988887777",
        "session_type": "pre-wedding",
        "event_date": datetime(2026, 11, 20, 14, 0),
        "location": "Parque Ibirapuera",
        "notes": None,
    }
    data.update(overrides)
    return Event(**data)


class TestBuildCalendarEvent:
    def test_payload(self):
        payload = build_calendar_event(make_event(notes="Levar flores"))

        assert payload["summary"] == "📸 Pré Wedding - Maria Silva"
        assert payload["start"] == {"dateTime": "2026-11-20T14:00:00", "timeZone": "America/Sao_Paulo"}
        assert payload["end"]["dateTime"] == "2026-11-20T16:00:00"
        assert payload["attendees"] == [{"email": "maria@example.com", "displayName": "Maria Silva"}]
        assert "📝 Observações: Levar flores" in payload["description"]
        assert payload["reminders"]["useDefault"] is False

    def test_session_labels(self):
        assert session_type_label("formatura") == "Formatura"
        assert session_type_label("casamento") == "casamento"
        assert session_type_label(None) == "Sessão de Fotos"


class TestGoogleCalendarService:
    @pytest.mark.asyncio
    async def test_create_returns_event_id(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "gcal-1"})

        service = GoogleCalendarService("token", "studio@group.calendar.google.com", transport=httpx.MockTransport(handler))

        assert await service.create_event(make_event()) == "gcal-1"
        assert seen["url"].endswith("/calendars/studio%40group.calendar.google.com/events")
        assert seen["auth"] == "Bearer token"
        assert seen["body"]["location"] == "Parque Ibirapuera"

    @pytest.mark.asyncio
    async def test_create_failure_raises(self):
        service = GoogleCalendarService("token", transport=httpx.MockTransport(lambda r: httpx.Response(401, text="expired")))

        with pytest.raises(GoogleCalendarError) as exc_info:
            await service.create_event(make_event())

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_update_targets_event(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["url"] = str(request.url)
            return httpx.Response(200, json={"id": "gcal-1"})

        service = GoogleCalendarService("token", transport=httpx.MockTransport(handler))

        assert await service.update_event("gcal-1", make_event()) is True
        assert seen["method"] == "PUT"
        assert seen["url"].endswith("/calendars/primary/events/gcal-1")

    @pytest.mark.asyncio
    async def test_delete_accepts_gone(self):
        service = GoogleCalendarService("token", transport=httpx.MockTransport(lambda r: httpx.Response(410)))

        assert await service.delete_event("gcal-1") is True

    @pytest.mark.asyncio
    async def test_delete_failure_raises(self):
        service = GoogleCalendarService("token", transport=httpx.MockTransport(lambda r: httpx.Response(500)))

        with pytest.raises(GoogleCalendarError):
            await service.delete_event("gcal-1")


def test_calendar_service_needs_token(db, photographer):
    assert get_calendar_service(photographer) is None

    photographer.google_calendar_access_token = encrypt_credential("ya29.token")
    photographer.google_calendar_id = "studio@group.calendar.google.com"

    service = get_calendar_service(photographer)
    assert service.access_token == "ya29.token"
    assert service.calendar_id == "studio@group.calendar.google.com"
