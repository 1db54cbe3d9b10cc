"""
Google Calendar Service
Handles calendar event creation, updates, and deletion for photo sessions
"""
import logging
from datetime import timedelta
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from ..config import DEFAULT_TIMEZONE, GOOGLE_CALENDAR_API, HTTP_TIMEOUT_SECONDS, SESSION_DURATION_HOURS
from ..models import Event, Photographer
from ..security_utils import decrypt_credential

logger = logging.getLogger(__name__)

SESSION_TYPE_LABELS = {
    "gestante": "Sessão Gestante",
    "aniversario": "Aniversário",
    "comerciais": "Comerciais",
    "pre-wedding": "Pré Wedding",
    "formatura": "Formatura",
    "revelacao-sexo": "Revelação de Sexo",
}

DEFAULT_SESSION_LABEL = "Sessão de Fotos"


class GoogleCalendarError(Exception):
    """Raised when the Google Calendar API rejects a request"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


def session_type_label(session_type: Optional[str]) -> str:
    if not session_type:
        return DEFAULT_SESSION_LABEL
    return SESSION_TYPE_LABELS.get(session_type, session_type)


def build_calendar_event(event: Event) -> Dict[str, Any]:
    """Translate a local event into the Google Calendar event schema"""
    label = session_type_label(event.session_type)
    start_datetime = event.event_date
    end_datetime = start_datetime + timedelta(hours=SESSION_DURATION_HOURS)

    description_lines = [
        f"Sessão de Fotos - {label}",
        "",
        f"👤 Cliente: {event.client_name}",
        f"📧 Email: {event.client_email}",
        f"📱 Telefone: {event.client_phone}",
        f"📍 Local: {event.location}",
    ]
    if event.notes:
        description_lines += ["", f"📝 Observações: {event.notes}"]

    return {
        "summary": f"📸 {label} - {event.client_name}",
        "description": "\n".join(description_lines),
        "location": event.location,
        "start": {"dateTime": start_datetime.isoformat(), "timeZone": DEFAULT_TIMEZONE},
        "end": {"dateTime": end_datetime.isoformat(), "timeZone": DEFAULT_TIMEZONE},
        "attendees": [{"email": event.client_email, "displayName": event.client_name}],
        "reminders": {
            "useDefault": False,
            "overrides": [
                {"method": "email", "minutes": 24 * 60},
                {"method": "popup", "minutes": 60},
                {"method": "popup", "minutes": 15},
            ],
        },
    }


class GoogleCalendarService:
    """Create/update/delete calendar events; every failure raises GoogleCalendarError"""

    def __init__(
        self,
        access_token: str,
        calendar_id: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = access_token
        self.calendar_id = calendar_id or "primary"
        self.transport = transport

    @property
    def events_url(self) -> str:
        return f"{GOOGLE_CALENDAR_API}/calendars/{quote(self.calendar_id, safe='')}/events"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers={"Authorization": f"Bearer {self.access_token}"},
            timeout=HTTP_TIMEOUT_SECONDS,
            transport=self.transport,
        )

    async def create_event(self, event: Event) -> str:
        """Create a Google Calendar event and return its id"""
        async with self._client() as client:
            response = await client.post(self.events_url, json=build_calendar_event(event))

        if response.status_code not in [200, 201]:
            logger.error(f"❌ Failed to create calendar event: {response.text}")
            raise GoogleCalendarError("Failed to create calendar event", response.status_code)

        event_id = response.json().get("id")
        if not event_id:
            raise GoogleCalendarError("Google Calendar response without event id", response.status_code)

        logger.info(f"✅ Google Calendar event created: {event_id}")
        return event_id

    async def update_event(self, google_event_id: str, event: Event) -> bool:
        """Replace an existing Google Calendar event"""
        async with self._client() as client:
            response = await client.put(
                f"{self.events_url}/{google_event_id}", json=build_calendar_event(event)
            )

        if response.status_code != 200:
            logger.error(f"❌ Failed to update calendar event: {response.text}")
            raise GoogleCalendarError("Failed to update calendar event", response.status_code)

        logger.info(f"✅ Google Calendar event updated: {google_event_id}")
        return True

    async def delete_event(self, google_event_id: str) -> bool:
        """Delete a Google Calendar event (already-deleted events count as success)"""
        async with self._client() as client:
            response = await client.delete(f"{self.events_url}/{google_event_id}")

        if response.status_code not in [200, 204, 410]:
            logger.error(f"❌ Failed to delete calendar event: {response.text}")
            raise GoogleCalendarError("Failed to delete calendar event", response.status_code)

        logger.info(f"✅ Google Calendar event deleted: {google_event_id}")
        return True


def get_calendar_service(photographer: Photographer) -> Optional[GoogleCalendarService]:
    """Calendar service for a photographer, None when the integration is not configured"""
    access_token = decrypt_credential(photographer.google_calendar_access_token)
    if not access_token:
        logger.info(f"ℹ️ Google Calendar not configured for photographer {photographer.id}")
        return None
    return GoogleCalendarService(access_token, photographer.google_calendar_id)
