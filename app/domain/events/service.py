"""Event service - Booking logic with best-effort calendar and WhatsApp sync"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import Event, Photographer
from ...services.google_calendar_service import get_calendar_service, session_type_label
from ...services.side_effects import OperationResult, run_side_effect
from ...services.whatsapp_service import BOOKING_CONFIRMATION_TEMPLATE, render_template, send_whatsapp_message
from ..albums.repository import AlbumRepository
from ..clients.repository import ClientRepository
from .repository import EventRepository
from .schemas import EventCreate, EventUpdate

logger = logging.getLogger(__name__)


def booking_confirmation_message(photographer: Photographer, event: Event) -> str:
    """Render the photographer's booking template (or the default) for an event"""
    template = photographer.booking_message_template or BOOKING_CONFIRMATION_TEMPLATE
    return render_template(
        template,
        {
            "clientName": event.client_name,
            "sessionType": session_type_label(event.session_type),
            "eventDate": event.event_date.strftime("%d/%m/%Y"),
            "eventTime": event.event_date.strftime("%H:%M"),
            "studioAddress": event.location or photographer.studio_address or "",
            "studioName": photographer.business_name,
        },
    )


class EventService:
    """Service layer for event business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = EventRepository()
        self.client_repo = ClientRepository()
        self.album_repo = AlbumRepository()

    def get_events(self, photographer: Photographer, status: Optional[str] = None) -> list[Event]:
        return self.repo.get_events(self.db, photographer.id, status)

    def get_event(self, event_id: str, photographer: Photographer) -> Event:
        event = self.repo.get_event_by_id(self.db, event_id, photographer.id)
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")
        return event

    async def create_event(self, data: EventCreate, photographer: Photographer) -> OperationResult[Event]:
        """
        Book a session.

        The event row is the primary result. Default album, Google Calendar
        entry and WhatsApp confirmation are attempted afterwards and reported
        as side effects.
        """
        logger.info(f"📥 Creating event for photographer {photographer.id}")

        client_id = self._resolve_client(data, photographer)

        event = self.repo.create_event(
            self.db,
            photographer.id,
            client_id=client_id,
            client_name=data.clientName,
            client_email=data.clientEmail,
            client_phone=data.clientPhone,
            session_type=data.sessionType,
            event_date=data.eventDate,
            location=data.location,
            notes=data.notes,
            status="scheduled",
        )
        logger.info(f"✅ Event {event.id} created")

        result = OperationResult(event)
        if data.createAlbum:
            result.add(await run_side_effect("album", self._create_default_album(event)))
        result.add(await run_side_effect("google_calendar", self._calendar_create(photographer, event)))
        if data.sendConfirmation:
            result.add(
                await run_side_effect("whatsapp_booking_confirmation", self._send_confirmation(photographer, event))
            )

        self.db.refresh(event)
        return result

    async def update_event(
        self, event_id: str, data: EventUpdate, photographer: Photographer
    ) -> OperationResult[Event]:
        event = self.get_event(event_id, photographer)

        updates = {
            "client_name": data.clientName,
            "client_email": data.clientEmail,
            "client_phone": data.clientPhone,
            "session_type": data.sessionType,
            "event_date": data.eventDate,
            "location": data.location,
            "notes": data.notes,
            "status": data.status,
        }
        event = self.repo.update_event(self.db, event, **updates)

        result = OperationResult(event)
        if event.google_calendar_event_id:
            result.add(await run_side_effect("google_calendar", self._calendar_update(photographer, event)))
        return result

    def update_status(self, event_id: str, status: str, photographer: Photographer) -> Event:
        event = self.get_event(event_id, photographer)
        logger.info(f"🔄 Event {event.id} status: {event.status} → {status}")
        return self.repo.update_event(self.db, event, status=status)

    async def delete_event(self, event_id: str, photographer: Photographer) -> OperationResult[dict]:
        event = self.get_event(event_id, photographer)
        google_event_id = event.google_calendar_event_id

        self.repo.delete_event(self.db, event)
        logger.info(f"🗑️ Event {event_id} deleted")

        result = OperationResult({"message": "Event deleted"})
        if google_event_id:
            result.add(
                await run_side_effect("google_calendar", self._calendar_delete(photographer, google_event_id))
            )
        return result

    # ------------------------------------------------------------------
    # Side effects
    # ------------------------------------------------------------------

    def _resolve_client(self, data: EventCreate, photographer: Photographer) -> str:
        """Existing client by id or email, otherwise a new client record"""
        if data.clientId:
            client = self.client_repo.get_client_by_id(self.db, data.clientId, photographer.id)
            if not client:
                raise HTTPException(status_code=404, detail="Client not found")
            return client.id

        client = self.client_repo.get_client_by_email(self.db, photographer.id, data.clientEmail)
        if client:
            return client.id

        client = self.client_repo.create_client(
            self.db,
            photographer.id,
            name=data.clientName,
            email=data.clientEmail,
            phone=data.clientPhone,
        )
        logger.info(f"👤 Client {client.id} created from booking")
        return client.id

    async def _create_default_album(self, event: Event) -> str:
        name = f"{session_type_label(event.session_type)} - {event.client_name}"
        try:
            album = self.album_repo.create_album(self.db, event.id, name)
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return album.id

    async def _calendar_create(self, photographer: Photographer, event: Event) -> Optional[str]:
        calendar = get_calendar_service(photographer)
        if not calendar:
            return None
        google_event_id = await calendar.create_event(event)
        try:
            self.repo.set_google_calendar_event_id(self.db, event, google_event_id)
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return google_event_id

    async def _calendar_update(self, photographer: Photographer, event: Event) -> Optional[bool]:
        calendar = get_calendar_service(photographer)
        if not calendar:
            return None
        return await calendar.update_event(event.google_calendar_event_id, event)

    async def _calendar_delete(self, photographer: Photographer, google_event_id: str) -> Optional[bool]:
        calendar = get_calendar_service(photographer)
        if not calendar:
            return None
        return await calendar.delete_event(google_event_id)

    async def _send_confirmation(self, photographer: Photographer, event: Event) -> dict:
        message = booking_confirmation_message(photographer, event)
        return await send_whatsapp_message(
            self.db,
            photographer,
            event.client_phone,
            message,
            "booking_confirmation",
            event_id=event.id,
        )
