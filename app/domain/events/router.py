"""Event router - FastAPI endpoints for photo session bookings"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_photographer
from ...database import get_db
from ...models import Event, Photographer
from ...services.mercadopago_client import MercadoPagoClient
from ...services.side_effects import OperationResult
from ..payments.router import get_mercadopago_client
from .booking import PublicBookingService
from .schemas import (
    EventCreate,
    EventOperationResponse,
    EventResponse,
    EventStatusUpdate,
    EventUpdate,
    PublicBookingCreate,
    PublicBookingResponse,
    PublicStudioResponse,
)
from .service import EventService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["Events"])
public_router = APIRouter(prefix="/public/photographers", tags=["Public Booking"])


def get_event_service(db: Session = Depends(get_db)) -> EventService:
    """Dependency injection for EventService"""
    return EventService(db)


def get_public_booking_service(
    db: Session = Depends(get_db),
    mp_client: MercadoPagoClient = Depends(get_mercadopago_client),
) -> PublicBookingService:
    """Dependency injection for PublicBookingService"""
    return PublicBookingService(db, mp_client)


def event_to_response(event: Event) -> EventResponse:
    return EventResponse(
        id=event.id,
        clientId=event.client_id,
        clientName=event.client_name,
        clientEmail=event.client_email,
        clientPhone=event.client_phone,
        sessionType=event.session_type,
        eventDate=event.event_date,
        location=event.location,
        notes=event.notes,
        status=event.status,
        googleCalendarEventId=event.google_calendar_event_id,
        created_at=event.created_at,
    )


def operation_to_response(result: OperationResult) -> EventOperationResponse:
    value = result.value
    return EventOperationResponse(
        event=event_to_response(value) if isinstance(value, Event) else None,
        message=value.get("message") if isinstance(value, dict) else None,
        sideEffects=[s.to_dict() for s in result.side_effects],
    )


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=list[EventResponse])
async def get_events(
    status: Optional[str] = Query(None),
    photographer: Photographer = Depends(get_current_photographer),
    service: EventService = Depends(get_event_service),
):
    """Get all events for the current photographer"""
    return [event_to_response(e) for e in service.get_events(photographer, status)]


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: str,
    photographer: Photographer = Depends(get_current_photographer),
    service: EventService = Depends(get_event_service),
):
    return event_to_response(service.get_event(event_id, photographer))


@router.post("", response_model=EventOperationResponse)
async def create_event(
    data: EventCreate,
    photographer: Photographer = Depends(get_current_photographer),
    service: EventService = Depends(get_event_service),
):
    """Book a session; calendar and WhatsApp results are reported in sideEffects"""
    result = await service.create_event(data, photographer)
    return operation_to_response(result)


@router.put("/{event_id}", response_model=EventOperationResponse)
async def update_event(
    event_id: str,
    data: EventUpdate,
    photographer: Photographer = Depends(get_current_photographer),
    service: EventService = Depends(get_event_service),
):
    result = await service.update_event(event_id, data, photographer)
    return operation_to_response(result)


@router.patch("/{event_id}/status", response_model=EventResponse)
async def update_event_status(
    event_id: str,
    data: EventStatusUpdate,
    photographer: Photographer = Depends(get_current_photographer),
    service: EventService = Depends(get_event_service),
):
    return event_to_response(service.update_status(event_id, data.status, photographer))


@router.delete("/{event_id}", response_model=EventOperationResponse)
async def delete_event(
    event_id: str,
    photographer: Photographer = Depends(get_current_photographer),
    service: EventService = Depends(get_event_service),
):
    """Delete an event with its albums and orders"""
    result = await service.delete_event(event_id, photographer)
    return operation_to_response(result)


# ============================================================================
# PUBLIC BOOKING
# ============================================================================


@public_router.get("/{photographer_id}", response_model=PublicStudioResponse)
async def get_public_studio(
    photographer_id: str,
    service: PublicBookingService = Depends(get_public_booking_service),
):
    """Studio details, session types and advance payment shown on the booking page"""
    return service.get_studio(photographer_id)


@public_router.post("/{photographer_id}/bookings", response_model=PublicBookingResponse)
async def create_public_booking(
    photographer_id: str,
    data: PublicBookingCreate,
    service: PublicBookingService = Depends(get_public_booking_service),
):
    """
    Book a session without an account.

    When the studio charges an advance, the response carries the pending order
    and its PIX payment; poll GET /public/orders/{orderId} for confirmation.
    """
    result = await service.create_booking(photographer_id, data)
    booking = result.value
    order = booking.advance_order
    return PublicBookingResponse(
        eventId=booking.event.id,
        sessionType=booking.event.session_type,
        eventDate=booking.event.event_date,
        status=booking.event.status,
        advanceAmount=order.total_amount if order else 0,
        orderId=order.id if order else None,
        payment=booking.payment,
        sideEffects=[s.to_dict() for s in result.side_effects],
    )
