"""Event domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, field_validator

from ...config import DEFAULT_TIMEZONE
from ...services.google_calendar_service import SESSION_TYPE_LABELS
from ...shared.validators import validate_br_phone, validate_email
from ..payments.schemas import PayerInfo, PixPaymentResponse

EVENT_STATUSES = ("scheduled", "in-progress", "completed", "cancelled")


def to_studio_time(value: Optional[datetime]) -> Optional[datetime]:
    """Aware datetimes become naive wall-clock time in the studio timezone"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(ZoneInfo(DEFAULT_TIMEZONE)).replace(tzinfo=None)
    return value


class EventCreate(BaseModel):
    """Schema for booking a photo session"""

    clientName: str
    clientEmail: str
    clientPhone: str
    sessionType: Optional[str] = None
    eventDate: datetime
    location: str
    notes: Optional[str] = None
    clientId: Optional[str] = None
    createAlbum: bool = True
    sendConfirmation: bool = True

    @field_validator("clientName", "location")
    @classmethod
    def validate_required_text(cls, v):
        if not v or not v.strip():
            raise ValueError("Field is required")
        return v.strip()

    @field_validator("clientEmail")
    @classmethod
    def validate_client_email(cls, v):
        return validate_email(v)

    @field_validator("clientPhone")
    @classmethod
    def validate_client_phone(cls, v):
        return validate_br_phone(v)

    @field_validator("eventDate")
    @classmethod
    def validate_event_date(cls, v):
        return to_studio_time(v)


class EventUpdate(BaseModel):
    """Schema for updating an existing event"""

    clientName: Optional[str] = None
    clientEmail: Optional[str] = None
    clientPhone: Optional[str] = None
    sessionType: Optional[str] = None
    eventDate: Optional[datetime] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[str] = None

    @field_validator("clientEmail")
    @classmethod
    def validate_client_email(cls, v):
        if v:
            return validate_email(v)
        return v

    @field_validator("clientPhone")
    @classmethod
    def validate_client_phone(cls, v):
        if v:
            return validate_br_phone(v)
        return v

    @field_validator("eventDate")
    @classmethod
    def validate_event_date(cls, v):
        return to_studio_time(v)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is not None and v not in EVENT_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(EVENT_STATUSES)}")
        return v


class EventStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in EVENT_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(EVENT_STATUSES)}")
        return v


class EventResponse(BaseModel):
    """Schema for event response"""

    id: str
    clientId: Optional[str] = None
    clientName: str
    clientEmail: str
    clientPhone: str
    sessionType: Optional[str] = None
    eventDate: datetime
    location: str
    notes: Optional[str] = None
    status: str
    googleCalendarEventId: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SideEffectResponse(BaseModel):
    name: str
    success: bool
    detail: Optional[str] = None


class EventOperationResponse(BaseModel):
    """Event plus the outcome of calendar/WhatsApp sync"""

    event: Optional[EventResponse] = None
    message: Optional[str] = None
    sideEffects: list[SideEffectResponse] = []


# ============================================================================
# PUBLIC BOOKING
# ============================================================================


def studio_now() -> datetime:
    return datetime.now(ZoneInfo(DEFAULT_TIMEZONE)).replace(tzinfo=None)


class PublicBookingCreate(BaseModel):
    """Schema for a client booking a session from the studio's public page"""

    clientName: str
    clientEmail: str
    clientPhone: str
    sessionType: str
    eventDate: datetime
    notes: Optional[str] = None
    payer: Optional[PayerInfo] = None

    @field_validator("clientName")
    @classmethod
    def validate_client_name(cls, v):
        if not v or len(v.strip()) < 2:
            raise ValueError("Name must have at least 2 characters")
        return v.strip()

    @field_validator("clientEmail")
    @classmethod
    def validate_client_email(cls, v):
        return validate_email(v)

    @field_validator("clientPhone")
    @classmethod
    def validate_client_phone(cls, v):
        return validate_br_phone(v)

    @field_validator("sessionType")
    @classmethod
    def validate_session_type(cls, v):
        if v not in SESSION_TYPE_LABELS:
            raise ValueError(f"Session type must be one of: {', '.join(SESSION_TYPE_LABELS)}")
        return v

    @field_validator("eventDate")
    @classmethod
    def validate_event_date(cls, v):
        v = to_studio_time(v)
        if v <= studio_now():
            raise ValueError("Booking date must be in the future")
        return v

    def payer_info(self) -> PayerInfo:
        """Explicit payer, or one derived from the client's own name and email"""
        if self.payer:
            return self.payer
        first_name, _, last_name = self.clientName.partition(" ")
        return PayerInfo(email=self.clientEmail, firstName=first_name, lastName=last_name.strip() or first_name)


class SessionTypeOption(BaseModel):
    value: str
    label: str


class PublicStudioResponse(BaseModel):
    """What the public booking page needs to know about a studio"""

    photographerId: str
    businessName: str
    studioAddress: Optional[str] = None
    sessionTypes: list[SessionTypeOption]
    onlinePayment: bool
    advancePaymentPercentage: int
    advancePaymentAmount: float


class PublicBookingResponse(BaseModel):
    """Booked session plus the advance payment to confirm it, when one is due"""

    eventId: str
    sessionType: Optional[str] = None
    eventDate: datetime
    status: str
    advanceAmount: float = 0
    orderId: Optional[str] = None
    payment: Optional[PixPaymentResponse] = None
    sideEffects: list[SideEffectResponse] = []
