"""
WhatsApp Routes
Photographer-triggered messages through the Evolution API gateway
"""

import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ..auth import get_current_photographer
from ..database import get_db
from ..models import Event, Photographer
from ..services.whatsapp_service import WHATSAPP_MESSAGE_TYPES, WhatsAppError, send_whatsapp_message

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/whatsapp", tags=["whatsapp"])


# Pydantic Models
class SendWhatsAppRequest(BaseModel):
    phone: str
    message: str
    type: str
    eventId: Optional[str] = None

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        if v not in WHATSAPP_MESSAGE_TYPES:
            raise ValueError(f"type must be one of: {', '.join(sorted(WHATSAPP_MESSAGE_TYPES))}")
        return v

    @field_validator("phone", "message")
    @classmethod
    def validate_required(cls, v):
        if not v or not v.strip():
            raise ValueError("Field is required")
        return v


# Routes
@router.post("/send")
async def send_message(
    data: SendWhatsAppRequest,
    photographer: Photographer = Depends(get_current_photographer),
    db: Session = Depends(get_db),
):
    """Send a WhatsApp message (simulated when the gateway is not configured)"""
    if data.eventId:
        event = (
            db.query(Event)
            .filter(Event.id == data.eventId, Event.photographer_id == photographer.id)
            .first()
        )
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")

    try:
        result = await send_whatsapp_message(
            db, photographer, data.phone, data.message, data.type, event_id=data.eventId
        )
    except WhatsAppError as e:
        raise HTTPException(
            status_code=502, detail={"error": "Failed to send WhatsApp message", "details": e.details}
        )
    except httpx.HTTPError as e:
        logger.error(f"❌ WhatsApp gateway unreachable: {str(e)}")
        raise HTTPException(status_code=502, detail="WhatsApp gateway unavailable")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return result
