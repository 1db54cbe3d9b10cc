"""
Integration Settings Routes
Stores the photographer's Mercado Pago, Evolution API (WhatsApp) and Google Calendar credentials
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ..auth import get_current_photographer
from ..database import get_db
from ..models import Photographer
from ..security_utils import decrypt_credential, encrypt_credential, mask_secret

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/integrations", tags=["integrations"])


# Pydantic Models
class IntegrationStatusResponse(BaseModel):
    mercadopago_connected: bool
    mercadopago_token: Optional[str] = None
    whatsapp_connected: bool
    evolution_api_url: Optional[str] = None
    evolution_instance: Optional[str] = None
    google_calendar_connected: bool
    google_calendar_id: Optional[str] = None
    minimum_package_price: float
    package_photo_count: int
    extra_photo_price: float
    advance_payment_percentage: int
    booking_message_template: Optional[str] = None


class IntegrationSettings(BaseModel):
    """Only fields present in the request are changed; an empty string clears a credential"""

    mercadopago_access_token: Optional[str] = None
    evolution_api_url: Optional[str] = None
    evolution_api_key: Optional[str] = None
    evolution_instance: Optional[str] = None
    google_calendar_access_token: Optional[str] = None
    google_calendar_id: Optional[str] = None
    minimum_package_price: Optional[float] = None
    package_photo_count: Optional[int] = None
    extra_photo_price: Optional[float] = None
    advance_payment_percentage: Optional[int] = None
    booking_message_template: Optional[str] = None

    @field_validator("evolution_api_url")
    @classmethod
    def validate_url(cls, v):
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("Evolution API URL must start with http:// or https://")
        return v.rstrip("/") if v else v

    @field_validator("minimum_package_price", "extra_photo_price")
    @classmethod
    def validate_price(cls, v):
        if v is not None and v < 0:
            raise ValueError("Prices cannot be negative")
        return v

    @field_validator("advance_payment_percentage")
    @classmethod
    def validate_advance_percentage(cls, v):
        if v is not None and not 0 <= v <= 100:
            raise ValueError("Advance payment percentage must be between 0 and 100")
        return v

    @field_validator("package_photo_count")
    @classmethod
    def validate_package_count(cls, v):
        if v is not None and v < 1:
            raise ValueError("Package must include at least one photo")
        return v


ENCRYPTED_FIELDS = ("mercadopago_access_token", "evolution_api_key", "google_calendar_access_token")


def build_status(photographer: Photographer) -> IntegrationStatusResponse:
    mp_token = decrypt_credential(photographer.mercadopago_access_token)
    evolution_key = decrypt_credential(photographer.evolution_api_key)

    return IntegrationStatusResponse(
        mercadopago_connected=bool(mp_token),
        mercadopago_token=mask_secret(mp_token),
        whatsapp_connected=bool(
            photographer.evolution_api_url and evolution_key and photographer.evolution_instance
        ),
        evolution_api_url=photographer.evolution_api_url,
        evolution_instance=photographer.evolution_instance,
        google_calendar_connected=bool(decrypt_credential(photographer.google_calendar_access_token)),
        google_calendar_id=photographer.google_calendar_id,
        minimum_package_price=photographer.minimum_package_price,
        package_photo_count=photographer.package_photo_count,
        extra_photo_price=photographer.extra_photo_price,
        advance_payment_percentage=photographer.advance_payment_percentage,
        booking_message_template=photographer.booking_message_template,
    )


# Routes
@router.get("", response_model=IntegrationStatusResponse)
async def get_integrations(photographer: Photographer = Depends(get_current_photographer)):
    """Get integration status (secrets are masked)"""
    return build_status(photographer)


@router.put("", response_model=IntegrationStatusResponse)
async def update_integrations(
    settings: IntegrationSettings,
    photographer: Photographer = Depends(get_current_photographer),
    db: Session = Depends(get_db),
):
    """Update credentials and selection pricing"""
    for field in settings.model_fields_set:
        value = getattr(settings, field)

        if field in ENCRYPTED_FIELDS:
            setattr(photographer, field, encrypt_credential(value) if value else None)
        elif value == "":
            setattr(photographer, field, None)
        elif value is not None:
            setattr(photographer, field, value)

    db.commit()
    db.refresh(photographer)

    logger.info(
        f"✅ Integrations updated for photographer {photographer.id}: {sorted(settings.model_fields_set)}"
    )
    return build_status(photographer)
