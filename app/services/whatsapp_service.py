"""
WhatsApp Service
Sends client notifications through an Evolution API gateway instance
"""

import logging
import re
from typing import Optional

import httpx
from sqlalchemy.orm import Session

from ..config import HTTP_TIMEOUT_SECONDS
from ..models import Photographer
from ..security_utils import decrypt_credential
from .webhook_log_service import log_webhook

logger = logging.getLogger(__name__)

WHATSAPP_MESSAGE_TYPES = {
    "google_drive_share",
    "booking_confirmation",
    "album_ready",
    "selection_reminder",
}

BOOKING_CONFIRMATION_TEMPLATE = (
    "Olá {{clientName}}!\n\n"
    "Seu agendamento foi confirmado com sucesso! 🎉\n\n"
    "Detalhes:\n"
    "• Tipo: {{sessionType}}\n"
    "• Data: {{eventDate}} às {{eventTime}}\n"
    "• Local: {{studioAddress}}\n\n"
    "Em breve você receberá suas fotos para seleção.\n\n"
    "Obrigado!\n{{studioName}}"
)

ALBUM_READY_TEMPLATE = (
    "Olá {{clientName}}!\n\n"
    "Suas fotos estão prontas para seleção! 📸\n\n"
    "Acesse: {{albumUrl}}\n\n"
    "{{studioName}}"
)

SELECTION_REMINDER_TEMPLATE = (
    "Olá {{clientName}}!\n\n"
    "Lembrete: suas fotos ainda aguardam seleção.\n\n"
    "Acesse: {{albumUrl}}\n\n"
    "{{studioName}}"
)

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


class WhatsAppError(Exception):
    """Raised when the Evolution API rejects a message"""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[str] = None):
        self.status_code = status_code
        self.details = details
        super().__init__(message)


def render_template(template: str, context: dict) -> str:
    """Replace {{name}} placeholders; unknown placeholders are left untouched"""

    def _replace(match: re.Match) -> str:
        key = match.group(1)
        value = context.get(key)
        return match.group(0) if value is None else str(value)

    return _PLACEHOLDER.sub(_replace, template)


def normalize_whatsapp_phone(phone: str) -> str:
    """Digits only, with the Brazilian country code"""
    digits = re.sub(r"\D", "", phone or "")
    if not digits:
        raise ValueError("Phone number is required")
    return digits if digits.startswith("55") else f"55{digits}"


class WhatsAppService:
    def __init__(
        self,
        api_url: str,
        api_key: str,
        instance: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.instance = instance
        self.transport = transport

    async def send_text(self, phone: str, message: str) -> dict:
        """Send a text message, returning the gateway response"""
        number = normalize_whatsapp_phone(phone)
        logger.info(f"📱 Sending WhatsApp message to {number} via instance {self.instance}")

        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS, transport=self.transport) as client:
            response = await client.post(
                f"{self.api_url}/message/sendText/{self.instance}",
                headers={"apikey": self.api_key, "Content-Type": "application/json"},
                json={"number": number, "text": message},
            )

        logger.info(f"📡 Evolution API response status: {response.status_code}")

        if response.status_code not in [200, 201]:
            logger.error(f"❌ Evolution API error: {response.text}")
            raise WhatsAppError(
                "Failed to send WhatsApp message", status_code=response.status_code, details=response.text
            )

        return response.json()


def get_whatsapp_service(photographer: Photographer) -> Optional[WhatsAppService]:
    """Evolution API client for a photographer, None when the gateway is not configured"""
    api_key = decrypt_credential(photographer.evolution_api_key)
    if not (photographer.evolution_api_url and api_key and photographer.evolution_instance):
        return None
    return WhatsAppService(photographer.evolution_api_url, api_key, photographer.evolution_instance)


async def send_whatsapp_message(
    db: Session,
    photographer: Photographer,
    phone: str,
    message: str,
    message_type: str,
    event_id: Optional[str] = None,
    service: Optional[WhatsAppService] = None,
) -> dict:
    """
    Send a WhatsApp message and record it in webhook_logs

    When the gateway is not configured the message is simulated (logged as
    success with simulated=True). Gateway failures are logged and re-raised.
    """
    if message_type not in WHATSAPP_MESSAGE_TYPES:
        raise ValueError(f"Unknown WhatsApp message type: {message_type}")
    if not phone or not message:
        raise ValueError("Phone and message are required")

    service = service or get_whatsapp_service(photographer)

    if service is None:
        logger.info(f"=== SIMULATING WHATSAPP MESSAGE === type={message_type}, to={phone}")
        log_webhook(
            db,
            f"whatsapp_{message_type}",
            {
                "phone": phone,
                "message": message,
                "event_id": event_id,
                "type": message_type,
                "simulated": True,
                "reason": "Evolution API not configured",
            },
            status="success",
            photographer_id=photographer.id,
        )
        return {"success": True, "simulated": True}

    try:
        result = await service.send_text(phone, message)
    except (WhatsAppError, httpx.HTTPError) as e:
        log_webhook(
            db,
            f"whatsapp_{message_type}_error",
            {
                "phone": phone,
                "message": message,
                "event_id": event_id,
                "type": message_type,
                "error": getattr(e, "details", None) or str(e),
            },
            status="failed",
            photographer_id=photographer.id,
        )
        raise

    log_webhook(
        db,
        f"whatsapp_{message_type}",
        {
            "phone": normalize_whatsapp_phone(phone),
            "message": message,
            "event_id": event_id,
            "type": message_type,
            "evolutionResult": result,
        },
        status="success",
        photographer_id=photographer.id,
    )
    logger.info(f"✅ WhatsApp {message_type} sent to {phone}")
    return {"success": True, "simulated": False, "result": result}
