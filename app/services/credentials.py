"""
Per-photographer Mercado Pago credential lookup

Payment notifications carry the owning photographer's id in the
notification URL query string. Without it, a token is only used when
exactly one photographer has Mercado Pago configured.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models import Photographer
from ..security_utils import decrypt_credential

logger = logging.getLogger(__name__)


class CredentialLookupError(Exception):
    """No usable Mercado Pago access token for a notification"""


def resolve_mercadopago_token(db: Session, photographer_id: Optional[str] = None) -> str:
    if photographer_id:
        photographer = db.query(Photographer).filter(Photographer.id == photographer_id).first()
        if not photographer:
            raise CredentialLookupError(f"Photographer {photographer_id} not found")
        token = decrypt_credential(photographer.mercadopago_access_token)
        if not token:
            raise CredentialLookupError(f"Mercado Pago not configured for photographer {photographer_id}")
        return token

    configured = (
        db.query(Photographer)
        .filter(Photographer.mercadopago_access_token.isnot(None))
        .limit(2)
        .all()
    )
    if not configured:
        raise CredentialLookupError("Mercado Pago access token not configured")
    if len(configured) > 1:
        raise CredentialLookupError(
            "Several photographers have Mercado Pago configured and the notification carries no photographer_id"
        )

    token = decrypt_credential(configured[0].mercadopago_access_token)
    if not token:
        raise CredentialLookupError("Stored Mercado Pago access token could not be decrypted")
    logger.info(f"ℹ️ Using the only configured Mercado Pago account ({configured[0].id})")
    return token
