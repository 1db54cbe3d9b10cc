import logging
from datetime import datetime

from fastapi import Depends, HTTPException
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from .database import get_db
from .models import ApiAccess, Photographer

logger = logging.getLogger(__name__)

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def get_current_photographer(
    api_key: str = Depends(api_key_header), db: Session = Depends(get_db)
) -> Photographer:
    """Resolve the photographer owning the X-API-Key header"""
    if not api_key:
        raise HTTPException(status_code=401, detail="Missing X-API-Key header")

    access = db.query(ApiAccess).filter(ApiAccess.api_key == api_key).first()
    if not access:
        logger.warning("⚠️ Rejected request with unknown API key")
        raise HTTPException(status_code=401, detail="Invalid API key")

    photographer = db.query(Photographer).filter(Photographer.user_id == access.user_id).first()
    if not photographer:
        logger.warning(f"⚠️ API key for user {access.user_id} has no photographer profile")
        raise HTTPException(status_code=403, detail="Photographer profile not found")

    access.last_used_at = datetime.utcnow()
    db.commit()

    return photographer
