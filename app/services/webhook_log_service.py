"""
Webhook Audit Log Service
Append-only record of every inbound/outbound webhook interaction
"""

import json
import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..models import WebhookLog

logger = logging.getLogger(__name__)


def _json_safe(value: Any) -> Any:
    """Round-trip through JSON so datetimes, Decimals and exceptions can be stored"""
    return json.loads(json.dumps(value, default=str))


def log_webhook(
    db: Session,
    event_type: str,
    payload: Any,
    status: str = "success",
    response: Optional[Any] = None,
    photographer_id: Optional[str] = None,
) -> Optional[WebhookLog]:
    """
    Insert an audit entry

    Audit failures are logged and never raised: the caller's own outcome
    (and HTTP status) must not depend on the diagnostics table.
    """
    try:
        entry = WebhookLog(
            event_type=event_type,
            photographer_id=photographer_id,
            payload=_json_safe(payload),
            response=_json_safe(response) if response is not None else None,
            status=status,
        )
        db.add(entry)
        db.commit()
        return entry
    except Exception as e:
        logger.error(f"❌ Failed to write webhook log {event_type}: {str(e)}")
        db.rollback()
        return None


def list_webhook_logs(
    db: Session, photographer_id: str, limit: int = 50, event_type: Optional[str] = None
) -> list[WebhookLog]:
    """Most recent audit entries of one photographer, optionally filtered by event type prefix"""
    query = db.query(WebhookLog).filter(WebhookLog.photographer_id == photographer_id)
    if event_type:
        query = query.filter(WebhookLog.event_type.like(f"{event_type}%"))
    return query.order_by(WebhookLog.created_at.desc()).limit(limit).all()
