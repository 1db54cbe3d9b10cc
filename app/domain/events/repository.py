"""Event repository - Database operations for photo sessions"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Event


class EventRepository:
    """Repository for event database operations"""

    @staticmethod
    def get_events(
        db: Session,
        photographer_id: str,
        status: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[Event]:
        """Get events for a photographer, soonest first"""
        query = db.query(Event).filter(Event.photographer_id == photographer_id)
        if status:
            query = query.filter(Event.status == status)
        if start_date:
            query = query.filter(Event.event_date >= start_date)
        if end_date:
            query = query.filter(Event.event_date <= end_date)
        return query.order_by(Event.event_date.asc()).all()

    @staticmethod
    def get_event_by_id(db: Session, event_id: str, photographer_id: str) -> Optional[Event]:
        return (
            db.query(Event)
            .filter(Event.id == event_id, Event.photographer_id == photographer_id)
            .first()
        )

    @staticmethod
    def create_event(db: Session, photographer_id: str, **event_data) -> Event:
        event = Event(photographer_id=photographer_id, **event_data)
        db.add(event)
        db.commit()
        db.refresh(event)
        return event

    @staticmethod
    def update_event(db: Session, event: Event, **updates) -> Event:
        """Update an event with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(event, key):
                setattr(event, key, value)

        db.commit()
        db.refresh(event)
        return event

    @staticmethod
    def set_google_calendar_event_id(db: Session, event: Event, google_event_id: Optional[str]) -> Event:
        event.google_calendar_event_id = google_event_id
        db.commit()
        db.refresh(event)
        return event

    @staticmethod
    def delete_event(db: Session, event: Event) -> None:
        """Delete an event (albums, photos and orders cascade)"""
        db.delete(event)
        db.commit()
