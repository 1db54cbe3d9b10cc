"""Client repository - Database operations for clients"""

from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...models import Client, Event


class ClientRepository:
    """Repository for client database operations"""

    @staticmethod
    def get_clients(db: Session, photographer_id: str, search: Optional[str] = None) -> list[Client]:
        """Get all clients for a photographer"""
        query = db.query(Client).filter(Client.photographer_id == photographer_id)

        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(
                or_(
                    func.lower(Client.name).like(pattern),
                    func.lower(Client.email).like(pattern),
                    Client.phone.like(pattern),
                )
            )

        return query.order_by(Client.name.asc()).all()

    @staticmethod
    def get_client_by_id(db: Session, client_id: str, photographer_id: str) -> Optional[Client]:
        """Get a specific client by ID"""
        return (
            db.query(Client)
            .filter(Client.id == client_id, Client.photographer_id == photographer_id)
            .first()
        )

    @staticmethod
    def get_client_by_email(db: Session, photographer_id: str, email: str) -> Optional[Client]:
        return (
            db.query(Client)
            .filter(Client.photographer_id == photographer_id, func.lower(Client.email) == email.lower())
            .first()
        )

    @staticmethod
    def count_events(db: Session, client_id: str) -> int:
        return db.query(func.count(Event.id)).filter(Event.client_id == client_id).scalar() or 0

    @staticmethod
    def create_client(db: Session, photographer_id: str, **client_data) -> Client:
        """Create a new client"""
        client = Client(photographer_id=photographer_id, **client_data)
        db.add(client)
        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def update_client(db: Session, client: Client, **updates) -> Client:
        """Update a client with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(client, key):
                setattr(client, key, value)

        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def delete_client(db: Session, client: Client) -> None:
        """Delete a client (events keep their copied contact fields)"""
        db.delete(client)
        db.commit()
