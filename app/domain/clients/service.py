"""Client service - Business logic for client operations"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Client, Photographer
from .repository import ClientRepository
from .schemas import ClientCreate, ClientUpdate

logger = logging.getLogger(__name__)


class ClientService:
    """Service layer for client business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ClientRepository()

    def get_clients(self, photographer: Photographer, search: Optional[str] = None) -> list[Client]:
        """Get all clients for a photographer"""
        return self.repo.get_clients(self.db, photographer.id, search)

    def get_client(self, client_id: str, photographer: Photographer) -> Client:
        """Get a specific client"""
        client = self.repo.get_client_by_id(self.db, client_id, photographer.id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")
        return client

    def count_events(self, client: Client) -> int:
        return self.repo.count_events(self.db, client.id)

    def create_client(self, data: ClientCreate, photographer: Photographer) -> Client:
        """Create a new client; emails are unique per photographer"""
        logger.info(f"📥 Creating client for photographer {photographer.id}")

        if self.repo.get_client_by_email(self.db, photographer.id, data.email):
            raise HTTPException(status_code=409, detail="A client with this email already exists")

        return self.repo.create_client(
            self.db,
            photographer.id,
            name=data.name,
            email=data.email,
            phone=data.phone,
            notes=data.notes,
        )

    def update_client(self, client_id: str, data: ClientUpdate, photographer: Photographer) -> Client:
        """Update a client"""
        client = self.get_client(client_id, photographer)

        if data.email and data.email != client.email:
            existing = self.repo.get_client_by_email(self.db, photographer.id, data.email)
            if existing and existing.id != client.id:
                raise HTTPException(status_code=409, detail="A client with this email already exists")

        updates = {
            "name": data.name.strip() if data.name else None,
            "email": data.email,
            "phone": data.phone,
            "notes": data.notes,
        }
        return self.repo.update_client(self.db, client, **updates)

    def delete_client(self, client_id: str, photographer: Photographer) -> dict:
        """Delete a client"""
        client = self.get_client(client_id, photographer)
        self.repo.delete_client(self.db, client)
        return {"message": "Client deleted"}
