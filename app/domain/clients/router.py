"""Client router - FastAPI endpoints for client operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_photographer
from ...database import get_db
from ...models import Client, Photographer
from .schemas import ClientCreate, ClientResponse, ClientUpdate
from .service import ClientService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["Clients"])


def get_client_service(db: Session = Depends(get_db)) -> ClientService:
    """Dependency injection for ClientService"""
    return ClientService(db)


def client_to_response(client: Client, service: ClientService) -> ClientResponse:
    return ClientResponse(
        id=client.id,
        name=client.name,
        email=client.email,
        phone=client.phone,
        notes=client.notes,
        eventCount=service.count_events(client),
        created_at=client.created_at,
        updated_at=client.updated_at,
    )


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=list[ClientResponse])
async def get_clients(
    search: Optional[str] = Query(None),
    photographer: Photographer = Depends(get_current_photographer),
    service: ClientService = Depends(get_client_service),
):
    """Get all clients for the current photographer"""
    return [client_to_response(c, service) for c in service.get_clients(photographer, search)]


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: str,
    photographer: Photographer = Depends(get_current_photographer),
    service: ClientService = Depends(get_client_service),
):
    """Get a specific client"""
    return client_to_response(service.get_client(client_id, photographer), service)


@router.post("", response_model=ClientResponse)
async def create_client(
    data: ClientCreate,
    photographer: Photographer = Depends(get_current_photographer),
    service: ClientService = Depends(get_client_service),
):
    """Create a new client"""
    return client_to_response(service.create_client(data, photographer), service)


@router.put("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: str,
    data: ClientUpdate,
    photographer: Photographer = Depends(get_current_photographer),
    service: ClientService = Depends(get_client_service),
):
    """Update a client"""
    return client_to_response(service.update_client(client_id, data, photographer), service)


@router.delete("/{client_id}")
async def delete_client(
    client_id: str,
    photographer: Photographer = Depends(get_current_photographer),
    service: ClientService = Depends(get_client_service),
):
    """Delete a client"""
    return service.delete_client(client_id, photographer)
