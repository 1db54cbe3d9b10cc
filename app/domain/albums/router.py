"""Album router - FastAPI endpoints for albums, photos and public selection"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_photographer
from ...database import get_db
from ...models import Album, Photo, Photographer
from ...services.mercadopago_client import MercadoPagoClient
from ..payments.router import get_mercadopago_client, order_status_response, order_to_response
from ..payments.schemas import OrderPaymentRequest, OrderResponse, OrderStatusResponse, PixPaymentResponse
from .checkout import OrderPaymentService
from .schemas import (
    AlbumCreate,
    AlbumResponse,
    AlbumUpdate,
    NotifyClientRequest,
    PhotoResponse,
    PhotosCreate,
    PricingResponse,
    PublicAlbumResponse,
    SelectionSubmit,
    SelectionToggleResponse,
)
from .service import AlbumService, PublicAlbumService, album_share_url, price_for_photographer, pricing_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/albums", tags=["Albums"])
public_router = APIRouter(prefix="/albums/public", tags=["Public Albums"])


def get_album_service(db: Session = Depends(get_db)) -> AlbumService:
    """Dependency injection for AlbumService"""
    return AlbumService(db)


def get_public_album_service(db: Session = Depends(get_db)) -> PublicAlbumService:
    """Dependency injection for PublicAlbumService"""
    return PublicAlbumService(db)


def get_order_payment_service(
    db: Session = Depends(get_db),
    mp_client: MercadoPagoClient = Depends(get_mercadopago_client),
) -> OrderPaymentService:
    return OrderPaymentService(db, mp_client)


def album_to_response(album: Album) -> AlbumResponse:
    return AlbumResponse(
        id=album.id,
        eventId=album.event_id,
        name=album.name,
        shareToken=album.share_token,
        shareUrl=album_share_url(album),
        isActive=album.is_active,
        expiresAt=album.expires_at,
        paymentStatus=album.payment_status,
        paidAt=album.paid_at,
        paidOrderId=album.paid_order_id,
        photoCount=len(album.photos),
        created_at=album.created_at,
    )


def photo_to_response(photo: Photo) -> PhotoResponse:
    return PhotoResponse(
        id=photo.id,
        albumId=photo.album_id,
        filename=photo.filename,
        originalPath=photo.original_path,
        thumbnailPath=photo.thumbnail_path,
        watermarkedPath=photo.watermarked_path,
        isSelected=photo.is_selected,
        price=photo.price,
        metadata=photo.photo_metadata,
        created_at=photo.created_at,
    )


# ============================================================================
# PUBLIC ALBUM ACCESS (SHARE TOKEN)
# ============================================================================


@public_router.get("/{share_token}", response_model=PublicAlbumResponse)
async def get_public_album(
    share_token: str,
    service: PublicAlbumService = Depends(get_public_album_service),
):
    """Album photos and current selection price for the client"""
    return service.get_public_album(share_token)


@public_router.get("/{share_token}/pricing", response_model=PricingResponse)
async def preview_selection_price(
    share_token: str,
    count: int = Query(..., ge=0),
    service: PublicAlbumService = Depends(get_public_album_service),
):
    """Price a hypothetical selection size"""
    album = service.get_open_album(share_token)
    price = price_for_photographer(album.event.photographer, count)
    return pricing_response(price, count)


@public_router.post("/{share_token}/photos/{photo_id}/toggle", response_model=SelectionToggleResponse)
async def toggle_photo_selection(
    share_token: str,
    photo_id: str,
    service: PublicAlbumService = Depends(get_public_album_service),
):
    return service.toggle_photo_selection(share_token, photo_id)


@public_router.post("/{share_token}/selection", response_model=OrderResponse)
async def submit_selection(
    share_token: str,
    data: SelectionSubmit,
    service: PublicAlbumService = Depends(get_public_album_service),
):
    """Finish the selection and create a pending order"""
    order = service.submit_selection(share_token, data)
    return order_to_response(order)


@public_router.get("/{share_token}/orders/{order_id}", response_model=OrderStatusResponse)
async def get_order_status(
    share_token: str,
    order_id: str,
    service: OrderPaymentService = Depends(get_order_payment_service),
):
    """Poll a selection order after checkout; the webhook moves it to paid or cancelled"""
    _, order = service.get_album_order(share_token, order_id)
    return order_status_response(order)


@public_router.post("/{share_token}/orders/{order_id}/payment", response_model=PixPaymentResponse)
async def create_order_payment(
    share_token: str,
    order_id: str,
    data: OrderPaymentRequest,
    service: OrderPaymentService = Depends(get_order_payment_service),
):
    """Create the PIX payment for a pending order"""
    return await service.create_order_payment(share_token, order_id, data)


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=list[AlbumResponse])
async def get_albums(
    event_id: Optional[str] = Query(None),
    photographer: Photographer = Depends(get_current_photographer),
    service: AlbumService = Depends(get_album_service),
):
    albums = service.get_albums(photographer, event_id)
    return [album_to_response(a) for a in albums]


@router.get("/{album_id}", response_model=AlbumResponse)
async def get_album(
    album_id: str,
    photographer: Photographer = Depends(get_current_photographer),
    service: AlbumService = Depends(get_album_service),
):
    return album_to_response(service.get_album(album_id, photographer))


@router.post("", response_model=AlbumResponse)
async def create_album(
    data: AlbumCreate,
    photographer: Photographer = Depends(get_current_photographer),
    service: AlbumService = Depends(get_album_service),
):
    """Create an album with a fresh share token"""
    return album_to_response(service.create_album(data, photographer))


@router.put("/{album_id}", response_model=AlbumResponse)
async def update_album(
    album_id: str,
    data: AlbumUpdate,
    photographer: Photographer = Depends(get_current_photographer),
    service: AlbumService = Depends(get_album_service),
):
    return album_to_response(service.update_album(album_id, data, photographer))


@router.delete("/{album_id}")
async def delete_album(
    album_id: str,
    photographer: Photographer = Depends(get_current_photographer),
    service: AlbumService = Depends(get_album_service),
):
    """Delete an album and its photos"""
    return service.delete_album(album_id, photographer)


# ============================================================================
# PHOTOS
# ============================================================================


@router.get("/{album_id}/photos", response_model=list[PhotoResponse])
async def get_album_photos(
    album_id: str,
    photographer: Photographer = Depends(get_current_photographer),
    service: AlbumService = Depends(get_album_service),
):
    return [photo_to_response(p) for p in service.get_photos(album_id, photographer)]


@router.post("/{album_id}/photos", response_model=list[PhotoResponse])
async def add_album_photos(
    album_id: str,
    data: PhotosCreate,
    photographer: Photographer = Depends(get_current_photographer),
    service: AlbumService = Depends(get_album_service),
):
    """Register uploaded files as album photos"""
    return [photo_to_response(p) for p in service.add_photos(album_id, data, photographer)]


@router.delete("/{album_id}/photos/{photo_id}")
async def delete_album_photo(
    album_id: str,
    photo_id: str,
    photographer: Photographer = Depends(get_current_photographer),
    service: AlbumService = Depends(get_album_service),
):
    return service.delete_photo(album_id, photo_id, photographer)


# ============================================================================
# CLIENT NOTIFICATION
# ============================================================================


@router.post("/{album_id}/notify")
async def notify_client(
    album_id: str,
    data: NotifyClientRequest,
    photographer: Photographer = Depends(get_current_photographer),
    service: AlbumService = Depends(get_album_service),
):
    """Send the album link to the client over WhatsApp"""
    return await service.notify_client(album_id, data, photographer)
