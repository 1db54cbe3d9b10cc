"""Album service - Business logic for albums, photos and client selection"""

import logging
from datetime import datetime
from typing import Optional

import httpx
from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import FRONTEND_URL
from ...models import Album, Order, Photo, Photographer
from ...services.whatsapp_service import (
    ALBUM_READY_TEMPLATE,
    SELECTION_REMINDER_TEMPLATE,
    WhatsAppError,
    render_template,
    send_whatsapp_message,
)
from ..events.repository import EventRepository
from ..payments.repository import OrderRepository
from .pricing import SelectionPrice, calculate_selection_price
from .repository import AlbumRepository
from .schemas import AlbumCreate, AlbumUpdate, NotifyClientRequest, PhotosCreate, SelectionSubmit

logger = logging.getLogger(__name__)

NOTIFY_TEMPLATES = {
    "album_ready": ALBUM_READY_TEMPLATE,
    "selection_reminder": SELECTION_REMINDER_TEMPLATE,
}


def album_share_url(album: Album) -> str:
    return f"{FRONTEND_URL}/album/{album.share_token}"


def price_for_photographer(photographer: Photographer, selected_count: int) -> SelectionPrice:
    return calculate_selection_price(
        selected_count,
        minimum_package_price=photographer.minimum_package_price,
        package_photo_count=photographer.package_photo_count,
        extra_photo_price=photographer.extra_photo_price,
    )


def pricing_response(price: SelectionPrice, selected_count: int) -> dict:
    return {
        "total": price.total,
        "discount": price.discount,
        "hasDiscount": price.has_discount,
        "extraPhotosCount": price.extra_photos_count,
        "packagePhotos": price.package_photos,
        "extraPhotosOriginalTotal": price.extra_photos_original_total,
        "isMinimumPackage": price.is_minimum_package,
        "selectedCount": selected_count,
    }


class AlbumService:
    """Service layer for photographer-side album operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AlbumRepository()
        self.event_repo = EventRepository()

    def get_albums(self, photographer: Photographer, event_id: Optional[str] = None) -> list[Album]:
        return self.repo.get_albums(self.db, photographer.id, event_id)

    def get_album(self, album_id: str, photographer: Photographer) -> Album:
        album = self.repo.get_album_by_id(self.db, album_id, photographer.id)
        if not album:
            raise HTTPException(status_code=404, detail="Album not found")
        return album

    def create_album(self, data: AlbumCreate, photographer: Photographer) -> Album:
        """Create an album for one of the photographer's events"""
        event = self.event_repo.get_event_by_id(self.db, data.eventId, photographer.id)
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")

        album = self.repo.create_album(self.db, event.id, data.name, expires_at=data.expiresAt)
        logger.info(f"✅ Album {album.id} created for event {event.id}")
        return album

    def update_album(self, album_id: str, data: AlbumUpdate, photographer: Photographer) -> Album:
        album = self.get_album(album_id, photographer)

        updates = {}
        if data.name is not None:
            updates["name"] = data.name
        if data.isActive is not None:
            updates["is_active"] = data.isActive
        # expiresAt may be cleared explicitly with null
        if "expiresAt" in data.model_fields_set:
            updates["expires_at"] = data.expiresAt

        return self.repo.update_album(self.db, album, **updates)

    def delete_album(self, album_id: str, photographer: Photographer) -> dict:
        album = self.get_album(album_id, photographer)
        self.repo.delete_album(self.db, album)
        logger.info(f"🗑️ Album {album_id} deleted")
        return {"message": "Album deleted"}

    def add_photos(self, album_id: str, data: PhotosCreate, photographer: Photographer) -> list[Photo]:
        """Register already-stored files; all variants point to the same path"""
        album = self.get_album(album_id, photographer)
        photos = []
        for item in data.photos:
            photo_data = {"filename": item.filename, "path": item.path, "metadata": item.metadata}
            if item.price is not None:
                photo_data["price"] = item.price
            photos.append(photo_data)

        created = self.repo.add_photos(self.db, album.id, photos)
        logger.info(f"📸 {len(created)} photo(s) added to album {album.id}")
        return created

    def get_photos(self, album_id: str, photographer: Photographer) -> list[Photo]:
        album = self.get_album(album_id, photographer)
        return self.repo.get_photos(self.db, album.id)

    def delete_photo(self, album_id: str, photo_id: str, photographer: Photographer) -> dict:
        album = self.get_album(album_id, photographer)
        photo = self.repo.get_photo_in_album(self.db, album.id, photo_id)
        if not photo:
            raise HTTPException(status_code=404, detail="Photo not found")
        self.repo.delete_photo(self.db, photo)
        return {"message": "Photo deleted"}

    async def notify_client(
        self, album_id: str, data: NotifyClientRequest, photographer: Photographer
    ) -> dict:
        """Send the album link to the event's client over WhatsApp"""
        album = self.get_album(album_id, photographer)
        event = album.event
        share_url = album_share_url(album)

        message = data.message or render_template(
            NOTIFY_TEMPLATES[data.messageType],
            {
                "clientName": event.client_name,
                "albumUrl": share_url,
                "studioName": photographer.business_name,
            },
        )

        try:
            result = await send_whatsapp_message(
                self.db, photographer, event.client_phone, message, data.messageType, event_id=event.id
            )
        except WhatsAppError as e:
            raise HTTPException(status_code=502, detail=f"WhatsApp gateway error: {str(e)}")
        except httpx.HTTPError as e:
            logger.error(f"❌ WhatsApp gateway unreachable: {str(e)}")
            raise HTTPException(status_code=502, detail="WhatsApp gateway unavailable")

        return {"success": True, "simulated": result["simulated"], "albumUrl": share_url}


class PublicAlbumService:
    """Unauthenticated album access through the share token"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AlbumRepository()
        self.order_repo = OrderRepository()

    def get_open_album(self, share_token: str) -> Album:
        album = self.repo.get_album_by_share_token(self.db, share_token)
        if not album or not album.is_active:
            raise HTTPException(status_code=404, detail="Album not found")
        if album.expires_at and album.expires_at < datetime.utcnow():
            raise HTTPException(status_code=410, detail="Album link has expired")
        return album

    def current_pricing(self, album: Album) -> dict:
        selected_count = len(self.repo.get_selected_photos(self.db, album.id))
        price = price_for_photographer(album.event.photographer, selected_count)
        return pricing_response(price, selected_count)

    def get_public_album(self, share_token: str) -> dict:
        album = self.get_open_album(share_token)
        event = album.event
        photos = self.repo.get_photos(self.db, album.id)

        return {
            "id": album.id,
            "name": album.name,
            "studioName": event.photographer.business_name,
            "sessionType": event.session_type,
            "eventDate": event.event_date,
            "expiresAt": album.expires_at,
            "paymentStatus": album.payment_status,
            "photos": [
                {
                    "id": p.id,
                    "filename": p.filename,
                    "thumbnailPath": p.thumbnail_path,
                    "watermarkedPath": p.watermarked_path,
                    "isSelected": p.is_selected,
                    "price": p.price,
                }
                for p in photos
            ],
            "pricing": self.current_pricing(album),
        }

    def toggle_photo_selection(self, share_token: str, photo_id: str) -> dict:
        album = self.get_open_album(share_token)
        if album.payment_status == "paid":
            raise HTTPException(status_code=409, detail="Selection is closed for a paid album")

        photo = self.repo.get_photo_in_album(self.db, album.id, photo_id)
        if not photo:
            raise HTTPException(status_code=404, detail="Photo not found")

        photo = self.repo.set_photo_selected(self.db, photo, not photo.is_selected)
        return {
            "photoId": photo.id,
            "isSelected": photo.is_selected,
            "pricing": self.current_pricing(album),
        }

    def submit_selection(self, share_token: str, data: SelectionSubmit) -> Order:
        """Turn the client's selection into a pending order priced with the studio's settings"""
        album = self.get_open_album(share_token)
        if album.payment_status == "paid":
            raise HTTPException(status_code=409, detail="Selection is closed for a paid album")

        if data.photoIds is not None:
            album_photo_ids = {p.id for p in self.repo.get_photos(self.db, album.id)}
            requested = set(data.photoIds)
            unknown = requested - album_photo_ids
            if unknown:
                raise HTTPException(status_code=400, detail="Some photos do not belong to this album")
            selected = self.repo.replace_selection(self.db, album.id, requested)
        else:
            selected = self.repo.get_selected_photos(self.db, album.id)

        if not selected:
            raise HTTPException(status_code=400, detail="Select at least one photo")

        selected_ids = [p.id for p in sorted(selected, key=lambda p: p.filename)]
        price = price_for_photographer(album.event.photographer, len(selected_ids))

        order = self.order_repo.create_order(
            self.db,
            event_id=album.event_id,
            client_email=data.clientEmail,
            selected_photos=selected_ids,
            total_amount=price.total,
            metadata={"album_id": album.id, "pricing": price.to_dict(), "source": "public_selection"},
        )
        logger.info(
            f"🛒 Order {order.id} created from album {album.id}: {len(selected_ids)} photos, total {price.total}"
        )
        return order
