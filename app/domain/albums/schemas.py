"""Album domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email


class AlbumCreate(BaseModel):
    """Schema for creating an album for an event"""

    eventId: str
    name: str
    expiresAt: Optional[datetime] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Album name is required")
        return v.strip()


class AlbumUpdate(BaseModel):
    """Schema for updating an album"""

    name: Optional[str] = None
    isActive: Optional[bool] = None
    expiresAt: Optional[datetime] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Album name cannot be empty")
        return v.strip() if v else v


class AlbumResponse(BaseModel):
    """Schema for album response"""

    id: str
    eventId: str
    name: str
    shareToken: str
    shareUrl: str
    isActive: bool
    expiresAt: Optional[datetime] = None
    paymentStatus: str
    paidAt: Optional[datetime] = None
    paidOrderId: Optional[str] = None
    photoCount: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PhotoCreate(BaseModel):
    """A stored file to register in an album"""

    filename: str
    path: str
    price: Optional[float] = None
    metadata: Optional[dict] = None

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        if v is not None and v < 0:
            raise ValueError("Price cannot be negative")
        return v


class PhotosCreate(BaseModel):
    photos: list[PhotoCreate]

    @field_validator("photos")
    @classmethod
    def validate_photos(cls, v):
        if not v:
            raise ValueError("At least one photo is required")
        return v


class PhotoResponse(BaseModel):
    id: str
    albumId: str
    filename: str
    originalPath: str
    thumbnailPath: str
    watermarkedPath: str
    isSelected: bool
    price: float
    metadata: Optional[dict] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PublicPhotoResponse(BaseModel):
    """Photo as seen by the client (no original path)"""

    id: str
    filename: str
    thumbnailPath: str
    watermarkedPath: str
    isSelected: bool
    price: float


class PricingResponse(BaseModel):
    total: float
    discount: float
    hasDiscount: bool
    extraPhotosCount: int
    packagePhotos: int
    extraPhotosOriginalTotal: float
    isMinimumPackage: bool
    selectedCount: int


class PublicAlbumResponse(BaseModel):
    id: str
    name: str
    studioName: str
    sessionType: Optional[str] = None
    eventDate: Optional[datetime] = None
    expiresAt: Optional[datetime] = None
    paymentStatus: str
    photos: list[PublicPhotoResponse]
    pricing: PricingResponse


class SelectionToggleResponse(BaseModel):
    photoId: str
    isSelected: bool
    pricing: PricingResponse


class SelectionSubmit(BaseModel):
    """Submit the client's selection; photoIds defaults to the photos currently marked selected"""

    clientEmail: str
    photoIds: Optional[list[str]] = None

    @field_validator("clientEmail")
    @classmethod
    def validate_client_email(cls, v):
        return validate_email(v)


class NotifyClientRequest(BaseModel):
    """Optional custom text for the album-ready WhatsApp message"""

    message: Optional[str] = None
    messageType: str = "album_ready"

    @field_validator("messageType")
    @classmethod
    def validate_message_type(cls, v):
        if v not in ("album_ready", "selection_reminder"):
            raise ValueError("messageType must be album_ready or selection_reminder")
        return v
