import secrets
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_uuid():
    """Generate a string UUID primary key"""
    return str(uuid.uuid4())


def generate_share_token():
    """Generate an opaque token granting unauthenticated access to one album"""
    return secrets.token_urlsafe(24)


def generate_api_key():
    return secrets.token_hex(32)


class Photographer(Base):
    __tablename__ = "photographers"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(255), unique=True, index=True, nullable=False)  # Auth provider identity
    business_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    studio_address = Column(String(500), nullable=True)

    # Mercado Pago (encrypted)
    mercadopago_access_token = Column(Text, nullable=True)

    # Evolution API WhatsApp gateway
    evolution_api_url = Column(String(500), nullable=True)
    evolution_api_key = Column(Text, nullable=True)  # Encrypted
    evolution_instance = Column(String(255), nullable=True)

    # Google Calendar
    google_calendar_access_token = Column(Text, nullable=True)  # Encrypted
    google_calendar_id = Column(String(500), nullable=True)

    # Selection pricing
    minimum_package_price = Column(Float, default=300.0, nullable=False)
    package_photo_count = Column(Integer, default=10, nullable=False)
    extra_photo_price = Column(Float, default=30.0, nullable=False)
    # Share of the minimum package price charged when a client books online; 0 disables it
    advance_payment_percentage = Column(Integer, default=50, nullable=False)

    # WhatsApp template with {{placeholders}}; null uses the built-in default
    booking_message_template = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    events = relationship("Event", back_populates="photographer", cascade="all, delete-orphan")
    clients = relationship("Client", back_populates="photographer", cascade="all, delete-orphan")


class Client(Base):
    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    photographer_id = Column(String(36), ForeignKey("photographers.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    photographer = relationship("Photographer", back_populates="clients")


class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    photographer_id = Column(String(36), ForeignKey("photographers.id"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True)
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=False)
    client_phone = Column(String(50), nullable=False)
    session_type = Column(String(100), nullable=True)  # gestante, aniversario, formatura, ...
    event_date = Column(DateTime, nullable=False)
    location = Column(String(500), nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(String(50), default="scheduled")  # scheduled, in-progress, completed, cancelled

    # Google Calendar integration
    google_calendar_event_id = Column(String(500), nullable=True, index=True)

    created_at = Column(DateTime, server_default=func.now())

    photographer = relationship("Photographer", back_populates="events")
    albums = relationship(
        "Album", back_populates="event", cascade="all, delete-orphan", order_by="Album.created_at"
    )
    orders = relationship("Order", back_populates="event", cascade="all, delete-orphan")


class Album(Base):
    __tablename__ = "albums"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    share_token = Column(String(64), unique=True, index=True, nullable=False, default=generate_share_token)
    is_active = Column(Boolean, default=True, nullable=False)
    expires_at = Column(DateTime, nullable=True)

    # Set by the payment webhook once an order for this event is paid
    payment_status = Column(String(20), default="unpaid", nullable=False)  # unpaid, paid
    paid_at = Column(DateTime, nullable=True)
    paid_order_id = Column(String(36), nullable=True)

    created_at = Column(DateTime, server_default=func.now())

    event = relationship("Event", back_populates="albums")
    photos = relationship(
        "Photo", back_populates="album", cascade="all, delete-orphan", order_by="Photo.filename"
    )


class Photo(Base):
    __tablename__ = "photos"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    album_id = Column(String(36), ForeignKey("albums.id", ondelete="CASCADE"), nullable=False, index=True)
    filename = Column(String(500), nullable=False)
    # No image processing happens: all three variants point to the uploaded file
    original_path = Column(String(1000), nullable=False)
    thumbnail_path = Column(String(1000), nullable=False)
    watermarked_path = Column(String(1000), nullable=False)
    is_selected = Column(Boolean, default=False, nullable=False)
    price = Column(Float, default=25.0, nullable=False)
    photo_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    album = relationship("Album", back_populates="photos")


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    client_email = Column(String(255), nullable=False)
    selected_photos = Column(JSON, nullable=False, default=list)  # Photo IDs
    total_amount = Column(Float, nullable=False)
    status = Column(String(20), default="pending", nullable=False)  # pending, paid, cancelled, expired
    # Provider payment id; the join key used by the payment webhook
    payment_intent_id = Column(String(255), nullable=True, index=True)
    # Normalized reference sent to the provider; secondary lookup when payment_intent_id misses
    external_reference = Column(String(255), nullable=True, index=True)
    order_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    event = relationship("Event", back_populates="orders")


class WebhookLog(Base):
    """Append-only audit trail of inbound and outbound webhook interactions"""

    __tablename__ = "webhook_logs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    event_type = Column(String(255), nullable=False, index=True)
    # Owning studio when known; entries without one are platform-level
    photographer_id = Column(String(36), nullable=True, index=True)
    payload = Column(JSON, nullable=False)
    response = Column(JSON, nullable=True)
    status = Column(String(20), nullable=False)  # success, failed
    created_at = Column(DateTime, server_default=func.now())


class ApiAccess(Base):
    __tablename__ = "api_access"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(255), unique=True, index=True, nullable=False)
    api_key = Column(String(128), unique=True, index=True, nullable=False, default=generate_api_key)
    webhook_url = Column(String(1000), nullable=True)
    rate_limit = Column(Integer, default=1000)
    created_at = Column(DateTime, server_default=func.now())
    last_used_at = Column(DateTime, nullable=True)
