"""Payment repository - Database operations for orders and their payment state"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Album, Event, Order, generate_uuid
from .references import normalize_reference


class OrderRepository:
    """Repository for order database operations"""

    @staticmethod
    def create_order(
        db: Session,
        event_id: str,
        client_email: str,
        selected_photos: list[str],
        total_amount: float,
        payment_intent_id: Optional[str] = None,
        external_reference: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> Order:
        """Create a pending order; its lookup reference is fixed here"""
        order_id = generate_uuid()
        order = Order(
            id=order_id,
            event_id=event_id,
            client_email=client_email,
            selected_photos=list(selected_photos),
            total_amount=total_amount,
            status="pending",
            payment_intent_id=payment_intent_id,
            external_reference=normalize_reference(
                external_reference or payment_intent_id or f"order_{order_id}"
            ),
            order_metadata=metadata or {},
        )
        db.add(order)
        db.commit()
        db.refresh(order)
        return order

    @staticmethod
    def get_order_by_id(db: Session, order_id: str) -> Optional[Order]:
        return db.query(Order).filter(Order.id == order_id).first()

    @staticmethod
    def get_order_by_payment_intent_id(db: Session, payment_intent_id: str) -> Optional[Order]:
        """Exact match on the provider payment id"""
        return (
            db.query(Order)
            .filter(Order.payment_intent_id == payment_intent_id)
            .order_by(Order.created_at.asc())
            .first()
        )

    @staticmethod
    def get_order_by_external_reference(db: Session, reference: str) -> Optional[Order]:
        """Secondary lookup on the normalized external reference"""
        return (
            db.query(Order)
            .filter(Order.external_reference == reference)
            .order_by(Order.created_at.desc())
            .first()
        )

    @staticmethod
    def get_orders_for_photographer(
        db: Session, photographer_id: str, status: Optional[str] = None
    ) -> list[Order]:
        query = db.query(Order).join(Event, Order.event_id == Event.id).filter(
            Event.photographer_id == photographer_id
        )
        if status:
            query = query.filter(Order.status == status)
        return query.order_by(Order.created_at.desc()).all()

    @staticmethod
    def get_order_for_photographer(db: Session, order_id: str, photographer_id: str) -> Optional[Order]:
        return (
            db.query(Order)
            .join(Event, Order.event_id == Event.id)
            .filter(Order.id == order_id, Event.photographer_id == photographer_id)
            .first()
        )

    @staticmethod
    def set_payment_intent(db: Session, order: Order, payment_intent_id: str) -> Order:
        order.payment_intent_id = payment_intent_id
        db.commit()
        db.refresh(order)
        return order

    @staticmethod
    def apply_payment_update(
        db: Session,
        order: Order,
        status: str,
        payment_intent_id: str,
        metadata_updates: dict,
    ) -> Order:
        """Write the reconciled status; metadata is merged, never replaced"""
        merged = dict(order.order_metadata or {})
        merged.update(metadata_updates)

        order.status = status
        order.payment_intent_id = payment_intent_id
        order.order_metadata = merged
        db.commit()
        db.refresh(order)
        return order

    @staticmethod
    def mark_event_album_paid(db: Session, order: Order) -> Optional[Album]:
        """Flag the order's source album as paid, else the first album of its event"""
        event = db.query(Event).filter(Event.id == order.event_id).first()
        if not event:
            return None

        album = None
        source_album_id = (order.order_metadata or {}).get("album_id")
        if source_album_id:
            album = db.query(Album).filter(Album.id == source_album_id, Album.event_id == event.id).first()
        if album is None:
            album = (
                db.query(Album)
                .filter(Album.event_id == event.id)
                .order_by(Album.created_at.asc(), Album.id.asc())
                .first()
            )
        if not album:
            return None

        if album.payment_status != "paid":
            album.payment_status = "paid"
            album.paid_at = datetime.utcnow()
        album.paid_order_id = order.id
        db.commit()
        db.refresh(album)
        return album
