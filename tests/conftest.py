import os

# Configure before the app package reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["MASTER_USER_EMAILS"] = "master@triagem.com"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event as sa_event
from sqlalchemy.exc import OperationalError

from app.database import Base, SessionLocal, engine
from app.domain.payments.router import get_mercadopago_client
from app.main import app
from app.models import Album, ApiAccess, Event, Order, Photo, Photographer
from app.security_utils import encrypt_credential
from app.services.mercadopago_client import MercadoPagoClient

API_KEY = "test-api-key"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def photographer(db):
    photographer = Photographer(
        user_id="user-1",
        business_name="Estúdio Luz",
        email="contato@estudioluz.com",
        phone="11999998888",
        studio_address="Rua das Flores, 100",
        mercadopago_access_token=encrypt_credential("APP_USR-photographer-token"),
    )
    db.add(photographer)
    db.add(ApiAccess(user_id="user-1", api_key=API_KEY))
    db.commit()
    db.refresh(photographer)
    return photographer


@pytest.fixture
def event(db, photographer):
    event = Event(
        id="e1",
        photographer_id=photographer.id,
        client_name="Maria Silva",
        client_email="maria@example.com",
        client_phone="11988887777",
        session_type="gestante",
        event_date=datetime(2026, 11, 20, 14, 0),
        location="Parque Ibirapuera",
        status="scheduled",
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


@pytest.fixture
def album(db, event):
    album = Album(event_id=event.id, name="Sessão Gestante - Maria Silva", share_token="share-token-1")
    db.add(album)
    db.commit()
    db.refresh(album)
    return album


@pytest.fixture
def photos(db, album):
    photos = [
        Photo(
            album_id=album.id,
            filename=f"IMG_{i:03d}.jpg",
            original_path=f"/uploads/IMG_{i:03d}.jpg",
            thumbnail_path=f"/uploads/IMG_{i:03d}.jpg",
            watermarked_path=f"/uploads/IMG_{i:03d}.jpg",
        )
        for i in range(1, 13)
    ]
    db.add_all(photos)
    db.commit()
    for photo in photos:
        db.refresh(photo)
    return photos


@pytest.fixture
def pending_order(db, event):
    order = Order(
        id="o1",
        event_id=event.id,
        client_email="maria@example.com",
        selected_photos=["p1", "p2"],
        total_amount=100.0,
        status="pending",
        payment_intent_id="555",
        external_reference="o1",
        order_metadata={"album_id": "a1"},
    )
    db.add(order)
    db.commit()
    db.refresh(order)
    return order


@pytest.fixture
def mp_client():
    client = MagicMock(spec=MercadoPagoClient)
    client.get_payment = AsyncMock()
    client.create_payment = AsyncMock()
    return client


@pytest.fixture
def api_client(db, mp_client):
    app.dependency_overrides[get_mercadopago_client] = lambda: mp_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(photographer):
    return {"X-API-Key": API_KEY}


@pytest.fixture
def payment_body():
    """Factory for Mercado Pago GET /v1/payments/{id} bodies"""

    def _build(amount=100.0, fees=(5.0,), **overrides):
        data = {
            "status": "approved",
            "status_detail": "accredited",
            "transaction_amount": amount,
            "fee_details": [{"type": "mercadopago_fee", "amount": fee} for fee in fees],
            "payment_method_id": "pix",
            "payer": {"email": "maria@example.com"},
            "external_reference": None,
            "metadata": {},
        }
        data.update(overrides)
        return data

    return _build


@pytest.fixture
def fail_once():
    """
    Make the next statement starting with a given prefix fail once with a
    transient connection error, on the real test engine.

    Usage: fail_once("UPDATE orders")
    """
    listeners = []

    def _arm(statement_prefix, message="upstream connect error"):
        state = {"failures": 0}

        def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            if state["failures"] == 0 and statement.startswith(statement_prefix):
                state["failures"] += 1
                raise OperationalError(statement, parameters, Exception(message))

        sa_event.listen(engine, "before_cursor_execute", _before_cursor_execute)
        listeners.append(_before_cursor_execute)
        return state

    with patch("app.utils.retry.asyncio.sleep", new_callable=AsyncMock):
        yield _arm

    for listener in listeners:
        sa_event.remove(engine, "before_cursor_execute", listener)
