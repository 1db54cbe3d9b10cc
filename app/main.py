import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import all models to ensure they're registered with SQLAlchemy Base
from . import (
    models,  # noqa: F401
    models_billing,  # noqa: F401
)
from .database import Base, engine
from .domain.albums import public_router as public_albums_router
from .domain.albums import router as albums_router
from .domain.clients import router as clients_router
from .domain.events import public_router as public_booking_router
from .domain.events import router as events_router
from .domain.payments import public_router as public_orders_router
from .domain.payments import router as orders_router
from .domain.payments import webhooks_router as mercadopago_webhooks_router
from .domain.subscriptions import router as subscriptions_router
from .domain.subscriptions import webhooks_router as subscription_webhooks_router
from .routes.integrations import router as integrations_router
from .routes.whatsapp import router as whatsapp_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Triagem API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log the failing path and return the standard 422 body"""
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    try:
        response = await call_next(request)
        return response
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise


# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:3000",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
# Public album routes go first so /albums/public/... never reaches /albums/{album_id}
app.include_router(public_albums_router)
app.include_router(public_booking_router)
app.include_router(public_orders_router)
app.include_router(albums_router)
app.include_router(events_router)
app.include_router(clients_router)
app.include_router(orders_router)
app.include_router(subscriptions_router)
app.include_router(integrations_router)
app.include_router(whatsapp_router)
app.include_router(mercadopago_webhooks_router)
app.include_router(subscription_webhooks_router)


@app.get("/")
def root():
    return {"message": "Triagem API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
