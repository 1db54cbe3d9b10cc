import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# Frontend base URL for public album links
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Public base URL of this API, used to build Mercado Pago notification URLs
PUBLIC_API_URL = os.getenv("PUBLIC_API_URL", "http://localhost:8000").rstrip("/")

# Mercado Pago Configuration
MERCADOPAGO_API_BASE = os.getenv("MERCADOPAGO_API_BASE", "https://api.mercadopago.com").rstrip("/")
# Platform account that receives subscription payments (photographers pay the studio software)
MERCADOPAGO_PLATFORM_ACCESS_TOKEN = os.getenv("MERCADOPAGO_PLATFORM_ACCESS_TOKEN")
MERCADOPAGO_STATEMENT_DESCRIPTOR = os.getenv("MERCADOPAGO_STATEMENT_DESCRIPTOR", "TRIAGEM FOTOS")

# Subscription billing
SUBSCRIPTION_PRICE = float(os.getenv("SUBSCRIPTION_PRICE", "30.00"))
SUBSCRIPTION_DURATION_DAYS = int(os.getenv("SUBSCRIPTION_DURATION_DAYS", "30"))
TRIAL_DURATION_DAYS = int(os.getenv("TRIAL_DURATION_DAYS", "7"))
MASTER_USER_EMAILS = [
    e.strip().lower() for e in os.getenv("MASTER_USER_EMAILS", "").split(",") if e.strip()
]

# Google Calendar Configuration
GOOGLE_CALENDAR_API = os.getenv("GOOGLE_CALENDAR_API", "https://www.googleapis.com/calendar/v3").rstrip("/")
DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "America/Sao_Paulo")
SESSION_DURATION_HOURS = int(os.getenv("SESSION_DURATION_HOURS", "2"))

# Outbound HTTP calls (Mercado Pago, Google Calendar, Evolution API)
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "15"))
