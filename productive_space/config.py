import os
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Remote booking backend (owns bookings, pricing, refunds, door tokens)
BACKEND_BASE_URL = (
    os.getenv("NEXT_PUBLIC_BACKEND_BASE_URL")
    or os.getenv("BACKEND_BASE_URL")
    or "http://localhost:8000/api"
).rstrip("/")
BACKEND_TIMEOUT_SECONDS = float(os.getenv("BACKEND_TIMEOUT_SECONDS", "15"))

# Frontend base URL for payment redirects
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/")

# Google reCAPTCHA
RECAPTCHA_SITE_KEY = os.getenv("NEXT_PUBLIC_RECAPTCHA_SITE_KEY")
RECAPTCHA_SECRET_KEY = os.getenv("RECAPTCHA_SECRET_KEY")

# Cache: "redis" (falls back to memory when Redis is down) or "memory"
CACHE_BACKEND = os.getenv("CACHE_BACKEND", "redis").lower()
PAYMENT_SETTINGS_CACHE_TTL = int(os.getenv("PAYMENT_SETTINGS_CACHE_TTL", "300"))  # 5 minutes
PRICING_CACHE_TTL = int(os.getenv("PRICING_CACHE_TTL", "300"))
SELECTED_PACKAGE_TTL = int(os.getenv("SELECTED_PACKAGE_TTL", "86400"))  # 1 day
USER_CACHE_TTL = int(os.getenv("USER_CACHE_TTL", "300"))

# Extension seat check
SEAT_CHECK_DEBOUNCE_MS = int(os.getenv("SEAT_CHECK_DEBOUNCE_MS", "500"))

DEFAULT_LOCATION = os.getenv("DEFAULT_LOCATION", "Kovan")
CURRENCY = "SGD"

# Fallback payment settings, used when /payment-settings is unreachable
DEFAULT_PAYNOW_FEE = Decimal(os.getenv("DEFAULT_PAYNOW_FEE", "0.20"))
DEFAULT_CARD_FEE_PERCENTAGE = Decimal(os.getenv("DEFAULT_CARD_FEE_PERCENTAGE", "5.0"))
# PayNow fee only applies below this amount
PAYNOW_FEE_THRESHOLD = Decimal("10.00")

# Fallback hourly rates per member type
DEFAULT_HOURLY_RATES = {
    "student": Decimal("3.00"),
    "member": Decimal("4.00"),
    "tutor": Decimal("5.00"),
}

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"
IS_PRODUCTION = os.getenv("ENVIRONMENT", "development").lower() == "production"

ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "https://productivespace.sg,https://www.productivespace.sg,http://localhost:3000",
).split(",")
