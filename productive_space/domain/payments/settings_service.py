"""Payment settings from the backend, cached with fallback defaults"""

import logging
from decimal import Decimal, InvalidOperation

from ...backend_client import BackendClient, BackendError
from ...cache import Cache
from ...config import PAYMENT_SETTINGS_CACHE_TTL
from .fees import DEFAULT_FEE_SETTINGS, FeeSettings, PaymentMethod

logger = logging.getLogger(__name__)

CACHE_KEY = "payment_settings"


def _as_decimal(value, default: Decimal) -> Decimal:
    try:
        parsed = Decimal(str(value))
        # A zero fee counts as unset
        return parsed if parsed > 0 else default
    except (InvalidOperation, ValueError):
        return default


def parse_settings_rows(rows: list[dict]) -> FeeSettings:
    """Turn [{settingKey, settingValue, settingType}] rows into FeeSettings"""
    values = {}
    for row in rows:
        key = row.get("settingKey")
        value = row.get("settingValue")
        if row.get("settingType") == "boolean":
            value = value is True or str(value).lower() == "true"
        values[key] = value

    return FeeSettings(
        paynow_fee=_as_decimal(values.get("PAYNOW_TRANSACTION_FEE"), DEFAULT_FEE_SETTINGS.paynow_fee),
        card_fee_percentage=_as_decimal(
            values.get("CREDIT_CARD_TRANSACTION_FEE_PERCENTAGE"),
            DEFAULT_FEE_SETTINGS.card_fee_percentage,
        ),
        paynow_enabled=values.get("PAYNOW_ENABLED") is not False,
        card_enabled=values.get("CREDIT_CARD_ENABLED") is not False,
        refund_admin_fee=_as_decimal(values.get("ADMIN_REFUND_FEE"), Decimal("0")),
    )


class PaymentSettingsService:
    def __init__(self, client: BackendClient, cache: Cache):
        self.client = client
        self.cache = cache

    async def get_settings(self) -> FeeSettings:
        cached = self.cache.get(CACHE_KEY)
        if cached:
            return FeeSettings.from_dict(cached)

        try:
            result = await self.client.get("/payment-settings")
        except BackendError as e:
            logger.warning(f"⚠️ Using default payment settings: {e.detail}")
            return DEFAULT_FEE_SETTINGS

        rows = result.get("data") if isinstance(result, dict) else None
        if not rows:
            logger.warning("⚠️ Payment settings response had no data, using defaults")
            return DEFAULT_FEE_SETTINGS

        settings = parse_settings_rows(rows)
        self.cache.set(CACHE_KEY, settings.to_dict(), PAYMENT_SETTINGS_CACHE_TTL)
        return settings

    def invalidate(self) -> bool:
        return self.cache.delete(CACHE_KEY)

    async def is_method_enabled(self, method) -> bool:
        settings = await self.get_settings()
        return settings.is_enabled(PaymentMethod.parse(method))

    async def list_raw(self, token: str) -> list[dict]:
        """Admin view of the stored rows"""
        result = await self.client.get("/payment-settings", token=token)
        return result.get("data") or []

    async def bulk_update(self, settings: list[dict], token: str) -> dict:
        result = await self.client.post(
            "/payment-settings/bulk-update", json={"settings": settings}, token=token
        )
        self.invalidate()
        logger.info(f"✅ Updated {len(settings)} payment settings")
        return result
