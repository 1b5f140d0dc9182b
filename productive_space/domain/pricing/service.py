import logging

from ...backend_client import BackendClient, BackendError
from ...cache import Cache
from ...config import DEFAULT_HOURLY_RATES, PRICING_CACHE_TTL

logger = logging.getLogger(__name__)


def default_pricing() -> dict:
    return {
        role: {"oneHourRate": float(rate), "overOneHourRate": float(rate)}
        for role, rate in DEFAULT_HOURLY_RATES.items()
    }


class PricingService:
    """Hourly rates per member type for a location"""

    def __init__(self, client: BackendClient, cache: Cache):
        self.client = client
        self.cache = cache

    async def for_location(self, location: str) -> dict:
        cache_key = f"pricing:{location}"
        cached = self.cache.get(cache_key)
        if cached:
            return cached

        try:
            result = await self.client.get(f"/pricing/{location}")
        except BackendError as e:
            logger.warning(f"⚠️ Using default pricing for {location}: {e.detail}")
            return default_pricing()

        data = result.get("data") if isinstance(result, dict) else None
        if not isinstance(data, dict) or not data:
            logger.warning(f"⚠️ Pricing for {location} missing from response, using defaults")
            return default_pricing()

        pricing = {
            role: data.get(role) or fallback
            for role, fallback in default_pricing().items()
        }
        self.cache.set(cache_key, pricing, PRICING_CACHE_TTL)
        return pricing

    def invalidate(self, location: str) -> bool:
        return self.cache.delete(f"pricing:{location}")
