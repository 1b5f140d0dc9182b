from fastapi import APIRouter, Depends

from ...backend_client import BackendClient, get_backend_client
from ...cache import Cache, get_cache
from .service import PricingService

router = APIRouter(prefix="/pricing", tags=["Pricing"])


def get_pricing_service(
    client: BackendClient = Depends(get_backend_client),
    cache: Cache = Depends(get_cache),
) -> PricingService:
    """Dependency injection for PricingService"""
    return PricingService(client, cache)


@router.get("/{location}")
async def get_location_pricing(location: str, service: PricingService = Depends(get_pricing_service)):
    return {"location": location, "data": await service.for_location(location)}
