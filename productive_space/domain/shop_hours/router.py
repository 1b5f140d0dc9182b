"""Shop hours router - public schedule and admin maintenance"""

import logging

from fastapi import APIRouter, Depends

from ...auth import AuthUser, require_admin
from ...backend_client import BackendClient, get_backend_client
from .schemas import AvailabilityCheck, ClosureCreate, ClosureUpdate, OperatingHoursUpdate
from .service import ShopHoursService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shop-hours", tags=["Shop Hours"])
admin_router = APIRouter(prefix="/admin/shop-hours", tags=["Admin"])


def get_shop_hours_service(client: BackendClient = Depends(get_backend_client)) -> ShopHoursService:
    """Dependency injection for ShopHoursService"""
    return ShopHoursService(client)


@router.get("/{location}")
async def get_schedule(
    location: str,
    service: ShopHoursService = Depends(get_shop_hours_service),
):
    """Weekly hours and upcoming closures for one outlet"""
    return await service.schedule(location)


@router.post("/check-availability")
async def check_availability(
    body: AvailabilityCheck,
    service: ShopHoursService = Depends(get_shop_hours_service),
):
    return await service.check_availability(body.location, body.startAt, body.endAt)


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.put("/operating/{hours_id}")
async def update_operating_hours(
    hours_id: str,
    body: OperatingHoursUpdate,
    admin: AuthUser = Depends(require_admin),
    service: ShopHoursService = Depends(get_shop_hours_service),
):
    return await service.update_operating_hours(
        hours_id, body.openTime, body.closeTime, body.isActive, admin.token
    )


@admin_router.post("/closures")
async def create_closure(
    body: ClosureCreate,
    admin: AuthUser = Depends(require_admin),
    service: ShopHoursService = Depends(get_shop_hours_service),
):
    return await service.create_closure(body.location, body.startDate, body.endDate, body.reason, admin.token)


@admin_router.put("/closures/{closure_id}")
async def update_closure(
    closure_id: str,
    body: ClosureUpdate,
    admin: AuthUser = Depends(require_admin),
    service: ShopHoursService = Depends(get_shop_hours_service),
):
    return await service.update_closure(
        closure_id, body.startDate, body.endDate, body.reason, body.isActive, admin.token
    )


@admin_router.delete("/closures/{closure_id}")
async def delete_closure(
    closure_id: str,
    admin: AuthUser = Depends(require_admin),
    service: ShopHoursService = Depends(get_shop_hours_service),
):
    await service.delete_closure(closure_id, admin.token)
    return {"success": True}
