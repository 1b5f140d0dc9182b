"""Admin refunds router"""

from fastapi import APIRouter, Depends

from ...auth import AuthUser, require_admin
from ...backend_client import BackendClient, get_backend_client
from .service import RefundAdminService

router = APIRouter(prefix="/admin/refunds", tags=["Admin"])


def get_refund_admin_service(client: BackendClient = Depends(get_backend_client)) -> RefundAdminService:
    """Dependency injection for RefundAdminService"""
    return RefundAdminService(client)


@router.get("")
async def refunds_overview(
    admin: AuthUser = Depends(require_admin),
    service: RefundAdminService = Depends(get_refund_admin_service),
):
    return await service.overview(admin.token)


@router.get("/requests")
async def list_refund_requests(
    admin: AuthUser = Depends(require_admin),
    service: RefundAdminService = Depends(get_refund_admin_service),
):
    return {"refunds": await service.all_requests(admin.token)}


@router.get("/credits")
async def list_credits(
    admin: AuthUser = Depends(require_admin),
    service: RefundAdminService = Depends(get_refund_admin_service),
):
    return {"credits": await service.all_credits(admin.token)}


@router.get("/stats")
async def refund_stats(
    admin: AuthUser = Depends(require_admin),
    service: RefundAdminService = Depends(get_refund_admin_service),
):
    return await service.stats(admin.token)


@router.post("/{refund_id}/approve")
async def approve_refund(
    refund_id: str,
    admin: AuthUser = Depends(require_admin),
    service: RefundAdminService = Depends(get_refund_admin_service),
):
    return await service.approve(refund_id, admin.token)


@router.post("/{refund_id}/reject")
async def reject_refund(
    refund_id: str,
    admin: AuthUser = Depends(require_admin),
    service: RefundAdminService = Depends(get_refund_admin_service),
):
    return await service.reject(refund_id, admin.token)
