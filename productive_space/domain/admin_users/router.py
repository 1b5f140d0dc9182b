"""Admin users router"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...auth import AuthUser, require_admin
from ...backend_client import BackendClient, get_backend_client
from .schemas import DeleteRequest, RoleChange, StudentVerification, SuspendRequest, UserUpdate
from .service import AdminUserService

router = APIRouter(prefix="/admin/users", tags=["Admin"])


def get_admin_user_service(client: BackendClient = Depends(get_backend_client)) -> AdminUserService:
    """Dependency injection for AdminUserService"""
    return AdminUserService(client)


@router.get("")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    memberType: Optional[str] = None,
    studentVerificationStatus: Optional[str] = None,
    sortBy: Optional[str] = None,
    sortOrder: Optional[str] = Query(None, pattern="^(asc|desc)$"),
    includeStats: Optional[bool] = None,
    admin: AuthUser = Depends(require_admin),
    service: AdminUserService = Depends(get_admin_user_service),
):
    filters = {
        "page": page,
        "limit": limit,
        "search": search,
        "memberType": memberType,
        "studentVerificationStatus": studentVerificationStatus,
        "sortBy": sortBy,
        "sortOrder": sortOrder,
        "includeStats": includeStats,
    }
    return await service.list_users(filters, admin.token)


@router.get("/dashboard")
async def user_stats(
    admin: AuthUser = Depends(require_admin),
    service: AdminUserService = Depends(get_admin_user_service),
):
    return await service.stats(admin.token)


@router.get("/analytics")
async def user_analytics(
    period: str = Query("month", pattern="^(week|month|quarter|year)$"),
    admin: AuthUser = Depends(require_admin),
    service: AdminUserService = Depends(get_admin_user_service),
):
    return await service.analytics(period, admin.token)


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    admin: AuthUser = Depends(require_admin),
    service: AdminUserService = Depends(get_admin_user_service),
):
    return await service.get_user(user_id, admin.token)


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    body: UserUpdate,
    admin: AuthUser = Depends(require_admin),
    service: AdminUserService = Depends(get_admin_user_service),
):
    return await service.update_user(user_id, body.model_dump(exclude_none=True), admin.token)


@router.put("/{user_id}/role")
async def change_user_role(
    user_id: str,
    body: RoleChange,
    admin: AuthUser = Depends(require_admin),
    service: AdminUserService = Depends(get_admin_user_service),
):
    return await service.change_role(user_id, body.newRole, body.reason, admin.token)


@router.post("/{user_id}/suspend")
async def suspend_user(
    user_id: str,
    body: SuspendRequest,
    admin: AuthUser = Depends(require_admin),
    service: AdminUserService = Depends(get_admin_user_service),
):
    return await service.suspend(user_id, body.reason, admin.token)


@router.post("/{user_id}/activate")
async def activate_user(
    user_id: str,
    admin: AuthUser = Depends(require_admin),
    service: AdminUserService = Depends(get_admin_user_service),
):
    return await service.activate(user_id, admin.token)


@router.put("/{user_id}/verify")
async def verify_student(
    user_id: str,
    body: StudentVerification,
    admin: AuthUser = Depends(require_admin),
    service: AdminUserService = Depends(get_admin_user_service),
):
    return await service.verify_student(
        user_id, body.studentVerificationStatus, body.rejectionReason, admin.token
    )


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    body: Optional[DeleteRequest] = None,
    admin: AuthUser = Depends(require_admin),
    service: AdminUserService = Depends(get_admin_user_service),
):
    return await service.delete(user_id, body.reason if body else None, admin.token)
