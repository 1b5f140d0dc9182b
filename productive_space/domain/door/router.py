"""Door router - booking holders and admins request door access links"""

from datetime import datetime

from fastapi import APIRouter, Depends, Request

from ...auth import AuthUser, get_current_user, require_admin
from ...backend_client import BackendClient, get_backend_client
from ...cache import Cache, get_cache
from ...recaptcha import ensure_recaptcha
from ...timezone_utils import utc_now
from .schemas import AdminOpenLinkRequest, OpenLinkRequest, SendAccessLinkRequest
from .service import DoorService

router = APIRouter(prefix="/door", tags=["Door"])


def get_door_service(client: BackendClient = Depends(get_backend_client)) -> DoorService:
    """Dependency injection for DoorService"""
    return DoorService(client)


@router.post("/open-link")
async def generate_open_link(
    body: OpenLinkRequest,
    request: Request,
    service: DoorService = Depends(get_door_service),
    cache: Cache = Depends(get_cache),
):
    """Public: anyone holding a booking reference can ask for a link"""
    client_ip = request.client.host if request.client else None
    await ensure_recaptcha(body.recaptchaToken, client_ip, cache)
    return await service.generate_open_link(body.bookingRef)


@router.post("/send-access-link")
async def send_access_link(
    body: SendAccessLinkRequest,
    user: AuthUser = Depends(get_current_user),
    service: DoorService = Depends(get_door_service),
):
    return await service.send_access_link(body.bookingRef, body.email, user.token)


@router.post("/admin/open-link")
async def admin_generate_open_link(
    body: AdminOpenLinkRequest,
    admin: AuthUser = Depends(require_admin),
    service: DoorService = Depends(get_door_service),
    now: datetime = Depends(utc_now),
):
    return await service.admin_generate_open_link(
        body.seatNumber, body.startTime, body.endTime, now, admin.token
    )
