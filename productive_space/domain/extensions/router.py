"""Extension router - /extend/{booking_id} wizard and live seat checks"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect

from ...auth import AuthUser, get_current_user
from ...backend_client import BackendClient, BackendError, get_backend_client
from ...cache import Cache, get_cache
from ...timezone_utils import parse_utc
from ..bookings.service import BookingService
from ..payments.hitpay_service import HitPayService
from ..payments.router import get_payment_settings_service
from ..payments.settings_service import PaymentSettingsService
from ..pricing.service import PricingService
from . import calculator
from .schemas import ExtensionConfirmRequest, ExtensionQuoteRequest, ExtensionSubmitRequest
from .service import ExtensionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/extend", tags=["Extensions"])


def get_extension_service(
    client: BackendClient = Depends(get_backend_client),
    cache: Cache = Depends(get_cache),
) -> ExtensionService:
    """Dependency injection for ExtensionService"""
    return ExtensionService(
        client,
        bookings=BookingService(client),
        pricing=PricingService(client, cache),
        hitpay=HitPayService(client),
    )


@router.get("/{booking_id}")
async def get_extension_context(
    booking_id: str,
    user: AuthUser = Depends(get_current_user),
    service: ExtensionService = Depends(get_extension_service),
):
    return await service.load(booking_id, user.token)


@router.get("/{booking_id}/seats")
async def check_extension_seats(
    booking_id: str,
    newEndAt: datetime,
    selected: Optional[list[str]] = Query(None),
    user: AuthUser = Depends(get_current_user),
    service: ExtensionService = Depends(get_extension_service),
):
    """Single seat check for a candidate end time"""
    booking = await service.bookings.get_booking(booking_id, user.token)
    result = await service.check_seats(booking, newEndAt)
    selected_seats = selected if selected is not None else result.selected_seats
    return {
        **result.to_dict(),
        "canSubmit": calculator.can_submit(
            parse_utc(booking["endAt"]),
            newEndAt,
            result.requires_seat_selection,
            selected_seats,
            calculator.booking_pax(booking),
        ),
    }


@router.websocket("/{booking_id}/seats/ws")
async def stream_extension_seats(
    websocket: WebSocket,
    booking_id: str,
    token: str = Query(...),
    service: ExtensionService = Depends(get_extension_service),
):
    """
    Live seat checks while the customer edits the end time.

    Client sends {"newEndAt": "..."} on every edit; the server debounces,
    drops superseded checks and replies with {"type": "seat_check", ...}.
    """
    await websocket.accept()

    try:
        booking = await service.bookings.get_booking(booking_id, token)
    except HTTPException as e:
        await websocket.send_json({"type": "error", "detail": e.detail})
        await websocket.close(code=1008)
        return

    checker = service.seat_checker(booking)
    original_end = parse_utc(booking["endAt"])
    senders: set[asyncio.Task] = set()

    async def publish(check: asyncio.Task, new_end_at: str):
        try:
            result = await check
        except asyncio.CancelledError:
            return
        except BackendError as e:
            await websocket.send_json({"type": "error", "newEndAt": new_end_at, "detail": e.detail})
            return
        await websocket.send_json({"type": "seat_check", "newEndAt": new_end_at, **result.to_dict()})

    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await websocket.send_json({"type": "error", "detail": "Invalid message"})
                continue
            new_end_at = message.get("newEndAt") if isinstance(message, dict) else None
            try:
                new_end = parse_utc(new_end_at)
            except (AttributeError, TypeError, ValueError):
                await websocket.send_json({"type": "error", "detail": "Invalid newEndAt"})
                continue

            sender = asyncio.create_task(publish(checker.submit(original_end, new_end), new_end_at))
            senders.add(sender)
            sender.add_done_callback(senders.discard)
    except WebSocketDisconnect:
        logger.info(f"🔌 Seat check stream closed for booking {booking_id}")
    finally:
        await checker.aclose()
        for sender in list(senders):
            sender.cancel()


@router.post("/{booking_id}/quote")
async def quote_extension(
    booking_id: str,
    body: ExtensionQuoteRequest,
    user: AuthUser = Depends(get_current_user),
    service: ExtensionService = Depends(get_extension_service),
    settings_service: PaymentSettingsService = Depends(get_payment_settings_service),
):
    booking = await service.bookings.get_booking(booking_id, user.token)
    settings = await settings_service.get_settings()
    return await service.quote(
        booking, user, body.newEndAt, body.creditAmount, body.paymentMethod, settings
    )


@router.post("/{booking_id}/submit")
async def submit_extension(
    booking_id: str,
    body: ExtensionSubmitRequest,
    user: AuthUser = Depends(get_current_user),
    service: ExtensionService = Depends(get_extension_service),
    settings_service: PaymentSettingsService = Depends(get_payment_settings_service),
):
    booking = await service.bookings.get_booking(booking_id, user.token)
    settings = await settings_service.get_settings()
    return await service.submit(booking, user, body, settings)


@router.post("/{booking_id}/confirm")
async def confirm_extension(
    booking_id: str,
    body: ExtensionConfirmRequest,
    user: AuthUser = Depends(get_current_user),
    service: ExtensionService = Depends(get_extension_service),
):
    """Called when the customer returns from HitPay"""
    return await service.confirm_after_payment(booking_id, body, user.token)
