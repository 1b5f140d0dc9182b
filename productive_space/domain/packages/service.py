"""
Package purchase flow (/buy-pass): browse packages by role, submit
customer details, pay through HitPay, confirm on return.
"""

import asyncio
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import HTTPException

from ...auth import AuthUser
from ...backend_client import BackendClient, BackendError
from ...cache import Cache
from ...config import SELECTED_PACKAGE_TTL
from ...shared.validators import to_decimal, validate_member_role
from ...timezone_utils import parse_utc
from ..payments.fees import FeeSettings, format_currency, price_breakdown
from ..payments.hitpay_service import frontend_url
from .schemas import CustomerInfo, PurchaseRequest

logger = logging.getLogger(__name__)

ROLE_ERROR_MESSAGES = {
    500: "Server error occurred while fetching packages",
    403: "Access denied. Please check your permissions",
}
PURCHASE_ERROR_MESSAGES = {
    400: "Invalid purchase data. Please check your information",
    404: "Package not found or no longer available",
    409: "Package is out of stock or unavailable",
    500: "Server error occurred during purchase. Please try again",
}
CONFIRM_ERROR_MESSAGES = {
    400: "Invalid confirmation data. Please check your information",
    404: "Package purchase not found",
    500: "Server error occurred during confirmation. Please try again",
}
FETCH_ALL_ERROR = "Failed to load packages. Please try again"


def subtotal(package: dict, quantity: int) -> Decimal:
    """(price + outlet fee) x quantity"""
    return (to_decimal(package.get("price")) + to_decimal(package.get("outletFee"))) * quantity


def normalize_user_package(pkg: dict, now: datetime) -> dict:
    """Flatten a purchase record; catalog fields may sit under `Package`"""
    catalog = pkg.get("Package") or {}
    expires_at = pkg.get("expiresAt")
    return {
        "id": pkg.get("id"),
        "orderId": pkg.get("orderId"),
        "packageId": pkg.get("packageId"),
        "packageName": catalog.get("name") or pkg.get("packageName"),
        "packageType": catalog.get("packageType") or pkg.get("packageType"),
        "targetRole": catalog.get("targetRole") or pkg.get("targetRole"),
        "description": catalog.get("description") or pkg.get("description"),
        "passCount": catalog.get("passCount") or pkg.get("passCount"),
        "validityDays": catalog.get("validityDays") or pkg.get("validityDays"),
        "quantity": pkg.get("quantity"),
        "totalAmount": pkg.get("totalAmount"),
        "paymentStatus": pkg.get("paymentStatus"),
        "paymentMethod": pkg.get("paymentMethod"),
        "activatedAt": pkg.get("activatedAt"),
        "expiresAt": expires_at,
        "isExpired": bool(pkg.get("isExpired")) or (bool(expires_at) and parse_utc(now) > parse_utc(expires_at)),
        "totalPasses": pkg.get("totalPasses") or catalog.get("passCount") or 0,
        "usedPasses": pkg.get("usedPasses") or 0,
        "remainingPasses": pkg.get("remainingPasses") or catalog.get("passCount") or 0,
        "expiredPasses": pkg.get("expiredPasses") or 0,
        "createdAt": pkg.get("createdAt"),
    }


class PackageService:
    def __init__(self, client: BackendClient, cache: Cache):
        self.client = client
        self.cache = cache

    # ========================================================================
    # CATALOG
    # ========================================================================

    async def packages_by_role(self, role: str) -> list[dict]:
        try:
            role = validate_member_role(role)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        try:
            data = await self.client.get(f"/new-packages/role/{role}")
        except BackendError as e:
            if e.status_code == 404:
                raise HTTPException(status_code=404, detail=f"No packages found for {role} role") from e
            if e.status_code in ROLE_ERROR_MESSAGES:
                raise HTTPException(status_code=e.status_code, detail=ROLE_ERROR_MESSAGES[e.status_code]) from e
            raise

        nested = data.get("data") if isinstance(data.get("data"), dict) else {}
        packages = nested.get("packages") or data.get("packages") or []
        logger.info(f"📦 Found {len(packages)} packages for {role}")
        return packages

    async def packages_for_roles(self, roles: list[str]) -> dict[str, list[dict]]:
        """Fetch several roles at once; any failure fails the whole page"""
        try:
            roles = [validate_member_role(role) for role in roles]
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        try:
            results = await asyncio.gather(*(self.packages_by_role(role) for role in roles))
        except HTTPException as e:
            logger.error(f"❌ Failed to fetch packages for {roles}: {e.detail}")
            raise HTTPException(status_code=502, detail=FETCH_ALL_ERROR) from e
        return dict(zip(roles, results))

    async def get_package(self, package_id: str) -> dict:
        data = await self.client.get(f"/new-packages/{package_id}")
        package = data.get("package")
        if not package:
            raise HTTPException(status_code=404, detail="Package not found or no longer available")
        return package

    # ========================================================================
    # SELECTION (kept between wizard steps)
    # ========================================================================

    def remember_selection(self, user_id: str, package: dict, quantity: int) -> dict:
        selection = {"package": package, "quantity": quantity}
        self.cache.set(f"selected_package:{user_id}", selection, SELECTED_PACKAGE_TTL)
        return selection

    def selected_package(self, user_id: str) -> Optional[dict]:
        return self.cache.get(f"selected_package:{user_id}")

    def clear_selection(self, user_id: str) -> bool:
        return self.cache.delete(f"selected_package:{user_id}")

    # ========================================================================
    # PURCHASE WIZARD
    # ========================================================================

    async def purchase(self, user: AuthUser, request: PurchaseRequest) -> dict:
        """Step 1: create a pending purchase"""
        if not user.id or not request.packageId or not request.quantity:
            raise HTTPException(status_code=400, detail="Missing required purchase information")
        if request.quantity < 1 or request.quantity > 10:
            raise HTTPException(status_code=400, detail="Quantity must be between 1 and 10")

        package = await self.get_package(request.packageId)
        total = subtotal(package, request.quantity)

        payload = {
            "userId": user.id,
            "packageId": request.packageId,
            "quantity": request.quantity,
            "customerInfo": request.customerInfo.model_dump(exclude_none=True),
            "totalAmount": float(total),
        }
        try:
            data = await self.client.post("/new-packages/purchase", json=payload, token=user.token)
        except BackendError as e:
            message = PURCHASE_ERROR_MESSAGES.get(e.status_code)
            if message:
                raise HTTPException(status_code=e.status_code, detail=message) from e
            raise

        result = data.get("data") or {}
        user_package_id = result.get("userPackageId") or result.get("purchaseId") or result.get("id")
        order_id = result.get("orderId")
        if not order_id or not user_package_id:
            logger.error(f"❌ Purchase for user {user.id} returned no order reference: {result}")
            raise HTTPException(status_code=502, detail="Purchase response missing order information")

        self.cache.set(
            f"pending_purchase:{user.id}:{user_package_id}",
            {"orderId": order_id, "subtotal": str(total)},
            SELECTED_PACKAGE_TTL,
        )
        logger.info(f"✅ Pending purchase {order_id} created for user {user.id}")
        return {
            "orderId": order_id,
            "userPackageId": user_package_id,
            "packageName": result.get("packageName") or package.get("name"),
            "quantity": request.quantity,
            "totalAmount": to_decimal(result.get("totalAmount"), str(total)),
            "paymentStatus": result.get("paymentStatus") or "PENDING",
        }

    async def pending_subtotal(self, user: AuthUser, user_package_id: str, order_id: str) -> Decimal:
        """Amount owed for an unpaid purchase, as priced when it was created"""
        pending = self.cache.get(f"pending_purchase:{user.id}:{user_package_id}")
        if pending and pending.get("orderId") == order_id:
            return to_decimal(pending.get("subtotal"))

        data = await self.client.get(f"/new-packages/user/{user.id}", token=user.token)
        for record in data.get("purchases") or data.get("packages") or []:
            if record.get("id") != user_package_id or record.get("orderId") != order_id:
                continue
            if str(record.get("paymentStatus") or "PENDING").upper() != "PENDING":
                raise HTTPException(status_code=409, detail="Package purchase is already paid")
            return to_decimal(record.get("totalAmount"))
        raise HTTPException(status_code=404, detail="Package purchase not found")

    async def create_payment(
        self,
        user: AuthUser,
        user_package_id: str,
        order_id: str,
        method,
        customer: CustomerInfo,
        settings: FeeSettings,
    ) -> dict:
        """Step 2: HitPay checkout URL for a pending purchase, transaction fee included"""
        breakdown = price_breakdown(
            await self.pending_subtotal(user, user_package_id, order_id), method, settings
        )
        payload = {
            "userPackageId": user_package_id,
            "orderId": order_id,
            "amount": format_currency(breakdown.total),
            "paymentMethod": breakdown.method.api_value,
            "customerInfo": {"name": customer.name, "email": customer.email, "phone": customer.phone},
            "redirectUrl": frontend_url(
                "/buy-pass", {"step": 3, "orderId": order_id, "userPackageId": user_package_id}
            ),
            "webhookUrl": self.client.url_for("/packages/webhook"),
        }
        data = await self.client.post("/packages/payment", json=payload, token=user.token)
        url = data.get("url")
        if not url:
            raise HTTPException(status_code=502, detail=data.get("message") or "No payment URL received")
        return {"paymentUrl": url, "totalAmount": breakdown.total, "transactionFee": breakdown.fee}

    async def confirm(self, user: AuthUser, user_package_id: str, order_id: str, hitpay_reference: str) -> dict:
        """Step 3: activate the purchase; a repeat confirmation is not an error"""
        try:
            data = await self.client.post(
                "/packages/confirm",
                json={
                    "userPackageId": user_package_id,
                    "orderId": order_id,
                    "hitpayReference": hitpay_reference,
                },
                token=user.token,
            )
        except BackendError as e:
            if e.status_code == 409:
                logger.info(f"ℹ️ Package purchase {order_id} already confirmed")
                self.finish_purchase(user.id, user_package_id)
                return {"alreadyConfirmed": True, "message": "Package purchase already confirmed"}
            message = CONFIRM_ERROR_MESSAGES.get(e.status_code)
            if message:
                raise HTTPException(status_code=e.status_code, detail=message) from e
            raise

        self.finish_purchase(user.id, user_package_id)
        logger.info(f"✅ Package purchase {order_id} confirmed")
        return {"alreadyConfirmed": False, **(data.get("data") or {})}

    def finish_purchase(self, user_id: str, user_package_id: str) -> None:
        self.clear_selection(user_id)
        self.cache.delete(f"pending_purchase:{user_id}:{user_package_id}")

    # ========================================================================
    # OWNED PACKAGES
    # ========================================================================

    async def user_packages(self, user: AuthUser, now: datetime) -> list[dict]:
        data = await self.client.get(f"/new-packages/user/{user.id}", token=user.token)
        raw = data.get("purchases") or data.get("packages") or []
        return [normalize_user_package(pkg, now) for pkg in raw]

    async def user_passes(self, user: AuthUser, page: int = 1, limit: int = 10) -> dict:
        data = await self.client.get(
            f"/new-packages/user/{user.id}/passes",
            params={"page": page, "limit": limit},
            token=user.token,
        )
        return {"passes": data.get("passes") or [], "pagination": data.get("pagination")}

    async def use_pass(
        self, user: AuthUser, pass_id: str, booking_id: str, location_id: str, start: str, end: str
    ) -> dict:
        return await self.client.post(
            "/new-packages/passes/use",
            json={
                "userId": user.id,
                "passId": pass_id,
                "bookingId": booking_id,
                "locationId": location_id,
                "startTime": start,
                "endTime": end,
            },
            token=user.token,
        )

    async def purchase_history(self, user: AuthUser) -> list[dict]:
        data = await self.client.get(f"/new-packages/user/{user.id}/history", token=user.token)
        return data.get("history") or []

    # ========================================================================
    # ADMIN
    # ========================================================================

    async def admin_list(self, token: str, params: Optional[dict] = None) -> dict:
        return await self.client.get("/new-packages/admin/all", params=params, token=token)

    async def admin_create(self, package: dict, token: str) -> dict:
        return await self.client.post("/new-packages/admin/create", json=package, token=token)

    async def admin_update(self, package_id: str, changes: dict, token: str) -> dict:
        return await self.client.put(f"/new-packages/admin/{package_id}", json=changes, token=token)

    async def admin_delete(self, package_id: str, token: str) -> dict:
        return await self.client.delete(f"/new-packages/admin/{package_id}", token=token)

    async def admin_purchases(self, token: str, params: Optional[dict] = None) -> dict:
        return await self.client.get("/new-packages/admin/purchases", params=params, token=token)
