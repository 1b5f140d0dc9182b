"""Admin user management against /booking/admin/users"""

import logging
from typing import Optional

from ...backend_client import BackendClient

logger = logging.getLogger(__name__)

BASE_PATH = "/booking/admin/users"


class AdminUserService:
    def __init__(self, client: BackendClient):
        self.client = client

    async def list_users(self, filters: dict, token: str) -> dict:
        """Unset filters are dropped from the query string"""
        params = {key: value for key, value in filters.items() if value is not None and value != ""}
        if isinstance(params.get("includeStats"), bool):
            params["includeStats"] = str(params["includeStats"]).lower()
        return await self.client.get(BASE_PATH, params=params, token=token)

    async def get_user(self, user_id: str, token: str) -> dict:
        return await self.client.get(f"{BASE_PATH}/{user_id}", token=token)

    async def update_user(self, user_id: str, changes: dict, token: str) -> dict:
        return await self.client.put(f"{BASE_PATH}/{user_id}", json=changes, token=token)

    async def change_role(self, user_id: str, new_role: Optional[str], reason: Optional[str], token: str) -> dict:
        data = await self.client.put(
            f"{BASE_PATH}/{user_id}/role", json={"newRole": new_role, "reason": reason}, token=token
        )
        for warning in data.get("warnings") or []:
            logger.warning(f"⚠️ Role change for {user_id}: {warning}")
        logger.info(f"👤 User {user_id} role changed to {new_role}")
        return data

    async def suspend(self, user_id: str, reason: str, token: str) -> dict:
        logger.info(f"⛔ Suspending user {user_id}: {reason}")
        return await self.client.post(f"{BASE_PATH}/{user_id}/suspend", json={"reason": reason}, token=token)

    async def activate(self, user_id: str, token: str) -> dict:
        logger.info(f"✅ Activating user {user_id}")
        return await self.client.post(f"{BASE_PATH}/{user_id}/activate", json={}, token=token)

    async def delete(self, user_id: str, reason: Optional[str], token: str) -> dict:
        logger.info(f"🗑️ Deleting user {user_id}")
        return await self.client.delete(f"{BASE_PATH}/{user_id}", json={"reason": reason}, token=token)

    async def verify_student(
        self, user_id: str, status: str, reason: Optional[str], token: str
    ) -> dict:
        payload = {"studentVerificationStatus": status}
        if reason:
            payload["rejectionReason"] = reason
        logger.info(f"🎓 Student verification for {user_id}: {status}")
        return await self.client.put(f"{BASE_PATH}/{user_id}/verify", json=payload, token=token)

    async def stats(self, token: str) -> dict:
        return await self.client.get(f"{BASE_PATH}/dashboard", token=token)

    async def analytics(self, period: str, token: str) -> dict:
        return await self.client.get(f"{BASE_PATH}/analytics", params={"period": period}, token=token)
