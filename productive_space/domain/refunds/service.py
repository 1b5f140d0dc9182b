"""Admin review of refund requests and issued store credit"""

import asyncio
import logging

from ...backend_client import BackendClient

logger = logging.getLogger(__name__)


def _as_list(data, key: str) -> list:
    if isinstance(data, list):
        return data
    return data.get(key) or []


class RefundAdminService:
    def __init__(self, client: BackendClient):
        self.client = client

    async def all_requests(self, token: str) -> list[dict]:
        data = await self.client.get("/admin/refund/refunds", token=token)
        return _as_list(data, "refunds")

    async def all_credits(self, token: str) -> list[dict]:
        data = await self.client.get("/admin/refund/credits", token=token)
        return _as_list(data, "credits")

    async def approve(self, refund_id: str, token: str) -> dict:
        """Approving converts the refund into store credit"""
        result = await self.client.post(f"/admin/refund/refunds/{refund_id}/approve", json={}, token=token)
        logger.info(f"✅ Refund {refund_id} approved, credit {result.get('creditid')} of {result.get('creditamount')}")
        return result

    async def reject(self, refund_id: str, token: str) -> dict:
        result = await self.client.post(f"/admin/refund/refunds/{refund_id}/reject", json={}, token=token)
        logger.info(f"❌ Refund {refund_id} rejected")
        return result

    async def stats(self, token: str) -> dict:
        return await self.client.get("/admin/refund/stats", token=token)

    async def overview(self, token: str) -> dict:
        """Requests, credits and stats for the admin refunds tab"""
        requests, credits, stats = await asyncio.gather(
            self.all_requests(token),
            self.all_credits(token),
            self.stats(token),
        )
        pending = [r for r in requests if r.get("refundstatus") == "REQUESTED"]
        return {
            "refunds": requests,
            "pendingCount": len(pending),
            "credits": credits,
            "stats": stats,
        }
