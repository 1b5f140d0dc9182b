"""
Authenticated HTTP client for the remote booking backend.

Every service goes through BackendClient so that auth headers, error
messages and timeouts behave the same everywhere. Requests are plain
coroutines: cancelling the awaiting task aborts the in-flight request.
"""

import logging
from typing import Any, Optional

import httpx
from fastapi import HTTPException

from .config import BACKEND_BASE_URL, BACKEND_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "Network error occurred"
PARSE_ERROR_MESSAGE = "Failed to parse response"


class BackendError(HTTPException):
    """Error raised for a failed backend call; detail is safe to show to users"""

    def __init__(self, status_code: int, detail: str, payload: Optional[dict] = None):
        super().__init__(status_code=status_code, detail=detail)
        self.payload = payload or {}


def extract_error_message(data: Any, status_code: int) -> str:
    """Backend messages are passed through verbatim"""
    if isinstance(data, dict):
        message = data.get("message") or data.get("error")
        if isinstance(message, str) and message:
            return message
    return f"HTTP {status_code}"


class BackendClient:
    """Thin async wrapper around httpx for the booking backend"""

    def __init__(
        self,
        base_url: str = BACKEND_BASE_URL,
        timeout: float = BACKEND_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        json: Optional[Any] = None,
        params: Optional[dict] = None,
        check_success: bool = True,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        if params:
            params = {k: v for k, v in params.items() if v is not None and v != ""}

        try:
            response = await self._client.request(
                method, path, headers=headers, json=json, params=params
            )
        except httpx.HTTPError as e:
            logger.error(f"❌ {method} {path} failed: {e}")
            raise BackendError(status_code=502, detail=NETWORK_ERROR_MESSAGE) from e

        try:
            data = response.json() if response.content else {}
        except ValueError:
            if response.is_success:
                logger.error(f"❌ {method} {path} returned a non-JSON body")
                raise BackendError(status_code=502, detail=PARSE_ERROR_MESSAGE)
            data = {}

        if not response.is_success:
            message = extract_error_message(data, response.status_code)
            logger.warning(f"⚠️ {method} {path} -> {response.status_code}: {message}")
            raise BackendError(
                status_code=response.status_code,
                detail=message,
                payload=data if isinstance(data, dict) else None,
            )

        if check_success and isinstance(data, dict) and data.get("success") is False:
            message = extract_error_message(data, 400)
            logger.warning(f"⚠️ {method} {path} reported failure: {message}")
            raise BackendError(status_code=400, detail=message, payload=data)

        return data

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()


_backend_client: Optional[BackendClient] = None


def get_backend_client() -> BackendClient:
    """Dependency injection for the shared BackendClient"""
    global _backend_client
    if _backend_client is None:
        _backend_client = BackendClient()
    return _backend_client


async def close_backend_client() -> None:
    global _backend_client
    if _backend_client is not None:
        await _backend_client.aclose()
        _backend_client = None
