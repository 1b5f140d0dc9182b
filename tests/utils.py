import base64
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

import httpx

from productive_space.backend_client import BackendClient

BACKEND_URL = "http://backend.test/api"

# 12:00 in Singapore
NOW = datetime(2025, 3, 10, 4, 0, tzinfo=timezone.utc)


def dec(value) -> Decimal:
    """Compare JSON numbers (float or string) as Decimal"""
    return Decimal(str(value))


def _b64(obj: dict) -> str:
    return base64.urlsafe_b64encode(json.dumps(obj).encode()).rstrip(b"=").decode()


def make_token(
    sub: str = "user-1",
    email: str = "alice@example.com",
    member_type: str = "MEMBER",
    full_name: str = "Alice Tan",
) -> str:
    header = _b64({"alg": "HS256", "typ": "JWT"})
    payload = _b64(
        {"sub": sub, "email": email, "user_metadata": {"full_name": full_name, "memberType": member_type}}
    )
    return f"{header}.{payload}.signature"


def auth_headers(**kwargs) -> dict:
    return {"Authorization": f"Bearer {make_token(**kwargs)}"}


@dataclass
class BackendCall:
    method: str
    path: str
    params: dict
    body: Any
    authorization: Optional[str]


class FakeBackend:
    """Routes keyed by (method, path) relative to the /api base"""

    def __init__(self):
        self.routes: dict = {}
        self.calls: list[BackendCall] = []

    def on(self, method: str, path: str, payload: Any = None, status: int = 200, handler=None):
        self.routes[(method, path)] = handler or (status, payload if payload is not None else {})

    def requests(self, method: str, path: str) -> list[BackendCall]:
        return [c for c in self.calls if c.method == method and c.path == path]

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/api"):
            path = path[len("/api"):]
        body = json.loads(request.content) if request.content else None
        self.calls.append(
            BackendCall(
                request.method,
                path,
                dict(request.url.params),
                body,
                request.headers.get("authorization"),
            )
        )

        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"error": f"No route for {request.method} {path}"})
        if callable(route):
            result = route(request)
            if isinstance(result, httpx.Response):
                return result
            status, payload = result
        else:
            status, payload = route
        return httpx.Response(status, json=payload)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def client(self) -> BackendClient:
        return BackendClient(base_url=BACKEND_URL, transport=self.transport())


def booking(
    booking_id: str = "b-1",
    start: str = "2025-03-10T06:00:00.000Z",
    end: str = "2025-03-10T08:00:00.000Z",
    **extra,
) -> dict:
    data = {
        "id": booking_id,
        "bookingRef": f"REF-{booking_id}",
        "userId": "user-1",
        "location": "Kovan",
        "startAt": start,
        "endAt": end,
        "pax": 1,
        "members": 1,
        "tutors": 0,
        "students": 0,
        "seatNumbers": ["S1"],
        "totalAmount": 8.0,
        "isCompleted": False,
    }
    data.update(extra)
    return data
