from datetime import timedelta

import pytest
from fastapi import HTTPException

from productive_space.domain.door.service import validate_admin_window
from productive_space.domain.shop_hours.service import day_name, format_time

from .utils import NOW

# ============================================================================
# SHOP HOURS
# ============================================================================


@pytest.mark.parametrize(
    "value, label",
    [("09:00:00", "9:00 AM"), ("13:30:00", "1:30 PM"), ("00:15", "12:15 AM"), ("12:00:00", "12:00 PM"), ("", "")],
)
def test_format_time(value, label):
    assert format_time(value) == label


def test_day_name():
    assert day_name(0) == "Sunday"
    assert day_name(6) == "Saturday"
    assert day_name(9) == "Unknown"


def test_schedule_sorted_with_labels(api, backend):
    backend.on(
        "GET",
        "/shop-hours/operating/Kovan",
        {
            "data": [
                {"id": "h-2", "dayOfWeek": 2, "openTime": "09:00:00", "closeTime": "22:00:00"},
                {"id": "h-0", "dayOfWeek": 0, "openTime": "10:00:00", "closeTime": "18:30:00"},
            ]
        },
    )
    backend.on("GET", "/shop-hours/closures/Kovan", {"data": [{"id": "c-1", "reason": "CNY"}]})

    r = api.get("/shop-hours/Kovan")
    assert r.status_code == 200
    body = r.json()
    assert [row["dayName"] for row in body["operatingHours"]] == ["Sunday", "Tuesday"]
    assert body["operatingHours"][0]["closeLabel"] == "6:30 PM"
    assert body["closures"] == [{"id": "c-1", "reason": "CNY"}]


def test_check_availability(api, backend):
    backend.on("POST", "/shop-hours/check-availability", {"available": False, "reason": "Closed for renovation"})

    r = api.post(
        "/shop-hours/check-availability",
        json={"location": "Kovan", "startAt": "2025-03-10T06:00:00Z", "endAt": "2025-03-10T08:00:00Z"},
    )
    assert r.json() == {"available": False, "reason": "Closed for renovation"}
    assert backend.requests("POST", "/shop-hours/check-availability")[0].body == {
        "location": "Kovan",
        "startAt": "2025-03-10T06:00:00.000Z",
        "endAt": "2025-03-10T08:00:00.000Z",
    }


def test_admin_operating_hours_normalizes_times(api, backend, admin_headers):
    backend.on("PUT", "/shop-hours/operating/h-1", {"data": {"id": "h-1"}})

    r = api.put(
        "/admin/shop-hours/operating/h-1",
        headers=admin_headers,
        json={"openTime": "09:00", "closeTime": "21:30"},
    )
    assert r.status_code == 200
    assert backend.requests("PUT", "/shop-hours/operating/h-1")[0].body == {
        "openTime": "09:00:00",
        "closeTime": "21:30:00",
        "isActive": True,
    }

    r = api.put(
        "/admin/shop-hours/operating/h-1",
        headers=admin_headers,
        json={"openTime": "21:00", "closeTime": "09:00"},
    )
    assert r.status_code == 422


def test_admin_closures(api, backend, admin_headers, user_headers):
    backend.on("POST", "/shop-hours/closures", {"data": {"id": "c-2"}})
    backend.on("DELETE", "/shop-hours/closures/c-2", {"success": True})
    closure = {
        "location": "Kovan",
        "startDate": "2025-03-20T00:00:00Z",
        "endDate": "2025-03-21T00:00:00Z",
        "reason": "Maintenance",
    }

    assert api.post("/admin/shop-hours/closures", headers=user_headers, json=closure).status_code == 403

    r = api.post("/admin/shop-hours/closures", headers=admin_headers, json=closure)
    assert r.json() == {"id": "c-2"}

    r = api.post(
        "/admin/shop-hours/closures",
        headers=admin_headers,
        json=dict(closure, endDate="2025-03-19T00:00:00Z"),
    )
    assert r.status_code == 422

    r = api.delete("/admin/shop-hours/closures/c-2", headers=admin_headers)
    assert r.json() == {"success": True}


# ============================================================================
# DOOR ACCESS
# ============================================================================


@pytest.mark.parametrize(
    "seat, start, end, message",
    [
        (" ", NOW + timedelta(hours=1), NOW + timedelta(hours=3), "Please select a seat number"),
        ("S1", NOW - timedelta(minutes=5), NOW + timedelta(hours=3), "Start time cannot be in the past"),
        ("S1", NOW + timedelta(hours=2), NOW + timedelta(hours=1), "End time must be after start time"),
        ("S1", NOW + timedelta(hours=1), NOW + timedelta(minutes=90), "End time must be at least 1 hour after start time"),
    ],
)
def test_admin_window_validation(seat, start, end, message):
    with pytest.raises(HTTPException) as exc:
        validate_admin_window(seat, start, end, NOW)
    assert exc.value.status_code == 400
    assert exc.value.detail == message


def test_admin_window_accepts_one_hour():
    validate_admin_window("S1", NOW, NOW + timedelta(hours=1), NOW)


def test_open_link_prefixes_access_path(api, backend):
    backend.on(
        "POST",
        "/door/generate-open-link",
        {"data": {"accessPath": "/door/open/tok-1", "expiresAt": "2025-03-10T08:00:00.000Z"}, "message": "ok"},
    )

    r = api.post("/door/open-link", json={"bookingRef": " REF-b-1 "})
    assert r.status_code == 200
    assert r.json()["data"]["accessPath"] == "http://backend.test/api/door/open/tok-1"
    assert backend.requests("POST", "/door/generate-open-link")[0].body == {"bookingRef": "REF-b-1"}


def test_admin_open_link(api, backend, admin_headers):
    backend.on("POST", "/door/admin-generate-open-link", {"data": {"accessPath": "/door/open/tok-2"}})

    r = api.post(
        "/door/admin/open-link",
        headers=admin_headers,
        json={"seatNumber": "S4", "startTime": "2025-03-10T05:00:00Z", "endTime": "2025-03-10T07:00:00Z"},
    )
    assert r.status_code == 200
    assert backend.requests("POST", "/door/admin-generate-open-link")[0].body == {
        "seatNumber": "S4",
        "startTime": "2025-03-10T05:00:00.000Z",
        "endTime": "2025-03-10T07:00:00.000Z",
    }

    r = api.post(
        "/door/admin/open-link",
        headers=admin_headers,
        json={"seatNumber": "S4", "startTime": "2025-03-10T03:00:00Z", "endTime": "2025-03-10T07:00:00Z"},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "Start time cannot be in the past"


def test_send_access_link(api, backend, user_headers):
    backend.on("POST", "/door/send-access-link", {"message": "Email sent"})

    r = api.post(
        "/door/send-access-link",
        headers=user_headers,
        json={"bookingRef": "REF-b-1", "email": "Alice@Example.com"},
    )
    assert r.json() == {"success": True, "message": "Email sent"}
    assert backend.requests("POST", "/door/send-access-link")[0].body["email"] == "alice@example.com"
