import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from productive_space.backend_client import BackendError
from productive_space.domain.extensions import calculator
from productive_space.domain.extensions.seat_checker import SeatAvailabilityChecker, detect_seat_conflict

from .utils import auth_headers, booking, dec

ORIGINAL_END = datetime(2025, 3, 10, 8, 0, tzinfo=timezone.utc)  # 16:00 SGT
BOOKING = booking("b-1", start="2025-03-10T06:00:00.000Z", end="2025-03-10T08:00:00.000Z")


# ============================================================================
# CALCULATOR
# ============================================================================


def test_extension_hours_never_negative():
    assert calculator.extension_hours(ORIGINAL_END, ORIGINAL_END + timedelta(minutes=90)) == Decimal("1.5")
    assert calculator.extension_hours(ORIGINAL_END, ORIGINAL_END - timedelta(hours=1)) == Decimal("0")


def test_hourly_rate_combines_roles():
    pricing = {"member": {"oneHourRate": 4}, "student": 3, "tutor": {"oneHourRate": 5}}
    assert calculator.hourly_rate({"members": 2, "students": 1}, pricing) == Decimal("11")


def test_extension_cost():
    pricing = {"member": {"oneHourRate": 4}}
    cost = calculator.extension_cost(BOOKING, pricing, ORIGINAL_END, ORIGINAL_END + timedelta(hours=2))
    assert cost == Decimal("8")
    assert calculator.cost_after_credit(cost, Decimal("10")) == Decimal("0")


def test_end_time_slots_are_quarter_hours_after_end():
    slots = calculator.end_time_slots(ORIGINAL_END, hours_ahead=1)
    assert slots[0] == ORIGINAL_END + timedelta(minutes=15)
    assert slots[-1] == ORIGINAL_END + timedelta(hours=1)
    assert len(slots) == 4


def test_allowed_end_times():
    assert calculator.is_allowed_end_time(ORIGINAL_END + timedelta(minutes=15), ORIGINAL_END)
    assert not calculator.is_allowed_end_time(ORIGINAL_END + timedelta(minutes=10), ORIGINAL_END)
    assert not calculator.is_allowed_end_time(ORIGINAL_END - timedelta(minutes=15), ORIGINAL_END)


def test_can_submit():
    later = ORIGINAL_END + timedelta(hours=1)
    assert calculator.can_submit(ORIGINAL_END, later, False, [], 1)
    assert not calculator.can_submit(ORIGINAL_END, None, False, [], 1)
    assert not calculator.can_submit(ORIGINAL_END, ORIGINAL_END, False, [], 1)
    assert not calculator.can_submit(ORIGINAL_END, later, True, [], 1)
    assert calculator.can_submit(ORIGINAL_END, later, True, ["S2"], 1)


@pytest.mark.parametrize(
    "new_end, requires, seats, pax, cost, message",
    [
        (None, False, [], 1, Decimal("4"), "Please select new end time"),
        (ORIGINAL_END, False, [], 1, Decimal("4"), "New end time must be after current end time"),
        (ORIGINAL_END + timedelta(minutes=45), False, [], 1, Decimal("3"), "Extension requires at least 1 hour."),
        (ORIGINAL_END + timedelta(hours=1), True, ["S2"], 2, Decimal("8"), "Please select 2 seats for the extended time"),
        (ORIGINAL_END + timedelta(hours=1), False, [], 1, Decimal("0"), "Extension cost must be greater than 0"),
    ],
)
def test_validate_submission_messages(new_end, requires, seats, pax, cost, message):
    with pytest.raises(calculator.ExtensionValidationError, match=message):
        calculator.validate_submission(ORIGINAL_END, new_end, requires, seats, pax, cost)


def test_validate_submission_returns_hours():
    hours = calculator.validate_submission(
        ORIGINAL_END, ORIGINAL_END + timedelta(hours=2), False, [], 1, Decimal("8")
    )
    assert hours == Decimal("2")


def test_credit_used():
    assert calculator.credit_used("3.5", {}, None) == Decimal("3.5")
    assert calculator.credit_used(None, {"extensionamounts": [4, 6]}, {"paymentMethod": "Credits"}) == Decimal("6")
    assert calculator.credit_used(None, {"extensionamounts": [6]}, {"totalAmount": 4}) == Decimal("2")
    assert calculator.credit_used(None, {"extensionamounts": [6]}, {"totalAmount": 8}) == Decimal("0")


def test_booking_pax_falls_back_to_seat_count():
    assert calculator.booking_pax({"pax": 3, "seatNumbers": ["S1"]}) == 3
    assert calculator.booking_pax({"pax": None, "seatNumbers": ["S1", "S2"]}) == 2
    assert calculator.booking_pax({}) == 0


# ============================================================================
# SEAT CHECKER
# ============================================================================


def test_detect_seat_conflict():
    conflict = detect_seat_conflict(["S1", "S2"], ["S2", "S9"], ["S3"])
    assert conflict.requires_seat_selection
    assert conflict.conflicting_seats == ["S2"]
    assert conflict.selected_seats == []

    clear = detect_seat_conflict(["S1"], ["S9"])
    assert not clear.requires_seat_selection
    assert clear.selected_seats == ["S1"]


def test_checker_debounces_rapid_edits():
    fetched = []

    async def fetch(start, end):
        fetched.append(end)
        return {"bookedSeats": ["S1"], "availableSeats": ["S2"]}

    async def scenario():
        checker = SeatAvailabilityChecker(fetch, ["S1"], debounce=0.05)
        for minutes in (15, 30, 45):
            checker.submit(ORIGINAL_END, ORIGINAL_END + timedelta(minutes=minutes))
        result = await checker.wait()
        return checker, result

    checker, result = asyncio.run(scenario())
    assert fetched == [ORIGINAL_END + timedelta(minutes=45)]
    assert result.requires_seat_selection
    assert checker.latest == result
    assert not checker.pending


def test_stale_check_never_overwrites_newer_result():
    async def fetch(start, end):
        if end == ORIGINAL_END + timedelta(hours=1):
            await asyncio.sleep(0.2)
            return {"bookedSeats": ["S1"]}
        return {"bookedSeats": []}

    async def scenario():
        checker = SeatAvailabilityChecker(fetch, ["S1"], debounce=0)
        slow = checker.submit(ORIGINAL_END, ORIGINAL_END + timedelta(hours=1))
        await asyncio.sleep(0.01)
        checker.submit(ORIGINAL_END, ORIGINAL_END + timedelta(hours=2))
        latest = await checker.wait()
        with pytest.raises(asyncio.CancelledError):
            await slow
        return checker, latest

    checker, latest = asyncio.run(scenario())
    assert not latest.requires_seat_selection
    assert checker.latest == latest


def test_end_time_not_after_original_skips_fetch():
    async def fetch(start, end):
        raise AssertionError("should not fetch")

    async def scenario():
        checker = SeatAvailabilityChecker(fetch, ["S1"], debounce=0)
        checker.submit(ORIGINAL_END, ORIGINAL_END)
        return await checker.wait()

    result = asyncio.run(scenario())
    assert not result.checked
    assert result.selected_seats == ["S1"]


def test_failed_fetch_keeps_previous_result():
    calls = []

    async def fetch(start, end):
        calls.append(end)
        if len(calls) > 1:
            raise BackendError(status_code=500, detail="Database unavailable")
        return {"bookedSeats": [], "availableSeats": ["S2"]}

    async def scenario():
        checker = SeatAvailabilityChecker(fetch, ["S1"], debounce=0)
        checker.submit(ORIGINAL_END, ORIGINAL_END + timedelta(hours=1))
        first = await checker.wait()
        checker.submit(ORIGINAL_END, ORIGINAL_END + timedelta(hours=2))
        with pytest.raises(BackendError):
            await checker.wait()
        await checker.aclose()
        return checker, first

    checker, first = asyncio.run(scenario())
    assert checker.latest == first
    assert not checker.pending
    assert len(calls) == 2


# ============================================================================
# ROUTES
# ============================================================================


@pytest.fixture
def extension_backend(backend):
    backend.on("GET", "/booking/getById/b-1", {"booking": BOOKING})
    backend.on("GET", "/pricing/Kovan", {"data": {"member": {"oneHourRate": 4, "overOneHourRate": 4}}})
    backend.on("POST", "/booking/getBookedSeats", {"bookedSeats": [], "availableSeats": ["S1", "S2"]})
    backend.on("POST", "/hitpay/create-payment", {"url": "https://hitpay.test/checkout/1"})
    return backend


def test_load_extension_context(api, extension_backend, user_headers):
    r = api.get("/extend/b-1", headers=user_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["originalEndAt"] == "2025-03-10T08:00:00.000Z"
    assert dec(body["hourlyRate"]) == Decimal("4")
    assert body["endTimeSlots"][0] == "2025-03-10T08:15:00.000Z"


def test_seat_check_with_conflict(api, extension_backend, user_headers):
    extension_backend.on("POST", "/booking/getBookedSeats", {"bookedSeats": ["S1"], "availableSeats": ["S2"]})

    r = api.get("/extend/b-1/seats", params={"newEndAt": "2025-03-10T10:00:00Z"}, headers=user_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["requiresSeatSelection"] is True
    assert body["conflictingSeats"] == ["S1"]
    assert body["canSubmit"] is False

    r = api.get(
        "/extend/b-1/seats",
        params={"newEndAt": "2025-03-10T10:00:00Z", "selected": ["S2"]},
        headers=user_headers,
    )
    assert r.json()["canSubmit"] is True

    seat_call = extension_backend.requests("POST", "/booking/getBookedSeats")[0]
    assert seat_call.body == {
        "location": "Kovan",
        "startAt": "2025-03-10 08:00:00.000",
        "endAt": "2025-03-10 10:00:00.000",
    }


def test_seat_check_counts_seats_when_booking_has_no_pax(api, extension_backend, user_headers):
    extension_backend.on(
        "GET", "/booking/getById/b-2", {"booking": dict(BOOKING, id="b-2", pax=None, seatNumbers=["S1", "S2"])}
    )
    extension_backend.on("POST", "/booking/getBookedSeats", {"bookedSeats": ["S1"], "availableSeats": ["S3", "S4"]})

    r = api.get(
        "/extend/b-2/seats",
        params={"newEndAt": "2025-03-10T10:00:00Z", "selected": ["S3", "S4"]},
        headers=user_headers,
    )
    assert r.json()["canSubmit"] is True

    r = api.get(
        "/extend/b-2/seats",
        params={"newEndAt": "2025-03-10T10:00:00Z", "selected": ["S3"]},
        headers=user_headers,
    )
    assert r.json()["canSubmit"] is False


def test_quote_caps_credit_at_balance(api, extension_backend, user_headers):
    extension_backend.on("GET", "/refund/credits", {"credits": [], "totalCredit": 0, "count": 0})

    r = api.post(
        "/extend/b-1/quote",
        headers=user_headers,
        json={"newEndAt": "2025-03-10T10:00:00Z", "creditAmount": "100", "paymentMethod": "paynow"},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert dec(body["extensionCost"]) == Decimal("8")
    assert dec(body["creditApplied"]) == Decimal("0")
    assert dec(body["totalAmount"]) == Decimal("8.20")
    assert body["creditsOnly"] is False
    assert extension_backend.requests("GET", "/refund/credits")[0].params == {"userid": "user-1"}


def test_quote_applies_available_credit(api, extension_backend, user_headers):
    extension_backend.on("GET", "/refund/credits", {"credits": [], "totalCredit": 5, "count": 1})

    r = api.post(
        "/extend/b-1/quote",
        headers=user_headers,
        json={"newEndAt": "2025-03-10T10:00:00Z", "creditAmount": "10"},
    )
    body = r.json()
    assert dec(body["creditApplied"]) == Decimal("5")
    assert dec(body["finalCost"]) == Decimal("3")
    assert dec(body["totalAmount"]) == Decimal("3.20")


def test_submit_opens_payment_session(api, extension_backend, user_headers):
    r = api.post(
        "/extend/b-1/submit",
        headers=user_headers,
        json={"newEndAt": "2025-03-10T10:00:00Z", "paymentMethod": "paynow"},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["status"] == "payment_required"
    assert body["paymentUrl"] == "https://hitpay.test/checkout/1"
    assert dec(body["totalAmount"]) == Decimal("8.20")

    session = extension_backend.requests("POST", "/hitpay/create-payment")[0].body
    assert session["amount"] == "8.20"
    assert session["payment_methods"] == ["paynow_online"]
    assert session["redirect_url"].startswith("http://frontend.test/extend/b-1?step=3&extension=true")
    assert session["webhook"] == "http://backend.test/api/hitpay/webhook"


def test_submit_covered_by_credits_confirms_directly(api, extension_backend, user_headers):
    extension_backend.on("GET", "/refund/credits", {"credits": [], "totalCredit": 20, "count": 1})
    extension_backend.on(
        "POST",
        "/booking/confirm-extension-payment",
        {
            "success": True,
            "booking": dict(BOOKING, endAt="2025-03-10T10:00:00.000Z", extensionamounts=[8]),
            "payment": {"paymentMethod": "Credits"},
        },
    )

    r = api.post(
        "/extend/b-1/submit",
        headers=user_headers,
        json={"newEndAt": "2025-03-10T10:00:00Z", "creditAmount": "10"},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["status"] == "confirmed"
    assert dec(body["extensionHours"]) == Decimal("2")
    assert dec(body["creditUsed"]) == Decimal("8")
    assert extension_backend.requests("POST", "/hitpay/create-payment") == []

    confirm = extension_backend.requests("POST", "/booking/confirm-extension-payment")[0].body
    assert confirm["extensionData"]["creditAmount"] == 8.0
    assert confirm["extensionData"]["seatNumbers"] == ["S1"]


def test_submit_requires_new_seats_on_conflict(api, extension_backend, user_headers):
    extension_backend.on("POST", "/booking/getBookedSeats", {"bookedSeats": ["S1"], "availableSeats": ["S2"]})

    r = api.post("/extend/b-1/submit", headers=user_headers, json={"newEndAt": "2025-03-10T10:00:00Z"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Please select 1 seat for the extended time"


def test_submit_rejects_short_extension(api, extension_backend, user_headers):
    r = api.post("/extend/b-1/submit", headers=user_headers, json={"newEndAt": "2025-03-10T08:30:00Z"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Extension requires at least 1 hour."


CONFIRM_BODY = {
    "paymentId": "pay-1",
    "status": "completed",
    "newEndAt": "2025-03-10T10:00:00Z",
    "seatNumbers": ["S1"],
    "extensionHours": "2",
    "extensionCost": "8",
    "originalEndAt": "2025-03-10T08:00:00Z",
    "creditAmount": "0",
}


def test_confirm_rejects_unpaid_status(api, extension_backend, user_headers):
    r = api.post("/extend/b-1/confirm", headers=user_headers, json=dict(CONFIRM_BODY, status="failed"))
    assert r.status_code == 402
    assert r.json()["detail"] == "Payment failed. Your booking has not been extended."
    assert extension_backend.requests("POST", "/booking/confirm-extension-payment") == []


def test_confirm_after_payment(api, extension_backend, user_headers):
    extension_backend.on(
        "POST",
        "/booking/confirm-extension-payment",
        {
            "booking": dict(BOOKING, endAt="2025-03-10T10:00:00.000Z", extensionamounts=[8]),
            "payment": {"totalAmount": 8.2},
        },
    )
    r = api.post("/extend/b-1/confirm", headers=user_headers, json=CONFIRM_BODY)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["alreadyConfirmed"] is False
    assert dec(body["creditUsed"]) == Decimal("0")
    confirm = extension_backend.requests("POST", "/booking/confirm-extension-payment")[0]
    assert confirm.authorization == user_headers["Authorization"]


def test_repeat_confirmation_reports_success(api, extension_backend, user_headers):
    extension_backend.on(
        "POST", "/booking/confirm-extension-payment", {"error": "Extension already confirmed"}, status=400
    )
    r = api.post("/extend/b-1/confirm", headers=user_headers, json=CONFIRM_BODY)
    assert r.status_code == 200
    assert r.json()["alreadyConfirmed"] is True


def test_seat_check_stream(api, extension_backend):
    extension_backend.on("POST", "/booking/getBookedSeats", {"bookedSeats": ["S1"], "availableSeats": ["S2"]})
    token = auth_headers()["Authorization"].split(" ", 1)[1]

    with api.websocket_connect(f"/extend/b-1/seats/ws?token={token}") as ws:
        ws.send_json({"newEndAt": "not a date"})
        assert ws.receive_json() == {"type": "error", "detail": "Invalid newEndAt"}

        ws.send_json({"newEndAt": "2025-03-10T10:00:00Z"})
        message = ws.receive_json()
        assert message["type"] == "seat_check"
        assert message["newEndAt"] == "2025-03-10T10:00:00Z"
        assert message["requiresSeatSelection"] is True
        assert message["availableSeats"] == ["S2"]


def test_seat_check_stream_unknown_booking(api, backend):
    with api.websocket_connect("/extend/missing/seats/ws?token=abc") as ws:
        message = ws.receive_json()
        assert message["type"] == "error"


def test_seat_check_stream_reports_failed_check(api, extension_backend):
    extension_backend.on("POST", "/booking/getBookedSeats", {"error": "Database unavailable"}, status=500)
    token = auth_headers()["Authorization"].split(" ", 1)[1]

    with api.websocket_connect(f"/extend/b-1/seats/ws?token={token}") as ws:
        ws.send_json({"newEndAt": "2025-03-10T10:00:00Z"})
        assert ws.receive_json() == {
            "type": "error",
            "newEndAt": "2025-03-10T10:00:00Z",
            "detail": "Database unavailable",
        }


def test_seat_check_stream_survives_non_json_frames(api, extension_backend):
    token = auth_headers()["Authorization"].split(" ", 1)[1]

    with api.websocket_connect(f"/extend/b-1/seats/ws?token={token}") as ws:
        ws.send_text("not json")
        assert ws.receive_json() == {"type": "error", "detail": "Invalid message"}

        ws.send_json({"newEndAt": "2025-03-10T10:00:00Z"})
        message = ws.receive_json()
        assert message["type"] == "seat_check"
        assert message["requiresSeatSelection"] is False
