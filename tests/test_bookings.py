from decimal import Decimal

from productive_space.domain.bookings import classifier

from .utils import NOW, auth_headers, booking, dec

# NOW is 2025-03-10T04:00Z
UPCOMING = booking("up", start="2025-03-10T10:00:00.000Z", end="2025-03-10T12:00:00.000Z")
SOON = booking("soon", start="2025-03-10T06:00:00.000Z", end="2025-03-10T08:00:00.000Z")
ONGOING = booking("now", start="2025-03-10T03:00:00.000Z", end="2025-03-10T05:00:00.000Z")
PAST = booking("past", start="2025-03-09T03:00:00.000Z", end="2025-03-09T05:00:00.000Z")
COMPLETED_EARLY = booking("done", start="2025-03-10T03:00:00.000Z", end="2025-03-10T05:00:00.000Z", isCompleted=True)
CANCELLED = booking("cx", start="2025-03-11T03:00:00.000Z", end="2025-03-11T05:00:00.000Z", cancelledBy="user-1")
REFUND_PENDING = booking("rf", start="2025-03-09T03:00:00.000Z", end="2025-03-09T05:00:00.000Z", refundstatus="REQUESTED")


def test_classify_each_tab():
    assert classifier.classify(UPCOMING, NOW) == classifier.UPCOMING
    assert classifier.classify(ONGOING, NOW) == classifier.ONGOING
    assert classifier.classify(PAST, NOW) == classifier.PAST
    assert classifier.classify(COMPLETED_EARLY, NOW) == classifier.PAST
    assert classifier.classify(CANCELLED, NOW) == classifier.CANCELLED
    # cancellation wins over time
    assert classifier.classify(REFUND_PENDING, NOW) == classifier.CANCELLED


def test_rejected_refund_is_not_cancelled():
    rejected = dict(PAST, refundstatus="REJECTED")
    assert classifier.classify(rejected, NOW) == classifier.PAST


def test_partition_puts_every_booking_in_one_tab():
    bookings = [UPCOMING, SOON, ONGOING, PAST, COMPLETED_EARLY, CANCELLED, REFUND_PENDING]
    tabs = classifier.partition(bookings, NOW)
    assert sum(len(items) for items in tabs.values()) == len(bookings)
    assert [b["id"] for b in tabs["upcoming"]] == ["up", "soon"]
    assert [b["id"] for b in tabs["cancelled"]] == ["cx", "rf"]


def test_edit_cutoff_is_five_hours():
    assert classifier.can_edit_booking(UPCOMING, NOW)
    assert not classifier.can_edit_booking(SOON, NOW)
    assert not classifier.can_edit_booking(CANCELLED, NOW)


def test_duration_hours():
    assert classifier.duration_hours(UPCOMING) == 2.0


def test_dashboard_tabs(api, backend, user_headers):
    backend.on("GET", "/booking/all", {"bookings": [UPCOMING, SOON, ONGOING, PAST, CANCELLED]})

    r = api.get("/dashboard/bookings", headers=user_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["counts"] == {"upcoming": 2, "ongoing": 1, "past": 1, "cancelled": 1}
    assert body["total"] == 5
    assert {b["id"]: b["canEdit"] for b in body["tabs"]["upcoming"]} == {"up": True, "soon": False}
    assert backend.requests("GET", "/booking/all")[0].authorization.startswith("Bearer ")


def test_dashboard_requires_token(api):
    r = api.get("/dashboard/bookings")
    assert r.status_code in (401, 403)


def test_missing_booking_is_404(api, backend, user_headers):
    backend.on("GET", "/booking/getById/nope", {"booking": None})
    r = api.get("/dashboard/bookings/nope", headers=user_headers)
    assert r.status_code == 404
    assert r.json()["detail"] == "Booking not found"


def test_refund_estimate(api, backend, user_headers):
    backend.on("GET", "/booking/getById/up", {"booking": UPCOMING})
    backend.on(
        "GET",
        "/payment-settings",
        {"data": [{"settingKey": "ADMIN_REFUND_FEE", "settingValue": "1"}]},
    )

    r = api.get("/dashboard/bookings/up/refund-estimate?method=paynow", headers=user_headers)
    assert r.status_code == 200
    body = r.json()
    assert dec(body["paidAmount"]) == Decimal("8.20")
    assert dec(body["refundAmount"]) == Decimal("7.00")

    r = api.get("/dashboard/bookings/up/refund-estimate?method=cash", headers=user_headers)
    assert r.status_code == 400


def test_request_refund(api, backend, user_headers):
    backend.on("GET", "/booking/getById/up", {"booking": UPCOMING})
    backend.on("POST", "/refund/request", {"message": "Refund requested", "bookingId": "up"})

    r = api.post("/dashboard/bookings/up/refund", headers=user_headers, json={"reason": "Plans changed"})
    assert r.status_code == 200
    assert backend.requests("POST", "/refund/request")[0].body == {
        "bookingid": "up",
        "reason": "Plans changed",
        "userid": "user-1",
    }
    assert backend.requests("POST", "/refund/request")[0].authorization == user_headers["Authorization"]


def test_refund_rejected_for_past_or_cancelled(api, backend, user_headers):
    backend.on("GET", "/booking/getById/past", {"booking": PAST})
    backend.on("GET", "/booking/getById/cx", {"booking": CANCELLED})

    r = api.post("/dashboard/bookings/past/refund", headers=user_headers, json={"reason": "x"})
    assert r.status_code == 400
    r = api.post("/dashboard/bookings/cx/refund", headers=user_headers, json={"reason": "x"})
    assert r.status_code == 400
    r = api.post("/dashboard/bookings/past/refund", headers=user_headers, json={"reason": "  "})
    assert r.status_code == 422
    assert backend.requests("POST", "/refund/request") == []


def test_credits(api, backend, user_headers):
    backend.on(
        "GET",
        "/refund/credits",
        {"credits": [{"id": "c-1", "amount": 5.5}], "totalCredit": 5.5, "count": 1},
    )
    r = api.get("/dashboard/credits", headers=user_headers)
    assert r.status_code == 200
    assert dec(r.json()["totalCredit"]) == Decimal("5.5")
    assert backend.requests("GET", "/refund/credits")[0].params == {"userid": "user-1"}
    assert backend.requests("GET", "/refund/credits")[0].authorization == user_headers["Authorization"]


def test_store_credit_calls_forward_session_token(api, backend, user_headers):
    backend.on("GET", "/refund/requests", [{"id": "r-1"}])
    backend.on("GET", "/refund/credit-usage", {"usage": [{"id": "u-1"}]})
    backend.on("POST", "/credit/calculate-payment", {"creditAmount": 5})

    assert api.get("/dashboard/refunds", headers=user_headers).json() == {"refunds": [{"id": "r-1"}]}
    assert api.get("/dashboard/credits/usage", headers=user_headers).json() == {"usage": [{"id": "u-1"}]}
    assert api.post("/dashboard/credits/calculate", headers=user_headers, json={"bookingAmount": "8"}).status_code == 200

    for method, path in (
        ("GET", "/refund/requests"),
        ("GET", "/refund/credit-usage"),
        ("POST", "/credit/calculate-payment"),
    ):
        assert backend.requests(method, path)[0].authorization == user_headers["Authorization"]


def test_rejected_session_never_reaches_credit_lookup(api, backend):
    backend.on("GET", "/user/victim-9", {"error": "Invalid token"}, status=401)
    backend.on("GET", "/refund/credits", {"credits": [{"id": "c-v", "amount": 50}], "totalCredit": 50})

    r = api.get("/dashboard/credits", headers=auth_headers(sub="victim-9"))
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid or expired session"
    assert backend.requests("GET", "/refund/credits") == []
