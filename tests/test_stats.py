import pytest

from anta.repositories import PaymentRepository, TripRepository

TRIP = {
    "origin_lat": 9.5092,
    "origin_lng": -13.7122,
    "origin_text": "Kaloum",
    "dest_lat": 9.5716,
    "dest_lng": -13.6476,
    "dest_text": "Ratoma",
}


@pytest.fixture
def activity(session, admin, passenger, make_driver):
    make_driver(rating_avg=4.0, kyc_status="approved")
    make_driver(status="offline", rating_avg=5.0)

    trips = TripRepository(session)
    done = trips.create({"passenger_id": passenger.id, "status": "completed", **TRIP})
    trips.create({"passenger_id": passenger.id, "status": "cancelled", **TRIP})

    payments = PaymentRepository(session)
    payments.create({"trip_id": done.id, "amount": 25000, "status": "paid"})
    payments.create({"trip_id": done.id, "amount": 9000, "status": "pending"})


def test_dashboard(client, activity, admin_headers):
    data = client.get("/api/stats/dashboard", headers=admin_headers).json()["data"]

    assert data["users"]["total"] == 4
    assert data["users"]["new_today"] == 4
    assert data["users"]["by_role"] == {"admin": 1, "passenger": 1, "driver": 2}

    assert data["drivers"]["total"] == 2
    assert data["drivers"]["online"] == 1
    assert data["drivers"]["by_kyc_status"] == {"approved": 1, "pending": 1}
    assert data["drivers"]["average_rating"] == 4.5

    assert data["trips"]["total"] == 2
    assert data["trips"]["completed"] == 1
    assert data["trips"]["cancelled"] == 1
    assert data["trips"]["completion_rate"] == 50.0

    assert data["revenue"] == {"total": 25000, "today": 25000, "this_week": 25000, "this_month": 25000}


def test_dashboard_on_empty_database(client, admin_headers):
    data = client.get("/api/stats/dashboard", headers=admin_headers).json()["data"]
    assert data["trips"]["completion_rate"] == 0.0
    assert data["drivers"]["average_rating"] == 0.0
    assert data["revenue"]["total"] == 0


def test_dashboard_is_admin_only(client, passenger_headers):
    assert client.get("/api/stats/dashboard", headers=passenger_headers).status_code == 403


def test_revenue_endpoints(client, activity, admin_headers):
    assert client.get("/api/payments/revenue/total", headers=admin_headers).json()["data"]["total"] == 25000

    resp = client.get(
        "/api/payments/revenue/range",
        params={"start": "2000-01-01", "end": "2999-12-31"},
        headers=admin_headers,
    )
    assert resp.json()["data"]["total"] == 25000

    resp = client.get(
        "/api/payments/revenue/range",
        params={"start": "2000-01-01", "end": "2000-12-31"},
        headers=admin_headers,
    )
    assert resp.json()["data"]["total"] == 0


@pytest.mark.parametrize("params", [
    {"start": "yesterday", "end": "2999-12-31"},
    {"start": "2024-02-01", "end": "2024-01-01"},
])
def test_revenue_range_rejects_bad_dates(client, admin_headers, params):
    resp = client.get("/api/payments/revenue/range", params=params, headers=admin_headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "BAD_REQUEST"
