import pytest

from anta.repositories import TripRepository

TRIP = {
    "origin_lat": 9.5092,
    "origin_lng": -13.7122,
    "origin_text": "Kaloum",
    "dest_lat": 9.5716,
    "dest_lng": -13.6476,
    "dest_text": "Ratoma",
    "price_estimated": 25000,
    "distance_m": 9000,
    "duration_s": 1200,
}


@pytest.fixture
def trip(session, passenger):
    return TripRepository(session).create({"passenger_id": passenger.id, **TRIP})


def test_passenger_books_trip(client, passenger, passenger_headers):
    resp = client.post("/api/trips", json={"passenger_id": passenger.id, **TRIP}, headers=passenger_headers)
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["status"] == "pending"
    assert data["passenger_id"] == passenger.id


def test_second_active_trip_is_conflict(client, trip, passenger, passenger_headers):
    resp = client.post("/api/trips", json={"passenger_id": passenger.id, **TRIP}, headers=passenger_headers)
    assert resp.status_code == 409


def test_cannot_book_for_someone_else(client, make_user, passenger_headers):
    other = make_user()
    resp = client.post("/api/trips", json={"passenger_id": other.id, **TRIP}, headers=passenger_headers)
    assert resp.status_code == 403


def test_assign_requires_pending(client, trip, make_driver, admin_headers):
    driver = make_driver()
    resp = client.post(f"/api/trips/{trip.id}/assign", json={"driver_id": driver.id}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "assigned"
    assert resp.json()["data"]["driver_id"] == driver.id

    resp = client.post(f"/api/trips/{trip.id}/assign", json={"driver_id": driver.id}, headers=admin_headers)
    assert resp.status_code == 400


def test_driver_assigns_self(client, trip, make_driver, auth_headers):
    driver = make_driver()
    headers = auth_headers(driver.user_id, "driver")
    resp = client.post(f"/api/trips/{trip.id}/assign", json={"driver_id": driver.id}, headers=headers)
    assert resp.status_code == 200


def test_passenger_cannot_assign(client, trip, make_driver, passenger_headers):
    driver = make_driver()
    resp = client.post(f"/api/trips/{trip.id}/assign", json={"driver_id": driver.id}, headers=passenger_headers)
    assert resp.status_code == 403


@pytest.fixture
def driver(make_driver):
    return make_driver()


@pytest.fixture
def driver_headers(driver, auth_headers):
    return auth_headers(driver.user_id, "driver")


@pytest.fixture
def assigned_trip(client, trip, driver, driver_headers):
    resp = client.post(f"/api/trips/{trip.id}/assign", json={"driver_id": driver.id}, headers=driver_headers)
    assert resp.status_code == 200
    return trip


def test_status_change_stamps_timestamps(client, assigned_trip, driver_headers):
    resp = client.patch(f"/api/trips/{assigned_trip.id}/status", json={"status": "in_progress"}, headers=driver_headers)
    data = resp.json()["data"]
    assert data["status"] == "in_progress"
    assert data["started_at"] is not None
    assert data["ended_at"] is None


def test_passenger_cannot_change_status(client, assigned_trip, passenger_headers):
    for status in ("in_progress", "completed"):
        resp = client.patch(f"/api/trips/{assigned_trip.id}/status", json={"status": status}, headers=passenger_headers)
        assert resp.status_code == 403


def test_other_driver_cannot_change_status(client, assigned_trip, make_driver, auth_headers):
    other = make_driver()
    headers = auth_headers(other.user_id, "driver")
    resp = client.patch(f"/api/trips/{assigned_trip.id}/status", json={"status": "completed"}, headers=headers)
    assert resp.status_code == 403
    resp = client.post(f"/api/trips/{assigned_trip.id}/complete", json={}, headers=headers)
    assert resp.status_code == 403


def test_start_requires_assigned_trip(client, trip, admin_headers):
    resp = client.patch(f"/api/trips/{trip.id}/status", json={"status": "in_progress"}, headers=admin_headers)
    assert resp.status_code == 400


def test_status_cannot_go_back_to_pending(client, assigned_trip, driver_headers):
    resp = client.patch(f"/api/trips/{assigned_trip.id}/status", json={"status": "pending"}, headers=driver_headers)
    assert resp.status_code == 400


def test_completing_through_status_counts_trip_and_sets_price(client, assigned_trip, driver, driver_headers, admin_headers):
    resp = client.patch(f"/api/trips/{assigned_trip.id}/status", json={"status": "completed"}, headers=driver_headers)
    data = resp.json()["data"]
    assert data["status"] == "completed"
    assert data["price_final"] == TRIP["price_estimated"]

    resp = client.get(f"/api/drivers/{driver.id}", headers=admin_headers)
    assert resp.json()["data"]["total_trips"] == 1

    resp = client.patch(f"/api/trips/{assigned_trip.id}/status", json={"status": "cancelled"}, headers=driver_headers)
    assert resp.status_code == 400


def test_passenger_edits_addresses_only(client, trip, passenger_headers):
    resp = client.put(f"/api/trips/{trip.id}", json={"dest_text": "Dixinn"}, headers=passenger_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["dest_text"] == "Dixinn"

    for field, value in (("price_final", 1), ("price_estimated", 1), ("payment_status", "paid")):
        resp = client.put(f"/api/trips/{trip.id}", json={field: value}, headers=passenger_headers)
        assert resp.status_code == 403


def test_admin_edits_price(client, trip, admin_headers):
    resp = client.put(f"/api/trips/{trip.id}", json={"price_final": 30000}, headers=admin_headers)
    assert resp.json()["data"]["price_final"] == 30000


def test_complete_increments_driver_trips(client, session, trip, make_driver, admin_headers):
    driver = make_driver(total_trips=2)
    client.post(f"/api/trips/{trip.id}/assign", json={"driver_id": driver.id}, headers=admin_headers)

    resp = client.post(f"/api/trips/{trip.id}/complete", json={"price_final": 27000}, headers=admin_headers)
    data = resp.json()["data"]
    assert data["status"] == "completed"
    assert data["price_final"] == 27000
    assert data["ended_at"] is not None

    resp = client.get(f"/api/drivers/{driver.id}", headers=admin_headers)
    assert resp.json()["data"]["total_trips"] == 3

    resp = client.post(f"/api/trips/{trip.id}/complete", json={}, headers=admin_headers)
    assert resp.status_code == 400


def test_cancel_records_reason(client, trip, passenger_headers):
    resp = client.post(f"/api/trips/{trip.id}/cancel", json={"reason": "Changed plans"}, headers=passenger_headers)
    data = resp.json()["data"]
    assert data["status"] == "cancelled"
    assert data["cancellation_reason"] == "Changed plans"
    assert data["cancelled_at"] is not None


def test_details_join_passenger_and_driver(client, trip, passenger, make_driver, admin_headers):
    driver = make_driver()
    client.post(f"/api/trips/{trip.id}/assign", json={"driver_id": driver.id}, headers=admin_headers)

    data = client.get(f"/api/trips/{trip.id}/details", headers=admin_headers).json()["data"]
    assert data["passenger_name"] == passenger.name
    assert data["driver_phone"] is not None
    assert data["vehicle_model"] is None


def test_history_and_active_trip(client, trip, passenger, passenger_headers):
    history = client.get("/api/trips/history", headers=passenger_headers).json()["data"]
    assert [t["id"] for t in history] == [trip.id]

    active = client.get(f"/api/trips/passenger/{passenger.id}/active", headers=passenger_headers).json()["data"]
    assert active["id"] == trip.id


def test_soft_delete(client, session, trip, admin_headers):
    assert client.delete(f"/api/trips/{trip.id}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/trips/{trip.id}", headers=admin_headers).status_code == 404
    session.expire_all()
    assert TripRepository(session).count() == 0
