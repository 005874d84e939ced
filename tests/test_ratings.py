import pytest

from anta.repositories import RatingRepository, TripRepository

TRIP = {
    "origin_lat": 9.5092,
    "origin_lng": -13.7122,
    "origin_text": "Kaloum",
    "dest_lat": 9.6412,
    "dest_lng": -13.5784,
    "dest_text": "Lambanyi",
}


@pytest.fixture
def driver(make_driver):
    return make_driver()


@pytest.fixture
def trip(session, passenger, driver):
    return TripRepository(session).create({"passenger_id": passenger.id, "driver_id": driver.id, **TRIP})


def test_rating_updates_driver_average(client, session, trip, driver, passenger, make_user, auth_headers):
    headers = auth_headers(passenger.id, "passenger")
    resp = client.post(
        "/api/ratings",
        json={"trip_id": trip.id, "to_user_id": driver.user_id, "rating": 4, "comment": "Bien"},
        headers=headers,
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["from_user_id"] == passenger.id

    other = make_user()
    second_trip = TripRepository(session).create({"passenger_id": other.id, "driver_id": driver.id, **TRIP})
    client.post(
        "/api/ratings",
        json={"trip_id": second_trip.id, "to_user_id": driver.user_id, "rating": 5},
        headers=auth_headers(other.id, "passenger"),
    )

    resp = client.get(f"/api/drivers/{driver.id}", headers=headers)
    assert resp.json()["data"]["rating_avg"] == 4.5


def test_rating_same_trip_twice_is_conflict(client, trip, driver, passenger, auth_headers):
    headers = auth_headers(passenger.id, "passenger")
    payload = {"trip_id": trip.id, "to_user_id": driver.user_id, "rating": 5}
    assert client.post("/api/ratings", json=payload, headers=headers).status_code == 201

    resp = client.post("/api/ratings", json=payload, headers=headers)
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "CONFLICT"


def test_rating_out_of_range(client, trip, driver, passenger_headers):
    resp = client.post(
        "/api/ratings",
        json={"trip_id": trip.id, "to_user_id": driver.user_id, "rating": 6},
        headers=passenger_headers,
    )
    assert resp.status_code == 400


def test_rating_stats(session, trip, driver, passenger, make_user):
    repo = RatingRepository(session)
    repo.create({"trip_id": trip.id, "from_user_id": passenger.id, "to_user_id": driver.user_id, "rating": 5})
    other = make_user()
    repo.create({"trip_id": trip.id, "from_user_id": other.id, "to_user_id": driver.user_id, "rating": 3})

    stats = repo.get_rating_stats(driver.user_id)

    assert stats["average"] == 4.0
    assert stats["total"] == 2
    assert stats["distribution"] == {5: 1, 4: 0, 3: 1, 2: 0, 1: 0}


def test_rating_stats_for_unrated_user(session, passenger):
    stats = RatingRepository(session).get_rating_stats(passenger.id)
    assert stats == {"average": 0.0, "total": 0, "distribution": {5: 0, 4: 0, 3: 0, 2: 0, 1: 0}}


def test_pending_lists_completed_unrated_trips(client, session, driver, passenger, passenger_headers, auth_headers):
    trips = TripRepository(session)
    done, rated, _open = trips.create_many([
        {"passenger_id": passenger.id, "driver_id": driver.id, "status": "completed", **TRIP},
        {"passenger_id": passenger.id, "driver_id": driver.id, "status": "completed", **TRIP},
        {"passenger_id": passenger.id, "driver_id": driver.id, "status": "in_progress", **TRIP},
    ])
    RatingRepository(session).create(
        {"trip_id": rated.id, "from_user_id": passenger.id, "to_user_id": driver.user_id, "rating": 4}
    )

    resp = client.get("/api/ratings/pending", headers=passenger_headers)
    assert [t["id"] for t in resp.json()["data"]] == [done.id]

    driver_headers = auth_headers(driver.user_id, "driver")
    resp = client.get("/api/ratings/pending", params={"user_type": "driver"}, headers=driver_headers)
    assert sorted(t["id"] for t in resp.json()["data"]) == sorted([done.id, rated.id])


def test_pending_rejects_unknown_user_type(client, passenger_headers):
    resp = client.get("/api/ratings/pending", params={"user_type": "admin"}, headers=passenger_headers)
    assert resp.status_code == 400


def test_badges_for_top_experienced_driver(client, session, driver, passenger, passenger_headers):
    driver.total_trips = 120
    session.add(driver)
    session.commit()
    trips = TripRepository(session).create_many(
        [{"passenger_id": passenger.id, "driver_id": driver.id, "status": "completed", **TRIP}] * 50
    )
    RatingRepository(session).create_many(
        {"trip_id": t.id, "from_user_id": passenger.id, "to_user_id": driver.user_id, "rating": 5} for t in trips
    )

    resp = client.get(f"/api/ratings/user/{driver.user_id}/badges", headers=passenger_headers)
    assert resp.json()["data"]["badges"] == ["top_driver", "experienced"]


def test_new_driver_has_no_badges(session, trip, driver, passenger):
    repo = RatingRepository(session)
    repo.create({"trip_id": trip.id, "from_user_id": passenger.id, "to_user_id": driver.user_id, "rating": 5})
    assert repo.calculate_badges(driver.user_id) == []


def test_badges_for_missing_user(client, passenger_headers):
    assert client.get("/api/ratings/user/999/badges", headers=passenger_headers).status_code == 404
