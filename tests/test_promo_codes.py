from datetime import timedelta

from anta.models import PromoCode, utcnow
from anta.repositories import PromoCodeRepository


def test_percent_discount():
    promo = PromoCode(code="TEN", discount_type="percent", value=10)
    assert PromoCodeRepository.calculate_discount(promo, 1000) == 100


def test_flat_discount_is_capped_at_amount():
    promo = PromoCode(code="FLAT", discount_type="flat", value=200)
    assert PromoCodeRepository.calculate_discount(promo, 150) == 150
    assert PromoCodeRepository.calculate_discount(promo, 1000) == 200


def test_find_by_code_is_case_insensitive(session):
    repo = PromoCodeRepository(session)
    repo.create({"code": "WELCOME", "value": 15})
    assert repo.find_by_code("welcome").code == "WELCOME"


def test_validity_window_and_usage(session):
    repo = PromoCodeRepository(session)
    now = utcnow()
    repo.create({"code": "EXPIRED", "value": 5, "valid_to": now - timedelta(days=1)})
    repo.create({"code": "LATER", "value": 5, "valid_from": now + timedelta(days=1)})
    repo.create({"code": "USEDUP", "value": 5, "usage_limit": 0})
    repo.create({"code": "OFF", "value": 5, "active": False})
    repo.create({"code": "GOOD", "value": 5, "valid_from": now - timedelta(days=1)})

    assert [p.code for p in repo.get_active_promo_codes()] == ["USEDUP", "GOOD"]
    assert not repo.is_valid("EXPIRED")
    assert not repo.is_valid("LATER")
    assert not repo.is_valid("USEDUP")
    assert not repo.is_valid("OFF")
    assert repo.is_valid("good")


def test_apply_decrements_usage_limit(session):
    repo = PromoCodeRepository(session)
    repo.create({"code": "TWICE", "value": 5, "usage_limit": 2})

    assert repo.apply_promo_code("TWICE") is True
    assert repo.apply_promo_code("TWICE") is True
    assert repo.apply_promo_code("TWICE") is False
    assert repo.find_by_code("TWICE").usage_limit == 0


def test_apply_unlimited_code_keeps_null_limit(session):
    repo = PromoCodeRepository(session)
    repo.create({"code": "FOREVER", "value": 5})
    assert repo.apply_promo_code("FOREVER") is True
    assert repo.find_by_code("FOREVER").usage_limit is None


def test_validate_endpoint(client, session, passenger_headers):
    PromoCodeRepository(session).create({"code": "TEN", "discount_type": "percent", "value": 10})

    resp = client.post("/api/promo-codes/validate", json={"code": "ten", "amount": 25000}, headers=passenger_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["discount"] == 2500
    assert data["final_amount"] == 22500

    resp = client.post("/api/promo-codes/validate", json={"code": "NOPE", "amount": 100}, headers=passenger_headers)
    assert resp.status_code == 400


def test_promo_crud_is_admin_only(client, passenger_headers, admin_headers):
    payload = {"code": "new10", "discount_type": "percent", "value": 10}
    assert client.post("/api/promo-codes", json=payload, headers=passenger_headers).status_code == 403

    resp = client.post("/api/promo-codes", json=payload, headers=admin_headers)
    assert resp.status_code == 201
    assert resp.json()["data"]["code"] == "NEW10"

    assert client.post("/api/promo-codes", json=payload, headers=admin_headers).status_code == 409
