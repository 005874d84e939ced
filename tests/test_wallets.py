from anta.repositories import WalletRepository


def _seed(session, balance: int, owner_id: int = 1):
    repo = WalletRepository(session)
    repo.get_or_create("user", owner_id)
    if balance:
        repo.add_funds("user", owner_id, balance)
    return repo


def test_overdraft_transfer_changes_nothing(session):
    repo = _seed(session, 500)

    assert repo.transfer("user", 1, "driver", 7, 1000) is False

    assert repo.get_balance("user", 1) == 500
    assert repo.get_balance("driver", 7) == 0


def test_valid_transfer_moves_exact_amount(session):
    repo = _seed(session, 500)

    assert repo.transfer("user", 1, "driver", 7, 300) is True

    assert repo.get_balance("user", 1) == 200
    assert repo.get_balance("driver", 7) == 300


def test_transfer_of_whole_balance(session):
    repo = _seed(session, 500)
    assert repo.transfer("user", 1, "platform", 0, 500) is True
    assert repo.get_balance("user", 1) == 0
    assert repo.transfer("user", 1, "platform", 0, 1) is False


def test_transfer_from_missing_wallet_fails(session):
    repo = WalletRepository(session)
    assert repo.transfer("user", 99, "user", 98, 10) is False
    assert repo.get_by_owner("user", 99) is None


def test_refused_transfer_creates_no_destination_wallet(session):
    repo = _seed(session, 100)

    assert repo.transfer("user", 1, "driver", 42, 500) is False

    assert repo.get_by_owner("driver", 42) is None
    assert repo.get_balance("user", 1) == 100


def test_transfer_to_new_owner_opens_wallet_with_amount(session):
    repo = _seed(session, 800)

    assert repo.transfer("user", 1, "driver", 42, 250) is True

    wallet = repo.get_by_owner("driver", 42)
    assert wallet.balance_cents == 250
    assert wallet.currency == "GNF"
    assert repo.get_balance("user", 1) == 550


def test_deduct_funds_never_goes_negative(session):
    repo = _seed(session, 100)
    assert repo.deduct_funds("user", 1, 150) is False
    assert repo.deduct_funds("user", 1, 100) is True
    assert repo.get_balance("user", 1) == 0


def test_transfer_endpoint_insufficient_balance(client, session, passenger, passenger_headers):
    _seed(session, 100, owner_id=passenger.id)
    resp = client.post(
        "/api/wallets/transfer",
        json={"from_type": "user", "from_id": passenger.id, "to_type": "platform", "to_id": 0, "amount_cents": 500},
        headers=passenger_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Insufficient balance"


def test_transfer_endpoint(client, session, passenger, passenger_headers):
    _seed(session, 1000, owner_id=passenger.id)
    resp = client.post(
        "/api/wallets/transfer",
        json={"from_type": "user", "from_id": passenger.id, "to_type": "platform", "to_id": 0, "amount_cents": 400},
        headers=passenger_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"] == {"amount_cents": 400, "from_balance": 600, "to_balance": 400}


def test_cannot_transfer_from_someone_elses_wallet(client, passenger_headers, make_user):
    other = make_user()
    resp = client.post(
        "/api/wallets/transfer",
        json={"from_type": "user", "from_id": other.id, "to_type": "platform", "to_id": 0, "amount_cents": 1},
        headers=passenger_headers,
    )
    assert resp.status_code == 403


def test_admin_credit_and_owner_read(client, passenger, passenger_headers, admin_headers):
    resp = client.post(f"/api/wallets/user/{passenger.id}/credit", json={"amount_cents": 2500}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["balance_cents"] == 2500

    resp = client.get(f"/api/wallets/user/{passenger.id}", headers=passenger_headers)
    assert resp.json()["data"]["balance_cents"] == 2500
    assert resp.json()["data"]["currency"] == "GNF"
