import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from anta.auth import create_access_token
from anta.config import GoogleSettings, JWTSettings, OTPSettings, Settings, get_settings
from anta.database import build_engine, get_session, init_db
from anta.main import app
from anta.repositories import DriverRepository, UserRepository

TEST_SECRET = "test-secret"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        jwt=JWTSettings(secret=TEST_SECRET, algorithm="HS256", expiration_hours=1),
        google=GoogleSettings(maps_api_key="test-key"),
        otp=OTPSettings(dev_bypass=False),
    )


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine, settings):
    def _session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def _make(role: str = "passenger", **fields):
        counter["n"] += 1
        data = {
            "phone": f"+2246200000{counter['n']:02d}",
            "name": f"{role.title()} {counter['n']}",
            "role": role,
        }
        data.update(fields)
        return UserRepository(session).create(data)

    return _make


@pytest.fixture
def make_driver(session, make_user):
    def _make(status: str = "online", latitude=None, longitude=None, **fields):
        user = make_user("driver")
        return DriverRepository(session).create({
            "user_id": user.id,
            "status": status,
            "current_latitude": latitude,
            "current_longitude": longitude,
            **fields,
        })

    return _make


@pytest.fixture
def auth_headers(settings):
    def _headers(user_id: int, role: str) -> dict:
        token = create_access_token(user_id, role, settings)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin(make_user):
    return make_user("admin", email="admin@anta.gn")


@pytest.fixture
def admin_headers(admin, auth_headers):
    return auth_headers(admin.id, "admin")


@pytest.fixture
def passenger(make_user):
    return make_user("passenger")


@pytest.fixture
def passenger_headers(passenger, auth_headers):
    return auth_headers(passenger.id, "passenger")
