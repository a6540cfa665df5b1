import os
from typing import Generator

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("RATE_LIMITING_ENABLED", "false")
os.environ.setdefault("LOG_DIR", "./out/logs")

from common.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

from common.database import Base, SessionLocal, engine  # noqa: E402
from services.bookings.app import app as bookings_app  # noqa: E402
from services.users.app import app as users_app  # noqa: E402
from services.venues.app import app as venues_app  # noqa: E402
from services.venues.app import venue_list_cache  # noqa: E402
from common.cache import schedule_cache  # noqa: E402

ADMIN_PAYLOAD = {
    "name": "Sarah Chen",
    "username": "admin",
    "email": "admin@example.com",
    "password": "Passw0rd!",
    "role": "admin",
}

USER_PAYLOAD = {
    "name": "Alex Rivera",
    "username": "alex",
    "email": "alex@example.com",
    "password": "Passw0rd!",
}


@pytest.fixture(autouse=True, scope="function")
def _create_test_database() -> Generator[None, None, None]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    venue_list_cache.clear()
    schedule_cache.clear()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session() -> Generator:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def users_client() -> Generator[TestClient, None, None]:
    with TestClient(users_app) as client:
        yield client


@pytest.fixture()
def venues_client() -> Generator[TestClient, None, None]:
    with TestClient(venues_app) as client:
        yield client


@pytest.fixture()
def bookings_client() -> Generator[TestClient, None, None]:
    with TestClient(bookings_app) as client:
        yield client


def auth_header(users_client, username: str, password: str) -> dict[str, str]:
    response = users_client.post(
        "/users/login",
        data={"username": username, "password": password},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers(users_client) -> dict[str, str]:
    users_client.post("/users/register", json=ADMIN_PAYLOAD)
    return auth_header(users_client, ADMIN_PAYLOAD["username"], ADMIN_PAYLOAD["password"])


@pytest.fixture()
def user_headers(users_client, admin_headers) -> dict[str, str]:
    users_client.post("/users/register", json=USER_PAYLOAD)
    return auth_header(users_client, USER_PAYLOAD["username"], USER_PAYLOAD["password"])


@pytest.fixture()
def venue_id(venues_client, admin_headers) -> str:
    response = venues_client.post(
        "/venues",
        json={
            "name": "Skyline Boardroom",
            "description": "Meeting room with city views",
            "capacity": 12,
            "amenities": ["Projector", "Whiteboard"],
            "location": "Floor 42, East Wing",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    return response.json()["id"]
