import os
import tempfile

# The module-level app in app.main is built from the environment on import
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("UPLOAD_DIRECTORY", os.path.join(tempfile.gettempdir(), "marketplace-test-uploads"))
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import create_app

PASSWORD = "Str0ng!Pass"


def make_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        UPLOAD_DIRECTORY=str(tmp_path / "uploads"),
        BASE_URL="http://testserver",
        STORAGE_ENDPOINT="",
        STORAGE_ACCESS_KEY_ID="",
        STORAGE_SECRET_ACCESS_KEY="",
        RATE_LIMIT_ENABLED=False,
        BCRYPT_ROUNDS=4,
        ENVIRONMENT="test",
        DEBUG=False,
    )
    values.update(overrides)
    return Settings(**values)


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db(app, client):
    session = app.state.db.session()
    try:
        yield session
    finally:
        session.close()


def register(client, email: str, full_name: str = "Test User", **extra) -> dict:
    payload = {"emailAddress": email, "password": PASSWORD, "fullName": full_name}
    payload.update(extra)
    response = client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def seller(client):
    data = register(client, "seller@example.com", "Sam Seller")
    return {"id": data["user"]["id"], "token": data["tokens"]["accessToken"]}


@pytest.fixture
def buyer(client):
    data = register(client, "buyer@example.com", "Bea Buyer")
    return {"id": data["user"]["id"], "token": data["tokens"]["accessToken"]}


@pytest.fixture
def admin(client, db):
    from app.db.init_db import promote_admin

    data = register(client, "admin@example.com", "Ada Admin")
    promote_admin(db, "admin@example.com")
    return {"id": data["user"]["id"], "token": data["tokens"]["accessToken"]}


@pytest.fixture
def category(client, admin):
    response = client.post(
        "/api/v1/categories",
        json={"name": "Electronics", "description": "Phones and computers"},
        headers=auth_headers(admin["token"]),
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def post_payload(category_id: int, **overrides) -> dict:
    payload = {
        "title": "Used laptop for sale",
        "categoryId": category_id,
        "description": "A well kept laptop with charger included",
        "price": 1500000,
        "location": "Kampala",
        "contactNumber": "+256700123456",
        "brand": "Lenovo",
    }
    payload.update(overrides)
    return payload


def create_post(client, token: str, category_id: int, publish: bool = False, **overrides) -> dict:
    response = client.post("/api/v1/posts", json=post_payload(category_id, **overrides), headers=auth_headers(token))
    assert response.status_code == 201, response.text
    post = response.json()["data"]
    if publish:
        response = client.post(f"/api/v1/posts/{post['id']}/publish", headers=auth_headers(token))
        assert response.status_code == 200, response.text
        post = response.json()["data"]
    return post


@pytest.fixture
def published_post(client, seller, category):
    return create_post(client, seller["token"], category["id"], publish=True)
