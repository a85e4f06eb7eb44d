from fastapi.testclient import TestClient

from app.main import create_app
from tests.conftest import auth_headers, make_settings


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/v1/does-not-exist")
    body = response.json()

    assert response.status_code == 404
    assert body["success"] is False
    assert body["error"]["code"] == "RESOURCE_NOT_FOUND"
    assert body["error"]["message"] == "Route GET /api/v1/does-not-exist not found"
    assert body["error"]["statusCode"] == 404


def test_garbage_token_is_invalid(client):
    response = client.get("/api/v1/users/profile", headers=auth_headers("not-a-jwt"))

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_TOKEN"


def test_invalid_path_parameter_is_validation_error(client):
    response = client.get("/api/v1/categories/0")

    assert response.status_code == 400
    assert response.json()["error"]["details"][0]["field"] == "category_id"


def test_health(client):
    body = client.get("/health").json()

    assert body["status"] == "ok"
    assert body["timestamp"]


def _add_failing_route(app):
    @app.get("/boom")
    def boom():
        raise RuntimeError("kaboom")


def test_unexpected_error_hides_details_outside_development(tmp_path):
    app = create_app(make_settings(tmp_path, ENVIRONMENT="production"))
    _add_failing_route(app)

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/boom")

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "INTERNAL_ERROR"
    assert "details" not in response.json()["error"]


def test_unexpected_error_includes_details_in_development(tmp_path):
    app = create_app(make_settings(tmp_path, ENVIRONMENT="development"))
    _add_failing_route(app)

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/boom")

    assert response.json()["error"]["details"] == "kaboom"


def test_constraint_violation_maps_to_conflict(tmp_path):
    from sqlalchemy.exc import IntegrityError

    app = create_app(make_settings(tmp_path))

    @app.get("/clash")
    def clash():
        raise IntegrityError("INSERT INTO users ...", {}, Exception("UNIQUE constraint failed: users.email"))

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/clash")

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CONFLICT"
