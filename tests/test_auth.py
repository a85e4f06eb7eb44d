import httpx

from app.modules.auth.services.oauth import OAuthClient
from tests.conftest import PASSWORD, auth_headers, register


def test_register_returns_user_and_tokens(client):
    data = register(client, "New.User@Example.com", "New User", phoneNumber="+256700000001")

    assert data["user"]["emailAddress"] == "new.user@example.com"
    assert data["user"]["isEmailVerified"] is False
    assert data["tokens"]["accessToken"]
    assert data["tokens"]["refreshToken"]


def test_register_duplicate_email_conflicts(client):
    register(client, "dup@example.com")

    response = client.post(
        "/api/v1/auth/register",
        json={"emailAddress": "DUP@example.com", "password": PASSWORD, "fullName": "Again"},
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "RESOURCE_ALREADY_EXISTS"


def test_register_weak_password_lists_rules(client):
    response = client.post(
        "/api/v1/auth/register",
        json={"emailAddress": "weak@example.com", "password": "alllowercase", "fullName": "Weak"},
    )

    assert response.status_code == 400
    assert {d["field"] for d in response.json()["error"]["details"]} == {"password"}


def test_register_rejects_malformed_phone(client):
    response = client.post(
        "/api/v1/auth/register",
        json={"emailAddress": "p@example.com", "password": PASSWORD, "fullName": "Phone", "phoneNumber": "0700"},
    )

    assert response.status_code == 400
    assert response.json()["error"]["details"][0]["field"] == "phoneNumber"


def test_login_and_wrong_password(client):
    register(client, "login@example.com")

    ok = client.post("/api/v1/auth/login", json={"emailAddress": "login@example.com", "password": PASSWORD})
    bad = client.post("/api/v1/auth/login", json={"emailAddress": "login@example.com", "password": "Wr0ng!Pass"})

    assert ok.status_code == 200
    assert bad.status_code == 401
    assert bad.json()["error"]["code"] == "INVALID_CREDENTIALS"


def test_refresh_issues_new_pair(client):
    tokens = register(client, "refresh@example.com")["tokens"]

    response = client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    misuse = client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["accessToken"]})

    assert response.status_code == 200
    assert response.json()["data"]["accessToken"] != tokens["accessToken"]
    assert misuse.status_code == 401
    assert misuse.json()["error"]["code"] == "INVALID_TOKEN"


def test_check_phone_availability(client):
    register(client, "phone@example.com", phoneNumber="+256700000002")

    taken = client.get("/api/v1/auth/check-phone", params={"phoneNumber": "+256700000002"}).json()["data"]
    free = client.get("/api/v1/auth/check-phone", params={"phoneNumber": "+256700000003"}).json()["data"]

    assert taken["available"] is False
    assert free["available"] is True


def test_deactivated_account_cannot_log_in(client):
    token = register(client, "gone@example.com")["tokens"]["accessToken"]
    client.delete("/api/v1/users/account", headers=auth_headers(token))

    response = client.post("/api/v1/auth/login", json={"emailAddress": "gone@example.com", "password": PASSWORD})

    assert response.status_code == 403


def google_transport(status_code=200, body=None):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer provider-token"
        return httpx.Response(
            status_code,
            json=body if body is not None else {"id": "g-123", "email": "Oauth@Example.com", "name": "Olive Auth"},
        )

    return httpx.MockTransport(handler)


def test_google_login_creates_verified_user(app, client, settings):
    app.state.oauth_client = OAuthClient(settings, transport=google_transport())

    response = client.post("/api/v1/auth/oauth/google", json={"accessToken": "provider-token"})
    user = response.json()["data"]["user"]

    assert response.status_code == 200
    assert user["emailAddress"] == "oauth@example.com"
    assert user["fullName"] == "Olive Auth"
    assert user["isEmailVerified"] is True


def test_google_login_links_existing_account(app, client, settings):
    existing = register(client, "oauth@example.com")["user"]
    app.state.oauth_client = OAuthClient(settings, transport=google_transport())

    user = client.post("/api/v1/auth/oauth/google", json={"accessToken": "provider-token"}).json()["data"]["user"]

    assert user["id"] == existing["id"]
    # The local password keeps working after linking
    login = client.post("/api/v1/auth/login", json={"emailAddress": "oauth@example.com", "password": PASSWORD})
    assert login.status_code == 200


def test_provider_rejection_maps_to_external_service_error(app, client, settings):
    app.state.oauth_client = OAuthClient(settings, transport=google_transport(401, {"error": "invalid_token"}))

    response = client.post("/api/v1/auth/oauth/google", json={"accessToken": "provider-token"})

    assert response.status_code == 502
    assert response.json()["error"]["code"] == "EXTERNAL_SERVICE_ERROR"


def test_oauth_account_cannot_change_password(app, client, settings):
    app.state.oauth_client = OAuthClient(settings, transport=google_transport())
    token = client.post(
        "/api/v1/auth/oauth/google", json={"accessToken": "provider-token"}
    ).json()["data"]["tokens"]["accessToken"]

    response = client.post(
        "/api/v1/users/change-password",
        json={"currentPassword": "whatever", "newPassword": "N3w!Password"},
        headers=auth_headers(token),
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "BAD_REQUEST"


def test_register_losing_email_race_conflicts(client, monkeypatch):
    from app.modules.user_management.repositories.user import UserRepository

    register(client, "race@example.com")
    # Simulate the check passing before the other registration commits
    monkeypatch.setattr(UserRepository, "find_by_email", lambda self, email: None)

    response = client.post(
        "/api/v1/auth/register",
        json={"emailAddress": "race@example.com", "password": PASSWORD, "fullName": "Late Comer"},
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "RESOURCE_ALREADY_EXISTS"
