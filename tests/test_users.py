from tests.conftest import PASSWORD, auth_headers, register


def test_profile_round_trip(client, seller):
    headers = auth_headers(seller["token"])

    updated = client.put(
        "/api/v1/users/profile",
        json={"location": "Gulu", "bio": "Selling gadgets", "profilePictureUrl": "1-1700000000000-me.png"},
        headers=headers,
    ).json()["data"]
    profile = client.get("/api/v1/users/profile", headers=headers).json()["data"]

    assert updated["location"] == "Gulu"
    assert profile["bio"] == "Selling gadgets"
    assert profile["profilePictureUrl"] == "http://testserver/api/v1/media/1-1700000000000-me.png"
    assert profile["emailAddress"] == "seller@example.com"


def test_profile_requires_token(client):
    response = client.get("/api/v1/users/profile")

    assert response.status_code == 401
    assert response.json()["error"]["message"] == "No token provided"


def test_profile_phone_must_be_unique(client, seller):
    register(client, "other@example.com", phoneNumber="+256700000009")

    response = client.put(
        "/api/v1/users/profile", json={"phoneNumber": "+256700000009"}, headers=auth_headers(seller["token"])
    )

    assert response.status_code == 409


def test_change_password(client, seller):
    headers = auth_headers(seller["token"])

    wrong = client.post(
        "/api/v1/users/change-password",
        json={"currentPassword": "Wr0ng!Pass", "newPassword": "N3w!Password"},
        headers=headers,
    )
    changed = client.post(
        "/api/v1/users/change-password",
        json={"currentPassword": PASSWORD, "newPassword": "N3w!Password"},
        headers=headers,
    )
    login = client.post(
        "/api/v1/auth/login", json={"emailAddress": "seller@example.com", "password": "N3w!Password"}
    )

    assert wrong.status_code == 401
    assert changed.status_code == 200
    assert login.status_code == 200


def test_profile_update_rejects_null_full_name(client, seller):
    headers = auth_headers(seller["token"])

    response = client.put("/api/v1/users/profile", json={"fullName": None}, headers=headers)
    profile = client.get("/api/v1/users/profile", headers=headers).json()["data"]

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
    assert response.json()["error"]["details"][0]["field"] == "fullName"
    assert profile["fullName"]
