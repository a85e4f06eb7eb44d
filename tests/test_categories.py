from tests.conftest import auth_headers, create_post


def test_list_categories_is_public_with_post_counts(client, seller, category):
    create_post(client, seller["token"], category["id"])

    categories = client.get("/api/v1/categories").json()["data"]

    assert categories[0]["name"] == "Electronics"
    assert categories[0]["postCount"] == 1


def test_non_admin_cannot_create_category(client, seller):
    response = client.post("/api/v1/categories", json={"name": "Pets"}, headers=auth_headers(seller["token"]))

    assert response.status_code == 403
    assert response.json()["error"]["message"] == "Admin access required"


def test_duplicate_category_name_conflicts(client, admin, category):
    response = client.post(
        "/api/v1/categories", json={"name": "electronics"}, headers=auth_headers(admin["token"])
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "RESOURCE_ALREADY_EXISTS"


def test_update_category(client, admin, category):
    response = client.put(
        f"/api/v1/categories/{category['id']}",
        json={"description": "All things electronic"},
        headers=auth_headers(admin["token"]),
    )

    assert response.json()["data"]["description"] == "All things electronic"


def test_delete_category_in_use_conflicts(client, admin, seller, category):
    create_post(client, seller["token"], category["id"])

    response = client.delete(f"/api/v1/categories/{category['id']}", headers=auth_headers(admin["token"]))

    assert response.status_code == 409


def test_delete_unused_category(client, admin, category):
    response = client.delete(f"/api/v1/categories/{category['id']}", headers=auth_headers(admin["token"]))

    assert response.status_code == 200
    assert client.get(f"/api/v1/categories/{category['id']}").status_code == 404


def test_update_category_rejects_null_name(client, admin, category):
    response = client.put(
        f"/api/v1/categories/{category['id']}", json={"name": None}, headers=auth_headers(admin["token"])
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
    assert client.get(f"/api/v1/categories/{category['id']}").json()["data"]["name"] == "Electronics"


def test_category_mutations_require_token(client, category):
    created = client.post("/api/v1/categories", json={"name": "Pets"})
    updated = client.put(f"/api/v1/categories/{category['id']}", json={"description": "Gadgets"})
    deleted = client.delete(f"/api/v1/categories/{category['id']}")

    for response in (created, updated, deleted):
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_create_category_losing_name_race_conflicts(client, admin, category, monkeypatch):
    from app.modules.categories.repositories.category import CategoryRepository

    monkeypatch.setattr(CategoryRepository, "find_by_name", lambda self, name: None)

    response = client.post(
        "/api/v1/categories", json={"name": "Electronics"}, headers=auth_headers(admin["token"])
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "RESOURCE_ALREADY_EXISTS"
