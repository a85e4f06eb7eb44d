from tests.conftest import auth_headers, create_post


def test_toggle_like_on_and_off(client, buyer, published_post):
    url = f"/api/v1/posts/{published_post['id']}/like"

    first = client.post(url, headers=auth_headers(buyer["token"])).json()["data"]
    second = client.post(url, headers=auth_headers(buyer["token"])).json()["data"]

    assert first == {"liked": True, "likeCount": 1}
    assert second == {"liked": False, "likeCount": 0}


def test_like_count_tracks_distinct_users(client, seller, buyer, published_post):
    url = f"/api/v1/posts/{published_post['id']}/like"
    client.post(url, headers=auth_headers(buyer["token"]))

    result = client.post(url, headers=auth_headers(seller["token"])).json()["data"]

    assert result["likeCount"] == 2


def test_cannot_like_unpublished_post(client, seller, buyer, category):
    draft = create_post(client, seller["token"], category["id"])

    response = client.post(f"/api/v1/posts/{draft['id']}/like", headers=auth_headers(buyer["token"]))

    assert response.status_code == 404


def test_like_requires_authentication(client, published_post):
    response = client.post(f"/api/v1/posts/{published_post['id']}/like")

    assert response.status_code == 401


def test_list_likers_is_paginated(client, seller, buyer, published_post):
    url = f"/api/v1/posts/{published_post['id']}"
    client.post(f"{url}/like", headers=auth_headers(buyer["token"]))
    client.post(f"{url}/like", headers=auth_headers(seller["token"]))

    body = client.get(f"{url}/likes", params={"page": 1, "limit": 1}).json()

    assert body["pagination"] == {"total": 2, "page": 1, "limit": 1, "pages": 2}
    assert len(body["data"]) == 1
    assert body["data"][0]["fullName"] in {"Sam Seller", "Bea Buyer"}
