from datetime import timedelta
from decimal import Decimal
from pathlib import Path

from app.core.clock import utcnow
from app.modules.posts.models.post import Post, PostStatus
from app.modules.posts.services.post import PostService
from tests.conftest import auth_headers, create_post, post_payload


def test_create_post_starts_as_draft_with_ordered_images(client, seller, category):
    images = [
        {"imageUrl": "1-1700000000000-b.jpg", "displayOrder": 1},
        {"imageUrl": "1-1700000000000-a.jpg", "displayOrder": 0},
    ]
    post = create_post(client, seller["token"], category["id"], images=images)

    assert post["status"] == "Draft"
    assert Decimal(post["price"]) == Decimal("1500000")
    assert post["user"]["fullName"] == "Sam Seller"
    assert post["category"]["name"] == "Electronics"
    assert [image["displayOrder"] for image in post["images"]] == [0, 1]
    assert post["images"][0]["previewUrl"] == "http://testserver/api/v1/media/1-1700000000000-a.jpg"


def test_price_is_returned_as_exact_decimal(client, seller, category):
    post = create_post(client, seller["token"], category["id"], price="249999.99")
    fetched = client.get(f"/api/v1/posts/{post['id']}", headers=auth_headers(seller["token"])).json()["data"]

    assert post["price"] == "249999.99"
    assert fetched["price"] == "249999.99"


def test_create_post_requires_authentication(client, category):
    response = client.post("/api/v1/posts", json=post_payload(category["id"]))

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_create_post_reports_every_invalid_field(client, seller, category):
    payload = post_payload(category["id"], title="abc", price=-5)
    del payload["location"]

    response = client.post("/api/v1/posts", json=payload, headers=auth_headers(seller["token"]))

    assert response.status_code == 400
    fields = {detail["field"] for detail in response.json()["error"]["details"]}
    assert {"title", "price", "location"} <= fields


def test_create_post_with_unknown_category(client, seller, category):
    response = client.post(
        "/api/v1/posts", json=post_payload(category["id"] + 100), headers=auth_headers(seller["token"])
    )

    assert response.status_code == 404


def test_schedule_then_publish_immediately(client, seller, category):
    post = create_post(client, seller["token"], category["id"])
    scheduled_time = (utcnow() + timedelta(hours=1)).isoformat()

    response = client.post(
        f"/api/v1/posts/{post['id']}/schedule",
        json={"scheduledTime": scheduled_time},
        headers=auth_headers(seller["token"]),
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "Scheduled"

    response = client.post(f"/api/v1/posts/{post['id']}/publish", headers=auth_headers(seller["token"]))
    published = response.json()["data"]

    assert published["status"] == "Published"
    assert published["publishedAt"] is not None
    assert published["scheduledPublishTime"] is None
    assert published["expiresAt"] is not None


def test_schedule_in_the_past_is_rejected(client, seller, category):
    post = create_post(client, seller["token"], category["id"])

    response = client.post(
        f"/api/v1/posts/{post['id']}/schedule",
        json={"scheduledTime": (utcnow() - timedelta(minutes=5)).isoformat()},
        headers=auth_headers(seller["token"]),
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_publishing_twice_conflicts(client, seller, published_post):
    response = client.post(f"/api/v1/posts/{published_post['id']}/publish", headers=auth_headers(seller["token"]))

    assert response.status_code == 409


def test_only_owner_can_modify(client, buyer, published_post):
    url = f"/api/v1/posts/{published_post['id']}"

    assert client.put(url, json={"title": "Stolen listing"}, headers=auth_headers(buyer["token"])).status_code == 403
    assert client.delete(url, headers=auth_headers(buyer["token"])).status_code == 403


def test_update_post_replaces_images(client, seller, category):
    post = create_post(
        client, seller["token"], category["id"], images=[{"imageUrl": "old.jpg", "displayOrder": 0}]
    )

    response = client.put(
        f"/api/v1/posts/{post['id']}",
        json={"title": "Updated laptop listing", "images": [{"imageUrl": "new.png", "displayOrder": 0}]},
        headers=auth_headers(seller["token"]),
    )
    updated = response.json()["data"]

    assert response.status_code == 200
    assert updated["title"] == "Updated laptop listing"
    assert [image["imageUrl"] for image in updated["images"]] == ["new.png"]


def test_drafts_are_hidden_from_other_users(client, seller, buyer, category):
    post = create_post(client, seller["token"], category["id"])
    url = f"/api/v1/posts/{post['id']}"

    assert client.get(url).status_code == 404
    assert client.get(url, headers=auth_headers(buyer["token"])).status_code == 404
    assert client.get(url, headers=auth_headers(seller["token"])).status_code == 200


def test_get_post_marks_liked_state(client, buyer, published_post):
    url = f"/api/v1/posts/{published_post['id']}"
    client.post(f"{url}/like", headers=auth_headers(buyer["token"]))

    post = client.get(url, headers=auth_headers(buyer["token"])).json()["data"]

    assert post["isLiked"] is True
    assert post["likeCount"] == 1


def test_delete_post_removes_it(client, seller, buyer, published_post):
    url = f"/api/v1/posts/{published_post['id']}"
    client.post(f"{url}/like", headers=auth_headers(buyer["token"]))

    response = client.delete(url, headers=auth_headers(seller["token"]))

    assert response.status_code == 200
    assert client.get(url, headers=auth_headers(seller["token"])).status_code == 404


def test_delete_post_survives_unremovable_image(client, settings, seller, category):
    uploads = Path(settings.UPLOAD_DIRECTORY)
    (uploads / "1-1700000000000-stuck.jpg").mkdir(parents=True)
    (uploads / "1-1700000000000-gone.jpg").write_bytes(b"jpeg")
    images = [
        {"imageUrl": "1-1700000000000-stuck.jpg", "displayOrder": 0},
        {"imageUrl": "1-1700000000000-gone.jpg", "displayOrder": 1},
    ]
    post = create_post(client, seller["token"], category["id"], images=images)

    response = client.delete(f"/api/v1/posts/{post['id']}", headers=auth_headers(seller["token"]))

    assert response.status_code == 200
    assert not (uploads / "1-1700000000000-gone.jpg").exists()


def test_delete_post_with_payments_conflicts(client, seller, buyer, published_post):
    client.post(
        "/api/v1/payments",
        json={"postId": published_post["id"], "paymentMethod": "MobileMoney"},
        headers=auth_headers(buyer["token"]),
    )

    response = client.delete(f"/api/v1/posts/{published_post['id']}", headers=auth_headers(seller["token"]))

    assert response.status_code == 409


def test_process_due_posts_publishes_and_expires(db, settings, app, seller, category, client):
    due = create_post(client, seller["token"], category["id"])
    lapsed = create_post(client, seller["token"], category["id"], publish=True)
    now = utcnow()

    db.query(Post).filter(Post.id == due["id"]).update(
        {Post.status: PostStatus.SCHEDULED, Post.scheduled_publish_time: now - timedelta(minutes=1)}
    )
    db.query(Post).filter(Post.id == lapsed["id"]).update({Post.expires_at: now - timedelta(minutes=1)})
    db.commit()

    result = PostService(db, settings, app.state.storage).process_due_posts(now=now)

    assert (result.published, result.expired) == (1, 1)
    db.expire_all()
    assert db.get(Post, due["id"]).status == PostStatus.PUBLISHED
    assert db.get(Post, lapsed["id"]).status == PostStatus.EXPIRED


def test_posts_summary_counts_by_status(client, seller, category):
    create_post(client, seller["token"], category["id"])
    create_post(client, seller["token"], category["id"], publish=True)

    summary = client.get("/api/v1/users/posts-summary", headers=auth_headers(seller["token"])).json()["data"]

    assert summary == {"total": 2, "published": 1, "draft": 1, "scheduled": 0, "expired": 0}
