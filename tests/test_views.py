from datetime import timedelta

from app.core.clock import utcnow
from app.modules.posts.views.services.view import ViewContext, ViewService
from tests.conftest import auth_headers


def test_repeat_view_within_window_is_not_unique(db, settings, published_post, buyer):
    service = ViewService(db, settings)
    context = ViewContext(ip_address="10.0.0.1")
    now = utcnow()

    first = service.record_view(published_post["id"], buyer["id"], context, now=now)
    second = service.record_view(published_post["id"], buyer["id"], context, now=now + timedelta(hours=1))

    assert first.is_unique is True
    assert second.is_unique is False


def test_view_after_window_is_unique_again(db, settings, published_post):
    service = ViewService(db, settings)
    context = ViewContext(ip_address="10.0.0.2")
    now = utcnow()

    service.record_view(published_post["id"], None, context, now=now)
    later = service.record_view(
        published_post["id"], None, context, now=now + timedelta(hours=settings.UNIQUE_VIEW_WINDOW_HOURS, minutes=1)
    )

    assert later.is_unique is True


def test_overlong_address_matches_its_stored_prefix(db, settings, published_post):
    service = ViewService(db, settings)
    context = ViewContext(ip_address="2001:db8:" + "abcd:" * 12)
    now = utcnow()

    first = service.record_view(published_post["id"], None, context, now=now)
    second = service.record_view(published_post["id"], None, context, now=now + timedelta(minutes=5))

    assert len(first.ip_address) == 45
    assert second.is_unique is False


def test_different_session_counts_as_unique(db, settings, published_post):
    service = ViewService(db, settings)
    now = utcnow()

    service.record_view(published_post["id"], None, ViewContext(session_id="a"), now=now)
    other = service.record_view(published_post["id"], None, ViewContext(session_id="b"), now=now)

    assert other.is_unique is True


def test_reading_a_post_records_views_for_stats(client, published_post, seller, buyer):
    url = f"/api/v1/posts/{published_post['id']}"
    client.get(url, headers=auth_headers(buyer["token"]))
    client.get(url, headers=auth_headers(buyer["token"]))
    # The owner's own reads are not counted
    client.get(url, headers=auth_headers(seller["token"]))

    stats = client.get(f"{url}/stats", headers=auth_headers(seller["token"])).json()["data"]

    assert stats["viewCount"] == 2
    assert stats["totalViews"] == 2
    assert stats["uniqueViews"] == 1


def test_stats_are_owner_only(client, published_post, buyer):
    response = client.get(f"/api/v1/posts/{published_post['id']}/stats", headers=auth_headers(buyer["token"]))

    assert response.status_code == 403
