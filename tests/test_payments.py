from decimal import Decimal

from app.db.init_db import seed_pricing_tiers
from tests.conftest import auth_headers


def start_payment(client, token, post_id, **extra):
    payload = {"postId": post_id, "paymentMethod": "MobileMoney"}
    payload.update(extra)
    return client.post("/api/v1/payments", json=payload, headers=auth_headers(token))


def test_create_payment_is_pending_for_post_price(client, buyer, published_post):
    response = start_payment(client, buyer["token"], published_post["id"])
    payment = response.json()["data"]

    assert response.status_code == 201
    assert payment["status"] == "Pending"
    assert Decimal(payment["amount"]) == Decimal(published_post["price"])
    assert payment["currency"] == "UGX"
    assert payment["post"]["title"] == published_post["title"]


def test_cannot_pay_for_own_post(client, seller, published_post):
    response = start_payment(client, seller["token"], published_post["id"])

    assert response.status_code == 400


def test_unknown_payment_method_is_rejected(client, buyer, published_post):
    response = start_payment(client, buyer["token"], published_post["id"], paymentMethod="Cheque")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_confirm_is_terminal(client, buyer, published_post):
    payment = start_payment(client, buyer["token"], published_post["id"]).json()["data"]
    url = f"/api/v1/payments/{payment['id']}"

    confirmed = client.post(f"{url}/confirm", json={"transactionReference": "MM-123"}, headers=auth_headers(buyer["token"]))
    again = client.post(f"{url}/fail", json={"reason": "late"}, headers=auth_headers(buyer["token"]))

    assert confirmed.json()["data"]["status"] == "Confirmed"
    assert confirmed.json()["data"]["transactionReference"] == "MM-123"
    assert confirmed.json()["data"]["confirmedAt"] is not None
    assert again.status_code == 409


def test_fail_without_body_uses_default_reason(client, buyer, published_post):
    payment = start_payment(client, buyer["token"], published_post["id"]).json()["data"]

    failed = client.post(f"/api/v1/payments/{payment['id']}/fail", headers=auth_headers(buyer["token"])).json()["data"]

    assert failed["status"] == "Failed"
    assert failed["failureReason"] == "Payment failed"


def test_cancel_marks_payment_failed(client, buyer, published_post):
    payment = start_payment(client, buyer["token"], published_post["id"]).json()["data"]

    cancelled = client.post(
        f"/api/v1/payments/{payment['id']}/cancel", headers=auth_headers(buyer["token"])
    ).json()["data"]

    assert cancelled["status"] == "Failed"
    assert cancelled["failureReason"] == "Cancelled by user"


def test_only_payer_can_confirm(client, seller, buyer, published_post):
    payment = start_payment(client, buyer["token"], published_post["id"]).json()["data"]

    response = client.post(
        f"/api/v1/payments/{payment['id']}/confirm",
        json={"transactionReference": "MM-1"},
        headers=auth_headers(seller["token"]),
    )

    assert response.status_code == 403


def test_post_owner_can_read_payment_and_list_post_payments(client, seller, buyer, published_post):
    payment = start_payment(client, buyer["token"], published_post["id"]).json()["data"]

    single = client.get(f"/api/v1/payments/{payment['id']}", headers=auth_headers(seller["token"]))
    listing = client.get(f"/api/v1/payments/post/{published_post['id']}", headers=auth_headers(seller["token"]))
    forbidden = client.get(f"/api/v1/payments/post/{published_post['id']}", headers=auth_headers(buyer["token"]))

    assert single.status_code == 200
    assert [p["id"] for p in listing.json()["data"]] == [payment["id"]]
    assert forbidden.status_code == 403


def test_history_totals_confirmed_payments_only(client, buyer, published_post):
    confirmed = start_payment(client, buyer["token"], published_post["id"]).json()["data"]
    client.post(
        f"/api/v1/payments/{confirmed['id']}/confirm",
        json={"transactionReference": "MM-9"},
        headers=auth_headers(buyer["token"]),
    )
    start_payment(client, buyer["token"], published_post["id"])

    history = client.get("/api/v1/payments/user/history", headers=auth_headers(buyer["token"])).json()["data"]

    assert history["totalPayments"] == 2
    assert Decimal(history["totalSpent"]) == Decimal(published_post["price"])


def test_pricing_tiers_are_public(client, db):
    seed_pricing_tiers(db)

    tiers = client.get("/api/v1/pricing-tiers").json()["data"]

    assert [tier["name"] for tier in tiers] == ["Basic", "Featured", "Premium"]
    assert tiers[1]["visibilityDays"] == 60


def test_payment_with_inactive_tier_is_rejected(client, db, buyer, published_post):
    from app.modules.payments.models.pricing_tier import PricingTier

    tier = PricingTier(name="Retired", visibility_days=10, price=0, is_active=False)
    db.add(tier)
    db.commit()

    response = start_payment(client, buyer["token"], published_post["id"], pricingTierId=tier.id)

    assert response.status_code == 400


def test_confirmed_payment_cannot_be_confirmed_or_cancelled_again(client, buyer, published_post):
    payment = start_payment(client, buyer["token"], published_post["id"]).json()["data"]
    url = f"/api/v1/payments/{payment['id']}"
    headers = auth_headers(buyer["token"])
    client.post(f"{url}/confirm", json={"transactionReference": "MM-200"}, headers=headers)

    reconfirmed = client.post(f"{url}/confirm", json={"transactionReference": "MM-201"}, headers=headers)
    cancelled = client.post(f"{url}/cancel", headers=headers)
    current = client.get(url, headers=headers).json()["data"]

    assert reconfirmed.status_code == 409
    assert reconfirmed.json()["error"]["code"] == "CONFLICT"
    assert cancelled.status_code == 409
    assert current["status"] == "Confirmed"
    assert current["transactionReference"] == "MM-200"
