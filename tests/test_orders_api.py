from datetime import timedelta

from badminton_shop.data.models import (
    CartItemModel,
    CouponModel,
    CouponUsageModel,
    EmailOutboxModel,
    OrderModel,
    ProductModel,
)
from badminton_shop.utils.clock import utcnow
from conftest import GUEST, ORDER_PAYLOAD


def fill_cart(client, product, quantity, headers=GUEST):
    resp = client.post("/api/cart/items", json={"product_id": product.id, "quantity": quantity}, headers=headers)
    assert resp.status_code == 201


def checkout(client, headers=GUEST, **overrides):
    return client.post("/api/orders", json={**ORDER_PAYLOAD, **overrides}, headers=headers)


def test_ten_percent_coupon_on_two_hundred_thousand(client, db, make_user, make_product, make_coupon, kicked):
    user = make_user()
    headers = {"X-User-Id": str(user.id)}
    product = make_product(price="100000", stock=5)
    coupon = make_coupon(code="SAVE10", value="10")
    fill_cart(client, product, 2, headers)

    resp = checkout(client, headers, coupon_code="SAVE10")

    assert resp.status_code == 201
    order = resp.json()["data"]
    assert order["order_number"].startswith("ORD")
    assert order["subtotal"] == 200000
    assert order["discount_amount"] == 20000
    assert order["shipping_fee"] == 0
    assert order["total_amount"] == 180000
    assert order["status"] == "pending"
    assert order["payment_status"] == "pending"
    assert [(i["product_name"], i["quantity"], i["subtotal"]) for i in order["items"]] == [(product.name, 2, 200000)]

    db.expire_all()
    assert db.get(ProductModel, product.id).stock_quantity == 3
    assert db.get(CouponModel, coupon.id).used_count == 1
    usage = db.query(CouponUsageModel).one()
    assert (usage.user_id, usage.order_id) == (user.id, order["id"])
    assert db.query(CartItemModel).count() == 0

    email = db.query(EmailOutboxModel).one()
    assert email.kind == "order_confirmation"
    assert email.recipient == "buyer@example.com"
    assert email.payload["order_number"] == order["order_number"]
    assert kicked == [email.id]


def test_guest_checkout_via_cart_route(client, db, make_product, lock_service):
    fill_cart(client, make_product(price="250000"), 1)
    resp = client.post("/api/cart/checkout", json={**ORDER_PAYLOAD, "shipping_fee": 30000}, headers=GUEST)

    assert resp.status_code == 201
    order = resp.json()["data"]
    assert order["user_id"] is None
    assert order["total_amount"] == 280000
    assert lock_service.acquired == [f"session:{GUEST['X-Session-Id']}"]


def test_insufficient_stock_creates_no_order(client, db, make_product, kicked):
    product = make_product(stock=5)
    fill_cart(client, product, 3)
    product.stock_quantity = 2
    db.commit()

    resp = checkout(client)

    assert resp.status_code == 400
    assert "Insufficient stock" in resp.json()["message"]
    db.expire_all()
    assert db.query(OrderModel).count() == 0
    assert db.get(ProductModel, product.id).stock_quantity == 2
    assert db.query(CartItemModel).count() == 1
    assert kicked == []


def test_inactive_product_blocks_checkout(client, db, make_product):
    product = make_product()
    fill_cart(client, product, 1)
    product.status = "inactive"
    db.commit()

    resp = checkout(client)
    assert resp.status_code == 400
    assert "no longer available" in resp.json()["message"]


def test_empty_cart(client):
    resp = checkout(client)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Cart is empty"


def test_expired_coupon_is_rejected_and_deactivated(client, db, make_product, make_coupon):
    coupon = make_coupon(
        code="OLD",
        valid_from=utcnow() - timedelta(days=10),
        valid_until=utcnow() - timedelta(days=1),
    )
    fill_cart(client, make_product(), 2)

    resp = checkout(client, coupon_code="OLD")

    assert resp.status_code == 400
    assert "expired" in resp.json()["message"]
    db.expire_all()
    assert db.get(CouponModel, coupon.id).is_active is False
    assert db.query(OrderModel).count() == 0


def test_free_shipping_coupon_waives_fee(client, make_product, make_coupon):
    make_coupon(code="FREESHIP", discount_type="free_shipping", value="0")
    fill_cart(client, make_product(price="100000"), 1)

    order = checkout(client, coupon_code="FREESHIP", shipping_fee=50000).json()["data"]
    assert order["shipping_fee"] == 0
    assert order["discount_amount"] == 0
    assert order["total_amount"] == 100000


def test_capped_coupon_cannot_be_used_again(client, make_user, make_product, make_coupon):
    make_coupon(code="ONCE", usage_limit_per_coupon=1)
    first = make_user(email="first@example.com")
    second = make_user(email="second@example.com")

    for user in (first, second):
        fill_cart(client, make_product(), 1, {"X-User-Id": str(user.id)})

    assert checkout(client, {"X-User-Id": str(first.id)}, coupon_code="ONCE").status_code == 201
    resp = checkout(client, {"X-User-Id": str(second.id)}, coupon_code="ONCE")
    assert resp.status_code == 400
    assert "usage limit" in resp.json()["message"]


def test_concurrent_checkout_of_same_owner_conflicts(client, make_product, lock_service):
    fill_cart(client, make_product(), 1)
    lock_service.held.add(f"session:{GUEST['X-Session-Id']}")

    resp = checkout(client)
    assert resp.status_code == 409
    assert resp.json()["success"] is False


def test_order_payload_is_validated(client, make_product):
    fill_cart(client, make_product(), 1)
    resp = checkout(client, customer_phone="abc")
    assert resp.status_code == 400
    assert any(err["field"] == "customer_phone" for err in resp.json()["errors"])


def place_order(client, make_user, make_product, stock=5, quantity=2):
    user = make_user()
    headers = {"X-User-Id": str(user.id)}
    product = make_product(stock=stock)
    fill_cart(client, product, quantity, headers)
    order = checkout(client, headers).json()["data"]
    return user, headers, product, order


def test_my_orders_and_detail(client, make_user, make_product):
    user, headers, _, order = place_order(client, make_user, make_product)

    listing = client.get("/api/orders", headers=headers).json()
    assert [o["id"] for o in listing["data"]] == [order["id"]]
    assert listing["pagination"]["total"] == 1

    assert client.get(f"/api/orders/{order['id']}", headers=headers).status_code == 200
    assert client.get(f"/api/orders/{order['id']}").status_code == 401


def test_other_users_order_is_not_found(client, make_user, make_product):
    _, _, _, order = place_order(client, make_user, make_product)
    stranger = make_user(email="stranger@example.com")
    resp = client.get(f"/api/orders/{order['id']}", headers={"X-User-Id": str(stranger.id)})
    assert resp.status_code == 404


def test_customer_cancel_restores_stock(client, db, make_user, make_product, kicked):
    _, headers, product, order = place_order(client, make_user, make_product)

    resp = client.post(f"/api/orders/{order['id']}/cancel", json={"reason": "Changed my mind"}, headers=headers)

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "cancelled"
    assert data["cancel_reason"] == "Changed my mind"
    assert data["cancelled_at"] is not None
    db.expire_all()
    assert db.get(ProductModel, product.id).stock_quantity == 5
    assert db.query(EmailOutboxModel).filter_by(kind="order_status_update").count() == 1
    assert len(kicked) == 2


def test_customer_cannot_cancel_shipped_order(client, make_user, make_product, admin_headers):
    _, headers, _, order = place_order(client, make_user, make_product)
    for status in ("confirmed", "processing", "shipping"):
        client.put(f"/api/admin/orders/{order['id']}/status", json={"status": status}, headers=admin_headers)

    resp = client.post(f"/api/orders/{order['id']}/cancel", headers=headers)
    assert resp.status_code == 400


def test_admin_status_flow(client, make_user, make_product, admin_headers):
    _, _, _, order = place_order(client, make_user, make_product)
    url = f"/api/admin/orders/{order['id']}/status"

    data = client.put(url, json={"status": "confirmed"}, headers=admin_headers).json()["data"]
    assert data["confirmed_at"] is not None

    client.put(url, json={"status": "processing"}, headers=admin_headers)
    data = client.put(url, json={"status": "shipping", "tracking_number": "GHN123"}, headers=admin_headers).json()["data"]
    assert data["status"] == "shipped"
    assert data["tracking_number"] == "GHN123"
    assert data["shipped_at"] is not None

    data = client.put(url, json={"status": "completed"}, headers=admin_headers).json()["data"]
    assert data["status"] == "delivered"
    assert data["payment_status"] == "paid"
    assert data["delivered_at"] is not None


def test_illegal_transition_is_a_conflict(client, make_user, make_product, admin_headers):
    _, _, _, order = place_order(client, make_user, make_product)
    resp = client.put(f"/api/admin/orders/{order['id']}/status", json={"status": "delivered"}, headers=admin_headers)
    assert resp.status_code == 409
    assert "pending -> delivered" in resp.json()["message"]


def test_unknown_status_is_bad_request(client, make_user, make_product, admin_headers):
    _, _, _, order = place_order(client, make_user, make_product)
    resp = client.put(f"/api/admin/orders/{order['id']}/status", json={"status": "lost"}, headers=admin_headers)
    assert resp.status_code == 400


def test_same_status_update_sends_no_email(client, db, make_user, make_product, admin_headers, kicked):
    _, _, _, order = place_order(client, make_user, make_product)
    resp = client.put(
        f"/api/admin/orders/{order['id']}/status",
        json={"status": "pending", "notes": "Customer called"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["notes"] == "Customer called"
    db.expire_all()
    assert db.query(EmailOutboxModel).filter_by(kind="order_status_update").count() == 0
    assert len(kicked) == 1


def test_admin_routes_require_admin(client, make_user, make_product):
    user, headers, _, order = place_order(client, make_user, make_product)
    assert client.get("/api/admin/orders", headers=headers).status_code == 403
    assert client.get("/api/admin/orders").status_code == 401


def test_admin_listing_and_stats(client, make_user, make_product, admin_headers):
    _, _, _, order = place_order(client, make_user, make_product)

    listing = client.get("/api/admin/orders", params={"status": "pending"}, headers=admin_headers).json()
    assert [o["id"] for o in listing["data"]] == [order["id"]]

    found = client.get("/api/admin/orders", params={"search": order["order_number"]}, headers=admin_headers).json()
    assert found["pagination"]["total"] == 1

    stats = client.get("/api/admin/orders/stats", headers=admin_headers).json()["data"]
    assert stats["total_orders"] == 1
    assert stats["total_revenue"] == order["total_amount"]
    assert stats["by_status"] == {"pending": 1}


def test_guest_status_lookup_and_tracking(client, make_user, make_product, admin_headers):
    _, _, _, order = place_order(client, make_user, make_product)
    number = order["order_number"]

    status = client.get(f"/api/orders/status/{number}", params={"phone": "0901234567"}).json()["data"]
    assert status["status"] == "pending"
    assert status["total_items"] == 2

    assert client.get(f"/api/orders/status/{number}", params={"phone": "0999999999"}).status_code == 403
    assert client.get("/api/orders/status/ORD000").status_code == 404

    client.put(f"/api/admin/orders/{order['id']}/status", json={"status": "confirmed"}, headers=admin_headers)
    timeline = client.get(f"/api/orders/track/{number}").json()["data"]["timeline"]
    assert [e["status"] for e in timeline] == ["pending", "confirmed"]
