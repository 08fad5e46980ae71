from datetime import timedelta
from decimal import Decimal

from badminton_shop.data.models import CouponModel, CouponUsageModel
from badminton_shop.services.coupon_service import CouponService
from badminton_shop.utils.clock import utcnow
from conftest import ORDER_PAYLOAD


def test_validate_previews_discount_without_consuming(client, db, make_coupon):
    coupon = make_coupon(maximum_discount_amount=Decimal("50000"))

    resp = client.post("/api/coupons/validate", json={"code": "SAVE10", "order_amount": 1000000})

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["valid"] is True
    assert data["calculation"]["discount_amount"] == 50000
    assert data["calculation"]["final_amount"] == 950000
    db.expire_all()
    assert db.get(CouponModel, coupon.id).used_count == 0


def test_validate_rejects_below_minimum(client, make_coupon):
    make_coupon(minimum_order_amount=Decimal("500000"))
    resp = client.post("/api/coupons/validate", json={"code": "SAVE10", "order_amount": 100000})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["data"]["valid"] is False
    assert "Minimum order amount" in body["message"]


def test_quick_check(client, make_coupon):
    make_coupon(code="HELLO")
    assert client.get("/api/coupons/check/hello").json()["data"]["valid"] is True
    assert client.get("/api/coupons/check/NOPE").json()["data"]["valid"] is False


def test_apply_consumes_and_enforces_per_user_cap(client, db, make_user, make_coupon):
    coupon = make_coupon(code="ONEEACH", usage_limit_per_customer=1)
    user = make_user()
    headers = {"X-User-Id": str(user.id)}

    resp = client.post("/api/coupons/apply", json={"code": "ONEEACH", "order_amount": 200000}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["calculation"]["discount_amount"] == 20000

    again = client.post("/api/coupons/apply", json={"code": "ONEEACH", "order_amount": 200000}, headers=headers)
    assert again.status_code == 400
    assert "usage limit" in again.json()["message"]

    db.expire_all()
    assert db.get(CouponModel, coupon.id).used_count == 1
    assert db.query(CouponUsageModel).count() == 1

    history = client.get("/api/coupons/history", headers=headers).json()
    assert history["data"][0]["coupon_code"] == "ONEEACH"
    assert history["pagination"]["total"] == 1


def test_available_coupons_are_sorted_by_discount(client, make_coupon):
    make_coupon(code="TEN", value="10")
    make_coupon(code="FLAT", discount_type="fixed_amount", value="50000")
    make_coupon(code="BIGSPEND", minimum_order_amount=Decimal("5000000"))
    make_coupon(code="OFF", is_active=False)

    data = client.get("/api/coupons/available", params={"order_amount": 200000}).json()["data"]
    assert [c["code"] for c in data] == ["FLAT", "TEN"]
    assert data[0]["discount_preview"]["discount_amount"] == 50000


def test_admin_crud(client, admin_headers):
    payload = {
        "code": "summer25",
        "name": "Summer sale",
        "discount_type": "percentage",
        "discount_value": 25,
        "maximum_discount_amount": 200000,
    }
    created = client.post("/api/admin/coupons", json=payload, headers=admin_headers)
    assert created.status_code == 201
    coupon = created.json()["data"]
    assert coupon["code"] == "SUMMER25"

    assert client.post("/api/admin/coupons", json=payload, headers=admin_headers).status_code == 409

    updated = client.put(f"/api/admin/coupons/{coupon['id']}", json={"discount_value": 30}, headers=admin_headers)
    assert updated.json()["data"]["discount_value"] == 30

    stats = client.get(f"/api/admin/coupons/{coupon['id']}/stats", headers=admin_headers).json()["data"]
    assert stats["total_uses"] == 0

    deleted = client.delete(f"/api/admin/coupons/{coupon['id']}", headers=admin_headers)
    assert deleted.json()["data"]["result"] == "deleted"
    assert client.get(f"/api/admin/coupons/{coupon['id']}", headers=admin_headers).status_code == 404


def test_admin_rejects_invalid_percentage(client, admin_headers):
    payload = {"code": "TOOMUCH", "name": "x", "discount_type": "percentage", "discount_value": 120}
    assert client.post("/api/admin/coupons", json=payload, headers=admin_headers).status_code == 400


def test_used_coupon_is_only_deactivated(client, db, make_user, make_coupon, admin_headers):
    coupon = make_coupon()
    user = make_user()
    client.post("/api/coupons/apply", json={"code": "SAVE10", "order_amount": 200000}, headers={"X-User-Id": str(user.id)})

    resp = client.delete(f"/api/admin/coupons/{coupon.id}", headers=admin_headers)
    assert resp.json()["data"]["result"] == "deactivated"
    db.expire_all()
    assert db.get(CouponModel, coupon.id).is_active is False


def test_customers_cannot_manage_coupons(client, make_user):
    user = make_user()
    resp = client.get("/api/admin/coupons", headers={"X-User-Id": str(user.id)})
    assert resp.status_code == 403
    assert resp.json()["error"] == "forbidden"


def test_expired_coupon_reports_expiry_on_every_validation(db, make_coupon):
    make_coupon(code="OLD20", value="20", valid_until=utcnow() - timedelta(days=1))
    service = CouponService(db)

    first = service.validate_coupon("OLD20", Decimal("200000"))
    second = service.validate_coupon("OLD20", Decimal("200000"))

    assert first.message == second.message == "Coupon has expired"
    db.expire_all()
    assert db.query(CouponModel).filter_by(code="OLD20").one().is_active is False


def test_expired_coupon_reports_expiry_after_the_sweep(client, db, make_coupon):
    make_coupon(code="OLD20", value="20", valid_until=utcnow() - timedelta(days=1))
    assert CouponService(db).deactivate_expired() == 1

    resp = client.post("/api/coupons/validate", json={"code": "OLD20", "order_amount": 200000})

    assert resp.status_code == 400
    assert resp.json()["message"] == "Coupon has expired"


def test_apply_only_links_the_callers_own_order(client, db, make_user, make_product, make_coupon):
    coupon = make_coupon(code="LINKED")
    owner = make_user(email="owner@example.com")
    stranger = make_user(email="stranger@example.com")
    owner_headers = {"X-User-Id": str(owner.id)}

    product = make_product()
    client.post("/api/cart/items", json={"product_id": product.id, "quantity": 1}, headers=owner_headers)
    order_id = client.post("/api/orders", json=ORDER_PAYLOAD, headers=owner_headers).json()["data"]["id"]

    payload = {"code": "LINKED", "order_amount": 100000, "order_id": order_id}
    resp = client.post("/api/coupons/apply", json=payload, headers={"X-User-Id": str(stranger.id)})
    assert resp.status_code == 404
    db.expire_all()
    assert db.get(CouponModel, coupon.id).used_count == 0

    assert client.post("/api/coupons/apply", json=payload, headers=owner_headers).status_code == 200
    usage = db.query(CouponUsageModel).one()
    assert usage.order_id == order_id
    assert usage.user_id == owner.id
