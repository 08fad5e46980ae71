from datetime import timedelta
from decimal import Decimal

import pytest

from badminton_shop.data.models import CartItemModel, CouponModel, EmailOutboxModel
from badminton_shop.services import notification_service
from badminton_shop.services.mailer import Mailer, SmtpConfig
from badminton_shop.tasks.maintenance import deactivate_expired_coupons, purge_guest_carts
from badminton_shop.utils.clock import utcnow


class RecordingMailer(Mailer):
    def __init__(self, fail=False):
        super().__init__(SmtpConfig("localhost", 25, "", "", False, "shop@example.com"))
        self.fail = fail
        self.sent = []

    def send(self, message):
        if self.fail:
            raise OSError("connection refused")
        self.sent.append(message)


def test_purge_only_removes_stale_guest_lines(db, make_user, make_product):
    product = make_product()
    user = make_user()
    old = utcnow() - timedelta(days=60)
    db.add_all(
        [
            CartItemModel(session_id="stale", product_id=product.id, quantity=1, unit_price=Decimal("1"), created_at=old, updated_at=old),
            CartItemModel(session_id="fresh", product_id=product.id, quantity=1, unit_price=Decimal("1")),
            CartItemModel(user_id=user.id, product_id=product.id, quantity=1, unit_price=Decimal("1"), created_at=old, updated_at=old),
        ]
    )
    db.commit()

    assert purge_guest_carts() == {"removed": 1}
    db.expire_all()
    assert sorted(str(i.session_id) for i in db.query(CartItemModel).all()) == ["None", "fresh"]


def test_expired_coupons_are_deactivated(db, make_coupon):
    expired = make_coupon(code="OLD", valid_from=utcnow() - timedelta(days=5), valid_until=utcnow() - timedelta(days=1))
    current = make_coupon(code="NOW")

    assert deactivate_expired_coupons() == {"deactivated": 1}
    db.expire_all()
    assert db.get(CouponModel, expired.id).is_active is False
    assert db.get(CouponModel, current.id).is_active is True


def outbox_row(db, **fields):
    row = EmailOutboxModel(
        kind=fields.pop("kind", "order_status_update"),
        recipient="buyer@example.com",
        payload={"order_number": "ORD1", "customer_name": "An", "status": "shipped", "tracking_number": "GHN1"},
        status=fields.pop("status", "pending"),
        attempts=fields.pop("attempts", 0),
    )
    db.add(row)
    db.commit()
    return row


def test_dispatch_pending_emails(db, monkeypatch):
    mailer = RecordingMailer()
    monkeypatch.setattr(notification_service, "Mailer", lambda: mailer)
    sent = outbox_row(db)
    outbox_row(db, status="sent")
    outbox_row(db, status="failed", attempts=5)

    result = notification_service.dispatch_pending_emails()

    assert result == {"processed": 1, "sent": 1}
    assert mailer.sent[0]["To"] == "buyer@example.com"
    assert "Đang giao hàng" in mailer.sent[0].get_content()
    db.expire_all()
    row = db.get(EmailOutboxModel, sent.id)
    assert (row.status, row.attempts) == ("sent", 1)
    assert row.sent_at is not None


def test_failed_delivery_is_recorded_for_retry(db, monkeypatch):
    monkeypatch.setattr(notification_service, "Mailer", lambda: RecordingMailer(fail=True))
    row = outbox_row(db)

    assert notification_service.dispatch_email(row.id) == {"message_id": row.id, "status": "failed"}
    db.expire_all()
    failed = db.get(EmailOutboxModel, row.id)
    assert (failed.status, failed.attempts) == ("failed", 1)
    assert "connection refused" in failed.last_error


def test_dispatch_of_missing_message(db):
    assert notification_service.dispatch_email(999) == {"message_id": 999, "status": "missing"}


def test_confirmation_email_lists_items():
    mailer = RecordingMailer()
    message = mailer.build(
        "order_confirmation",
        "buyer@example.com",
        {
            "order_number": "ORD42",
            "customer_name": "An",
            "subtotal": "200000.00",
            "shipping_fee": "0",
            "discount_amount": "20000",
            "total_amount": "180000",
            "items": [{"product_name": "Vợt Yonex", "quantity": 2, "subtotal": "200000"}],
        },
    )
    body = message.get_content()
    assert "ORD42" in message["Subject"]
    assert "Vợt Yonex x2: 200.000đ" in body
    assert "Tổng cộng: 180.000đ" in body


def test_unknown_email_kind():
    with pytest.raises(ValueError):
        RecordingMailer().build("newsletter", "a@example.com", {})
