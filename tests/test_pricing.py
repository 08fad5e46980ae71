from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from badminton_shop.domain.pricing import (
    calculate_cart_summary,
    calculate_discount,
    estimate_shipping,
    evaluate_coupon,
)
from badminton_shop.utils.clock import utcnow


def line(price, quantity, status="active"):
    return SimpleNamespace(unit_price=Decimal(price), quantity=quantity, product=SimpleNamespace(status=status))


def coupon(**fields):
    now = utcnow()
    base = dict(
        code="SAVE",
        is_active=True,
        discount_type="percentage",
        discount_value=Decimal("10"),
        minimum_order_amount=None,
        maximum_discount_amount=None,
        usage_limit_per_coupon=None,
        usage_limit_per_customer=None,
        used_count=0,
        valid_from=now - timedelta(days=1),
        valid_until=now + timedelta(days=1),
    )
    base.update(fields)
    return SimpleNamespace(**base)


def test_cart_summary_skips_inactive_products():
    summary = calculate_cart_summary([line("100000", 2), line("900000", 1, status="inactive")])

    assert summary["total_items"] == 1
    assert summary["total_quantity"] == 2
    assert summary["subtotal"] == Decimal("200000")
    assert summary["estimated_tax"] == Decimal("20000")
    assert summary["estimated_shipping"] == Decimal("50000")
    assert summary["estimated_total"] == Decimal("270000")
    assert summary["currency"] == "VND"


def test_empty_cart_summary_has_no_shipping():
    summary = calculate_cart_summary([])
    assert summary["subtotal"] == 0
    assert summary["estimated_shipping"] == 0
    assert summary["estimated_total"] == 0


@pytest.mark.parametrize(
    "subtotal, fee",
    [("0", "0"), ("499999", "50000"), ("500000", "30000"), ("999999", "30000"), ("1000000", "0")],
)
def test_shipping_tiers(subtotal, fee):
    assert estimate_shipping(Decimal(subtotal)) == Decimal(fee)


def test_shipping_thresholds_follow_settings(monkeypatch):
    from badminton_shop.utils import settings

    monkeypatch.setattr(settings, "FREE_SHIPPING_THRESHOLD", 300_000)
    assert estimate_shipping(Decimal("300000")) == 0


def test_ten_percent_of_two_hundred_thousand():
    result = calculate_discount(coupon(), Decimal("200000"))
    assert result.discount_amount == Decimal("20000")
    assert result.final_amount == Decimal("180000")
    assert result.discount_percentage == Decimal("10.00")
    assert result.free_shipping is False


def test_percentage_is_capped_by_maximum_discount():
    result = calculate_discount(coupon(maximum_discount_amount=Decimal("150000")), Decimal("2000000"))
    assert result.discount_amount == Decimal("150000")


def test_percentage_rounds_to_whole_dong():
    result = calculate_discount(coupon(discount_value=Decimal("15")), Decimal("33333"))
    assert result.discount_amount == Decimal("5000")


def test_fixed_amount_never_exceeds_order():
    result = calculate_discount(coupon(discount_type="fixed_amount", discount_value=Decimal("500000")), Decimal("120000"))
    assert result.discount_amount == Decimal("120000")
    assert result.final_amount == 0


def test_free_shipping_is_a_marker_not_money():
    result = calculate_discount(coupon(discount_type="free_shipping", discount_value=Decimal("0")), Decimal("300000"))
    assert result.discount_amount == 0
    assert result.final_amount == Decimal("300000")
    assert result.free_shipping is True


def test_valid_coupon():
    result = evaluate_coupon(coupon(), Decimal("200000"), utcnow())
    assert result.valid is True


def test_inactive_coupon_is_rejected_as_not_found():
    result = evaluate_coupon(coupon(is_active=False), Decimal("200000"), utcnow())
    assert result.valid is False
    assert result.coupon is None


def test_missing_coupon():
    assert evaluate_coupon(None, Decimal("1"), utcnow()).valid is False


def test_not_yet_active():
    result = evaluate_coupon(coupon(valid_from=utcnow() + timedelta(hours=1)), Decimal("200000"), utcnow())
    assert result.valid is False
    assert "not yet active" in result.message


def test_expired_coupon_is_flagged():
    result = evaluate_coupon(coupon(valid_until=utcnow() - timedelta(seconds=1)), Decimal("200000"), utcnow())
    assert result.valid is False
    assert result.expired is True
    assert "expired" in result.message


def test_naive_datetimes_are_read_as_utc():
    past = (utcnow() - timedelta(days=2)).replace(tzinfo=None)
    result = evaluate_coupon(coupon(valid_until=past), Decimal("200000"), utcnow())
    assert result.expired is True


@pytest.mark.parametrize("amount", ["10", "5000000"])
def test_global_cap_wins_regardless_of_amount(amount):
    capped = coupon(usage_limit_per_coupon=3, used_count=3, minimum_order_amount=Decimal("100000"))
    result = evaluate_coupon(capped, Decimal(amount), utcnow())
    assert result.valid is False
    assert "usage limit" in result.message


def test_minimum_order_amount():
    result = evaluate_coupon(coupon(minimum_order_amount=Decimal("500000")), Decimal("499999"), utcnow())
    assert result.valid is False
    assert "Minimum order amount" in result.message


def test_per_user_cap_applies_only_to_known_users():
    limited = coupon(usage_limit_per_customer=1)
    assert evaluate_coupon(limited, Decimal("200000"), utcnow(), user_usage_count=1).valid is False
    assert evaluate_coupon(limited, Decimal("200000"), utcnow(), user_usage_count=0).valid is True
    assert evaluate_coupon(limited, Decimal("200000"), utcnow(), user_usage_count=None).valid is True


def test_deactivated_expired_coupon_still_reports_expiry():
    stale = coupon(is_active=False, valid_until=utcnow() - timedelta(days=1))
    result = evaluate_coupon(stale, Decimal("200000"), utcnow())
    assert result.valid is False
    assert result.message == "Coupon has expired"
