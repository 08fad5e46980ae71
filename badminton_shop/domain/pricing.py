# badminton_shop/domain/pricing.py
"""
Money rules for the storefront: cart summary estimates and coupon discounts.

Everything here is pure (no database access) so the checkout path, the cart
preview and the coupon endpoints all share the same arithmetic.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional

from badminton_shop.domain.models import DiscountType, ProductStatus
from badminton_shop.utils import settings
from badminton_shop.utils.clock import as_utc

ZERO = Decimal("0")
VND = Decimal("1")


def to_money(value: Any) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value))


def round_vnd(value: Decimal) -> Decimal:
    return value.quantize(VND, rounding=ROUND_HALF_UP)


def estimate_shipping(subtotal: Decimal) -> Decimal:
    if subtotal >= settings.FREE_SHIPPING_THRESHOLD:
        return ZERO
    if subtotal >= settings.REDUCED_SHIPPING_THRESHOLD:
        return Decimal(settings.REDUCED_SHIPPING_FEE)
    if subtotal > 0:
        return Decimal(settings.STANDARD_SHIPPING_FEE)
    return ZERO


def calculate_cart_summary(items: Iterable[Any]) -> dict:
    """Lines whose product is no longer active are left out of the totals."""
    total_items = 0
    total_quantity = 0
    subtotal = ZERO

    for item in items:
        if item.product is None or item.product.status != ProductStatus.ACTIVE.value:
            continue
        total_items += 1
        total_quantity += item.quantity
        subtotal += to_money(item.unit_price) * item.quantity

    tax = round_vnd(subtotal * Decimal(str(settings.VAT_RATE)))
    shipping = estimate_shipping(subtotal)

    return {
        "total_items": total_items,
        "total_quantity": total_quantity,
        "subtotal": subtotal,
        "estimated_tax": tax,
        "estimated_shipping": shipping,
        "estimated_total": subtotal + tax + shipping,
        "currency": settings.CURRENCY,
    }


@dataclass
class DiscountResult:
    original_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    discount_percentage: Decimal
    free_shipping: bool = False

    def as_dict(self) -> dict:
        return {
            "original_amount": self.original_amount,
            "discount_amount": self.discount_amount,
            "final_amount": self.final_amount,
            "discount_percentage": self.discount_percentage,
            "free_shipping": self.free_shipping,
        }


def calculate_discount(coupon: Any, order_amount: Any) -> DiscountResult:
    amount = to_money(order_amount)
    if amount < 0:
        amount = ZERO
    value = to_money(coupon.discount_value)
    free_shipping = False

    if coupon.discount_type == DiscountType.PERCENTAGE.value:
        discount = round_vnd(amount * value / 100)
        if coupon.maximum_discount_amount is not None:
            discount = min(discount, to_money(coupon.maximum_discount_amount))
    elif coupon.discount_type == DiscountType.FIXED_AMOUNT.value:
        discount = value
    elif coupon.discount_type == DiscountType.FREE_SHIPPING.value:
        # waives the shipping fee instead of reducing the goods amount
        discount = ZERO
        free_shipping = True
    else:
        raise ValueError(f"Unknown discount type: {coupon.discount_type}")

    discount = max(min(discount, amount), ZERO)
    percentage = (discount / amount * 100).quantize(Decimal("0.01")) if amount > 0 else ZERO

    return DiscountResult(
        original_amount=amount,
        discount_amount=discount,
        final_amount=amount - discount,
        discount_percentage=percentage,
        free_shipping=free_shipping,
    )


@dataclass
class CouponValidation:
    valid: bool
    message: str
    coupon: Optional[Any] = None
    expired: bool = False
    calculation: Optional[DiscountResult] = field(default=None)


def evaluate_coupon(
    coupon: Any,
    order_amount: Any,
    now: datetime,
    user_usage_count: int | None = None,
) -> CouponValidation:
    """
    Checks run in a fixed order and the first failure wins:
    existence, validity window, active flag, global cap, minimum order, per-user cap.
    An expired coupon reports expiry even after it has been deactivated.
    `user_usage_count` is None for guests, which skips the per-user cap.
    """
    if coupon is None:
        return CouponValidation(False, "Coupon not found or inactive", None)

    amount = to_money(order_amount)
    valid_from = as_utc(coupon.valid_from)
    valid_until = as_utc(coupon.valid_until)

    if valid_from is not None and now < valid_from:
        return CouponValidation(False, "Coupon is not yet active", coupon)

    if valid_until is not None and now > valid_until:
        return CouponValidation(False, "Coupon has expired", coupon, expired=True)

    if not coupon.is_active:
        return CouponValidation(False, "Coupon not found or inactive", None)

    if coupon.usage_limit_per_coupon is not None and (coupon.used_count or 0) >= coupon.usage_limit_per_coupon:
        return CouponValidation(False, "Coupon usage limit exceeded", coupon)

    minimum = coupon.minimum_order_amount
    if minimum is not None and amount < to_money(minimum):
        return CouponValidation(
            False,
            f"Minimum order amount is {round_vnd(to_money(minimum))}đ",
            coupon,
        )

    if (
        user_usage_count is not None
        and coupon.usage_limit_per_customer is not None
        and user_usage_count >= coupon.usage_limit_per_customer
    ):
        return CouponValidation(False, "You have reached the usage limit for this coupon", coupon)

    return CouponValidation(True, "Coupon is valid", coupon)
