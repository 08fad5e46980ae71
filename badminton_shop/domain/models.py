# badminton_shop/domain/models.py
from enum import Enum

from badminton_shop.domain.exceptions import InvalidStatusError, InvalidStatusTransitionError


class ProductStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DRAFT = "draft"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    FREE_SHIPPING = "free_shipping"


class PaymentMethod(str, Enum):
    COD = "cod"
    BANK_TRANSFER = "bank_transfer"
    VNPAY = "vnpay"
    MOMO = "momo"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class UserRole(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    RETURNED = "returned"
    REFUNDED = "refunded"


# admin console labels
STATUS_ALIASES = {
    "shipping": OrderStatus.SHIPPED,
    "completed": OrderStatus.DELIVERED,
}

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.RETURNED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.RETURNED, OrderStatus.REFUNDED}),
    OrderStatus.RETURNED: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.CANCELLED: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.REFUNDED: frozenset(),
}

CUSTOMER_CANCELLABLE = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED})


def parse_status(value: str) -> OrderStatus:
    raw = (value or "").strip().lower()
    if raw in STATUS_ALIASES:
        return STATUS_ALIASES[raw]
    try:
        return OrderStatus(raw)
    except ValueError:
        valid = ", ".join(s.value for s in OrderStatus)
        raise InvalidStatusError(f"Invalid status. Valid statuses: {valid}") from None


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    """Same-status updates are allowed (tracking number, notes)."""
    return current == target or target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: OrderStatus, target: OrderStatus) -> None:
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(current.value, target.value)


def display_status(status: str) -> str:
    # the admin console shows shipped/delivered as shipping/completed
    if status == OrderStatus.SHIPPED.value:
        return "shipping"
    if status == OrderStatus.DELIVERED.value:
        return "completed"
    return status
