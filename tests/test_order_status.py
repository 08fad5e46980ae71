import pytest

from badminton_shop.domain.exceptions import InvalidStatusError, InvalidStatusTransitionError
from badminton_shop.domain.models import (
    OrderStatus,
    can_transition,
    display_status,
    ensure_transition,
    parse_status,
)


def test_aliases_from_admin_console():
    assert parse_status("shipping") is OrderStatus.SHIPPED
    assert parse_status("Completed") is OrderStatus.DELIVERED
    assert parse_status(" confirmed ") is OrderStatus.CONFIRMED


def test_unknown_status():
    with pytest.raises(InvalidStatusError) as exc:
        parse_status("lost")
    assert exc.value.status_code == 400


@pytest.mark.parametrize(
    "current, target",
    [
        ("pending", "confirmed"),
        ("pending", "cancelled"),
        ("confirmed", "processing"),
        ("processing", "shipped"),
        ("shipped", "delivered"),
        ("delivered", "refunded"),
        ("returned", "refunded"),
        ("cancelled", "refunded"),
    ],
)
def test_allowed_transitions(current, target):
    assert can_transition(OrderStatus(current), OrderStatus(target))


@pytest.mark.parametrize(
    "current, target",
    [
        ("pending", "delivered"),
        ("shipped", "cancelled"),
        ("delivered", "pending"),
        ("cancelled", "confirmed"),
        ("refunded", "pending"),
    ],
)
def test_rejected_transitions(current, target):
    with pytest.raises(InvalidStatusTransitionError) as exc:
        ensure_transition(OrderStatus(current), OrderStatus(target))
    assert exc.value.status_code == 409


def test_same_status_is_allowed():
    assert can_transition(OrderStatus.SHIPPED, OrderStatus.SHIPPED)
    assert can_transition(OrderStatus.REFUNDED, OrderStatus.REFUNDED)


def test_display_status():
    assert display_status("shipped") == "shipping"
    assert display_status("delivered") == "completed"
    assert display_status("pending") == "pending"
