# badminton_shop/services/order_service.py
import secrets
import string
import time
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, List, Tuple

from sqlalchemy.orm import Session

from badminton_shop.data.models.order import OrderModel, OrderItemModel
from badminton_shop.domain.exceptions import (
    AccessDeniedError,
    CouponRejectedError,
    EmptyCartError,
    InsufficientStockError,
    NotFoundError,
    ProductUnavailableError,
    ValidationError,
)
from badminton_shop.domain.models import (
    CUSTOMER_CANCELLABLE,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ProductStatus,
    display_status,
    ensure_transition,
    parse_status,
)
from badminton_shop.domain.pricing import ZERO, to_money
from badminton_shop.domain.schemas import (
    OrderCreate,
    OrderStatsOut,
    OrderStatusOut,
    OrderStatusUpdateIn,
    OrderTrackingOut,
    TrackingEvent,
)
from badminton_shop.repos.cart_repo import CartRepo
from badminton_shop.repos.catalog_repo import ProductRepo
from badminton_shop.repos.order_repo import OrderRepo
from badminton_shop.services.coupon_service import CouponService
from badminton_shop.services.lock_service import LockService, owner_key
from badminton_shop.services.notification_service import NotificationService
from badminton_shop.utils import settings
from badminton_shop.utils.clock import as_utc, utcnow
from badminton_shop.utils.logging import get_logger

logger = get_logger(__name__)

_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


def generate_order_number() -> str:
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
    return f"ORD{int(time.time() * 1000)}{suffix}"


class OrderService:
    """
    Orders: checkout from the cart, customer queries and admin status handling.
    Checkout and status changes each run in a single database transaction;
    emails are written to the outbox inside it and dispatched after commit.
    """

    def __init__(self, db: Session, lock_service: LockService):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.products = ProductRepo(db)
        self.coupons = CouponService(db)
        self.lock_service = lock_service
        self.notifications = NotificationService(db)

    # ------------------------------------------------------------ checkout

    def create_order_from_cart(
        self, order_data: OrderCreate, user_id: int | None, session_id: str | None
    ) -> OrderModel:
        """
        Use case: turn the caller's cart into an order.

        1. Serialises checkouts of the same owner with a redis lock
        2. Verifies every line is active and in stock
        3. Prices the order from captured cart prices, shipping and coupon
        4. Writes order, stock, coupon usage, cart and outbox in one commit
        5. Schedules the confirmation email
        """
        if user_id is None and not session_id:
            raise ValidationError("Missing cart session")

        with self.lock_service.checkout_lock(owner_key(user_id, session_id)):
            order, email = self._place_order(order_data, user_id, session_id)

        logger.info(f"Order {order.order_number} created for {owner_key(user_id, session_id)}")
        if email is not None:
            self.notifications.kick(email.id)
        return order

    def _place_order(self, data: OrderCreate, user_id: int | None, session_id: str | None):
        lines = self.carts.get_items(user_id, session_id)
        if not lines:
            raise EmptyCartError()

        for line in lines:
            product = line.product
            if product is None or product.status != ProductStatus.ACTIVE.value:
                raise ProductUnavailableError(product.name if product else f"#{line.product_id}")
            if product.stock_quantity < line.quantity:
                raise InsufficientStockError(product.name, product.stock_quantity, line.quantity)

        subtotal = sum((to_money(line.unit_price) * line.quantity for line in lines), ZERO)
        shipping_fee = data.shipping_fee if data.shipping_fee is not None else Decimal(settings.DEFAULT_ORDER_SHIPPING_FEE)
        discount = ZERO
        coupon = calculation = None

        if data.coupon_code:
            result = self.coupons.validate_coupon(data.coupon_code, subtotal, user_id)
            if not result.valid:
                raise CouponRejectedError(result.message)
            coupon, calculation = result.coupon, result.calculation
            discount = calculation.discount_amount
            if calculation.free_shipping:
                shipping_fee = ZERO

        try:
            order = self.repo.add_order(
                OrderModel(
                    order_number=self._unique_order_number(),
                    user_id=user_id,
                    session_id=None if user_id is not None else session_id,
                    customer_name=data.customer_name,
                    customer_email=data.customer_email,
                    customer_phone=data.customer_phone,
                    shipping_address_line_1=data.shipping_address_line_1,
                    shipping_address_line_2=data.shipping_address_line_2,
                    shipping_city=data.shipping_city,
                    shipping_state=data.shipping_state,
                    shipping_postal_code=data.shipping_postal_code,
                    shipping_country=data.shipping_country,
                    subtotal=subtotal,
                    shipping_fee=shipping_fee,
                    discount_amount=discount,
                    total_amount=subtotal + shipping_fee - discount,
                    coupon_id=coupon.id if coupon else None,
                    status=OrderStatus.PENDING.value,
                    payment_method=data.payment_method.value,
                    payment_status=PaymentStatus.PENDING.value,
                    notes=data.notes,
                )
            )

            for line in lines:
                product = line.product
                order.items.append(
                    OrderItemModel(
                        product_id=product.id,
                        product_name=product.name,
                        quantity=line.quantity,
                        unit_price=line.unit_price,
                        subtotal=to_money(line.unit_price) * line.quantity,
                        selected_attributes=line.selected_attributes,
                    )
                )
                if not self.products.decrement_stock(product.id, line.quantity):
                    self.db.refresh(product)
                    raise InsufficientStockError(product.name, product.stock_quantity, line.quantity)

            if coupon is not None:
                self.coupons.redeem(coupon, calculation, user_id, order.id)

            self.carts.clear(user_id, session_id)
            self.db.flush()
            email = self.notifications.enqueue_order_confirmation(order)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        return order, email

    def _unique_order_number(self) -> str:
        number = generate_order_number()
        while self.repo.number_exists(number):
            number = generate_order_number()
        return number

    # ------------------------------------------------------------ customer

    def get_my_orders(self, user_id: int, page: int, limit: int, status: str | None = None) -> Tuple[List[OrderModel], int]:
        if status:
            status = parse_status(status).value
        return self.repo.list_orders(page=page, limit=limit, user_id=user_id, status=status)

    def get_order(self, order_id: int, user_id: int) -> OrderModel:
        order = self.repo.get_order(order_id, user_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    def cancel_order(self, order_id: int, user_id: int, reason: str | None = None) -> OrderModel:
        order = self.get_order(order_id, user_id)
        if OrderStatus(order.status) not in CUSTOMER_CANCELLABLE:
            raise ValidationError("Order can no longer be cancelled")
        return self._change_status(order, OrderStatus.CANCELLED, cancel_reason=reason or "Cancelled by customer")

    def get_order_status(self, order_number: str, phone: str | None = None) -> OrderStatusOut:
        """Guest lookup: the phone number must match when given."""
        order = self.repo.get_by_number(order_number)
        if not order:
            raise NotFoundError("Order not found")
        if phone and order.customer_phone != phone:
            raise AccessDeniedError("Phone number does not match this order")
        return OrderStatusOut(
            order_number=order.order_number,
            status=order.status,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            total_amount=order.total_amount,
            total_items=sum(item.quantity for item in order.items),
            tracking_number=order.tracking_number,
            created_at=as_utc(order.created_at),
            confirmed_at=as_utc(order.confirmed_at),
            shipped_at=as_utc(order.shipped_at),
            delivered_at=as_utc(order.delivered_at),
        )

    def get_tracking(self, order_number: str) -> OrderTrackingOut:
        order = self.repo.get_by_number(order_number)
        if not order:
            raise NotFoundError("Order not found")
        stamps = [
            ("pending", order.created_at),
            ("confirmed", order.confirmed_at),
            ("shipped", order.shipped_at),
            ("delivered", order.delivered_at),
            ("cancelled", order.cancelled_at),
        ]
        timeline = [TrackingEvent(status=s, at=as_utc(at)) for s, at in stamps if at is not None]
        timeline.sort(key=lambda e: e.at)
        return OrderTrackingOut(
            order_number=order.order_number,
            status=order.status,
            tracking_number=order.tracking_number,
            timeline=timeline,
        )

    # ------------------------------------------------------------ admin

    def list_orders(self, page: int, limit: int, **filters) -> Tuple[List[OrderModel], int]:
        if filters.get("status"):
            filters["status"] = parse_status(filters["status"]).value
        return self.repo.list_orders(page=page, limit=limit, **filters)

    def get_order_admin(self, order_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    def update_status(self, order_id: int, payload: OrderStatusUpdateIn) -> OrderModel:
        target = parse_status(payload.status)
        order = self.get_order_admin(order_id)
        return self._change_status(
            order,
            target,
            tracking_number=payload.tracking_number,
            notes=payload.notes,
        )

    def _change_status(
        self,
        order: OrderModel,
        target: OrderStatus,
        *,
        tracking_number: str | None = None,
        notes: str | None = None,
        cancel_reason: str | None = None,
    ) -> OrderModel:
        current = OrderStatus(order.status)
        ensure_transition(current, target)
        changed = current != target
        now = utcnow()
        email = None

        try:
            if tracking_number:
                order.tracking_number = tracking_number
            if notes:
                order.notes = notes

            if changed:
                order.status = target.value
                if target == OrderStatus.CONFIRMED:
                    order.confirmed_at = now
                elif target == OrderStatus.SHIPPED:
                    order.shipped_at = now
                elif target == OrderStatus.DELIVERED:
                    order.delivered_at = now
                    if order.payment_method == PaymentMethod.COD.value:
                        order.payment_status = PaymentStatus.PAID.value
                elif target == OrderStatus.CANCELLED:
                    order.cancelled_at = now
                    order.cancel_reason = cancel_reason or notes
                    for item in order.items:
                        if item.product_id is not None:
                            self.products.increment_stock(item.product_id, item.quantity)
                elif target == OrderStatus.REFUNDED:
                    order.payment_status = PaymentStatus.REFUNDED.value
                email = self.notifications.enqueue_status_update(order, notes)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        if changed:
            logger.info(f"Order {order.order_number}: {current.value} -> {target.value}")
        if email is not None:
            self.notifications.kick(email.id)
        return order

    def get_stats(self, period_days: int = 30) -> OrderStatsOut:
        rows = self.repo.stats_since(utcnow() - timedelta(days=period_days))
        total_orders = sum(count for count, _ in rows.values())
        revenue = sum(
            (to_money(amount) for status, (_, amount) in rows.items() if status != OrderStatus.CANCELLED.value),
            ZERO,
        )
        counted = sum(count for status, (count, _) in rows.items() if status != OrderStatus.CANCELLED.value)
        average = (revenue / counted).quantize(Decimal("1")) if counted else ZERO
        return OrderStatsOut(
            period_days=period_days,
            total_orders=total_orders,
            total_revenue=revenue,
            average_order_value=average,
            by_status={display_status(status): count for status, (count, _) in rows.items()},
        )
