# badminton_shop/services/cart_service.py
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from badminton_shop.data.models.cart_item import CartItemModel
from badminton_shop.domain.exceptions import (
    CouponRejectedError,
    InsufficientStockError,
    NotFoundError,
    ProductUnavailableError,
    ValidationError,
)
from badminton_shop.domain.models import ProductStatus
from badminton_shop.domain.pricing import calculate_cart_summary, to_money
from badminton_shop.domain.schemas import (
    CartAddIn,
    CartItemOut,
    CartLineCheck,
    CartSummaryOut,
    CartValidationOut,
    CouponOut,
    DiscountOut,
)
from badminton_shop.repos.cart_repo import CartRepo
from badminton_shop.repos.catalog_repo import ProductRepo
from badminton_shop.services.coupon_service import CouponService
from badminton_shop.utils.logging import get_logger

logger = get_logger(__name__)


def item_out(item: CartItemModel) -> CartItemOut:
    product = item.product
    return CartItemOut(
        id=item.id,
        product_id=item.product_id,
        product_name=product.name if product else None,
        product_slug=product.slug if product else None,
        product_status=product.status if product else None,
        quantity=item.quantity,
        unit_price=item.unit_price,
        current_price=product.final_price if product else None,
        item_total=to_money(item.unit_price) * item.quantity,
        selected_attributes=item.selected_attributes,
    )


class CartService:
    """
    Cart lines belong to a user or to a guest session, never both.
    Commands commit their own transaction, queries only read.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    @staticmethod
    def _owner(user_id: int | None, session_id: str | None) -> Dict[str, Any]:
        if user_id is not None:
            return {"user_id": user_id, "session_id": None}
        if not session_id:
            raise ValidationError("Missing cart session")
        return {"user_id": None, "session_id": session_id}

    # query

    def get_cart(self, user_id: int | None, session_id: str | None) -> Dict[str, Any]:
        items = self.repo.get_items(user_id, session_id)
        return {
            "items": [item_out(i) for i in items],
            "summary": CartSummaryOut(**calculate_cart_summary(items)),
            "session_id": None if user_id is not None else session_id,
        }

    def get_summary(self, user_id: int | None, session_id: str | None) -> CartSummaryOut:
        return CartSummaryOut(**calculate_cart_summary(self.repo.get_items(user_id, session_id)))

    def get_count(self, user_id: int | None, session_id: str | None) -> int:
        return int(self.repo.count(user_id, session_id))

    # commands

    def add_item(self, user_id: int | None, session_id: str | None, payload: CartAddIn) -> CartItemOut:
        owner = self._owner(user_id, session_id)

        product = self.products.get(payload.product_id)
        if not product:
            raise NotFoundError("Product not found")
        if product.status != ProductStatus.ACTIVE.value:
            raise ProductUnavailableError(product.name)

        attributes = payload.selected_attributes or None
        existing = self.repo.find_line(owner["user_id"], owner["session_id"], product.id, attributes)
        requested = payload.quantity + (existing.quantity if existing else 0)
        if requested > product.stock_quantity:
            raise InsufficientStockError(product.name, product.stock_quantity, requested)

        if existing:
            logger.info(f"Product {product.id} already in cart, quantity {existing.quantity} -> {requested}")
            existing.quantity = requested
            existing.unit_price = product.final_price
            item = existing
        else:
            item = self.repo.add(
                CartItemModel(
                    **owner,
                    product_id=product.id,
                    quantity=payload.quantity,
                    unit_price=product.final_price,
                    selected_attributes=attributes,
                )
            )
        self.db.commit()
        self.db.refresh(item)
        return item_out(item)

    def update_quantity(
        self, user_id: int | None, session_id: str | None, item_id: int, quantity: int
    ) -> CartItemOut | None:
        """Quantity 0 removes the line and returns None."""
        item = self.repo.get_item(item_id, user_id, session_id)
        if not item:
            raise NotFoundError("Cart item not found")

        if quantity <= 0:
            self.repo.delete(item)
            self.db.commit()
            return None

        product = item.product
        if product is None or product.status != ProductStatus.ACTIVE.value:
            raise ProductUnavailableError(product.name if product else f"#{item.product_id}")
        if quantity > product.stock_quantity:
            raise InsufficientStockError(product.name, product.stock_quantity, quantity)

        item.quantity = quantity
        self.db.commit()
        self.db.refresh(item)
        return item_out(item)

    def remove_item(self, user_id: int | None, session_id: str | None, item_id: int) -> None:
        item = self.repo.get_item(item_id, user_id, session_id)
        if not item:
            raise NotFoundError("Cart item not found")
        self.repo.delete(item)
        self.db.commit()

    def clear(self, user_id: int | None, session_id: str | None) -> int:
        removed = self.repo.clear(user_id, session_id)
        self.db.commit()
        return removed

    def validate_for_checkout(self, user_id: int | None, session_id: str | None) -> CartValidationOut:
        checks: List[CartLineCheck] = []
        for item in self.repo.get_items(user_id, session_id):
            product = item.product
            issues = []
            check = CartLineCheck(
                cart_item_id=item.id,
                product_id=item.product_id,
                product_name=product.name if product else None,
                requested_quantity=item.quantity,
                valid=True,
            )
            if product is None or product.status != ProductStatus.ACTIVE.value:
                issues.append("Product is no longer available")
            else:
                check.available_quantity = product.stock_quantity
                if product.stock_quantity < item.quantity:
                    issues.append(f"Only {product.stock_quantity} left in stock")
                current = to_money(product.final_price)
                if current != to_money(item.unit_price):
                    check.price_changed = True
                    check.old_price = item.unit_price
                    check.new_price = current
            check.issues = issues
            check.valid = not issues
            checks.append(check)

        invalid = sum(1 for c in checks if not c.valid)
        return CartValidationOut(
            valid=bool(checks) and invalid == 0,
            items=checks,
            total_items=len(checks),
            invalid_items=invalid,
        )

    def update_prices(self, user_id: int | None, session_id: str | None) -> int:
        updated = 0
        for item in self.repo.get_items(user_id, session_id):
            if item.product is None:
                continue
            current = to_money(item.product.final_price)
            if current != to_money(item.unit_price):
                item.unit_price = current
                updated += 1
        self.db.commit()
        logger.info(f"Refreshed {updated} cart prices")
        return updated

    def sync_with_inventory(self, user_id: int | None, session_id: str | None) -> Dict[str, int]:
        removed = adjusted = 0
        for item in self.repo.get_items(user_id, session_id):
            product = item.product
            if product is None or product.status != ProductStatus.ACTIVE.value or product.stock_quantity <= 0:
                self.repo.delete(item)
                removed += 1
            elif item.quantity > product.stock_quantity:
                item.quantity = product.stock_quantity
                adjusted += 1
        self.db.commit()
        return {"removed_items": removed, "adjusted_items": adjusted}

    def merge_guest_cart(self, session_id: str, user_id: int) -> Dict[str, int]:
        """Guest lines move to the user in one transaction, duplicates are summed."""
        merged = moved = adjusted = 0
        try:
            for guest in self.repo.get_items(None, session_id):
                target = self.repo.find_line(user_id, None, guest.product_id, guest.selected_attributes)
                if target:
                    target.quantity += guest.quantity
                    if guest.product is not None:
                        target.unit_price = guest.product.final_price
                    self.repo.delete(guest)
                    merged += 1
                else:
                    guest.user_id = user_id
                    guest.session_id = None
                    target = guest
                    moved += 1
                # merged quantities never exceed what is in stock
                product = target.product
                if product is not None and 0 < product.stock_quantity < target.quantity:
                    target.quantity = product.stock_quantity
                    adjusted += 1
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Merged guest cart {session_id} into user {user_id}: {merged} merged, {moved} moved, {adjusted} adjusted")
        return {"merged_items": merged, "moved_items": moved, "adjusted_items": adjusted}

    def preview_coupon(self, user_id: int | None, session_id: str | None, code: str) -> Dict[str, Any]:
        summary = self.get_summary(user_id, session_id)
        if summary.total_items == 0:
            raise ValidationError("Cart is empty")

        result = CouponService(self.db).validate_coupon(code, summary.subtotal, user_id)
        if not result.valid:
            raise CouponRejectedError(result.message)

        calc = result.calculation
        shipping = Decimal("0") if calc.free_shipping else summary.estimated_shipping
        summary.estimated_shipping = shipping
        summary.discount_amount = calc.discount_amount
        summary.estimated_total = summary.subtotal + summary.estimated_tax + shipping - calc.discount_amount
        return {
            "coupon": CouponOut.model_validate(result.coupon),
            "calculation": DiscountOut(**calc.as_dict()),
            "summary": summary,
        }
