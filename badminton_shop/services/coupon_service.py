# badminton_shop/services/coupon_service.py
from decimal import Decimal
from typing import List, Tuple

from sqlalchemy.orm import Session

from badminton_shop.data.models.coupon import CouponModel, CouponUsageModel
from badminton_shop.domain.exceptions import ConflictError, CouponRejectedError, NotFoundError, ValidationError
from badminton_shop.domain.pricing import (
    CouponValidation,
    DiscountResult,
    calculate_discount,
    evaluate_coupon,
    to_money,
)
from badminton_shop.domain.schemas import (
    AvailableCouponOut,
    CouponIn,
    CouponOut,
    CouponUpdate,
    CouponUsageOut,
    DiscountOut,
)
from badminton_shop.repos.coupon_repo import CouponRepo
from badminton_shop.repos.order_repo import OrderRepo
from badminton_shop.utils.clock import as_utc, utcnow
from badminton_shop.utils.logging import get_logger

logger = get_logger(__name__)


class CouponService:
    """
    Coupon evaluation against the database.
    - validate/preview never touch used_count
    - apply/redeem consume one use with a guarded update plus a usage row
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = CouponRepo(db)

    def validate_coupon(self, code: str, order_amount, user_id: int | None = None) -> CouponValidation:
        coupon = self.repo.get_by_code(code)
        usage = None
        if coupon is not None and user_id is not None:
            usage = self.repo.user_usage_count(coupon.id, user_id)

        result = evaluate_coupon(coupon, order_amount, utcnow(), usage)

        if result.expired and coupon.is_active:
            coupon.is_active = False
            self.db.commit()
            logger.info(f"Coupon {coupon.code} expired and was deactivated")

        if result.valid:
            result.calculation = calculate_discount(coupon, order_amount)
        return result

    def calculate_discount(self, coupon: CouponModel, order_amount) -> DiscountResult:
        return calculate_discount(coupon, order_amount)

    def check_coupon(self, code: str) -> dict:
        coupon = self.repo.get_by_code(code)
        amount = to_money(coupon.minimum_order_amount) if coupon is not None else Decimal("0")
        result = evaluate_coupon(coupon, amount, utcnow())
        return {
            "code": code.strip().upper(),
            "valid": result.valid,
            "message": result.message,
            "coupon": CouponOut.model_validate(coupon) if result.valid else None,
        }

    def redeem(
        self,
        coupon: CouponModel,
        calculation: DiscountResult,
        user_id: int | None,
        order_id: int | None,
    ) -> CouponUsageModel:
        """Consumes one use inside the caller's transaction, no commit."""
        if not self.repo.consume(coupon.id):
            raise CouponRejectedError("Coupon usage limit exceeded")
        usage = CouponUsageModel(
            coupon_id=coupon.id,
            user_id=user_id,
            order_id=order_id,
            discount_amount=calculation.discount_amount,
            original_amount=calculation.original_amount,
            final_amount=calculation.final_amount,
        )
        self.repo.record_usage(usage)
        self.db.flush()
        return usage

    def apply_coupon(self, code: str, order_amount, user_id: int | None, order_id: int | None = None) -> dict:
        if order_id is not None:
            order = OrderRepo(self.db).get_order(order_id)
            if order is None or order.user_id != user_id:
                raise NotFoundError("Order not found")
        result = self.validate_coupon(code, order_amount, user_id)
        if not result.valid:
            raise CouponRejectedError(result.message)
        try:
            usage = self.redeem(result.coupon, result.calculation, user_id, order_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Coupon {result.coupon.code} applied by user {user_id}, usage {usage.id}")
        return {
            "usage_id": usage.id,
            "coupon": CouponOut.model_validate(result.coupon),
            "calculation": DiscountOut(**result.calculation.as_dict()),
        }

    def get_available_coupons(self, order_amount, user_id: int | None = None) -> List[AvailableCouponOut]:
        now = utcnow()
        available = []
        for coupon in self.repo.list_currently_valid(now):
            usage = self.repo.user_usage_count(coupon.id, user_id) if user_id is not None else None
            if not evaluate_coupon(coupon, order_amount, now, usage).valid:
                continue
            out = AvailableCouponOut.model_validate(coupon)
            out.discount_preview = DiscountOut(**calculate_discount(coupon, order_amount).as_dict())
            available.append(out)
        available.sort(key=lambda c: c.discount_preview.discount_amount, reverse=True)
        return available

    def get_user_coupon_history(self, user_id: int, page: int, limit: int) -> Tuple[List[CouponUsageOut], int]:
        rows, total = self.repo.user_history(user_id, page, limit)
        history = [
            CouponUsageOut(
                id=usage.id,
                coupon_code=coupon.code,
                discount_type=coupon.discount_type,
                order_id=usage.order_id,
                discount_amount=usage.discount_amount,
                original_amount=usage.original_amount,
                final_amount=usage.final_amount,
                used_at=as_utc(usage.used_at),
            )
            for usage, coupon in rows
        ]
        return history, total

    def get_coupon_stats(self, coupon_id: int) -> dict:
        coupon = self._get(coupon_id)
        stats = self.repo.usage_stats(coupon_id)
        remaining = None
        if coupon.usage_limit_per_coupon is not None:
            remaining = max(coupon.usage_limit_per_coupon - coupon.used_count, 0)
        return {
            "coupon": CouponOut.model_validate(coupon),
            "used_count": coupon.used_count,
            "remaining_uses": remaining,
            **stats,
        }

    # ------------------------------------------------------------ admin

    def _get(self, coupon_id: int) -> CouponModel:
        coupon = self.repo.get(coupon_id)
        if not coupon:
            raise NotFoundError("Coupon not found")
        return coupon

    def list_coupons(self, page: int, limit: int, active_only: bool = False) -> Tuple[List[CouponModel], int]:
        return self.repo.list(page, limit, active_only)

    def get_coupon(self, coupon_id: int) -> CouponModel:
        return self._get(coupon_id)

    def create_coupon(self, payload: CouponIn) -> CouponModel:
        code = payload.code.strip().upper()
        if self.repo.get_by_code(code):
            raise ConflictError("Coupon code already exists")
        data = payload.model_dump()
        data["code"] = code
        data["discount_type"] = payload.discount_type.value
        coupon = self.repo.add(CouponModel(**data, used_count=0))
        self.db.commit()
        self.db.refresh(coupon)
        logger.info(f"Coupon {coupon.code} created")
        return coupon

    def update_coupon(self, coupon_id: int, payload: CouponUpdate) -> CouponModel:
        coupon = self._get(coupon_id)
        data = payload.model_dump(exclude_unset=True)
        valid_from = data.get("valid_from", as_utc(coupon.valid_from))
        valid_until = data.get("valid_until", as_utc(coupon.valid_until))
        if valid_from and valid_until and as_utc(valid_until) <= as_utc(valid_from):
            raise ValidationError("valid_until must be after valid_from")
        value = data.get("discount_value")
        if value is not None and coupon.discount_type == "percentage" and value > 100:
            raise ValidationError("Percentage discount cannot exceed 100")
        for field, val in data.items():
            setattr(coupon, field, val)
        self.db.commit()
        self.db.refresh(coupon)
        return coupon

    def delete_coupon(self, coupon_id: int) -> str:
        """Used coupons are only deactivated so usage history stays intact."""
        coupon = self._get(coupon_id)
        if self.repo.has_usage(coupon_id):
            coupon.is_active = False
            self.db.commit()
            logger.info(f"Coupon {coupon.code} deactivated")
            return "deactivated"
        self.db.delete(coupon)
        self.db.commit()
        logger.info(f"Coupon {coupon_id} deleted")
        return "deleted"

    def deactivate_expired(self) -> int:
        count = self.repo.deactivate_expired(utcnow())
        self.db.commit()
        return count
