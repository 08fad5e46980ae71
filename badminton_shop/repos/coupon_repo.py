# badminton_shop/repos/coupon_repo.py
from datetime import datetime
from typing import List, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from badminton_shop.data.models.coupon import CouponModel, CouponUsageModel


class CouponRepo:
    def __init__(self, db: Session):
        self.db = db

    def get(self, coupon_id: int) -> CouponModel | None:
        return self.db.get(CouponModel, coupon_id)

    def get_by_code(self, code: str) -> CouponModel | None:
        return self.db.execute(
            select(CouponModel).where(CouponModel.code == code.strip().upper())
        ).scalar_one_or_none()

    def list(self, page: int, limit: int, active_only: bool = False) -> Tuple[List[CouponModel], int]:
        conditions = [CouponModel.is_active.is_(True)] if active_only else []
        total = self.db.execute(select(func.count(CouponModel.id)).where(*conditions)).scalar_one()
        rows = self.db.execute(
            select(CouponModel)
            .where(*conditions)
            .order_by(CouponModel.created_at.desc(), CouponModel.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        ).scalars().all()
        return list(rows), total

    def list_currently_valid(self, now: datetime) -> List[CouponModel]:
        stmt = (
            select(CouponModel)
            .where(
                CouponModel.is_active.is_(True),
                or_(CouponModel.valid_from.is_(None), CouponModel.valid_from <= now),
                or_(CouponModel.valid_until.is_(None), CouponModel.valid_until >= now),
                or_(
                    CouponModel.usage_limit_per_coupon.is_(None),
                    CouponModel.used_count < CouponModel.usage_limit_per_coupon,
                ),
            )
            .order_by(CouponModel.discount_value.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def add(self, coupon: CouponModel) -> CouponModel:
        self.db.add(coupon)
        return coupon

    def consume(self, coupon_id: int) -> int:
        """Guarded increment: no row is touched once the global cap is reached."""
        result = self.db.execute(
            update(CouponModel)
            .where(
                CouponModel.id == coupon_id,
                or_(
                    CouponModel.usage_limit_per_coupon.is_(None),
                    CouponModel.used_count < CouponModel.usage_limit_per_coupon,
                ),
            )
            .values(used_count=CouponModel.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def record_usage(self, usage: CouponUsageModel) -> CouponUsageModel:
        self.db.add(usage)
        return usage

    def user_usage_count(self, coupon_id: int, user_id: int) -> int:
        return self.db.execute(
            select(func.count(CouponUsageModel.id)).where(
                CouponUsageModel.coupon_id == coupon_id,
                CouponUsageModel.user_id == user_id,
            )
        ).scalar_one()

    def usage_stats(self, coupon_id: int) -> dict:
        row = self.db.execute(
            select(
                func.count(CouponUsageModel.id),
                func.count(func.distinct(CouponUsageModel.user_id)),
                func.coalesce(func.sum(CouponUsageModel.discount_amount), 0),
                func.coalesce(func.sum(CouponUsageModel.original_amount), 0),
                func.min(CouponUsageModel.used_at),
                func.max(CouponUsageModel.used_at),
            ).where(CouponUsageModel.coupon_id == coupon_id)
        ).one()
        return {
            "total_uses": row[0],
            "unique_users": row[1],
            "total_discount": row[2],
            "total_order_value": row[3],
            "first_used_at": row[4],
            "last_used_at": row[5],
        }

    def user_history(self, user_id: int, page: int, limit: int) -> Tuple[List[tuple], int]:
        total = self.db.execute(
            select(func.count(CouponUsageModel.id)).where(CouponUsageModel.user_id == user_id)
        ).scalar_one()
        rows = self.db.execute(
            select(CouponUsageModel, CouponModel)
            .join(CouponModel, CouponModel.id == CouponUsageModel.coupon_id)
            .where(CouponUsageModel.user_id == user_id)
            .order_by(CouponUsageModel.used_at.desc(), CouponUsageModel.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        ).all()
        return [tuple(r) for r in rows], total

    def has_usage(self, coupon_id: int) -> bool:
        return self.db.execute(
            select(CouponUsageModel.id).where(CouponUsageModel.coupon_id == coupon_id).limit(1)
        ).first() is not None

    def deactivate_expired(self, now: datetime) -> int:
        result = self.db.execute(
            update(CouponModel)
            .where(
                CouponModel.is_active.is_(True),
                CouponModel.valid_until.is_not(None),
                CouponModel.valid_until < now,
            )
            .values(is_active=False)
        )
        return result.rowcount
