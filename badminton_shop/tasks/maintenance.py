# badminton_shop/tasks/maintenance.py
from datetime import timedelta

from badminton_shop.celery_worker import celery_app
from badminton_shop.data.database import SessionLocal
from badminton_shop.repos.cart_repo import CartRepo
from badminton_shop.services.coupon_service import CouponService
from badminton_shop.utils.clock import utcnow
from badminton_shop.utils.settings import GUEST_CART_TTL_SECONDS
from badminton_shop.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="badminton_shop.tasks.maintenance.purge_guest_carts")
def purge_guest_carts():
    logger.info("Purge guest carts task started")

    db = SessionLocal()
    try:
        cutoff = utcnow() - timedelta(seconds=GUEST_CART_TTL_SECONDS)
        removed = CartRepo(db).purge_guest_items(cutoff)
        db.commit()
        logger.info(f"Removed {removed} abandoned guest cart lines")
        return {"removed": removed}
    finally:
        db.close()


@celery_app.task(name="badminton_shop.tasks.maintenance.deactivate_expired_coupons")
def deactivate_expired_coupons():
    logger.info("Deactivate expired coupons task started")

    db = SessionLocal()
    try:
        count = CouponService(db).deactivate_expired()
        logger.info(f"Deactivated {count} expired coupons")
        return {"deactivated": count}
    finally:
        db.close()
