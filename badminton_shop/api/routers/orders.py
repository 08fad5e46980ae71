# badminton_shop/api/routers/orders.py
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from badminton_shop.api.deps import Identity, get_identity, get_lock_service, paginate, require_admin, require_user
from badminton_shop.data.database import get_db
from badminton_shop.data.models.user import UserModel
from badminton_shop.domain.schemas import (
    Envelope,
    OrderCancelIn,
    OrderCreate,
    OrderOut,
    OrderStatsOut,
    OrderStatusOut,
    OrderStatusUpdateIn,
    OrderTrackingOut,
)
from badminton_shop.services.lock_service import LockService
from badminton_shop.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])
admin_router = APIRouter(prefix="/admin/orders", tags=["admin"], dependencies=[Depends(require_admin)])


def get_service(db: Session, lock_service: LockService):
    return OrderService(db, lock_service)


@router.post("", response_model=Envelope[OrderOut], status_code=201)
def create_order(
    payload: OrderCreate,
    identity: Identity = Depends(get_identity),
    lock_service: LockService = Depends(get_lock_service),
    db: Session = Depends(get_db),
):
    """
    Creates an order from the caller's cart (user or guest session).
    The confirmation email is sent asynchronously.
    """
    svc = get_service(db, lock_service)
    order = svc.create_order_from_cart(payload, identity.user_id, identity.session_id)
    return Envelope(message="Order created successfully", data=OrderOut.model_validate(order))


@router.get("", response_model=Envelope[List[OrderOut]])
def my_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[str] = Query(None, max_length=20),
    user: UserModel = Depends(require_user),
    lock_service: LockService = Depends(get_lock_service),
    db: Session = Depends(get_db),
):
    orders, total = get_service(db, lock_service).get_my_orders(user.id, page, limit, status)
    return Envelope(
        message="Orders retrieved",
        data=[OrderOut.model_validate(o) for o in orders],
        pagination=paginate(page, limit, total),
    )


@router.get("/status/{order_number}", response_model=Envelope[OrderStatusOut])
def order_status(
    order_number: str,
    phone: Optional[str] = Query(None, max_length=20),
    lock_service: LockService = Depends(get_lock_service),
    db: Session = Depends(get_db),
):
    status = get_service(db, lock_service).get_order_status(order_number, phone)
    return Envelope(message="Order status retrieved", data=status)


@router.get("/track/{order_number}", response_model=Envelope[OrderTrackingOut])
def track_order(
    order_number: str,
    lock_service: LockService = Depends(get_lock_service),
    db: Session = Depends(get_db),
):
    tracking = get_service(db, lock_service).get_tracking(order_number)
    return Envelope(message="Order tracking retrieved", data=tracking)


@router.get("/{order_id}", response_model=Envelope[OrderOut])
def get_order(
    order_id: int,
    user: UserModel = Depends(require_user),
    lock_service: LockService = Depends(get_lock_service),
    db: Session = Depends(get_db),
):
    order = get_service(db, lock_service).get_order(order_id, user.id)
    return Envelope(message="Order retrieved", data=OrderOut.model_validate(order))


@router.post("/{order_id}/cancel", response_model=Envelope[OrderOut])
def cancel_order(
    order_id: int,
    payload: Optional[OrderCancelIn] = None,
    user: UserModel = Depends(require_user),
    lock_service: LockService = Depends(get_lock_service),
    db: Session = Depends(get_db),
):
    reason = payload.reason if payload else None
    order = get_service(db, lock_service).cancel_order(order_id, user.id, reason)
    return Envelope(message="Order cancelled", data=OrderOut.model_validate(order))


# ---------------------------------------------------------------- admin

@admin_router.get("", response_model=Envelope[List[OrderOut]])
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None, max_length=20),
    search: Optional[str] = Query(None, max_length=100),
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    lock_service: LockService = Depends(get_lock_service),
    db: Session = Depends(get_db),
):
    orders, total = get_service(db, lock_service).list_orders(
        page, limit, status=status, search=search, date_from=date_from, date_to=date_to
    )
    return Envelope(
        message="Orders retrieved",
        data=[OrderOut.model_validate(o) for o in orders],
        pagination=paginate(page, limit, total),
    )


@admin_router.get("/stats", response_model=Envelope[OrderStatsOut])
def order_stats(
    period_days: int = Query(30, ge=1, le=365),
    lock_service: LockService = Depends(get_lock_service),
    db: Session = Depends(get_db),
):
    return Envelope(message="Order stats retrieved", data=get_service(db, lock_service).get_stats(period_days))


@admin_router.get("/{order_id}", response_model=Envelope[OrderOut])
def get_order_admin(
    order_id: int,
    lock_service: LockService = Depends(get_lock_service),
    db: Session = Depends(get_db),
):
    order = get_service(db, lock_service).get_order_admin(order_id)
    return Envelope(message="Order retrieved", data=OrderOut.model_validate(order))


@admin_router.put("/{order_id}/status", response_model=Envelope[OrderOut])
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdateIn,
    lock_service: LockService = Depends(get_lock_service),
    db: Session = Depends(get_db),
):
    order = get_service(db, lock_service).update_status(order_id, payload)
    return Envelope(message="Order status updated", data=OrderOut.model_validate(order))
