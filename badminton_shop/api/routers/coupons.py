# badminton_shop/api/routers/coupons.py
from decimal import Decimal
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from badminton_shop.api.deps import Identity, get_identity, paginate, require_admin, require_user
from badminton_shop.data.database import get_db
from badminton_shop.data.models.user import UserModel
from badminton_shop.domain.schemas import (
    AvailableCouponOut,
    CouponApplyIn,
    CouponIn,
    CouponOut,
    CouponUpdate,
    CouponUsageOut,
    CouponValidationOut,
    DiscountOut,
    Envelope,
)
from badminton_shop.services.coupon_service import CouponService

router = APIRouter(prefix="/coupons", tags=["coupons"])
admin_router = APIRouter(prefix="/admin/coupons", tags=["admin"], dependencies=[Depends(require_admin)])


class CouponValidateIn(BaseModel):
    code: str = Field(..., min_length=3, max_length=50)
    order_amount: Decimal = Field(..., ge=0)


def get_service(db: Session):
    return CouponService(db)


@router.get("/check/{code}", response_model=Envelope[Dict[str, Any]])
def check_coupon(code: str, db: Session = Depends(get_db)):
    result = get_service(db).check_coupon(code)
    data = {**result, "coupon": result["coupon"].model_dump(mode="json") if result["coupon"] else None}
    return Envelope(message=result["message"], data=data)


@router.post("/validate", response_model=Envelope[CouponValidationOut])
def validate_coupon(
    payload: CouponValidateIn,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    """Preview only, the coupon allowance is not consumed."""
    result = get_service(db).validate_coupon(payload.code, payload.order_amount, identity.user_id)
    data = CouponValidationOut(
        valid=result.valid,
        coupon=CouponOut.model_validate(result.coupon) if result.valid else None,
        calculation=DiscountOut(**result.calculation.as_dict()) if result.calculation else None,
    )
    body = Envelope(success=result.valid, message=result.message, data=data)
    if not result.valid:
        return JSONResponse(status_code=400, content=body.model_dump(mode="json"))
    return body


@router.get("/available", response_model=Envelope[List[AvailableCouponOut]])
def available_coupons(
    order_amount: Decimal = Query(..., ge=0),
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    coupons = get_service(db).get_available_coupons(order_amount, identity.user_id)
    return Envelope(message="Available coupons retrieved", data=coupons)


@router.post("/apply", response_model=Envelope[Dict[str, Any]])
def apply_coupon(payload: CouponApplyIn, user: UserModel = Depends(require_user), db: Session = Depends(get_db)):
    result = get_service(db).apply_coupon(payload.code, payload.order_amount, user.id, payload.order_id)
    data = {
        "usage_id": result["usage_id"],
        "coupon": result["coupon"].model_dump(mode="json"),
        "calculation": result["calculation"].model_dump(mode="json"),
    }
    return Envelope(message="Coupon applied", data=data)


@router.get("/history", response_model=Envelope[List[CouponUsageOut]])
def coupon_history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: UserModel = Depends(require_user),
    db: Session = Depends(get_db),
):
    history, total = get_service(db).get_user_coupon_history(user.id, page, limit)
    return Envelope(message="Coupon history retrieved", data=history, pagination=paginate(page, limit, total))


# ---------------------------------------------------------------- admin

@admin_router.get("", response_model=Envelope[List[CouponOut]])
def list_coupons(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    active_only: bool = False,
    db: Session = Depends(get_db),
):
    rows, total = get_service(db).list_coupons(page, limit, active_only)
    return Envelope(
        message="Coupons retrieved",
        data=[CouponOut.model_validate(c) for c in rows],
        pagination=paginate(page, limit, total),
    )


@admin_router.get("/{coupon_id}", response_model=Envelope[CouponOut])
def get_coupon(coupon_id: int, db: Session = Depends(get_db)):
    return Envelope(message="Coupon retrieved", data=CouponOut.model_validate(get_service(db).get_coupon(coupon_id)))


@admin_router.get("/{coupon_id}/stats", response_model=Envelope[Dict[str, Any]])
def coupon_stats(coupon_id: int, db: Session = Depends(get_db)):
    stats = get_service(db).get_coupon_stats(coupon_id)
    stats["coupon"] = stats["coupon"].model_dump(mode="json")
    for key in ("total_discount", "total_order_value"):
        stats[key] = float(stats[key])
    return Envelope(message="Coupon stats retrieved", data=stats)


@admin_router.post("", response_model=Envelope[CouponOut], status_code=201)
def create_coupon(payload: CouponIn, db: Session = Depends(get_db)):
    coupon = get_service(db).create_coupon(payload)
    return Envelope(message="Coupon created", data=CouponOut.model_validate(coupon))


@admin_router.put("/{coupon_id}", response_model=Envelope[CouponOut])
def update_coupon(coupon_id: int, payload: CouponUpdate, db: Session = Depends(get_db)):
    coupon = get_service(db).update_coupon(coupon_id, payload)
    return Envelope(message="Coupon updated", data=CouponOut.model_validate(coupon))


@admin_router.delete("/{coupon_id}", response_model=Envelope[Dict[str, str]])
def delete_coupon(coupon_id: int, db: Session = Depends(get_db)):
    outcome = get_service(db).delete_coupon(coupon_id)
    return Envelope(message=f"Coupon {outcome}", data={"result": outcome})
