# badminton_shop/api/routers/cart.py
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from badminton_shop.api.deps import Identity, get_identity, get_lock_service, require_user
from badminton_shop.data.database import get_db
from badminton_shop.data.models.user import UserModel
from badminton_shop.domain.schemas import (
    CartAddIn,
    CartCouponIn,
    CartItemOut,
    CartMergeIn,
    CartOut,
    CartSummaryOut,
    CartUpdateIn,
    CartValidationOut,
    Envelope,
    OrderCreate,
    OrderOut,
)
from badminton_shop.services.cart_service import CartService
from badminton_shop.services.lock_service import LockService
from badminton_shop.services.order_service import OrderService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


def _with_session(identity: Identity, data: Dict[str, Any]) -> Dict[str, Any]:
    if identity.user_id is None:
        data["session_id"] = identity.session_id
    return data


@router.get("", response_model=Envelope[CartOut])
def get_cart(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    cart = get_service(db).get_cart(identity.user_id, identity.session_id)
    return Envelope(message="Cart retrieved", data=CartOut(**cart))


@router.get("/summary", response_model=Envelope[CartSummaryOut])
def get_summary(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    summary = get_service(db).get_summary(identity.user_id, identity.session_id)
    return Envelope(message="Cart summary retrieved", data=summary)


@router.get("/count", response_model=Envelope[Dict[str, Any]])
def get_count(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    count = get_service(db).get_count(identity.user_id, identity.session_id)
    return Envelope(message="Cart count retrieved", data=_with_session(identity, {"count": count}))


@router.post("/items", response_model=Envelope[Dict[str, Any]], status_code=201)
def add_item(payload: CartAddIn, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    item = get_service(db).add_item(identity.user_id, identity.session_id, payload)
    return Envelope(message="Item added to cart", data=_with_session(identity, {"item": item.model_dump(mode="json")}))


@router.put("/items/{item_id}", response_model=Envelope[Optional[CartItemOut]])
def update_item(
    item_id: int,
    payload: CartUpdateIn,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db),
):
    item = get_service(db).update_quantity(identity.user_id, identity.session_id, item_id, payload.quantity)
    if item is None:
        return Envelope(message="Item removed from cart")
    return Envelope(message="Cart item updated", data=item)


@router.delete("/items/{item_id}", response_model=Envelope[None])
def remove_item(item_id: int, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    get_service(db).remove_item(identity.user_id, identity.session_id, item_id)
    return Envelope(message="Item removed from cart")


@router.delete("", response_model=Envelope[Dict[str, int]])
def clear_cart(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    removed = get_service(db).clear(identity.user_id, identity.session_id)
    return Envelope(message="Cart cleared", data={"removed_items": removed})


@router.get("/validate", response_model=Envelope[CartValidationOut])
def validate_cart(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    result = get_service(db).validate_for_checkout(identity.user_id, identity.session_id)
    message = "Cart is ready for checkout" if result.valid else "Cart has issues"
    return Envelope(message=message, data=result)


@router.post("/update-prices", response_model=Envelope[Dict[str, int]])
def update_prices(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    updated = get_service(db).update_prices(identity.user_id, identity.session_id)
    return Envelope(message="Cart prices updated", data={"updated_items": updated})


@router.post("/sync", response_model=Envelope[Dict[str, int]])
def sync_inventory(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    result = get_service(db).sync_with_inventory(identity.user_id, identity.session_id)
    return Envelope(message="Cart synced with inventory", data=result)


@router.post("/coupon", response_model=Envelope[Dict[str, Any]])
def preview_coupon(payload: CartCouponIn, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    preview = get_service(db).preview_coupon(identity.user_id, identity.session_id, payload.code)
    data = {key: value.model_dump(mode="json") for key, value in preview.items()}
    return Envelope(message="Coupon is valid", data=data)


@router.post("/merge", response_model=Envelope[Dict[str, int]])
def merge_cart(payload: CartMergeIn, user: UserModel = Depends(require_user), db: Session = Depends(get_db)):
    result = get_service(db).merge_guest_cart(payload.session_id, user.id)
    return Envelope(message="Guest cart merged", data=result)


@router.post("/checkout", response_model=Envelope[OrderOut], status_code=201)
def checkout(
    payload: OrderCreate,
    identity: Identity = Depends(get_identity),
    lock_service: LockService = Depends(get_lock_service),
    db: Session = Depends(get_db),
):
    order = OrderService(db, lock_service).create_order_from_cart(payload, identity.user_id, identity.session_id)
    return Envelope(message="Order created successfully", data=OrderOut.model_validate(order))
