# badminton_shop/api/routers/wishlist.py
from typing import Dict, List

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from badminton_shop.api.deps import paginate, require_user
from badminton_shop.data.database import get_db
from badminton_shop.data.models.user import UserModel
from badminton_shop.domain.schemas import Envelope, WishlistIn, WishlistItemOut
from badminton_shop.services.wishlist_service import WishlistService

router = APIRouter(prefix="/wishlist", tags=["wishlist"])


def get_service(db: Session):
    return WishlistService(db)


@router.get("", response_model=Envelope[List[WishlistItemOut]])
def get_wishlist(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    user: UserModel = Depends(require_user),
    db: Session = Depends(get_db),
):
    rows, total = get_service(db).get_wishlist(user.id, page, limit)
    return Envelope(
        message="Wishlist retrieved",
        data=[WishlistItemOut.model_validate(item) for item in rows],
        pagination=paginate(page, limit, total),
    )


@router.get("/count", response_model=Envelope[Dict[str, int]])
def wishlist_count(user: UserModel = Depends(require_user), db: Session = Depends(get_db)):
    return Envelope(message="Wishlist count retrieved", data={"count": get_service(db).count(user.id)})


@router.get("/check/{product_id}", response_model=Envelope[Dict[str, bool]])
def check_product(product_id: int, user: UserModel = Depends(require_user), db: Session = Depends(get_db)):
    in_wishlist = get_service(db).contains(user.id, product_id)
    return Envelope(message="Wishlist checked", data={"in_wishlist": in_wishlist})


@router.post("", response_model=Envelope[WishlistItemOut], status_code=201)
def add_to_wishlist(
    payload: WishlistIn,
    response: Response,
    user: UserModel = Depends(require_user),
    db: Session = Depends(get_db),
):
    item, created = get_service(db).add_item(user.id, payload.product_id)
    if not created:
        response.status_code = 200
    message = "Product added to wishlist" if created else "Product already in wishlist"
    return Envelope(message=message, data=WishlistItemOut.model_validate(item))


@router.delete("/{product_id}", response_model=Envelope[None])
def remove_from_wishlist(product_id: int, user: UserModel = Depends(require_user), db: Session = Depends(get_db)):
    get_service(db).remove_item(user.id, product_id)
    return Envelope(message="Product removed from wishlist")
