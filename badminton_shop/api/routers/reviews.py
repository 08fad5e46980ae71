# badminton_shop/api/routers/reviews.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from badminton_shop.api.deps import paginate, require_admin, require_user
from badminton_shop.data.database import get_db
from badminton_shop.data.models.user import UserModel
from badminton_shop.domain.schemas import (
    Envelope,
    ProductReviewsOut,
    ReviewIn,
    ReviewModerationIn,
    ReviewOut,
    ReviewUpdate,
)
from badminton_shop.services.review_service import ReviewService

router = APIRouter(tags=["reviews"])
admin_router = APIRouter(prefix="/admin/reviews", tags=["admin"], dependencies=[Depends(require_admin)])


def get_service(db: Session):
    return ReviewService(db)


@router.post("/reviews", response_model=Envelope[ReviewOut], status_code=201)
def create_review(payload: ReviewIn, user: UserModel = Depends(require_user), db: Session = Depends(get_db)):
    review = get_service(db).create_review(user.id, payload)
    return Envelope(message="Review submitted for moderation", data=ReviewOut.model_validate(review))


@router.get("/products/{product_id}/reviews", response_model=Envelope[ProductReviewsOut])
def product_reviews(
    product_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    body, total = get_service(db).get_product_reviews(product_id, page, limit)
    return Envelope(message="Reviews retrieved", data=body, pagination=paginate(page, limit, total))


@router.get("/reviews/me", response_model=Envelope[List[ReviewOut]])
def my_reviews(user: UserModel = Depends(require_user), db: Session = Depends(get_db)):
    reviews = get_service(db).get_user_reviews(user.id)
    return Envelope(message="Reviews retrieved", data=[ReviewOut.model_validate(r) for r in reviews])


@router.put("/reviews/{review_id}", response_model=Envelope[ReviewOut])
def update_review(
    review_id: int,
    payload: ReviewUpdate,
    user: UserModel = Depends(require_user),
    db: Session = Depends(get_db),
):
    review = get_service(db).update_review(review_id, user.id, payload)
    return Envelope(message="Review updated", data=ReviewOut.model_validate(review))


@router.delete("/reviews/{review_id}", response_model=Envelope[None])
def delete_review(review_id: int, user: UserModel = Depends(require_user), db: Session = Depends(get_db)):
    get_service(db).delete_review(review_id, user.id)
    return Envelope(message="Review deleted")


@admin_router.get("/pending", response_model=Envelope[List[ReviewOut]])
def pending_reviews(db: Session = Depends(get_db)):
    reviews = get_service(db).list_pending()
    return Envelope(message="Pending reviews retrieved", data=[ReviewOut.model_validate(r) for r in reviews])


@admin_router.put("/{review_id}/moderate", response_model=Envelope[ReviewOut])
def moderate_review(review_id: int, payload: ReviewModerationIn, db: Session = Depends(get_db)):
    review = get_service(db).moderate(review_id, payload.is_approved)
    message = "Review approved" if payload.is_approved else "Review rejected"
    return Envelope(message=message, data=ReviewOut.model_validate(review))
