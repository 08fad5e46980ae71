# badminton_shop/services/review_service.py
from decimal import Decimal
from typing import List

from sqlalchemy.orm import Session

from badminton_shop.data.models.review import ReviewModel
from badminton_shop.domain.exceptions import AccessDeniedError, ConflictError, NotFoundError, ValidationError
from badminton_shop.domain.schemas import ProductReviewsOut, ReviewIn, ReviewOut, ReviewStatsOut, ReviewUpdate
from badminton_shop.repos.catalog_repo import ProductRepo
from badminton_shop.repos.order_repo import OrderRepo
from badminton_shop.repos.review_repo import ReviewRepo
from badminton_shop.utils.logging import get_logger

logger = get_logger(__name__)


class ReviewService:
    """
    Product reviews. New and edited reviews wait for moderation;
    product rating fields are recomputed from approved reviews only.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReviewRepo(db)
        self.products = ProductRepo(db)
        self.orders = OrderRepo(db)

    def _stats(self, product_id: int) -> ReviewStatsOut:
        counts = self.repo.rating_distribution(product_id)
        total = sum(counts.values())
        average = Decimal("0")
        if total:
            average = (Decimal(sum(r * c for r, c in counts.items())) / total).quantize(Decimal("0.01"))
        return ReviewStatsOut(
            average_rating=average,
            total_reviews=total,
            distribution={rating: counts.get(rating, 0) for rating in range(5, 0, -1)},
        )

    def _refresh_product_rating(self, product_id: int) -> None:
        product = self.products.get(product_id)
        if product is None:
            return
        self.db.flush()
        stats = self._stats(product_id)
        product.rating_average = stats.average_rating
        product.review_count = stats.total_reviews

    def create_review(self, user_id: int, payload: ReviewIn) -> ReviewModel:
        if not self.products.get(payload.product_id):
            raise NotFoundError("Product not found")
        if self.repo.exists_for(user_id, payload.product_id, payload.order_id):
            raise ConflictError("You have already reviewed this product")

        verified = False
        if payload.order_id is not None:
            order = self.orders.delivered_order_with_product(payload.order_id, user_id, payload.product_id)
            if order is None:
                raise ValidationError("Reviews can only reference your delivered orders containing this product")
            verified = True

        review = self.repo.add(
            ReviewModel(
                user_id=user_id,
                product_id=payload.product_id,
                order_id=payload.order_id,
                rating=payload.rating,
                title=payload.title,
                comment=payload.comment,
                is_verified=verified,
                is_approved=False,
                helpful_count=0,
            )
        )
        self.db.commit()
        self.db.refresh(review)
        logger.info(f"Review {review.id} created by user {user_id} for product {payload.product_id}")
        return review

    def get_product_reviews(self, product_id: int, page: int, limit: int) -> tuple[ProductReviewsOut, int]:
        if not self.products.get(product_id):
            raise NotFoundError("Product not found")
        reviews, total = self.repo.list_for_product(product_id, page, limit)
        body = ProductReviewsOut(
            reviews=[ReviewOut.model_validate(r) for r in reviews],
            stats=self._stats(product_id),
        )
        return body, total

    def get_user_reviews(self, user_id: int) -> List[ReviewModel]:
        return self.repo.list_for_user(user_id)

    def _own(self, review_id: int, user_id: int) -> ReviewModel:
        review = self.repo.get(review_id)
        if not review:
            raise NotFoundError("Review not found")
        if review.user_id != user_id:
            raise AccessDeniedError("You can only modify your own reviews")
        return review

    def update_review(self, review_id: int, user_id: int, payload: ReviewUpdate) -> ReviewModel:
        review = self._own(review_id, user_id)
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(review, field, value)
        was_approved = review.is_approved
        review.is_approved = False
        if was_approved:
            self._refresh_product_rating(review.product_id)
        self.db.commit()
        self.db.refresh(review)
        return review

    def delete_review(self, review_id: int, user_id: int) -> None:
        review = self._own(review_id, user_id)
        product_id, was_approved = review.product_id, review.is_approved
        self.repo.delete(review)
        if was_approved:
            self._refresh_product_rating(product_id)
        self.db.commit()

    def list_pending(self) -> List[ReviewModel]:
        return self.repo.list_pending()

    def moderate(self, review_id: int, approved: bool) -> ReviewModel:
        review = self.repo.get(review_id)
        if not review:
            raise NotFoundError("Review not found")
        review.is_approved = approved
        self._refresh_product_rating(review.product_id)
        self.db.commit()
        self.db.refresh(review)
        logger.info(f"Review {review_id} {'approved' if approved else 'rejected'}")
        return review
