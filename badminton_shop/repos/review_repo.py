# badminton_shop/repos/review_repo.py
from typing import List, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from badminton_shop.data.models.review import ReviewModel


class ReviewRepo:
    def __init__(self, db: Session):
        self.db = db

    def get(self, review_id: int) -> ReviewModel | None:
        return self.db.get(ReviewModel, review_id)

    def add(self, review: ReviewModel) -> ReviewModel:
        self.db.add(review)
        return review

    def delete(self, review: ReviewModel) -> None:
        self.db.delete(review)

    def exists_for(self, user_id: int, product_id: int, order_id: int | None) -> bool:
        stmt = select(ReviewModel.id).where(
            ReviewModel.user_id == user_id,
            ReviewModel.product_id == product_id,
        )
        if order_id is None:
            stmt = stmt.where(ReviewModel.order_id.is_(None))
        else:
            stmt = stmt.where(ReviewModel.order_id == order_id)
        return self.db.execute(stmt).first() is not None

    def list_for_product(self, product_id: int, page: int, limit: int) -> Tuple[List[ReviewModel], int]:
        conditions = [ReviewModel.product_id == product_id, ReviewModel.is_approved.is_(True)]
        total = self.db.execute(select(func.count(ReviewModel.id)).where(*conditions)).scalar_one()
        rows = self.db.execute(
            select(ReviewModel)
            .where(*conditions)
            .order_by(ReviewModel.created_at.desc(), ReviewModel.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        ).scalars().all()
        return list(rows), total

    def list_for_user(self, user_id: int) -> List[ReviewModel]:
        return list(
            self.db.execute(
                select(ReviewModel)
                .where(ReviewModel.user_id == user_id)
                .order_by(ReviewModel.created_at.desc(), ReviewModel.id.desc())
            ).scalars().all()
        )

    def list_pending(self) -> List[ReviewModel]:
        return list(
            self.db.execute(
                select(ReviewModel)
                .where(ReviewModel.is_approved.is_(False))
                .order_by(ReviewModel.created_at.asc(), ReviewModel.id.asc())
            ).scalars().all()
        )

    def rating_distribution(self, product_id: int) -> dict[int, int]:
        rows = self.db.execute(
            select(ReviewModel.rating, func.count(ReviewModel.id))
            .where(ReviewModel.product_id == product_id, ReviewModel.is_approved.is_(True))
            .group_by(ReviewModel.rating)
        ).all()
        return {rating: count for rating, count in rows}
