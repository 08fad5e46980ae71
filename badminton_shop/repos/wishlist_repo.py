# badminton_shop/repos/wishlist_repo.py
from typing import List, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from badminton_shop.data.models.wishlist import WishlistItemModel


class WishlistRepo:
    def __init__(self, db: Session):
        self.db = db

    def find(self, user_id: int, product_id: int) -> WishlistItemModel | None:
        return self.db.execute(
            select(WishlistItemModel).where(
                WishlistItemModel.user_id == user_id,
                WishlistItemModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def list_for_user(self, user_id: int, page: int, limit: int) -> Tuple[List[WishlistItemModel], int]:
        total = self.count(user_id)
        rows = self.db.execute(
            select(WishlistItemModel)
            .where(WishlistItemModel.user_id == user_id)
            .order_by(WishlistItemModel.created_at.desc(), WishlistItemModel.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        ).scalars().all()
        return list(rows), total

    def count(self, user_id: int) -> int:
        return self.db.execute(
            select(func.count(WishlistItemModel.id)).where(WishlistItemModel.user_id == user_id)
        ).scalar_one()

    def add(self, item: WishlistItemModel) -> WishlistItemModel:
        self.db.add(item)
        return item

    def delete(self, item: WishlistItemModel) -> None:
        self.db.delete(item)
