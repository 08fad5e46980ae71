# badminton_shop/services/wishlist_service.py
from typing import List, Tuple

from sqlalchemy.orm import Session

from badminton_shop.data.models.wishlist import WishlistItemModel
from badminton_shop.domain.exceptions import NotFoundError
from badminton_shop.repos.catalog_repo import ProductRepo
from badminton_shop.repos.wishlist_repo import WishlistRepo


class WishlistService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = WishlistRepo(db)
        self.products = ProductRepo(db)

    def add_item(self, user_id: int, product_id: int) -> Tuple[WishlistItemModel, bool]:
        """Adding a product twice returns the existing entry with created=False."""
        existing = self.repo.find(user_id, product_id)
        if existing:
            return existing, False
        if not self.products.get(product_id):
            raise NotFoundError("Product not found")
        item = self.repo.add(WishlistItemModel(user_id=user_id, product_id=product_id))
        self.db.commit()
        self.db.refresh(item)
        return item, True

    def remove_item(self, user_id: int, product_id: int) -> None:
        item = self.repo.find(user_id, product_id)
        if not item:
            raise NotFoundError("Product is not in your wishlist")
        self.repo.delete(item)
        self.db.commit()

    def get_wishlist(self, user_id: int, page: int, limit: int) -> Tuple[List[WishlistItemModel], int]:
        return self.repo.list_for_user(user_id, page, limit)

    def count(self, user_id: int) -> int:
        return self.repo.count(user_id)

    def contains(self, user_id: int, product_id: int) -> bool:
        return self.repo.find(user_id, product_id) is not None
