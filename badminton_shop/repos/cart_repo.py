# badminton_shop/repos/cart_repo.py
from datetime import datetime
from typing import List

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from badminton_shop.data.models.cart_item import CartItemModel


def owner_filter(user_id: int | None, session_id: str | None):
    # a known user always wins over the guest session
    if user_id is not None:
        return CartItemModel.user_id == user_id
    return CartItemModel.session_id == session_id


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_items(self, user_id: int | None, session_id: str | None) -> List[CartItemModel]:
        stmt = (
            select(CartItemModel)
            .where(owner_filter(user_id, session_id))
            .order_by(CartItemModel.created_at.desc(), CartItemModel.id.desc())
        )
        return list(self.db.execute(stmt).scalars().unique().all())

    def get_item(self, item_id: int, user_id: int | None, session_id: str | None) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(CartItemModel.id == item_id, owner_filter(user_id, session_id))
        ).scalar_one_or_none()

    def find_line(
        self,
        user_id: int | None,
        session_id: str | None,
        product_id: int,
        attributes: dict | None,
    ) -> CartItemModel | None:
        """Same product with the same attribute selection is one line."""
        candidates = self.db.execute(
            select(CartItemModel).where(
                owner_filter(user_id, session_id),
                CartItemModel.product_id == product_id,
            )
        ).scalars().unique().all()
        wanted = attributes or {}
        for item in candidates:
            if (item.selected_attributes or {}) == wanted:
                return item
        return None

    def count(self, user_id: int | None, session_id: str | None) -> int:
        return self.db.execute(
            select(func.coalesce(func.sum(CartItemModel.quantity), 0)).where(owner_filter(user_id, session_id))
        ).scalar_one()

    def add(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        return item

    def delete(self, item: CartItemModel) -> None:
        self.db.delete(item)

    def clear(self, user_id: int | None, session_id: str | None) -> int:
        result = self.db.execute(
            delete(CartItemModel).where(owner_filter(user_id, session_id))
        )
        return result.rowcount

    def purge_guest_items(self, older_than: datetime) -> int:
        result = self.db.execute(
            delete(CartItemModel).where(
                CartItemModel.user_id.is_(None),
                CartItemModel.updated_at < older_than,
            )
        )
        return result.rowcount
