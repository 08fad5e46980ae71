# badminton_shop/repos/order_repo.py
from datetime import datetime
from typing import List, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from badminton_shop.data.models.order import OrderModel, OrderItemModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int, user_id: int | None = None) -> OrderModel | None:
        order = self.db.get(OrderModel, order_id)
        if order is None or (user_id is not None and order.user_id != user_id):
            return None
        return order

    def get_by_number(self, order_number: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel).where(OrderModel.order_number == order_number)
        ).scalar_one_or_none()

    def number_exists(self, order_number: str) -> bool:
        return self.get_by_number(order_number) is not None

    def list_orders(
        self,
        *,
        page: int,
        limit: int,
        user_id: int | None = None,
        status: str | None = None,
        search: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> Tuple[List[OrderModel], int]:
        conditions = []
        if user_id is not None:
            conditions.append(OrderModel.user_id == user_id)
        if status:
            conditions.append(OrderModel.status == status)
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    OrderModel.order_number.ilike(pattern),
                    OrderModel.customer_name.ilike(pattern),
                    OrderModel.customer_email.ilike(pattern),
                    OrderModel.customer_phone.ilike(pattern),
                )
            )
        if date_from is not None:
            conditions.append(OrderModel.created_at >= date_from)
        if date_to is not None:
            conditions.append(OrderModel.created_at <= date_to)

        total = self.db.execute(select(func.count(OrderModel.id)).where(*conditions)).scalar_one()
        rows = self.db.execute(
            select(OrderModel)
            .where(*conditions)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        ).scalars().all()
        return list(rows), total

    def delivered_order_with_product(self, order_id: int, user_id: int, product_id: int) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .join(OrderItemModel, OrderItemModel.order_id == OrderModel.id)
            .where(
                OrderModel.id == order_id,
                OrderModel.user_id == user_id,
                OrderModel.status == "delivered",
                OrderItemModel.product_id == product_id,
            )
        ).scalars().first()

    def stats_since(self, since: datetime) -> dict:
        rows = self.db.execute(
            select(OrderModel.status, func.count(OrderModel.id), func.coalesce(func.sum(OrderModel.total_amount), 0))
            .where(OrderModel.created_at >= since)
            .group_by(OrderModel.status)
        ).all()
        return {status: (count, revenue) for status, count, revenue in rows}
