# badminton_shop/repos/catalog_repo.py
from decimal import Decimal
from typing import List, Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from badminton_shop.data.models.brand import BrandModel
from badminton_shop.data.models.category import CategoryModel
from badminton_shop.data.models.product import ProductModel

PRODUCT_SORTS = {
    "newest": ProductModel.created_at.desc(),
    "price_asc": ProductModel.base_price.asc(),
    "price_desc": ProductModel.base_price.desc(),
    "name": ProductModel.name.asc(),
    "rating": ProductModel.rating_average.desc(),
}


class CategoryRepo:
    def __init__(self, db: Session):
        self.db = db

    def list(self, include_inactive: bool = False) -> List[CategoryModel]:
        stmt = select(CategoryModel).order_by(CategoryModel.sort_order, CategoryModel.name)
        if not include_inactive:
            stmt = stmt.where(CategoryModel.is_active.is_(True))
        return list(self.db.execute(stmt).scalars().all())

    def get(self, category_id: int) -> CategoryModel | None:
        return self.db.get(CategoryModel, category_id)

    def get_by_slug(self, slug: str) -> CategoryModel | None:
        return self.db.execute(
            select(CategoryModel).where(CategoryModel.slug == slug)
        ).scalar_one_or_none()

    def slug_taken(self, slug: str, exclude_id: int | None = None) -> bool:
        stmt = select(CategoryModel.id).where(CategoryModel.slug == slug)
        if exclude_id is not None:
            stmt = stmt.where(CategoryModel.id != exclude_id)
        return self.db.execute(stmt).first() is not None

    def count_products(self, category_id: int) -> int:
        return self.db.execute(
            select(func.count(ProductModel.id)).where(ProductModel.category_id == category_id)
        ).scalar_one()

    def count_children(self, category_id: int) -> int:
        return self.db.execute(
            select(func.count(CategoryModel.id)).where(CategoryModel.parent_id == category_id)
        ).scalar_one()


class BrandRepo:
    def __init__(self, db: Session):
        self.db = db

    def list(self, include_inactive: bool = False, search: str | None = None) -> List[BrandModel]:
        stmt = select(BrandModel).order_by(BrandModel.sort_order, BrandModel.name)
        if not include_inactive:
            stmt = stmt.where(BrandModel.is_active.is_(True))
        if search:
            stmt = stmt.where(BrandModel.name.ilike(f"%{search}%"))
        return list(self.db.execute(stmt).scalars().all())

    def get(self, brand_id: int) -> BrandModel | None:
        return self.db.get(BrandModel, brand_id)

    def get_by_slug(self, slug: str) -> BrandModel | None:
        return self.db.execute(
            select(BrandModel).where(BrandModel.slug == slug)
        ).scalar_one_or_none()

    def name_taken(self, name: str, exclude_id: int | None = None) -> bool:
        stmt = select(BrandModel.id).where(func.lower(BrandModel.name) == name.lower())
        if exclude_id is not None:
            stmt = stmt.where(BrandModel.id != exclude_id)
        return self.db.execute(stmt).first() is not None

    def count_products(self, brand_id: int) -> int:
        return self.db.execute(
            select(func.count(ProductModel.id)).where(ProductModel.brand_id == brand_id)
        ).scalar_one()


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_by_slug(self, slug: str) -> ProductModel | None:
        return self.db.execute(
            select(ProductModel).where(ProductModel.slug == slug)
        ).scalar_one_or_none()

    def slug_taken(self, slug: str, exclude_id: int | None = None) -> bool:
        stmt = select(ProductModel.id).where(ProductModel.slug == slug)
        if exclude_id is not None:
            stmt = stmt.where(ProductModel.id != exclude_id)
        return self.db.execute(stmt).first() is not None

    def search(
        self,
        *,
        page: int = 1,
        limit: int = 20,
        category_id: int | None = None,
        brand_id: int | None = None,
        search: str | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        status: str | None = "active",
        in_stock: bool = False,
        on_sale: bool = False,
        sort: str = "newest",
    ) -> Tuple[List[ProductModel], int]:
        conditions = []
        if status:
            conditions.append(ProductModel.status == status)
        if category_id:
            conditions.append(ProductModel.category_id == category_id)
        if brand_id:
            conditions.append(ProductModel.brand_id == brand_id)
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(ProductModel.name.ilike(pattern), ProductModel.description.ilike(pattern)))
        if min_price is not None:
            conditions.append(ProductModel.base_price >= min_price)
        if max_price is not None:
            conditions.append(ProductModel.base_price <= max_price)
        if in_stock:
            conditions.append(ProductModel.stock_quantity > 0)
        if on_sale:
            conditions.append(ProductModel.sale_price > 0)
            conditions.append(ProductModel.sale_price < ProductModel.base_price)

        total = self.db.execute(
            select(func.count(ProductModel.id)).where(*conditions)
        ).scalar_one()

        stmt = (
            select(ProductModel)
            .where(*conditions)
            .order_by(PRODUCT_SORTS.get(sort, PRODUCT_SORTS["newest"]), ProductModel.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        return list(self.db.execute(stmt).scalars().all()), total

    def for_assistant(
        self,
        keyword: str | None,
        brand: str | None,
        min_price: Decimal | None,
        max_price: Decimal | None,
        limit: int = 5,
    ) -> List[ProductModel]:
        stmt = (
            select(ProductModel)
            .outerjoin(BrandModel, ProductModel.brand_id == BrandModel.id)
            .outerjoin(CategoryModel, ProductModel.category_id == CategoryModel.id)
            .where(ProductModel.status == "active", ProductModel.stock_quantity > 0)
        )
        if keyword:
            stmt = stmt.where(or_(ProductModel.name.ilike(f"%{keyword}%"), CategoryModel.name.ilike(f"%{keyword}%")))
        if brand:
            stmt = stmt.where(BrandModel.name.ilike(f"%{brand}%"))
        if min_price is not None:
            stmt = stmt.where(ProductModel.base_price >= min_price)
        if max_price is not None:
            stmt = stmt.where(ProductModel.base_price <= max_price)
        stmt = stmt.order_by(ProductModel.created_at.desc(), ProductModel.id.desc()).limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def on_sale(self, limit: int = 5) -> List[ProductModel]:
        stmt = (
            select(ProductModel)
            .where(
                ProductModel.status == "active",
                ProductModel.stock_quantity > 0,
                ProductModel.sale_price > 0,
                ProductModel.sale_price < ProductModel.base_price,
            )
            .order_by(((ProductModel.base_price - ProductModel.sale_price) / ProductModel.base_price).desc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())

    def decrement_stock(self, product_id: int, quantity: int) -> int:
        """Guarded decrement: touches no row when stock would go negative."""
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.stock_quantity >= quantity)
            .values(stock_quantity=ProductModel.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def increment_stock(self, product_id: int, quantity: int) -> None:
        self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(stock_quantity=ProductModel.stock_quantity + quantity)
            .execution_options(synchronize_session=False)
        )
