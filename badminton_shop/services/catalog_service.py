# badminton_shop/services/catalog_service.py
from typing import Callable, List, Tuple

from sqlalchemy.orm import Session

from badminton_shop.data.models.brand import BrandModel
from badminton_shop.data.models.category import CategoryModel
from badminton_shop.data.models.product import ProductModel
from badminton_shop.domain.exceptions import ConflictError, NotFoundError, ValidationError
from badminton_shop.domain.schemas import (
    BrandIn,
    BrandUpdate,
    CategoryIn,
    CategoryOut,
    CategoryTreeOut,
    CategoryUpdate,
    ProductIn,
    ProductUpdate,
)
from badminton_shop.repos.catalog_repo import BrandRepo, CategoryRepo, ProductRepo
from badminton_shop.utils.logging import get_logger
from badminton_shop.utils.slugs import make_slug

logger = get_logger(__name__)


def unique_slug(text: str, taken: Callable[[str], bool]) -> str:
    base = make_slug(text) or "item"
    slug, n = base, 2
    while taken(slug):
        slug = f"{base}-{n}"
        n += 1
    return slug


class CatalogService:
    """
    Categories, brands and products.
    Slugs are derived from names and kept unique with a numeric suffix.
    """

    def __init__(self, db: Session):
        self.db = db
        self.categories = CategoryRepo(db)
        self.brands = BrandRepo(db)
        self.products = ProductRepo(db)

    # ------------------------------------------------------------ categories

    def list_categories(self, include_inactive: bool = False) -> List[CategoryModel]:
        return self.categories.list(include_inactive)

    def category_tree(self) -> List[CategoryTreeOut]:
        rows = self.categories.list()
        nodes = {c.id: CategoryTreeOut(**CategoryOut.model_validate(c).model_dump()) for c in rows}
        roots = []
        for category in rows:
            node = nodes[category.id]
            parent = nodes.get(category.parent_id) if category.parent_id else None
            if parent is not None:
                parent.children.append(node)
            else:
                roots.append(node)
        return roots

    def get_category(self, key: str) -> CategoryModel:
        category = self.categories.get(int(key)) if key.isdigit() else self.categories.get_by_slug(key)
        if not category:
            raise NotFoundError("Category not found")
        return category

    def create_category(self, payload: CategoryIn) -> CategoryModel:
        if payload.parent_id and not self.categories.get(payload.parent_id):
            raise ValidationError("Parent category not found")
        category = CategoryModel(
            **payload.model_dump(),
            slug=unique_slug(payload.name, self.categories.slug_taken),
        )
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        logger.info(f"Category {category.id} ({category.slug}) created")
        return category

    def update_category(self, category_id: int, payload: CategoryUpdate) -> CategoryModel:
        category = self.categories.get(category_id)
        if not category:
            raise NotFoundError("Category not found")
        data = payload.model_dump(exclude_unset=True)
        if "parent_id" in data and data["parent_id"] is not None:
            if data["parent_id"] == category_id:
                raise ValidationError("Category cannot be its own parent")
            if not self.categories.get(data["parent_id"]):
                raise ValidationError("Parent category not found")
        if data.get("name") and data["name"] != category.name:
            category.slug = unique_slug(data["name"], lambda s: self.categories.slug_taken(s, category_id))
        for field, value in data.items():
            setattr(category, field, value)
        self.db.commit()
        self.db.refresh(category)
        return category

    def delete_category(self, category_id: int) -> None:
        category = self.categories.get(category_id)
        if not category:
            raise NotFoundError("Category not found")
        if self.categories.count_products(category_id) or self.categories.count_children(category_id):
            raise ConflictError("Category still has products or subcategories")
        self.db.delete(category)
        self.db.commit()
        logger.info(f"Category {category_id} deleted")

    # ------------------------------------------------------------ brands

    def list_brands(self, include_inactive: bool = False, search: str | None = None) -> List[BrandModel]:
        return self.brands.list(include_inactive, search)

    def get_brand(self, key: str) -> BrandModel:
        brand = self.brands.get(int(key)) if key.isdigit() else self.brands.get_by_slug(key)
        if not brand:
            raise NotFoundError("Brand not found")
        return brand

    def create_brand(self, payload: BrandIn) -> BrandModel:
        name = payload.name.strip()
        if self.brands.name_taken(name):
            raise ConflictError("Brand name already exists")
        data = payload.model_dump()
        data["name"] = name
        brand = BrandModel(**data, slug=unique_slug(name, lambda s: self.brands.get_by_slug(s) is not None))
        self.db.add(brand)
        self.db.commit()
        self.db.refresh(brand)
        logger.info(f"Brand {brand.id} ({brand.name}) created")
        return brand

    def update_brand(self, brand_id: int, payload: BrandUpdate) -> BrandModel:
        brand = self.brands.get(brand_id)
        if not brand:
            raise NotFoundError("Brand not found")
        data = payload.model_dump(exclude_unset=True)
        if data.get("name"):
            data["name"] = data["name"].strip()
            if self.brands.name_taken(data["name"], exclude_id=brand_id):
                raise ConflictError("Brand name already exists")
            if data["name"] != brand.name:
                brand.slug = unique_slug(
                    data["name"],
                    lambda s: (other := self.brands.get_by_slug(s)) is not None and other.id != brand_id,
                )
        for field, value in data.items():
            setattr(brand, field, value)
        self.db.commit()
        self.db.refresh(brand)
        return brand

    def delete_brand(self, brand_id: int) -> None:
        brand = self.brands.get(brand_id)
        if not brand:
            raise NotFoundError("Brand not found")
        if self.brands.count_products(brand_id):
            raise ConflictError("Brand still has products")
        self.db.delete(brand)
        self.db.commit()
        logger.info(f"Brand {brand_id} deleted")

    # ------------------------------------------------------------ products

    def search_products(self, **filters) -> Tuple[List[ProductModel], int]:
        return self.products.search(**filters)

    def get_product(self, key: str) -> ProductModel:
        product = self.products.get(int(key)) if key.isdigit() else self.products.get_by_slug(key)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def _check_refs(self, category_id: int | None, brand_id: int | None) -> None:
        if category_id and not self.categories.get(category_id):
            raise ValidationError("Category not found")
        if brand_id and not self.brands.get(brand_id):
            raise ValidationError("Brand not found")

    def create_product(self, payload: ProductIn) -> ProductModel:
        self._check_refs(payload.category_id, payload.brand_id)
        data = payload.model_dump()
        data["status"] = payload.status.value
        product = ProductModel(**data, slug=unique_slug(payload.name, self.products.slug_taken))
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        logger.info(f"Product {product.id} ({product.slug}) created")
        return product

    def update_product(self, product_id: int, payload: ProductUpdate) -> ProductModel:
        product = self.products.get(product_id)
        if not product:
            raise NotFoundError("Product not found")
        data = payload.model_dump(exclude_unset=True)
        self._check_refs(data.get("category_id"), data.get("brand_id"))
        if data.get("status") is not None:
            data["status"] = data["status"].value
        if data.get("name") and data["name"] != product.name:
            product.slug = unique_slug(data["name"], lambda s: self.products.slug_taken(s, product_id))
        for field, value in data.items():
            setattr(product, field, value)
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete_product(self, product_id: int) -> None:
        """Products referenced by orders stay in the table as inactive."""
        product = self.products.get(product_id)
        if not product:
            raise NotFoundError("Product not found")
        product.status = "inactive"
        self.db.commit()
        logger.info(f"Product {product_id} deactivated")
