# badminton_shop/api/routers/catalog.py
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from badminton_shop.api.deps import paginate, require_admin
from badminton_shop.data.database import get_db
from badminton_shop.domain.schemas import (
    BrandIn,
    BrandOut,
    BrandUpdate,
    CategoryIn,
    CategoryOut,
    CategoryTreeOut,
    CategoryUpdate,
    Envelope,
    ProductIn,
    ProductOut,
    ProductUpdate,
)
from badminton_shop.services.catalog_service import CatalogService

categories = APIRouter(prefix="/categories", tags=["categories"])
brands = APIRouter(prefix="/brands", tags=["brands"])
products = APIRouter(prefix="/products", tags=["products"])


def get_service(db: Session):
    return CatalogService(db)


# ---------------------------------------------------------------- categories

@categories.get("", response_model=Envelope[List[CategoryOut]])
def list_categories(db: Session = Depends(get_db)):
    rows = get_service(db).list_categories()
    return Envelope(message="Categories retrieved", data=[CategoryOut.model_validate(c) for c in rows])


@categories.get("/tree", response_model=Envelope[List[CategoryTreeOut]])
def category_tree(db: Session = Depends(get_db)):
    return Envelope(message="Category tree retrieved", data=get_service(db).category_tree())


@categories.get("/{key}", response_model=Envelope[CategoryOut])
def get_category(key: str, db: Session = Depends(get_db)):
    category = get_service(db).get_category(key)
    return Envelope(message="Category retrieved", data=CategoryOut.model_validate(category))


@categories.post("", response_model=Envelope[CategoryOut], status_code=201, dependencies=[Depends(require_admin)])
def create_category(payload: CategoryIn, db: Session = Depends(get_db)):
    category = get_service(db).create_category(payload)
    return Envelope(message="Category created", data=CategoryOut.model_validate(category))


@categories.put("/{category_id}", response_model=Envelope[CategoryOut], dependencies=[Depends(require_admin)])
def update_category(category_id: int, payload: CategoryUpdate, db: Session = Depends(get_db)):
    category = get_service(db).update_category(category_id, payload)
    return Envelope(message="Category updated", data=CategoryOut.model_validate(category))


@categories.delete("/{category_id}", response_model=Envelope[None], dependencies=[Depends(require_admin)])
def delete_category(category_id: int, db: Session = Depends(get_db)):
    get_service(db).delete_category(category_id)
    return Envelope(message="Category deleted")


# ---------------------------------------------------------------- brands

@brands.get("", response_model=Envelope[List[BrandOut]])
def list_brands(search: Optional[str] = Query(None, max_length=100), db: Session = Depends(get_db)):
    rows = get_service(db).list_brands(search=search)
    return Envelope(message="Brands retrieved", data=[BrandOut.model_validate(b) for b in rows])


@brands.get("/{key}", response_model=Envelope[BrandOut])
def get_brand(key: str, db: Session = Depends(get_db)):
    return Envelope(message="Brand retrieved", data=BrandOut.model_validate(get_service(db).get_brand(key)))


@brands.post("", response_model=Envelope[BrandOut], status_code=201, dependencies=[Depends(require_admin)])
def create_brand(payload: BrandIn, db: Session = Depends(get_db)):
    brand = get_service(db).create_brand(payload)
    return Envelope(message="Brand created", data=BrandOut.model_validate(brand))


@brands.put("/{brand_id}", response_model=Envelope[BrandOut], dependencies=[Depends(require_admin)])
def update_brand(brand_id: int, payload: BrandUpdate, db: Session = Depends(get_db)):
    brand = get_service(db).update_brand(brand_id, payload)
    return Envelope(message="Brand updated", data=BrandOut.model_validate(brand))


@brands.delete("/{brand_id}", response_model=Envelope[None], dependencies=[Depends(require_admin)])
def delete_brand(brand_id: int, db: Session = Depends(get_db)):
    get_service(db).delete_brand(brand_id)
    return Envelope(message="Brand deleted")


# ---------------------------------------------------------------- products

@products.get("", response_model=Envelope[List[ProductOut]])
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    category_id: Optional[int] = Query(None, gt=0),
    brand_id: Optional[int] = Query(None, gt=0),
    search: Optional[str] = Query(None, max_length=100),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    in_stock: bool = False,
    on_sale: bool = False,
    sort: str = Query("newest", pattern="^(newest|price_asc|price_desc|name|rating)$"),
    db: Session = Depends(get_db),
):
    rows, total = get_service(db).search_products(
        page=page,
        limit=limit,
        category_id=category_id,
        brand_id=brand_id,
        search=search,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        on_sale=on_sale,
        sort=sort,
    )
    return Envelope(
        message="Products retrieved",
        data=[ProductOut.model_validate(p) for p in rows],
        pagination=paginate(page, limit, total),
    )


@products.get("/{key}", response_model=Envelope[ProductOut])
def get_product(key: str, db: Session = Depends(get_db)):
    return Envelope(message="Product retrieved", data=ProductOut.model_validate(get_service(db).get_product(key)))


@products.post("", response_model=Envelope[ProductOut], status_code=201, dependencies=[Depends(require_admin)])
def create_product(payload: ProductIn, db: Session = Depends(get_db)):
    product = get_service(db).create_product(payload)
    return Envelope(message="Product created", data=ProductOut.model_validate(product))


@products.put("/{product_id}", response_model=Envelope[ProductOut], dependencies=[Depends(require_admin)])
def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    product = get_service(db).update_product(product_id, payload)
    return Envelope(message="Product updated", data=ProductOut.model_validate(product))


@products.delete("/{product_id}", response_model=Envelope[None], dependencies=[Depends(require_admin)])
def delete_product(product_id: int, db: Session = Depends(get_db)):
    get_service(db).delete_product(product_id)
    return Envelope(message="Product deactivated")
