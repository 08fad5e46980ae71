import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["CRASH_HANDLER_ENABLED"] = "false"

import itertools
from contextlib import contextmanager
from datetime import timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

import badminton_shop.data.models  # noqa: F401
from badminton_shop.api import create_app
from badminton_shop.api.deps import get_lock_service
from badminton_shop.data.database import Base, SessionLocal, engine
from badminton_shop.data.models import (
    BrandModel,
    CategoryModel,
    CouponModel,
    ProductModel,
    UserModel,
)
from badminton_shop.domain.exceptions import CheckoutInProgressError
from badminton_shop.services.notification_service import NotificationService
from badminton_shop.utils.clock import utcnow


_slugs = itertools.count(1)


class FakeLockService:
    """In-process stand-in for the redis checkout lock."""

    def __init__(self):
        self.held = set()
        self.acquired = []

    @contextmanager
    def checkout_lock(self, owner, ttl=30):
        if owner in self.held:
            raise CheckoutInProgressError()
        self.held.add(owner)
        self.acquired.append(owner)
        try:
            yield
        finally:
            self.held.discard(owner)


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def kicked(monkeypatch):
    ids = []
    monkeypatch.setattr(NotificationService, "kick", staticmethod(lambda message_id: ids.append(message_id)))
    return ids


@pytest.fixture
def lock_service():
    return FakeLockService()


@pytest.fixture
def client(lock_service, kicked):
    app = create_app()
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(db):
    def _make(email="buyer@example.com", role="customer", full_name="Nguyen Van A"):
        user = UserModel(email=email, full_name=full_name, role=role)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def admin_headers(make_user):
    admin = make_user(email="admin@example.com", role="admin", full_name="Admin")
    return {"X-User-Id": str(admin.id)}


@pytest.fixture
def make_product(db):
    def _make(name="Vợt Yonex Astrox 99", price="100000", stock=10, status="active", sale_price=None, brand=None):
        product = ProductModel(
            name=name,
            slug=f"product-{next(_slugs)}",
            base_price=Decimal(price),
            sale_price=Decimal(sale_price) if sale_price else None,
            stock_quantity=stock,
            status=status,
            brand_id=brand.id if brand else None,
            rating_average=0,
            review_count=0,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def make_brand(db):
    def _make(name="Yonex"):
        brand = BrandModel(name=name, slug=name.lower(), sort_order=0, is_active=True)
        db.add(brand)
        db.commit()
        db.refresh(brand)
        return brand

    return _make


@pytest.fixture
def make_category(db):
    def _make(name="Vợt cầu lông", slug="vot-cau-long", parent=None):
        category = CategoryModel(name=name, slug=slug, parent_id=parent.id if parent else None, sort_order=0, is_active=True)
        db.add(category)
        db.commit()
        db.refresh(category)
        return category

    return _make


@pytest.fixture
def make_coupon(db):
    def _make(code="SAVE10", discount_type="percentage", value="10", **fields):
        now = utcnow()
        coupon = CouponModel(
            code=code,
            name=fields.pop("name", code),
            discount_type=discount_type,
            discount_value=Decimal(value),
            valid_from=fields.pop("valid_from", now - timedelta(days=1)),
            valid_until=fields.pop("valid_until", now + timedelta(days=30)),
            used_count=fields.pop("used_count", 0),
            is_active=fields.pop("is_active", True),
            **fields,
        )
        db.add(coupon)
        db.commit()
        db.refresh(coupon)
        return coupon

    return _make


GUEST = {"X-Session-Id": "guest-session-0001"}

ORDER_PAYLOAD = {
    "customer_name": "Nguyen Van A",
    "customer_email": "buyer@example.com",
    "customer_phone": "0901234567",
    "shipping_address_line_1": "12 Nguyen Hue",
    "shipping_city": "Ho Chi Minh",
    "payment_method": "cod",
}
