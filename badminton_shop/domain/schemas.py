# badminton_shop/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, PlainSerializer, model_validator

from badminton_shop.domain.models import DiscountType, PaymentMethod, ProductStatus, UserRole

# money travels as a JSON number, Decimal everywhere else
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

T = TypeVar("T")


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class Envelope(BaseModel, Generic[T]):
    """Uniform response body of every endpoint."""

    success: bool = True
    message: str
    data: Optional[T] = None
    pagination: Optional[Pagination] = None


# ---------------------------------------------------------------- users

class UserCreate(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, pattern=r"^\+?[0-9]{9,15}$")
    role: UserRole = UserRole.CUSTOMER


class UserRead(BaseModel):
    id: int
    email: str
    full_name: str
    phone: Optional[str] = None
    role: str

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------- catalog

class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = None
    parent_id: Optional[int] = Field(None, gt=0)
    sort_order: int = 0
    is_active: bool = True


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = None
    parent_id: Optional[int] = Field(None, gt=0)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryOut(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    parent_id: Optional[int] = None
    sort_order: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class CategoryTreeOut(CategoryOut):
    children: List["CategoryTreeOut"] = []


CategoryTreeOut.model_rebuild()


class BrandIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    logo_url: Optional[str] = None
    country: Optional[str] = Field(None, max_length=100)
    sort_order: int = 0
    is_active: bool = True


class BrandUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    logo_url: Optional[str] = None
    country: Optional[str] = Field(None, max_length=100)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class BrandOut(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    logo_url: Optional[str] = None
    country: Optional[str] = None
    sort_order: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class ProductIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = None
    category_id: Optional[int] = Field(None, gt=0)
    brand_id: Optional[int] = Field(None, gt=0)
    base_price: Decimal = Field(..., gt=0)
    sale_price: Optional[Decimal] = Field(None, ge=0)
    stock_quantity: int = Field(0, ge=0)
    status: ProductStatus = ProductStatus.ACTIVE


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = None
    category_id: Optional[int] = Field(None, gt=0)
    brand_id: Optional[int] = Field(None, gt=0)
    base_price: Optional[Decimal] = Field(None, gt=0)
    sale_price: Optional[Decimal] = Field(None, ge=0)
    stock_quantity: Optional[int] = Field(None, ge=0)
    status: Optional[ProductStatus] = None


class ProductOut(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    category_id: Optional[int] = None
    brand_id: Optional[int] = None
    base_price: Money
    sale_price: Optional[Money] = None
    final_price: Money
    stock_quantity: int
    status: str
    rating_average: Money
    review_count: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------- cart

class CartAddIn(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(1, ge=1, le=99)
    selected_attributes: Optional[Dict[str, str]] = None


class CartUpdateIn(BaseModel):
    quantity: int = Field(..., ge=0, le=99)


class CartCouponIn(BaseModel):
    code: str = Field(..., min_length=3, max_length=50)


class CartMergeIn(BaseModel):
    session_id: str = Field(..., min_length=8, max_length=64)


class CartItemOut(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    product_slug: Optional[str] = None
    product_status: Optional[str] = None
    quantity: int
    unit_price: Money
    current_price: Optional[Money] = None
    item_total: Money
    selected_attributes: Optional[Dict[str, Any]] = None


class CartSummaryOut(BaseModel):
    total_items: int
    total_quantity: int
    subtotal: Money
    estimated_tax: Money
    estimated_shipping: Money
    estimated_total: Money
    currency: str
    discount_amount: Optional[Money] = None


class CartOut(BaseModel):
    items: List[CartItemOut]
    summary: CartSummaryOut
    session_id: Optional[str] = None


class CartLineCheck(BaseModel):
    cart_item_id: int
    product_id: int
    product_name: Optional[str] = None
    requested_quantity: int
    valid: bool
    issues: List[str] = []
    available_quantity: Optional[int] = None
    price_changed: bool = False
    old_price: Optional[Money] = None
    new_price: Optional[Money] = None


class CartValidationOut(BaseModel):
    valid: bool
    items: List[CartLineCheck]
    total_items: int
    invalid_items: int


# ---------------------------------------------------------------- coupons

class DiscountOut(BaseModel):
    original_amount: Money
    discount_amount: Money
    final_amount: Money
    discount_percentage: Money
    free_shipping: bool = False


class CouponIn(BaseModel):
    code: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_-]+$")
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: Decimal = Field(Decimal("0"), ge=0)
    minimum_order_amount: Optional[Decimal] = Field(None, ge=0)
    maximum_discount_amount: Optional[Decimal] = Field(None, gt=0)
    usage_limit_per_coupon: Optional[int] = Field(None, ge=1)
    usage_limit_per_customer: Optional[int] = Field(None, ge=1)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: bool = True

    @model_validator(mode="after")
    def check_rules(self):
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        if self.discount_type != DiscountType.FREE_SHIPPING and self.discount_value <= 0:
            raise ValueError("Discount value must be greater than 0")
        if self.valid_from and self.valid_until and self.valid_until <= self.valid_from:
            raise ValueError("valid_until must be after valid_from")
        return self


class CouponUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)
    minimum_order_amount: Optional[Decimal] = Field(None, ge=0)
    maximum_discount_amount: Optional[Decimal] = Field(None, gt=0)
    usage_limit_per_coupon: Optional[int] = Field(None, ge=1)
    usage_limit_per_customer: Optional[int] = Field(None, ge=1)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: Optional[bool] = None


class CouponOut(BaseModel):
    id: int
    code: str
    name: str
    description: Optional[str] = None
    discount_type: str
    discount_value: Money
    minimum_order_amount: Optional[Money] = None
    maximum_discount_amount: Optional[Money] = None
    usage_limit_per_coupon: Optional[int] = None
    usage_limit_per_customer: Optional[int] = None
    used_count: int
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class CouponApplyIn(BaseModel):
    code: str = Field(..., min_length=3, max_length=50)
    order_amount: Decimal = Field(..., gt=0)
    order_id: Optional[int] = Field(None, gt=0)


class CouponValidationOut(BaseModel):
    valid: bool
    coupon: Optional[CouponOut] = None
    calculation: Optional[DiscountOut] = None


class AvailableCouponOut(CouponOut):
    discount_preview: Optional[DiscountOut] = None


class CouponUsageOut(BaseModel):
    id: int
    coupon_code: str
    discount_type: str
    order_id: Optional[int] = None
    discount_amount: Money
    original_amount: Money
    final_amount: Money
    used_at: datetime


# ---------------------------------------------------------------- orders

class OrderCreate(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_email: Optional[EmailStr] = None
    customer_phone: str = Field(..., pattern=r"^\+?[0-9]{9,15}$")
    shipping_address_line_1: str = Field(..., min_length=3, max_length=255)
    shipping_address_line_2: Optional[str] = Field(None, max_length=255)
    shipping_city: str = Field(..., min_length=1, max_length=100)
    shipping_state: Optional[str] = Field(None, max_length=100)
    shipping_postal_code: Optional[str] = Field(None, max_length=20)
    shipping_country: str = Field("VN", max_length=100)
    payment_method: PaymentMethod = PaymentMethod.COD
    shipping_fee: Optional[Decimal] = Field(None, ge=0)
    coupon_code: Optional[str] = Field(None, min_length=3, max_length=50)
    notes: Optional[str] = Field(None, max_length=1000)


class OrderItemOut(BaseModel):
    id: int
    product_id: Optional[int] = None
    product_name: str
    quantity: int
    unit_price: Money
    subtotal: Money
    selected_attributes: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    order_number: str
    user_id: Optional[int] = None
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: str
    shipping_address_line_1: str
    shipping_address_line_2: Optional[str] = None
    shipping_city: str
    shipping_state: Optional[str] = None
    shipping_postal_code: Optional[str] = None
    shipping_country: str
    subtotal: Money
    shipping_fee: Money
    discount_amount: Money
    total_amount: Money
    coupon_id: Optional[int] = None
    status: str
    payment_method: str
    payment_status: str
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    confirmed_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    items: List[OrderItemOut] = []

    model_config = ConfigDict(from_attributes=True)


class OrderStatusOut(BaseModel):
    order_number: str
    status: str
    payment_method: str
    payment_status: str
    total_amount: Money
    total_items: int
    tracking_number: Optional[str] = None
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None


class TrackingEvent(BaseModel):
    status: str
    at: datetime


class OrderTrackingOut(BaseModel):
    order_number: str
    status: str
    tracking_number: Optional[str] = None
    timeline: List[TrackingEvent]


class OrderStatusUpdateIn(BaseModel):
    status: str = Field(..., min_length=1, max_length=20)
    tracking_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)


class OrderCancelIn(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class OrderStatsOut(BaseModel):
    period_days: int
    total_orders: int
    total_revenue: Money
    average_order_value: Money
    by_status: Dict[str, int]


# ---------------------------------------------------------------- reviews

class ReviewIn(BaseModel):
    product_id: int = Field(..., gt=0)
    order_id: Optional[int] = Field(None, gt=0)
    rating: int = Field(..., ge=1, le=5)
    title: Optional[str] = Field(None, max_length=255)
    comment: Optional[str] = Field(None, max_length=2000)


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    title: Optional[str] = Field(None, max_length=255)
    comment: Optional[str] = Field(None, max_length=2000)


class ReviewModerationIn(BaseModel):
    is_approved: bool


class ReviewOut(BaseModel):
    id: int
    user_id: int
    product_id: int
    order_id: Optional[int] = None
    rating: int
    title: Optional[str] = None
    comment: Optional[str] = None
    is_verified: bool
    is_approved: bool
    helpful_count: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReviewStatsOut(BaseModel):
    average_rating: Money
    total_reviews: int
    distribution: Dict[int, int]


class ProductReviewsOut(BaseModel):
    reviews: List[ReviewOut]
    stats: ReviewStatsOut


# ---------------------------------------------------------------- chat

class ChatMessageIn(BaseModel):
    message: str = Field(..., min_length=1, max_length=1000)


class ChatMessageOut(BaseModel):
    id: int
    sender: str
    text: str
    intent: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChatSessionOut(BaseModel):
    session_key: str
    status: str
    greeting: Optional[ChatMessageOut] = None


class ChatProductOut(BaseModel):
    id: int
    name: str
    slug: str
    final_price: Money
    stock_quantity: int
    brand_name: Optional[str] = None


class ChatReplyOut(BaseModel):
    message: ChatMessageOut
    intent: str
    products: List[ChatProductOut] = []


# ---------------------------------------------------------------- banners

class BannerIn(BaseModel):
    title: str = Field("", max_length=255)
    subtitle: Optional[str] = Field(None, max_length=500)
    tag_text: Optional[str] = Field(None, max_length=100)
    tag_type: Optional[str] = Field(None, max_length=50)
    button_text: Optional[str] = Field(None, max_length=100)
    button_link: Optional[str] = Field(None, max_length=500)
    background_image: str = Field(..., min_length=1, max_length=500)
    background_gradient: Optional[str] = Field(None, max_length=255)
    sort_order: int = 0
    is_active: bool = True


class BannerUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    subtitle: Optional[str] = Field(None, max_length=500)
    tag_text: Optional[str] = Field(None, max_length=100)
    tag_type: Optional[str] = Field(None, max_length=50)
    button_text: Optional[str] = Field(None, max_length=100)
    button_link: Optional[str] = Field(None, max_length=500)
    background_image: Optional[str] = Field(None, min_length=1, max_length=500)
    background_gradient: Optional[str] = Field(None, max_length=255)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class BannerOut(BaseModel):
    id: int
    title: str
    subtitle: Optional[str] = None
    tag_text: Optional[str] = None
    tag_type: Optional[str] = None
    button_text: Optional[str] = None
    button_link: Optional[str] = None
    background_image: str
    background_gradient: Optional[str] = None
    sort_order: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class BannerPosition(BaseModel):
    id: int = Field(..., gt=0)
    sort_order: int


class BannerReorderIn(BaseModel):
    banners: List[BannerPosition] = Field(..., min_length=1)


# ---------------------------------------------------------------- settings

SettingType = Literal["text", "number", "boolean", "json"]


class SettingIn(BaseModel):
    key: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9_.]+$")
    value: Any = None
    value_type: SettingType = "text"
    category: str = Field("general", min_length=1, max_length=50)
    display_name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    is_public: bool = False


class SettingValueIn(BaseModel):
    value: Any = None


class SettingsBulkIn(BaseModel):
    values: Dict[str, Any] = Field(..., min_length=1)


class SettingOut(BaseModel):
    key: str
    value: Any = None
    value_type: str
    category: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    is_public: bool


# ---------------------------------------------------------------- wishlist

class WishlistIn(BaseModel):
    product_id: int = Field(..., gt=0)


class WishlistItemOut(BaseModel):
    id: int
    product_id: int
    created_at: datetime
    product: ProductOut

    model_config = ConfigDict(from_attributes=True)
