# import every model so SQLAlchemy registers it in Base.metadata

from badminton_shop.data.models.user import UserModel
from badminton_shop.data.models.category import CategoryModel
from badminton_shop.data.models.brand import BrandModel
from badminton_shop.data.models.product import ProductModel
from badminton_shop.data.models.cart_item import CartItemModel
from badminton_shop.data.models.coupon import CouponModel, CouponUsageModel
from badminton_shop.data.models.order import OrderModel, OrderItemModel
from badminton_shop.data.models.review import ReviewModel
from badminton_shop.data.models.email_outbox import EmailOutboxModel
from badminton_shop.data.models.chat import ChatSessionModel, ChatMessageModel
from badminton_shop.data.models.banner import BannerModel
from badminton_shop.data.models.setting import SettingModel
from badminton_shop.data.models.wishlist import WishlistItemModel

__all__ = [
    "UserModel",
    "CategoryModel",
    "BrandModel",
    "ProductModel",
    "CartItemModel",
    "CouponModel",
    "CouponUsageModel",
    "OrderModel",
    "OrderItemModel",
    "ReviewModel",
    "EmailOutboxModel",
    "ChatSessionModel",
    "ChatMessageModel",
    "BannerModel",
    "SettingModel",
    "WishlistItemModel",
]
