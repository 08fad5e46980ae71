# badminton_shop/services/chat_service.py
"""
Rule-based shopping assistant.

A message is lower-cased and matched against ordered keyword lists; the first
intent with a hit wins. Product intents pull a brand and a price band out of
the text and answer with matching in-stock products.
"""
import re
import uuid
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from badminton_shop.data.models.chat import ChatSessionModel
from badminton_shop.domain.exceptions import NotFoundError, ValidationError
from badminton_shop.domain.models import display_status
from badminton_shop.domain.schemas import ChatMessageOut, ChatProductOut, ChatReplyOut, ChatSessionOut
from badminton_shop.repos.catalog_repo import BrandRepo, ProductRepo
from badminton_shop.repos.chat_repo import ChatRepo
from badminton_shop.repos.order_repo import OrderRepo
from badminton_shop.services.mailer import STATUS_LABELS, format_vnd
from badminton_shop.utils.clock import utcnow
from badminton_shop.utils.logging import get_logger
from badminton_shop.utils.settings import STORE_NAME

logger = get_logger(__name__)

ORDER_NUMBER = re.compile(r"\bORD[0-9A-Z]{6,}\b", re.IGNORECASE)

# checked top to bottom, specific product kinds before the generic one
INTENTS: List[Tuple[str, Tuple[str, ...]]] = [
    ("order_tracking", ("đơn hàng", "tra cứu", "kiểm tra đơn", "order", "tracking", "mã đơn")),
    ("racket", ("vợt", "racket", "racquet")),
    ("shoes", ("giày", "shoes", "shoe")),
    ("apparel", ("áo", "quần", "váy", "shirt", "apparel", "clothing")),
    ("promotion", ("khuyến mãi", "giảm giá", "mã giảm", "coupon", "voucher", "sale", "promotion")),
    ("payment", ("thanh toán", "payment", "cod", "chuyển khoản", "vnpay", "momo")),
    ("shipping", ("giao hàng", "vận chuyển", "ship", "delivery", "phí ship")),
    ("price", ("giá", "bao nhiêu", "price", "cost")),
    ("product", ("sản phẩm", "tìm", "mua", "product", "cầu lông", "badminton")),
    ("greeting", ("xin chào", "chào", "hello", "hi", "hey")),
    ("farewell", ("tạm biệt", "cảm ơn", "bye", "thank")),
]

PRODUCT_INTENTS = {"racket": "vợt", "shoes": "giày", "apparel": "áo", "product": None, "price": None}

RESPONSES = {
    "greeting": f"Xin chào! Tôi là trợ lý của {STORE_NAME}. Tôi có thể giúp bạn tìm vợt, giày, phụ kiện cầu lông hoặc tra cứu đơn hàng.",
    "farewell": "Cảm ơn bạn đã liên hệ với chúng tôi! Chúc bạn một ngày tốt lành!",
    "payment": "Chúng tôi hỗ trợ thanh toán khi nhận hàng (COD), chuyển khoản ngân hàng, VNPay và MoMo.",
    "shipping": "Miễn phí vận chuyển cho đơn từ 1.000.000đ, phí 30.000đ cho đơn từ 500.000đ và 50.000đ cho các đơn còn lại.",
    "order_tracking": "Vui lòng cung cấp mã đơn hàng (bắt đầu bằng ORD) để tôi tra cứu giúp bạn.",
    "fallback": "Xin lỗi, tôi chưa hiểu câu hỏi của bạn. Bạn có thể hỏi về sản phẩm, giá, đơn hàng, thanh toán hoặc vận chuyển.",
}

QUICK_REPLIES = [
    {"title": "Tìm vợt cầu lông", "message": "Tôi muốn tìm vợt cầu lông"},
    {"title": "Giày cầu lông", "message": "Cho tôi xem giày cầu lông"},
    {"title": "Khuyến mãi", "message": "Có chương trình khuyến mãi nào không?"},
    {"title": "Tra cứu đơn hàng", "message": "Tôi muốn kiểm tra đơn hàng"},
    {"title": "Phí vận chuyển", "message": "Phí giao hàng là bao nhiêu?"},
]

_NUMBER = r"(\d{1,3}(?:[.,]\d{3})+(?!\d)|\d+(?:[.,]\d+)?)"
_GROUPED = re.compile(r"\d{1,3}(?:[.,]\d{3})+")
_AMOUNT = _NUMBER + r"\s*(triệu|tr|m|k|nghìn|ngàn)?"
_RANGE = re.compile(r"(?:từ\s*)?" + _NUMBER + r"\s*(?:-|đến|to)\s*" + _AMOUNT)
_UPPER = re.compile(r"(?:dưới|under|below|max|tối đa)\s*" + _AMOUNT)
_LOWER = re.compile(r"(?:trên|over|above|from|từ)\s*" + _AMOUNT)

_UNITS = {
    "triệu": Decimal(1_000_000),
    "tr": Decimal(1_000_000),
    "m": Decimal(1_000_000),
    "k": Decimal(1_000),
    "nghìn": Decimal(1_000),
    "ngàn": Decimal(1_000),
}


def _amount(number: str, unit: Optional[str]) -> Decimal:
    grouped = _GROUPED.fullmatch(number) is not None
    if grouped:
        # "1.500.000" and "500,000" carry thousands separators
        value = Decimal(number.replace(".", "").replace(",", ""))
    else:
        value = Decimal(number.replace(",", "."))
    if unit:
        return value * _UNITS[unit]
    # bare small numbers are read as millions ("dưới 2" = under 2,000,000)
    if not grouped and value < 1000:
        return value * _UNITS["triệu"]
    return value


def detect_intent(text: str) -> str:
    message = text.lower()
    if ORDER_NUMBER.search(text):
        return "order_tracking"
    for name, keywords in INTENTS:
        for keyword in keywords:
            if re.search(rf"(?<!\w){re.escape(keyword)}(?!\w)", message):
                return name
    return "fallback"


def extract_price_band(text: str) -> Tuple[Optional[Decimal], Optional[Decimal]]:
    message = text.lower()
    match = _RANGE.search(message)
    if match:
        low_raw, high_raw, unit = match.groups()
        return _amount(low_raw, unit), _amount(high_raw, unit)
    upper = _UPPER.search(message)
    if upper:
        return None, _amount(*upper.groups())
    lower = _LOWER.search(message)
    if lower:
        return _amount(*lower.groups()), None
    return None, None


class ChatService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ChatRepo(db)
        self.products = ProductRepo(db)
        self.brands = BrandRepo(db)
        self.orders = OrderRepo(db)

    def start_session(self, user_id: int | None) -> ChatSessionOut:
        session = self.repo.add_session(
            ChatSessionModel(session_key=uuid.uuid4().hex, user_id=user_id, status="active")
        )
        greeting = self.repo.add_message(session, "assistant", RESPONSES["greeting"], "greeting")
        self.db.commit()
        logger.info(f"Chat session {session.session_key} started")
        return ChatSessionOut(
            session_key=session.session_key,
            status=session.status,
            greeting=ChatMessageOut.model_validate(greeting),
        )

    def _session(self, session_key: str) -> ChatSessionModel:
        session = self.repo.get_session(session_key)
        if not session:
            raise NotFoundError("Chat session not found")
        return session

    def send_message(self, session_key: str, text: str) -> ChatReplyOut:
        session = self._session(session_key)
        if session.status != "active":
            raise ValidationError("Chat session has ended")

        intent = detect_intent(text)
        self.repo.add_message(session, "user", text, intent)

        products: List[ChatProductOut] = []
        if intent in PRODUCT_INTENTS:
            reply, products = self._product_reply(intent, text)
        elif intent == "order_tracking":
            reply = self._order_reply(text)
        elif intent == "promotion":
            reply = self._promotion_reply()
        else:
            reply = RESPONSES[intent]

        message = self.repo.add_message(session, "assistant", reply, intent)
        self.db.commit()
        return ChatReplyOut(
            message=ChatMessageOut.model_validate(message),
            intent=intent,
            products=products,
        )

    def _find_brand(self, text: str) -> Optional[str]:
        message = text.lower()
        for brand in self.brands.list():
            if brand.name.lower() in message:
                return brand.name
        return None

    def _product_reply(self, intent: str, text: str) -> Tuple[str, List[ChatProductOut]]:
        brand = self._find_brand(text)
        low, high = extract_price_band(text)
        found = self.products.for_assistant(PRODUCT_INTENTS[intent], brand, low, high, limit=5)
        products = [
            ChatProductOut(
                id=p.id,
                name=p.name,
                slug=p.slug,
                final_price=p.final_price,
                stock_quantity=p.stock_quantity,
                brand_name=p.brand.name if p.brand else None,
            )
            for p in found
        ]
        if not products:
            return "Rất tiếc, hiện chưa có sản phẩm phù hợp. Bạn thử thay đổi thương hiệu hoặc mức giá nhé.", []
        lines = [f"Tôi tìm thấy {len(products)} sản phẩm phù hợp:"]
        lines += [f"- {p.name}: {format_vnd(p.final_price)}" for p in products]
        return "\n".join(lines), products

    def _order_reply(self, text: str) -> str:
        match = ORDER_NUMBER.search(text)
        if not match:
            return RESPONSES["order_tracking"]
        order = self.orders.get_by_number(match.group(0).upper())
        if order is None:
            return f"Không tìm thấy đơn hàng {match.group(0).upper()}. Vui lòng kiểm tra lại mã đơn hàng."
        label = STATUS_LABELS.get(display_status(order.status), order.status)
        reply = f"Đơn hàng {order.order_number}: {label}. Tổng tiền {format_vnd(order.total_amount)}."
        if order.tracking_number:
            reply += f" Mã vận đơn: {order.tracking_number}."
        return reply

    def _promotion_reply(self) -> str:
        sale = self.products.on_sale(limit=5)
        if not sale:
            return "Hiện chưa có sản phẩm giảm giá. Hãy theo dõi cửa hàng để nhận ưu đãi sớm nhất!"
        lines = ["Các sản phẩm đang giảm giá:"]
        lines += [f"- {p.name}: {format_vnd(p.final_price)} (giá gốc {format_vnd(p.base_price)})" for p in sale]
        return "\n".join(lines)

    def history(self, session_key: str, limit: int = 50) -> List[ChatMessageOut]:
        session = self._session(session_key)
        return [ChatMessageOut.model_validate(m) for m in self.repo.messages(session, limit)]

    def end_session(self, session_key: str) -> None:
        session = self._session(session_key)
        session.status = "ended"
        session.ended_at = utcnow()
        self.db.commit()

    @staticmethod
    def quick_replies() -> List[dict]:
        return QUICK_REPLIES
