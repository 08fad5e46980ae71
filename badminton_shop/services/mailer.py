# badminton_shop/services/mailer.py
"""
SMTP delivery of the customer emails.

The configuration is captured once into an `SmtpConfig` and passed to the
`Mailer`; nothing here reads the environment at send time.
"""
import smtplib
from dataclasses import dataclass
from decimal import Decimal
from email.message import EmailMessage

from badminton_shop.domain.models import display_status
from badminton_shop.utils import settings
from badminton_shop.utils.logging import get_logger
from badminton_shop.utils.retry import smtp_retry

logger = get_logger(__name__)

STATUS_LABELS = {
    "pending": "Chờ xác nhận",
    "confirmed": "Đã xác nhận",
    "processing": "Đang xử lý",
    "shipping": "Đang giao hàng",
    "completed": "Đã giao hàng",
    "cancelled": "Đã hủy",
    "returned": "Đã trả hàng",
    "refunded": "Đã hoàn tiền",
}


@dataclass(frozen=True)
class SmtpConfig:
    host: str
    port: int
    user: str
    password: str
    use_tls: bool
    sender: str

    @classmethod
    def from_settings(cls) -> "SmtpConfig":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_USE_TLS,
            sender=settings.EMAIL_FROM,
        )


def format_vnd(amount) -> str:
    value = Decimal(str(amount or 0)).quantize(Decimal("1"))
    return f"{value:,}".replace(",", ".") + "đ"


def render_order_confirmation(payload: dict) -> tuple[str, str]:
    lines = [
        f"Xin chào {payload['customer_name']},",
        "",
        f"Cảm ơn bạn đã đặt hàng tại {settings.STORE_NAME}.",
        f"Mã đơn hàng: {payload['order_number']}",
        "",
    ]
    for item in payload.get("items", []):
        lines.append(f"- {item['product_name']} x{item['quantity']}: {format_vnd(item['subtotal'])}")
    lines += [
        "",
        f"Tạm tính: {format_vnd(payload['subtotal'])}",
        f"Phí vận chuyển: {format_vnd(payload['shipping_fee'])}",
        f"Giảm giá: {format_vnd(payload['discount_amount'])}",
        f"Tổng cộng: {format_vnd(payload['total_amount'])}",
    ]
    subject = f"[{settings.STORE_NAME}] Xác nhận đơn hàng {payload['order_number']}"
    return subject, "\n".join(lines)


def render_status_update(payload: dict) -> tuple[str, str]:
    label = STATUS_LABELS.get(display_status(payload["status"]), payload["status"])
    lines = [
        f"Xin chào {payload['customer_name']},",
        "",
        f"Đơn hàng {payload['order_number']} của bạn đã được cập nhật: {label}.",
    ]
    if payload.get("tracking_number"):
        lines.append(f"Mã vận đơn: {payload['tracking_number']}")
    if payload.get("notes"):
        lines += ["", payload["notes"]]
    subject = f"[{settings.STORE_NAME}] Cập nhật đơn hàng {payload['order_number']}"
    return subject, "\n".join(lines)


RENDERERS = {
    "order_confirmation": render_order_confirmation,
    "order_status_update": render_status_update,
}


class Mailer:
    def __init__(self, config: SmtpConfig | None = None):
        self.config = config or SmtpConfig.from_settings()

    def build(self, kind: str, recipient: str, payload: dict) -> EmailMessage:
        renderer = RENDERERS.get(kind)
        if renderer is None:
            raise ValueError(f"Unknown email kind: {kind}")
        subject, body = renderer(payload)
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.config.sender
        message["To"] = recipient
        message.set_content(body)
        return message

    @smtp_retry()
    def send(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.config.host, self.config.port, timeout=15) as smtp:
            if self.config.use_tls:
                smtp.starttls()
            if self.config.user:
                smtp.login(self.config.user, self.config.password)
            smtp.send_message(message)
        logger.info(f"Email '{message['Subject']}' sent to {message['To']}")
