# badminton_shop/services/notification_service.py
from sqlalchemy.orm import Session

from badminton_shop.celery_worker import celery_app
from badminton_shop.data.database import SessionLocal
from badminton_shop.data.models.email_outbox import EmailOutboxModel
from badminton_shop.data.models.order import OrderModel
from badminton_shop.repos.outbox_repo import OutboxRepo
from badminton_shop.services.mailer import Mailer
from badminton_shop.utils import settings
from badminton_shop.utils.clock import utcnow
from badminton_shop.utils.logging import get_logger

logger = get_logger(__name__)


def _money(value) -> str:
    return str(value if value is not None else 0)


class NotificationService:
    """
    Customer emails go through the outbox:
    - enqueue_* writes a row inside the caller's transaction
    - kick() asks Celery to deliver it after commit
    - the beat task retries whatever is still pending or failed
    """

    def __init__(self, db: Session):
        self.outbox = OutboxRepo(db)

    def enqueue_order_confirmation(self, order: OrderModel) -> EmailOutboxModel | None:
        if not order.customer_email:
            return None
        payload = {
            "order_id": order.id,
            "order_number": order.order_number,
            "customer_name": order.customer_name,
            "subtotal": _money(order.subtotal),
            "shipping_fee": _money(order.shipping_fee),
            "discount_amount": _money(order.discount_amount),
            "total_amount": _money(order.total_amount),
            "payment_method": order.payment_method,
            "items": [
                {
                    "product_name": item.product_name,
                    "quantity": item.quantity,
                    "unit_price": _money(item.unit_price),
                    "subtotal": _money(item.subtotal),
                }
                for item in order.items
            ],
        }
        return self.outbox.enqueue("order_confirmation", order.customer_email, payload)

    def enqueue_status_update(self, order: OrderModel, notes: str | None = None) -> EmailOutboxModel | None:
        if not order.customer_email:
            return None
        payload = {
            "order_id": order.id,
            "order_number": order.order_number,
            "customer_name": order.customer_name,
            "status": order.status,
            "tracking_number": order.tracking_number,
            "notes": notes,
        }
        return self.outbox.enqueue("order_status_update", order.customer_email, payload)

    @staticmethod
    def kick(message_id: int) -> None:
        """Best effort: the beat task picks the message up if this fails."""
        try:
            dispatch_email.delay(message_id)
        except Exception as e:
            logger.warning(f"Could not schedule email {message_id}: {e}")


def deliver(db: Session, message: EmailOutboxModel, mailer: Mailer) -> bool:
    if message.status == "sent":
        return True
    message.attempts = (message.attempts or 0) + 1
    try:
        mailer.send(mailer.build(message.kind, message.recipient, message.payload))
    except Exception as e:
        message.status = "failed"
        message.last_error = str(e)[:1000]
        db.commit()
        logger.error(f"Email {message.id} ({message.kind}) failed, attempt {message.attempts}: {e}")
        return False
    message.status = "sent"
    message.sent_at = utcnow()
    message.last_error = None
    db.commit()
    return True


@celery_app.task(name="badminton_shop.services.notification_service.dispatch_email")
def dispatch_email(message_id: int):
    db = SessionLocal()
    try:
        message = OutboxRepo(db).get(message_id)
        if message is None:
            logger.warning(f"Email {message_id} not found in outbox")
            return {"message_id": message_id, "status": "missing"}
        sent = deliver(db, message, Mailer())
        return {"message_id": message_id, "status": "sent" if sent else "failed"}
    finally:
        db.close()


@celery_app.task(name="badminton_shop.services.notification_service.dispatch_pending_emails")
def dispatch_pending_emails():
    logger.info("Dispatch pending emails task started")
    db = SessionLocal()
    try:
        mailer = Mailer()
        messages = OutboxRepo(db).retryable(settings.EMAIL_MAX_ATTEMPTS)
        logger.info(f"Found {len(messages)} emails to dispatch")
        sent = sum(1 for message in messages if deliver(db, message, mailer))
        return {"processed": len(messages), "sent": sent}
    finally:
        db.close()
