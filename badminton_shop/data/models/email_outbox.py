from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, JSON

from badminton_shop.data.database import Base


class EmailOutboxModel(Base):
    """Emails waiting for the Celery dispatcher."""

    __tablename__ = "email_outbox"

    id = Column(Integer, primary_key=True)
    kind = Column(String(40), nullable=False)  # order_confirmation, order_status_update
    recipient = Column(String(255), nullable=False)
    payload = Column(JSON, nullable=False)

    status = Column(String(20), nullable=False, default="pending")  # pending, sent, failed
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    sent_at = Column(DateTime(timezone=True), nullable=True)
