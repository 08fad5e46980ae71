# badminton_shop/repos/outbox_repo.py
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from badminton_shop.data.models.email_outbox import EmailOutboxModel


class OutboxRepo:
    def __init__(self, db: Session):
        self.db = db

    def enqueue(self, kind: str, recipient: str, payload: dict) -> EmailOutboxModel:
        message = EmailOutboxModel(kind=kind, recipient=recipient, payload=payload, status="pending", attempts=0)
        self.db.add(message)
        self.db.flush()
        return message

    def get(self, message_id: int) -> EmailOutboxModel | None:
        return self.db.get(EmailOutboxModel, message_id)

    def retryable(self, max_attempts: int, limit: int = 50) -> List[EmailOutboxModel]:
        stmt = (
            select(EmailOutboxModel)
            .where(
                EmailOutboxModel.status.in_(("pending", "failed")),
                EmailOutboxModel.attempts < max_attempts,
            )
            .order_by(EmailOutboxModel.id)
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())
