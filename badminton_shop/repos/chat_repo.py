# badminton_shop/repos/chat_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from badminton_shop.data.models.chat import ChatSessionModel, ChatMessageModel


class ChatRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_session(self, session_key: str) -> ChatSessionModel | None:
        return self.db.execute(
            select(ChatSessionModel).where(ChatSessionModel.session_key == session_key)
        ).scalar_one_or_none()

    def add_session(self, session: ChatSessionModel) -> ChatSessionModel:
        self.db.add(session)
        self.db.flush()
        return session

    def add_message(self, session: ChatSessionModel, sender: str, text: str, intent: str | None = None) -> ChatMessageModel:
        message = ChatMessageModel(session_id=session.id, sender=sender, text=text, intent=intent)
        self.db.add(message)
        self.db.flush()
        return message

    def messages(self, session: ChatSessionModel, limit: int = 50) -> list[ChatMessageModel]:
        stmt = (
            select(ChatMessageModel)
            .where(ChatMessageModel.session_id == session.id)
            .order_by(ChatMessageModel.id.desc())
            .limit(limit)
        )
        return list(reversed(self.db.execute(stmt).scalars().all()))
