# badminton_shop/api/routers/chat.py
from typing import Dict, List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from badminton_shop.api.deps import Identity, get_identity
from badminton_shop.data.database import get_db
from badminton_shop.domain.schemas import ChatMessageIn, ChatMessageOut, ChatReplyOut, ChatSessionOut, Envelope
from badminton_shop.services.chat_service import ChatService

router = APIRouter(prefix="/chat", tags=["chat"])


def get_service(db: Session):
    return ChatService(db)


@router.post("/sessions", response_model=Envelope[ChatSessionOut], status_code=201)
def start_session(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    session = get_service(db).start_session(identity.user_id)
    return Envelope(message="Chat session started", data=session)


@router.post("/sessions/{session_key}/messages", response_model=Envelope[ChatReplyOut])
def send_message(session_key: str, payload: ChatMessageIn, db: Session = Depends(get_db)):
    reply = get_service(db).send_message(session_key, payload.message)
    return Envelope(message="Message processed", data=reply)


@router.get("/sessions/{session_key}/messages", response_model=Envelope[List[ChatMessageOut]])
def history(session_key: str, limit: int = Query(50, ge=1, le=200), db: Session = Depends(get_db)):
    return Envelope(message="Chat history retrieved", data=get_service(db).history(session_key, limit))


@router.post("/sessions/{session_key}/end", response_model=Envelope[None])
def end_session(session_key: str, db: Session = Depends(get_db)):
    get_service(db).end_session(session_key)
    return Envelope(message="Chat session ended")


@router.get("/quick-replies", response_model=Envelope[List[Dict[str, str]]])
def quick_replies():
    return Envelope(message="Quick replies retrieved", data=ChatService.quick_replies())
