from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from badminton_shop.api.deps import require_user
from badminton_shop.data.database import get_db
from badminton_shop.data.models.user import UserModel
from badminton_shop.domain.schemas import Envelope, UserCreate, UserRead
from badminton_shop.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=Envelope[UserRead], status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    service = UserService(db)
    return Envelope(message="User created", data=service.create_user(payload))


@router.get("/me", response_model=Envelope[UserRead])
def get_me(user: UserModel = Depends(require_user)):
    return Envelope(message="User retrieved", data=UserRead.model_validate(user))


@router.get("/{user_id}", response_model=Envelope[UserRead])
def get_user(user_id: int, db: Session = Depends(get_db)):
    service = UserService(db)
    return Envelope(message="User retrieved", data=service.get_user(user_id))
