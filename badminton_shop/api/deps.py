# badminton_shop/api/deps.py
import math
import uuid
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Response
from sqlalchemy.orm import Session

from badminton_shop.data.database import get_db
from badminton_shop.data.models.user import UserModel
from badminton_shop.domain.exceptions import AccessDeniedError, AuthenticationRequiredError
from badminton_shop.domain.models import UserRole
from badminton_shop.domain.schemas import Pagination
from badminton_shop.repos.user_repo import UserRepo
from badminton_shop.services.lock_service import LockService


@dataclass
class Identity:
    """Who is calling: a known user, or a guest cart session."""

    user: Optional[UserModel]
    session_id: Optional[str]
    issued_session: bool = False

    @property
    def user_id(self) -> Optional[int]:
        return self.user.id if self.user is not None else None


def get_identity(
    response: Response,
    db: Session = Depends(get_db),
    x_user_id: Optional[int] = Header(None),
    x_session_id: Optional[str] = Header(None),
) -> Identity:
    # X-User-Id is set by the authenticating gateway in front of the API
    if x_user_id is not None:
        user = UserRepo(db).get_user(x_user_id)
        if user is None:
            raise AuthenticationRequiredError("Unknown user")
        return Identity(user=user, session_id=x_session_id)

    if x_session_id:
        return Identity(user=None, session_id=x_session_id)

    session_id = str(uuid.uuid4())
    response.headers["X-Session-Id"] = session_id
    return Identity(user=None, session_id=session_id, issued_session=True)


def require_user(identity: Identity = Depends(get_identity)) -> UserModel:
    if identity.user is None:
        raise AuthenticationRequiredError()
    return identity.user


def require_admin(user: UserModel = Depends(require_user)) -> UserModel:
    if user.role != UserRole.ADMIN.value:
        raise AccessDeniedError("Admin access required")
    return user


def get_lock_service() -> LockService:
    return LockService()


def paginate(page: int, limit: int, total: int) -> Pagination:
    return Pagination(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit) if limit else 0)
