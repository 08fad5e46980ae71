from sqlalchemy.orm import Session

from badminton_shop.data.models.user import UserModel
from badminton_shop.domain.exceptions import ConflictError, NotFoundError
from badminton_shop.domain.schemas import UserCreate, UserRead
from badminton_shop.repos.user_repo import UserRepo


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def create_user(self, payload: UserCreate) -> UserRead:
        email = payload.email.lower()
        if self.repo.get_by_email(email):
            raise ConflictError("Email is already registered")

        user = UserModel(
            email=email,
            full_name=payload.full_name.strip(),
            phone=payload.phone,
            role=payload.role.value,
        )
        created = self.repo.create_user(user)
        return UserRead.model_validate(created)

    def get_user(self, user_id: int) -> UserRead:
        user = self.repo.get_user(user_id)
        if not user:
            raise NotFoundError("User not found")
        return UserRead.model_validate(user)
