# badminton_shop/repos/setting_repo.py
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from badminton_shop.data.models.setting import SettingModel


class SettingRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_key(self, key: str) -> SettingModel | None:
        return self.db.execute(select(SettingModel).where(SettingModel.key == key)).scalar_one_or_none()

    def get_many(self, keys: List[str]) -> List[SettingModel]:
        return list(self.db.execute(select(SettingModel).where(SettingModel.key.in_(keys))).scalars().all())

    def list(self, category: str | None = None, public_only: bool = False) -> List[SettingModel]:
        stmt = select(SettingModel).order_by(SettingModel.category.asc(), SettingModel.id.asc())
        if category:
            stmt = stmt.where(SettingModel.category == category)
        if public_only:
            stmt = stmt.where(SettingModel.is_public.is_(True))
        return list(self.db.execute(stmt).scalars().all())

    def categories(self) -> List[str]:
        return list(
            self.db.execute(
                select(SettingModel.category).distinct().order_by(SettingModel.category.asc())
            ).scalars().all()
        )

    def add(self, setting: SettingModel) -> SettingModel:
        self.db.add(setting)
        return setting

    def delete(self, setting: SettingModel) -> None:
        self.db.delete(setting)
