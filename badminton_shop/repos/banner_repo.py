# badminton_shop/repos/banner_repo.py
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from badminton_shop.data.models.banner import BannerModel


class BannerRepo:
    def __init__(self, db: Session):
        self.db = db

    def get(self, banner_id: int) -> BannerModel | None:
        return self.db.get(BannerModel, banner_id)

    def list(self, include_inactive: bool = False) -> List[BannerModel]:
        stmt = select(BannerModel).order_by(BannerModel.sort_order.asc(), BannerModel.id.asc())
        if not include_inactive:
            stmt = stmt.where(BannerModel.is_active.is_(True))
        return list(self.db.execute(stmt).scalars().all())

    def get_many(self, banner_ids: List[int]) -> List[BannerModel]:
        return list(self.db.execute(select(BannerModel).where(BannerModel.id.in_(banner_ids))).scalars().all())

    def add(self, banner: BannerModel) -> BannerModel:
        self.db.add(banner)
        return banner

    def delete(self, banner: BannerModel) -> None:
        self.db.delete(banner)
