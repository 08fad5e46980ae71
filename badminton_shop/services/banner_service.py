# badminton_shop/services/banner_service.py
from typing import List

from sqlalchemy.orm import Session

from badminton_shop.data.models.banner import BannerModel
from badminton_shop.domain.exceptions import NotFoundError
from badminton_shop.domain.schemas import BannerIn, BannerReorderIn, BannerUpdate
from badminton_shop.repos.banner_repo import BannerRepo
from badminton_shop.utils.logging import get_logger

logger = get_logger(__name__)

_NOT_NULL = {"title", "background_image", "sort_order", "is_active"}


class BannerService:
    """Home page banners: public listing of active ones, admin management."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BannerRepo(db)

    def list_active(self) -> List[BannerModel]:
        return self.repo.list()

    def list_all(self) -> List[BannerModel]:
        return self.repo.list(include_inactive=True)

    def get_banner(self, banner_id: int) -> BannerModel:
        banner = self.repo.get(banner_id)
        if not banner:
            raise NotFoundError("Banner not found")
        return banner

    def create_banner(self, payload: BannerIn) -> BannerModel:
        banner = self.repo.add(BannerModel(**payload.model_dump()))
        self.db.commit()
        self.db.refresh(banner)
        logger.info(f"Banner {banner.id} created")
        return banner

    def update_banner(self, banner_id: int, payload: BannerUpdate) -> BannerModel:
        banner = self.get_banner(banner_id)
        for field, value in payload.model_dump(exclude_unset=True).items():
            if value is None and field in _NOT_NULL:
                continue
            setattr(banner, field, value)
        self.db.commit()
        self.db.refresh(banner)
        return banner

    def toggle_banner(self, banner_id: int) -> BannerModel:
        banner = self.get_banner(banner_id)
        banner.is_active = not banner.is_active
        self.db.commit()
        self.db.refresh(banner)
        logger.info(f"Banner {banner.id} is now {'active' if banner.is_active else 'inactive'}")
        return banner

    def reorder(self, payload: BannerReorderIn) -> List[BannerModel]:
        """All ids must exist, otherwise nothing is changed."""
        positions = {p.id: p.sort_order for p in payload.banners}
        banners = self.repo.get_many(list(positions))
        missing = set(positions) - {b.id for b in banners}
        if missing:
            raise NotFoundError(f"Banner not found: {', '.join(str(i) for i in sorted(missing))}")
        for banner in banners:
            banner.sort_order = positions[banner.id]
        self.db.commit()
        return self.list_all()

    def delete_banner(self, banner_id: int) -> None:
        self.repo.delete(self.get_banner(banner_id))
        self.db.commit()
        logger.info(f"Banner {banner_id} deleted")
