# badminton_shop/api/routers/banners.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from badminton_shop.api.deps import require_admin
from badminton_shop.data.database import get_db
from badminton_shop.domain.schemas import BannerIn, BannerOut, BannerReorderIn, BannerUpdate, Envelope
from badminton_shop.services.banner_service import BannerService

router = APIRouter(prefix="/banners", tags=["banners"])
admin_router = APIRouter(prefix="/admin/banners", tags=["admin"], dependencies=[Depends(require_admin)])


def get_service(db: Session):
    return BannerService(db)


@router.get("/active", response_model=Envelope[List[BannerOut]])
def active_banners(db: Session = Depends(get_db)):
    rows = get_service(db).list_active()
    return Envelope(message="Banners retrieved", data=[BannerOut.model_validate(b) for b in rows])


# ---------------------------------------------------------------- admin

@admin_router.get("", response_model=Envelope[List[BannerOut]])
def list_banners(db: Session = Depends(get_db)):
    rows = get_service(db).list_all()
    return Envelope(message="Banners retrieved", data=[BannerOut.model_validate(b) for b in rows])


@admin_router.put("/reorder", response_model=Envelope[List[BannerOut]])
def reorder_banners(payload: BannerReorderIn, db: Session = Depends(get_db)):
    rows = get_service(db).reorder(payload)
    return Envelope(message="Banner order updated", data=[BannerOut.model_validate(b) for b in rows])


@admin_router.get("/{banner_id}", response_model=Envelope[BannerOut])
def get_banner(banner_id: int, db: Session = Depends(get_db)):
    return Envelope(message="Banner retrieved", data=BannerOut.model_validate(get_service(db).get_banner(banner_id)))


@admin_router.post("", response_model=Envelope[BannerOut], status_code=201)
def create_banner(payload: BannerIn, db: Session = Depends(get_db)):
    banner = get_service(db).create_banner(payload)
    return Envelope(message="Banner created", data=BannerOut.model_validate(banner))


@admin_router.put("/{banner_id}", response_model=Envelope[BannerOut])
def update_banner(banner_id: int, payload: BannerUpdate, db: Session = Depends(get_db)):
    banner = get_service(db).update_banner(banner_id, payload)
    return Envelope(message="Banner updated", data=BannerOut.model_validate(banner))


@admin_router.put("/{banner_id}/toggle", response_model=Envelope[BannerOut])
def toggle_banner(banner_id: int, db: Session = Depends(get_db)):
    banner = get_service(db).toggle_banner(banner_id)
    return Envelope(message="Banner status updated", data=BannerOut.model_validate(banner))


@admin_router.delete("/{banner_id}", response_model=Envelope[None])
def delete_banner(banner_id: int, db: Session = Depends(get_db)):
    get_service(db).delete_banner(banner_id)
    return Envelope(message="Banner deleted")
