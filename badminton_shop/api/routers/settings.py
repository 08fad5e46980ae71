# badminton_shop/api/routers/settings.py
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from badminton_shop.api.deps import require_admin
from badminton_shop.data.database import get_db
from badminton_shop.domain.schemas import Envelope, SettingIn, SettingOut, SettingsBulkIn, SettingValueIn
from badminton_shop.services.settings_service import SettingsService

router = APIRouter(prefix="/settings", tags=["settings"])
admin_router = APIRouter(prefix="/admin/settings", tags=["admin"], dependencies=[Depends(require_admin)])


def get_service(db: Session):
    return SettingsService(db)


@router.get("/public", response_model=Envelope[Dict[str, Any]])
def public_settings(db: Session = Depends(get_db)):
    return Envelope(message="Settings retrieved", data=get_service(db).public_settings())


@router.get("/shipping", response_model=Envelope[Dict[str, Any]])
def shipping_settings(db: Session = Depends(get_db)):
    return Envelope(message="Shipping settings retrieved", data=get_service(db).shipping_settings())


# ---------------------------------------------------------------- admin

@admin_router.get("", response_model=Envelope[List[SettingOut]])
def list_settings(category: Optional[str] = Query(None, max_length=50), db: Session = Depends(get_db)):
    return Envelope(message="Settings retrieved", data=get_service(db).list_settings(category))


@admin_router.get("/categories", response_model=Envelope[List[str]])
def setting_categories(db: Session = Depends(get_db)):
    return Envelope(message="Setting categories retrieved", data=get_service(db).categories())


@admin_router.put("", response_model=Envelope[List[SettingOut]])
def update_settings(payload: SettingsBulkIn, db: Session = Depends(get_db)):
    return Envelope(message="Settings updated", data=get_service(db).update_many(payload.values))


@admin_router.post("", response_model=Envelope[SettingOut], status_code=201)
def create_setting(payload: SettingIn, db: Session = Depends(get_db)):
    return Envelope(message="Setting created", data=get_service(db).create_setting(payload))


@admin_router.get("/{key}", response_model=Envelope[SettingOut])
def get_setting(key: str, db: Session = Depends(get_db)):
    return Envelope(message="Setting retrieved", data=get_service(db).get_setting(key))


@admin_router.put("/{key}", response_model=Envelope[SettingOut])
def update_setting(key: str, payload: SettingValueIn, db: Session = Depends(get_db)):
    return Envelope(message="Setting updated", data=get_service(db).update_setting(key, payload.value))


@admin_router.delete("/{key}", response_model=Envelope[None])
def delete_setting(key: str, db: Session = Depends(get_db)):
    get_service(db).delete_setting(key)
    return Envelope(message="Setting deleted")
