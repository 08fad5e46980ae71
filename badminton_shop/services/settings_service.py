# badminton_shop/services/settings_service.py
import json
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from badminton_shop.data.models.setting import SettingModel
from badminton_shop.domain.exceptions import ConflictError, NotFoundError, ValidationError
from badminton_shop.domain.schemas import SettingIn, SettingOut
from badminton_shop.repos.setting_repo import SettingRepo
from badminton_shop.utils.logging import get_logger

logger = get_logger(__name__)

SHIPPING_CATEGORY = "shipping"


def parse_value(raw: str | None, value_type: str) -> Any:
    if raw is None:
        return None
    if value_type == "number":
        number = Decimal(raw)
        return int(number) if number == number.to_integral_value() else float(number)
    if value_type == "boolean":
        return raw.lower() in ("true", "1")
    if value_type == "json":
        try:
            return json.loads(raw)
        except ValueError:
            return raw
    return raw


def serialize_value(value: Any, value_type: str, key: str) -> str | None:
    if value is None:
        return None
    if value_type == "number":
        try:
            Decimal(str(value))
        except InvalidOperation:
            raise ValidationError(f"Setting {key} expects a number")
        return str(value)
    if value_type == "boolean":
        if isinstance(value, str):
            value = value.lower() in ("true", "1")
        return "true" if value else "false"
    if value_type == "json":
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def setting_out(setting: SettingModel) -> SettingOut:
    return SettingOut(
        key=setting.key,
        value=parse_value(setting.value, setting.value_type),
        value_type=setting.value_type,
        category=setting.category,
        display_name=setting.display_name,
        description=setting.description,
        is_public=setting.is_public,
    )


class SettingsService:
    """
    Store settings kept as typed key/value rows.
    Public reads only ever expose rows flagged is_public.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = SettingRepo(db)

    def public_settings(self) -> Dict[str, Any]:
        return {s.key: parse_value(s.value, s.value_type) for s in self.repo.list(public_only=True)}

    def shipping_settings(self) -> Dict[str, Any]:
        rows = self.repo.list(category=SHIPPING_CATEGORY, public_only=True)
        return {s.key: parse_value(s.value, s.value_type) for s in rows}

    def list_settings(self, category: str | None = None) -> List[SettingOut]:
        return [setting_out(s) for s in self.repo.list(category=category)]

    def categories(self) -> List[str]:
        return self.repo.categories()

    def get_setting(self, key: str) -> SettingOut:
        return setting_out(self._get(key))

    def create_setting(self, payload: SettingIn) -> SettingOut:
        if self.repo.get_by_key(payload.key):
            raise ConflictError("Setting key already exists")
        data = payload.model_dump()
        data["value"] = serialize_value(payload.value, payload.value_type, payload.key)
        setting = self.repo.add(SettingModel(**data))
        self.db.commit()
        self.db.refresh(setting)
        logger.info(f"Setting {setting.key} created")
        return setting_out(setting)

    def update_setting(self, key: str, value: Any) -> SettingOut:
        setting = self._get(key)
        setting.value = serialize_value(value, setting.value_type, key)
        self.db.commit()
        self.db.refresh(setting)
        logger.info(f"Setting {key} updated")
        return setting_out(setting)

    def update_many(self, values: Dict[str, Any]) -> List[SettingOut]:
        """All keys must exist; the whole batch is written in one commit."""
        settings = {s.key: s for s in self.repo.get_many(list(values))}
        missing = sorted(set(values) - set(settings))
        if missing:
            raise NotFoundError(f"Setting not found: {', '.join(missing)}")
        for key, value in values.items():
            settings[key].value = serialize_value(value, settings[key].value_type, key)
        self.db.commit()
        return [setting_out(settings[key]) for key in values]

    def delete_setting(self, key: str) -> None:
        self.repo.delete(self._get(key))
        self.db.commit()
        logger.info(f"Setting {key} deleted")

    def _get(self, key: str) -> SettingModel:
        setting = self.repo.get_by_key(key)
        if not setting:
            raise NotFoundError("Setting not found")
        return setting
