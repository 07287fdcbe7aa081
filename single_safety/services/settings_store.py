# single_safety/services/settings_store.py
from __future__ import annotations

from enum import Enum
from typing import Optional

from sqlmodel import Session, select

from single_safety.core.models import Setting
from single_safety.core.time_utils import now_utc

TRUTHY_VALUES = {"true", "1", "yes"}


class SettingKey(str, Enum):
    REQUIRE_AUTH = "require_auth"
    SAFE_ZONE_VIEWER = "safe_zone_viewer"


SETTING_DESCRIPTIONS = {
    SettingKey.REQUIRE_AUTH: "본인인증 활성화 여부",
    SettingKey.SAFE_ZONE_VIEWER: "지역별 세이프 존 뷰어 활성화 여부",
}


def list_settings(session: Session) -> list[Setting]:
    return list(session.exec(select(Setting).order_by(Setting.setting_name)).all())


def settings_map(session: Session) -> dict[str, str]:
    return {s.setting_name: s.setting_value for s in list_settings(session)}


def get_setting(session: Session, name: str) -> Optional[Setting]:
    return session.exec(select(Setting).where(Setting.setting_name == name)).first()


def create_setting(session: Session, name: str, value: str, description: Optional[str] = None) -> Setting:
    ts = now_utc()
    row = Setting(setting_name=name, setting_value=value, description=description, created_at=ts, updated_at=ts)
    session.add(row)
    session.commit()
    session.refresh(row)
    return row


def update_setting(session: Session, name: str, value: str, description: Optional[str] = None) -> Optional[Setting]:
    row = get_setting(session, name)
    if row is None:
        return None
    row.setting_value = value
    if description is not None:
        row.description = description
    row.updated_at = now_utc()
    session.add(row)
    session.commit()
    session.refresh(row)
    return row


def upsert_setting(session: Session, name: str, value: str, description: Optional[str] = None) -> Setting:
    row = update_setting(session, name, value, description)
    if row is None:
        row = create_setting(session, name, value, description)
    return row


def delete_setting(session: Session, name: str) -> bool:
    row = get_setting(session, name)
    if row is None:
        return False
    session.delete(row)
    session.commit()
    return True


def parse_bool(value: str) -> bool:
    return value.strip().lower() in TRUTHY_VALUES


def get_boolean_setting(session: Session, name: str, default: bool = False) -> bool:
    row = get_setting(session, name)
    if row is None:
        return default
    return parse_bool(row.setting_value)


def update_boolean_setting(session: Session, name: str, value: bool, description: Optional[str] = None) -> Setting:
    return upsert_setting(session, name, "true" if value else "false", description)


def get_flags(session: Session) -> dict[str, bool]:
    return {key.value: get_boolean_setting(session, key.value, False) for key in SettingKey}


def set_flags(session: Session, flags: dict[str, bool]) -> dict[str, bool]:
    for key in SettingKey:
        if key.value in flags:
            update_boolean_setting(session, key.value, flags[key.value], SETTING_DESCRIPTIONS[key])
    return get_flags(session)
