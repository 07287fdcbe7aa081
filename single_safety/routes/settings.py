# single_safety/routes/settings.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlmodel import Session

from single_safety.core.db import get_session
from single_safety.core.models import Setting
from single_safety.services import settings_store

router = APIRouter(prefix="/settings")


class FlagsUpdate(BaseModel):
    require_auth: Optional[bool] = None
    safe_zone_viewer: Optional[bool] = None


class SettingUpsert(BaseModel):
    setting_value: str
    description: Optional[str] = Field(default=None, max_length=500)


@router.get("", response_model=list[Setting])
def list_settings(session: Session = Depends(get_session)):
    return settings_store.list_settings(session)


@router.get("/map")
def settings_map(session: Session = Depends(get_session)):
    return settings_store.settings_map(session)


@router.get("/flags")
def get_flags(session: Session = Depends(get_session)):
    return settings_store.get_flags(session)


@router.put("/flags")
def set_flags(req: FlagsUpdate, session: Session = Depends(get_session)):
    return settings_store.set_flags(session, req.model_dump(exclude_none=True))


@router.get("/{name}", response_model=Setting)
def get_setting(name: str, session: Session = Depends(get_session)):
    row = settings_store.get_setting(session, name)
    if not row:
        raise HTTPException(status_code=404, detail="Setting not found")
    return row


@router.put("/{name}", response_model=Setting)
def upsert_setting(name: str, req: SettingUpsert, session: Session = Depends(get_session)):
    return settings_store.upsert_setting(session, name, req.setting_value, req.description)


@router.delete("/{name}")
def delete_setting(name: str, session: Session = Depends(get_session)):
    if not settings_store.delete_setting(session, name):
        raise HTTPException(status_code=404, detail="Setting not found")
    return {"status": "deleted"}
