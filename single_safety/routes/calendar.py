# single_safety/routes/calendar.py
from __future__ import annotations

from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Path
from pydantic import BaseModel
from sqlmodel import Session

from single_safety.core.db import get_session
from single_safety.core.models import CalendarEntry
from single_safety.services import calendar as calendar_service

router = APIRouter(prefix="/calendar")


class CalendarStatusUpdate(BaseModel):
    status: Literal["claimed", "unclaimed"]


class CalendarEntryCreate(CalendarStatusUpdate):
    day: date


@router.get("", response_model=list[CalendarEntry])
def entries_in_range(start: date, end: date, session: Session = Depends(get_session)):
    if start > end:
        raise HTTPException(status_code=400, detail="start must be <= end")
    return calendar_service.entries_in_range(session, start, end)


@router.post("", response_model=CalendarEntry, status_code=201)
def create_entry(req: CalendarEntryCreate, session: Session = Depends(get_session)):
    if calendar_service.get_entry_by_date(session, req.day):
        raise HTTPException(status_code=409, detail="Calendar entry for this date already exists")
    return calendar_service.create_entry(session, req.day, req.status)


@router.patch("/entries/{entry_id}", response_model=CalendarEntry)
def update_entry(entry_id: int, req: CalendarStatusUpdate, session: Session = Depends(get_session)):
    entry = calendar_service.update_entry(session, entry_id, req.status)
    if not entry:
        raise HTTPException(status_code=404, detail="Calendar entry not found")
    return entry


@router.get("/{year}/{month}")
def month_view(
    year: int = Path(..., ge=1, le=9999),
    month: int = Path(..., ge=1, le=12),
    session: Session = Depends(get_session),
):
    return calendar_service.month_view(session, year, month)


@router.get("/{day}", response_model=CalendarEntry)
def get_entry(day: date, session: Session = Depends(get_session)):
    entry = calendar_service.get_entry_by_date(session, day)
    if not entry:
        raise HTTPException(status_code=404, detail="Calendar entry not found")
    return entry


@router.put("/{day}", response_model=CalendarEntry)
def upsert_entry(day: date, req: CalendarStatusUpdate, session: Session = Depends(get_session)):
    return calendar_service.upsert_entry(session, day, req.status)


@router.delete("/{day}")
def delete_entry(day: date, session: Session = Depends(get_session)):
    entry = calendar_service.get_entry_by_date(session, day)
    if not entry:
        raise HTTPException(status_code=404, detail="Calendar entry not found")
    calendar_service.delete_entry(session, entry.id)
    return {"status": "deleted"}
