# single_safety/services/calendar.py
from __future__ import annotations

import calendar as _cal
from datetime import date
from typing import Optional

from sqlmodel import Session, select

from single_safety.core.models import CalendarEntry

CALENDAR_STATUSES = ("claimed", "unclaimed")


def _check_status(status: Optional[str]) -> None:
    if status is not None and status not in CALENDAR_STATUSES:
        raise ValueError(f"Invalid calendar status: {status}. Supported: {list(CALENDAR_STATUSES)}")


def entries_in_range(session: Session, start: date, end: date) -> list[CalendarEntry]:
    return list(
        session.exec(
            select(CalendarEntry)
            .where(CalendarEntry.date >= start, CalendarEntry.date <= end)
            .order_by(CalendarEntry.date)
        ).all()
    )


def get_entry_by_date(session: Session, day: date) -> Optional[CalendarEntry]:
    return session.exec(select(CalendarEntry).where(CalendarEntry.date == day)).first()


def create_entry(session: Session, day: date, status: str) -> CalendarEntry:
    _check_status(status)
    if get_entry_by_date(session, day) is not None:
        raise ValueError(f"Calendar entry for {day.isoformat()} already exists")
    entry = CalendarEntry(date=day, status=status)
    session.add(entry)
    session.commit()
    session.refresh(entry)
    return entry


def update_entry(session: Session, entry_id: int, status: str) -> Optional[CalendarEntry]:
    _check_status(status)
    entry = session.get(CalendarEntry, entry_id)
    if entry is None:
        return None
    entry.status = status
    session.add(entry)
    session.commit()
    session.refresh(entry)
    return entry


def upsert_entry(session: Session, day: date, status: str) -> CalendarEntry:
    # one row per date
    _check_status(status)
    entry = get_entry_by_date(session, day)
    if entry is None:
        entry = CalendarEntry(date=day, status=status)
    else:
        entry.status = status
    session.add(entry)
    session.commit()
    session.refresh(entry)
    return entry


def delete_entry(session: Session, entry_id: int) -> bool:
    entry = session.get(CalendarEntry, entry_id)
    if entry is None:
        return False
    session.delete(entry)
    session.commit()
    return True


def month_view(session: Session, year: int, month: int) -> dict:
    """
    One cell per day of the month plus the number of blank cells before the
    1st in a Sunday-first week grid.
    """
    days_in_month = _cal.monthrange(year, month)[1]
    first = date(year, month, 1)
    last = date(year, month, days_in_month)
    statuses = {e.date: e.status for e in entries_in_range(session, first, last)}

    # date.weekday(): Monday=0 .. Sunday=6
    leading_blanks = (first.weekday() + 1) % 7
    return {
        "year": year,
        "month": month,
        "leading_blanks": leading_blanks,
        "days": [
            {"date": d.isoformat(), "status": statuses.get(d)}
            for d in (date(year, month, n) for n in range(1, days_in_month + 1))
        ],
    }
