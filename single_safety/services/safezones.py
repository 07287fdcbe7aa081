# single_safety/services/safezones.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import or_
from sqlmodel import Session, select, func

from single_safety.core.models import SafeZone
from single_safety.core.time_utils import now_utc
from single_safety.services.geocoding import get_admin_area
from single_safety.services.sgis_client import SGISClient
from single_safety.services.sgis_tokens import SGISError

logger = logging.getLogger(__name__)

RECENT_WINDOW = timedelta(days=30)

LEVEL_COLORS = {
    1: "#CD7F32",  # bronze
    2: "#C0C0C0",  # silver
    3: "#FFD700",  # gold
}
DEFAULT_LEVEL_COLOR = "#6B7280"


def level_color(level: Optional[int]) -> str:
    return LEVEL_COLORS.get(level, DEFAULT_LEVEL_COLOR)


def list_safezones(session: Session) -> list[SafeZone]:
    return list(session.exec(select(SafeZone).order_by(SafeZone.created_at.desc())).all())


def get_safezone(session: Session, safezone_id: int) -> Optional[SafeZone]:
    return session.get(SafeZone, safezone_id)


def create_safezone(session: Session, data: dict[str, Any]) -> SafeZone:
    zone = SafeZone(created_at=now_utc(), **data)
    session.add(zone)
    session.commit()
    session.refresh(zone)
    logger.info("Created safe zone %s (%s)", zone.id, zone.building_name)
    return zone


def update_safezone(session: Session, safezone_id: int, data: dict[str, Any]) -> Optional[SafeZone]:
    zone = session.get(SafeZone, safezone_id)
    if zone is None:
        return None
    for key, value in data.items():
        setattr(zone, key, value)
    session.add(zone)
    session.commit()
    session.refresh(zone)
    return zone


def delete_safezone(session: Session, safezone_id: int) -> bool:
    zone = session.get(SafeZone, safezone_id)
    if zone is None:
        return False
    session.delete(zone)
    session.commit()
    logger.info("Deleted safe zone %s", safezone_id)
    return True


def search_safezones(session: Session, query: str) -> list[SafeZone]:
    pattern = f"%{query.strip()}%"
    columns = (
        SafeZone.building_name,
        SafeZone.contact,
        SafeZone.address,
        SafeZone.detail_address,
        SafeZone.sido_nm,
        SafeZone.sgg_nm,
        SafeZone.adm_nm,
    )
    return list(
        session.exec(
            select(SafeZone).where(or_(*(c.ilike(pattern) for c in columns))).order_by(SafeZone.created_at.desc())
        ).all()
    )


def safezones_in_bounds(session: Session, north: float, south: float, east: float, west: float) -> list[SafeZone]:
    return list(
        session.exec(
            select(SafeZone).where(
                SafeZone.lat.is_not(None),
                SafeZone.lng.is_not(None),
                SafeZone.lat >= south,
                SafeZone.lat <= north,
                SafeZone.lng >= west,
                SafeZone.lng <= east,
            )
        ).all()
    )


def coverage_area(address: Optional[str]) -> Optional[str]:
    # first two words of the address, e.g. "서울특별시 강남구"
    if not address or not address.strip():
        return None
    return " ".join(address.split()[:2])


def safezone_stats(session: Session, now: Optional[datetime] = None) -> dict[str, int]:
    now = now or now_utc()
    total = session.exec(select(func.count(SafeZone.id))).one()
    recent = session.exec(
        select(func.count(SafeZone.id)).where(SafeZone.created_at >= now - RECENT_WINDOW)
    ).one()
    addresses = session.exec(select(SafeZone.address).where(SafeZone.address.is_not(None))).all()
    areas = {a for a in (coverage_area(addr) for addr in addresses) if a}
    return {
        "total_safezones": int(total),
        "recent_additions": int(recent),
        "coverage_areas": len(areas),
    }


def markers_geojson(zones: list[SafeZone]) -> dict[str, Any]:
    features = []
    for z in zones:
        if z.lat is None or z.lng is None:
            continue
        features.append(
            {
                "type": "Feature",
                "id": z.id,
                "geometry": {"type": "Point", "coordinates": [z.lng, z.lat]},
                "properties": {
                    "building_name": z.building_name,
                    "address": z.address,
                    "level": z.level,
                    "color": level_color(z.level),
                    "sido_nm": z.sido_nm,
                    "sgg_nm": z.sgg_nm,
                    "adm_nm": z.adm_nm,
                },
            }
        )
    return {"type": "FeatureCollection", "features": features}


async def _admin_names(client: SGISClient, address: str) -> dict[str, Any]:
    try:
        area = await get_admin_area(client, address)
    except SGISError as exc:
        logger.warning("Failed to geocode %r, saving without administrative area: %s", address, exc)
        return {}
    if area is None:
        return {}
    return {"sido_nm": area.sido_nm, "sgg_nm": area.sgg_nm, "adm_nm": area.adm_nm}


async def create_safezone_with_geocoding(session: Session, client: SGISClient, data: dict[str, Any]) -> SafeZone:
    data = dict(data)
    if data.get("address") and not data.get("sido_nm"):
        data.update(await _admin_names(client, data["address"]))
    return create_safezone(session, data)


async def update_safezone_with_geocoding(
    session: Session, client: SGISClient, safezone_id: int, data: dict[str, Any]
) -> Optional[SafeZone]:
    if session.get(SafeZone, safezone_id) is None:
        return None
    data = dict(data)
    if data.get("address"):
        data.update(await _admin_names(client, data["address"]))
    return update_safezone(session, safezone_id, data)
