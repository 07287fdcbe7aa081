# single_safety/routes/safezones.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlmodel import Session

from single_safety.core.db import get_session
from single_safety.core.deps import get_sgis_client
from single_safety.core.models import SafeZone
from single_safety.services import safezones as safezones_service
from single_safety.services.sgis_client import SGISClient

router = APIRouter(prefix="/safezones")


class SafeZoneCreate(BaseModel):
    building_name: str = Field(..., min_length=1)
    contact: Optional[str] = None
    address: Optional[str] = None
    detail_address: Optional[str] = None
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    level: Optional[int] = Field(default=1, ge=1, le=3)
    sido_nm: Optional[str] = None
    sgg_nm: Optional[str] = None
    adm_nm: Optional[str] = None


class SafeZoneUpdate(BaseModel):
    building_name: Optional[str] = Field(default=None, min_length=1)
    contact: Optional[str] = None
    address: Optional[str] = None
    detail_address: Optional[str] = None
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)
    level: Optional[int] = Field(default=None, ge=1, le=3)
    sido_nm: Optional[str] = None
    sgg_nm: Optional[str] = None
    adm_nm: Optional[str] = None


class SafeZoneStats(BaseModel):
    total_safezones: int
    recent_additions: int
    coverage_areas: int


@router.get("", response_model=list[SafeZone])
def list_safezones(
    q: Optional[str] = None,
    session: Session = Depends(get_session),
):
    if q and q.strip():
        return safezones_service.search_safezones(session, q)
    return safezones_service.list_safezones(session)


@router.get("/stats", response_model=SafeZoneStats)
def safezone_stats(session: Session = Depends(get_session)):
    return safezones_service.safezone_stats(session)


@router.get("/bounds", response_model=list[SafeZone])
def safezones_in_bounds(
    north: float = Query(..., ge=-90, le=90),
    south: float = Query(..., ge=-90, le=90),
    east: float = Query(..., ge=-180, le=180),
    west: float = Query(..., ge=-180, le=180),
    session: Session = Depends(get_session),
):
    if south > north:
        raise HTTPException(status_code=400, detail="south must be <= north")
    return safezones_service.safezones_in_bounds(session, north, south, east, west)


@router.get("/markers")
def safezone_markers(session: Session = Depends(get_session)):
    return safezones_service.markers_geojson(safezones_service.list_safezones(session))


@router.get("/{safezone_id}", response_model=SafeZone)
def get_safezone(safezone_id: int, session: Session = Depends(get_session)):
    zone = safezones_service.get_safezone(session, safezone_id)
    if not zone:
        raise HTTPException(status_code=404, detail="Safe zone not found")
    return zone


@router.post("", response_model=SafeZone, status_code=201)
async def create_safezone(
    req: SafeZoneCreate,
    session: Session = Depends(get_session),
    client: SGISClient = Depends(get_sgis_client),
):
    return await safezones_service.create_safezone_with_geocoding(session, client, req.model_dump())


@router.patch("/{safezone_id}", response_model=SafeZone)
async def update_safezone(
    safezone_id: int,
    req: SafeZoneUpdate,
    session: Session = Depends(get_session),
    client: SGISClient = Depends(get_sgis_client),
):
    zone = await safezones_service.update_safezone_with_geocoding(
        session, client, safezone_id, req.model_dump(exclude_unset=True)
    )
    if not zone:
        raise HTTPException(status_code=404, detail="Safe zone not found")
    return zone


@router.delete("/{safezone_id}")
def delete_safezone(safezone_id: int, session: Session = Depends(get_session)):
    if not safezones_service.delete_safezone(session, safezone_id):
        raise HTTPException(status_code=404, detail="Safe zone not found")
    return {"status": "deleted"}
