# single_safety/services/geocoding.py
from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional

from pydantic import BaseModel
from pyproj import Transformer

from single_safety.services.sgis_client import SGISClient, SGISRequestError

GEOCODE_PATH = "addr/geocode.json"

# SGIS reports "no search result" in-band with this code
NO_RESULT_ERR_CD = -100

# SGIS x/y are UTM-K (Korea 2000 / Unified CS)
SGIS_CRS = "EPSG:5179"
WGS84_CRS = "EPSG:4326"


class AdminArea(BaseModel):
    sido_nm: Optional[str] = None
    sgg_nm: Optional[str] = None
    adm_nm: Optional[str] = None
    formatted_address: str = ""
    addr_type: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None


@lru_cache(maxsize=1)
def _utmk_transformer() -> Transformer:
    return Transformer.from_crs(SGIS_CRS, WGS84_CRS, always_xy=True)


def utmk_to_wgs84(x: float, y: float) -> tuple[float, float]:
    """Returns (lat, lng)."""
    lng, lat = _utmk_transformer().transform(x, y)
    return lat, lng


def _numbered(name: str, main_no: Optional[str], sub_no: Optional[str]) -> str:
    out = name
    if main_no:
        out += f" {main_no}"
        if sub_no and sub_no != "0":
            out += f"-{sub_no}"
    return out


def format_address(row: dict[str, Any]) -> str:
    parts = [row.get(k) for k in ("sido_nm", "sgg_nm", "adm_nm") if row.get(k)]
    if row.get("road_nm"):
        parts.append(_numbered(row["road_nm"], row.get("road_nm_main_no"), row.get("road_nm_sub_no")))
    elif row.get("leg_nm"):
        parts.append(_numbered(row["leg_nm"], row.get("jibun_main_no"), row.get("jibun_sub_no")))
    return " ".join(parts).strip()


def _coords(row: dict[str, Any]) -> tuple[Optional[float], Optional[float]]:
    try:
        x = float(row["x"])
        y = float(row["y"])
    except (KeyError, TypeError, ValueError):
        return None, None
    return utmk_to_wgs84(x, y)


def admin_area_from_row(row: dict[str, Any]) -> AdminArea:
    lat, lng = _coords(row)
    return AdminArea(
        sido_nm=row.get("sido_nm"),
        sgg_nm=row.get("sgg_nm"),
        adm_nm=row.get("adm_nm"),
        formatted_address=format_address(row),
        addr_type=row.get("addr_type"),
        lat=lat,
        lng=lng,
    )


async def _geocode_rows(client: SGISClient, address: str, result_count: int) -> list[dict[str, Any]]:
    try:
        data = await client.get_json(
            GEOCODE_PATH,
            {"address": address, "pagenum": "0", "resultcount": str(result_count)},
        )
    except SGISRequestError as exc:
        if exc.err_cd is not None and str(exc.err_cd) == str(NO_RESULT_ERR_CD):
            return []
        raise
    result = data.get("result")
    if not isinstance(result, dict):
        return []
    rows = result.get("resultdata")
    return [r for r in rows if isinstance(r, dict)] if isinstance(rows, list) else []


async def get_admin_area(client: SGISClient, address: str) -> Optional[AdminArea]:
    rows = await _geocode_rows(client, address, 1)
    if not rows:
        return None
    return admin_area_from_row(rows[0])


async def search_admin_areas(client: SGISClient, address: str, max_results: int = 5) -> list[AdminArea]:
    rows = await _geocode_rows(client, address, max_results)
    return [admin_area_from_row(r) for r in rows]
