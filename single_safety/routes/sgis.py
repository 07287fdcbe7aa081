# single_safety/routes/sgis.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from single_safety.core.deps import get_sgis_client, get_token_manager
from single_safety.services.geocoding import AdminArea, get_admin_area, search_admin_areas
from single_safety.services.sgis_client import SGISClient
from single_safety.services.sgis_tokens import (
    SGISError,
    SGISTokenManager,
    check_token_status,
    refresh_token_if_needed,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sgis")


class TokenStatusOut(BaseModel):
    status: str
    message: str
    expires_at: Optional[str] = None


class TokenRefreshOut(BaseModel):
    refreshed: bool
    message: str


def _address_or_400(address: Optional[str]) -> str:
    address = (address or "").strip()
    if not address:
        raise HTTPException(status_code=400, detail="Address is required")
    return address


@router.get("/geocode", response_model=AdminArea)
async def geocode(
    address: Optional[str] = None,
    client: SGISClient = Depends(get_sgis_client),
):
    address = _address_or_400(address)
    try:
        result = await get_admin_area(client, address)
    except SGISError as e:
        logger.error("Geocoding failed for %r: %s", address, e)
        raise HTTPException(status_code=502, detail="Geocoding failed")
    if result is None:
        raise HTTPException(status_code=404, detail="Address not found")
    return result


@router.get("/search", response_model=list[AdminArea])
async def search(
    address: Optional[str] = None,
    limit: int = Query(default=5, ge=1, le=50),
    client: SGISClient = Depends(get_sgis_client),
):
    address = _address_or_400(address)
    try:
        return await search_admin_areas(client, address, limit)
    except SGISError as e:
        logger.error("Address search failed for %r: %s", address, e)
        raise HTTPException(status_code=502, detail="Geocoding failed")


@router.get("/token", response_model=TokenStatusOut)
def token_status(manager: SGISTokenManager = Depends(get_token_manager)):
    status = check_token_status(manager)
    return TokenStatusOut(
        status=status.state.value,
        message=status.message,
        expires_at=status.expires_at.isoformat() if status.expires_at else None,
    )


@router.post("/token/refresh", response_model=TokenRefreshOut)
async def refresh_token(
    force: bool = False,
    manager: SGISTokenManager = Depends(get_token_manager),
):
    try:
        if force:
            await manager.refresh_token()
            return TokenRefreshOut(refreshed=True, message="SGIS token has been refreshed")
        return TokenRefreshOut(**await refresh_token_if_needed(manager))
    except SGISError as e:
        logger.error("SGIS token refresh failed: %s", e)
        raise HTTPException(status_code=502, detail="SGIS authentication failed")
