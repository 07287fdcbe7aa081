# single_safety/core/deps.py
from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from single_safety.core.config import Settings, get_settings
from single_safety.services.pricing import PricingPolicy
from single_safety.services.sgis_client import SGISClient
from single_safety.services.sgis_tokens import SGISTokenManager


def get_pricing_policy(settings: Settings = Depends(get_settings)) -> PricingPolicy:
    return settings.pricing_policy()


def get_sgis_client(request: Request) -> SGISClient:
    client = getattr(request.app.state, "sgis_client", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Geocoding client not initialized")
    return client


def get_token_manager(client: SGISClient = Depends(get_sgis_client)) -> SGISTokenManager:
    return client.token_manager
