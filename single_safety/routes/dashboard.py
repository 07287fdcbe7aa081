# single_safety/routes/dashboard.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlmodel import Session

from single_safety.core.db import get_session
from single_safety.core.deps import get_pricing_policy
from single_safety.services.applications import application_stats
from single_safety.services.pricing import PricingPolicy
from single_safety.services.products import product_stats
from single_safety.services.safezones import safezone_stats

router = APIRouter(prefix="/dashboard")


@router.get("/stats")
def dashboard_stats(
    session: Session = Depends(get_session),
    policy: PricingPolicy = Depends(get_pricing_policy),
):
    return {
        "applications": application_stats(session, policy),
        "safezones": safezone_stats(session),
        "products": product_stats(session),
    }
