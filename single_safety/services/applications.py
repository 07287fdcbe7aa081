# single_safety/services/applications.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import selectinload
from sqlalchemy import or_
from sqlmodel import Session, select, func

from single_safety.core.models import Application, ApplicationProduct, Product
from single_safety.core.time_utils import now_utc, start_of_month
from single_safety.services.pricing import (
    DEFAULT_POLICY,
    ApplicationTotals,
    PricingPolicy,
    calculate_application_total,
    line_items_from_rows,
    total_quantity,
)

logger = logging.getLogger(__name__)

APPLICATION_STATUSES = ("pending", "approved", "rejected", "completed")


@dataclass
class ApplicationWithTotals:
    application: Application
    totals: ApplicationTotals
    total_quantity: int


def with_totals(app: Application, policy: PricingPolicy = DEFAULT_POLICY) -> ApplicationWithTotals:
    # recomputed on every read from current product prices; never stored
    items = line_items_from_rows(app.application_products)
    return ApplicationWithTotals(
        application=app,
        totals=calculate_application_total(app.applicant_type, items, policy),
        total_quantity=total_quantity(items),
    )


def _select_with_products():
    return select(Application).options(
        selectinload(Application.application_products).selectinload(ApplicationProduct.product)
    )


def _check_products(session: Session, products: dict[str, int]) -> None:
    if not products:
        return
    known = set(session.exec(select(Product.id).where(Product.id.in_(list(products)))).all())
    unknown = sorted(set(products) - known)
    if unknown:
        raise ValueError(f"Unknown product id(s): {', '.join(unknown)}")


def _add_line_items(session: Session, application_id: int, products: dict[str, int]) -> None:
    for product_id, quantity in products.items():
        session.add(ApplicationProduct(application_id=application_id, product_id=product_id, quantity=quantity))


def list_applications(session: Session, policy: PricingPolicy = DEFAULT_POLICY) -> list[ApplicationWithTotals]:
    apps = session.exec(_select_with_products().order_by(Application.created_at.desc())).all()
    return [with_totals(a, policy) for a in apps]


def get_application(
    session: Session, application_id: int, policy: PricingPolicy = DEFAULT_POLICY
) -> Optional[ApplicationWithTotals]:
    app = session.exec(_select_with_products().where(Application.id == application_id)).first()
    if app is None:
        return None
    return with_totals(app, policy)


def create_application(
    session: Session,
    data: dict[str, Any],
    products: Optional[dict[str, int]] = None,
    policy: PricingPolicy = DEFAULT_POLICY,
) -> ApplicationWithTotals:
    products = products or {}
    _check_products(session, products)

    app = Application(created_at=now_utc(), **data)
    session.add(app)
    session.flush()
    _add_line_items(session, app.id, products)
    session.commit()
    logger.info("Created application %s (%s) with %d product line(s)", app.id, app.building_name, len(products))

    session.expire_all()
    return get_application(session, app.id, policy)


def update_application(session: Session, application_id: int, data: dict[str, Any]) -> Optional[Application]:
    app = session.get(Application, application_id)
    if app is None:
        return None
    for key, value in data.items():
        setattr(app, key, value)
    session.add(app)
    session.commit()
    session.refresh(app)
    return app


def replace_application_products(session: Session, application_id: int, products: dict[str, int]) -> bool:
    app = session.get(Application, application_id)
    if app is None:
        return False
    _check_products(session, products)

    for item in session.exec(select(ApplicationProduct).where(ApplicationProduct.application_id == application_id)).all():
        session.delete(item)
    session.flush()
    _add_line_items(session, application_id, products)
    session.commit()
    session.expire_all()
    return True


def update_application_status(session: Session, application_id: int, status: str) -> Optional[Application]:
    if status not in APPLICATION_STATUSES:
        raise ValueError(f"Invalid status: {status}. Supported: {list(APPLICATION_STATUSES)}")
    return update_application(session, application_id, {"status": status})


def delete_application(session: Session, application_id: int) -> bool:
    app = session.get(Application, application_id)
    if app is None:
        return False
    session.delete(app)
    session.commit()
    logger.info("Deleted application %s", application_id)
    return True


def search_applications(
    session: Session, query: str, policy: PricingPolicy = DEFAULT_POLICY
) -> list[ApplicationWithTotals]:
    pattern = f"%{query.strip()}%"
    apps = session.exec(
        _select_with_products()
        .where(
            or_(
                Application.building_name.ilike(pattern),
                Application.contact.ilike(pattern),
                Application.address.ilike(pattern),
            )
        )
        .order_by(Application.created_at.desc())
    ).all()
    return [with_totals(a, policy) for a in apps]


def application_stats(
    session: Session,
    policy: PricingPolicy = DEFAULT_POLICY,
    now: Optional[datetime] = None,
) -> dict[str, int]:
    now = now or now_utc()
    total = session.exec(select(func.count(Application.id))).one()
    monthly = session.exec(
        select(func.count(Application.id)).where(Application.created_at >= start_of_month(now))
    ).one()
    pending = session.exec(
        select(func.count(Application.id)).where(Application.status == "pending")
    ).one()
    # net revenue: discounted final amounts, not gross price x quantity
    revenue = sum(a.totals.final_amount for a in list_applications(session, policy))
    return {
        "total_applications": int(total),
        "monthly_applications": int(monthly),
        "pending_applications": int(pending),
        "total_revenue": int(revenue),
    }
