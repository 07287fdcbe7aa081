# single_safety/services/products.py
from __future__ import annotations

import uuid
from typing import Any, Optional

from sqlmodel import Session, select, func

from single_safety.core.models import ApplicationProduct, Product


def list_products(session: Session) -> list[Product]:
    return list(session.exec(select(Product).order_by(Product.name)).all())


def get_product(session: Session, product_id: str) -> Optional[Product]:
    return session.get(Product, product_id)


def create_product(session: Session, data: dict[str, Any], product_id: Optional[str] = None) -> Product:
    product = Product(id=product_id or str(uuid.uuid4()), **data)
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


def update_product(session: Session, product_id: str, data: dict[str, Any]) -> Optional[Product]:
    product = session.get(Product, product_id)
    if product is None:
        return None
    for key, value in data.items():
        setattr(product, key, value)
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


def delete_product(session: Session, product_id: str) -> bool:
    product = session.get(Product, product_id)
    if product is None:
        return False
    # line items keep their quantity but lose the price (they then count as zero)
    for item in session.exec(select(ApplicationProduct).where(ApplicationProduct.product_id == product_id)).all():
        item.product_id = None
        session.add(item)
    session.delete(product)
    session.commit()
    return True


def search_products(session: Session, query: str) -> list[Product]:
    pattern = f"%{query.strip()}%"
    return list(session.exec(select(Product).where(Product.name.ilike(pattern)).order_by(Product.name)).all())


def product_stats(session: Session) -> dict[str, int]:
    total, avg_price = session.exec(select(func.count(Product.id), func.avg(Product.price))).one()
    return {
        "total_products": int(total or 0),
        "average_price": int(round(avg_price or 0)),
        # products carry no timestamp
        "recent_additions": 0,
    }
