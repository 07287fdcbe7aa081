# single_safety/routes/products.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session

from single_safety.core.db import get_session
from single_safety.core.models import Product
from single_safety.services import products as products_service

router = APIRouter(prefix="/products")


class ProductCreate(BaseModel):
    id: Optional[str] = Field(default=None, min_length=1, description="Optional explicit id, e.g. 'single_package'")
    name: str = Field(..., min_length=1, max_length=200)
    price: int = Field(..., ge=0, description="Unit price in whole KRW")
    price_description: Optional[str] = None
    image_path: str = ""


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    price: Optional[int] = Field(default=None, ge=0)
    price_description: Optional[str] = None
    image_path: Optional[str] = None

    @field_validator("name", "price", "image_path")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value


class ProductStats(BaseModel):
    total_products: int
    average_price: int
    recent_additions: int


@router.get("", response_model=list[Product])
def list_products(
    q: Optional[str] = None,
    session: Session = Depends(get_session),
):
    if q and q.strip():
        return products_service.search_products(session, q)
    return products_service.list_products(session)


@router.get("/stats", response_model=ProductStats)
def product_stats(session: Session = Depends(get_session)):
    return products_service.product_stats(session)


@router.get("/{product_id}", response_model=Product)
def get_product(product_id: str, session: Session = Depends(get_session)):
    product = products_service.get_product(session, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.post("", response_model=Product, status_code=201)
def create_product(req: ProductCreate, session: Session = Depends(get_session)):
    if req.id and products_service.get_product(session, req.id):
        raise HTTPException(status_code=409, detail="Product id already exists")
    data = req.model_dump(exclude={"id"})
    return products_service.create_product(session, data, product_id=req.id)


@router.patch("/{product_id}", response_model=Product)
def update_product(product_id: str, req: ProductUpdate, session: Session = Depends(get_session)):
    product = products_service.update_product(session, product_id, req.model_dump(exclude_unset=True))
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.delete("/{product_id}")
def delete_product(product_id: str, session: Session = Depends(get_session)):
    if not products_service.delete_product(session, product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    return {"status": "deleted"}
