# single_safety/core/models.py

import datetime as dt
from typing import Optional

from sqlmodel import SQLModel, Field, Relationship

from single_safety.core.time_utils import now_utc


class Product(SQLModel, table=True):
    __tablename__ = "products"
    id: str = Field(primary_key=True)
    name: str = Field(index=True)
    price: int  # whole KRW
    price_description: Optional[str] = None
    image_path: str = ""


class Application(SQLModel, table=True):
    """
    An installation request for a building.

    Amounts are NOT stored: they are recomputed from the line items and the
    current product prices on every read (see services/pricing.py).
    """
    __tablename__ = "application"
    id: Optional[int] = Field(default=None, primary_key=True)

    building_name: str = Field(index=True)
    contact: str
    address: str
    detail_address: Optional[str] = None
    installation_date: dt.date

    # tenant | owner
    applicant_type: str = Field(default="tenant")
    # pending | approved | rejected | completed
    status: str = Field(default="pending", index=True)

    created_at: dt.datetime = Field(default_factory=now_utc, index=True)

    application_products: list["ApplicationProduct"] = Relationship(
        back_populates="application",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class ApplicationProduct(SQLModel, table=True):
    __tablename__ = "application_products"
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: dt.datetime = Field(default_factory=now_utc)

    application_id: Optional[int] = Field(default=None, foreign_key="application.id", index=True)
    product_id: Optional[str] = Field(default=None, foreign_key="products.id", index=True)
    quantity: Optional[int] = None

    application: Optional[Application] = Relationship(back_populates="application_products")
    product: Optional[Product] = Relationship()


class SafeZone(SQLModel, table=True):
    __tablename__ = "safezone"
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: dt.datetime = Field(default_factory=now_utc, index=True)

    building_name: Optional[str] = None
    contact: Optional[str] = None
    address: Optional[str] = None
    detail_address: Optional[str] = None

    lat: Optional[float] = Field(default=None, index=True)
    lng: Optional[float] = Field(default=None, index=True)

    # 1 bronze, 2 silver, 3 gold
    level: Optional[int] = None

    # administrative area names from SGIS: province / district / neighborhood
    sido_nm: Optional[str] = None
    sgg_nm: Optional[str] = None
    adm_nm: Optional[str] = None


class Setting(SQLModel, table=True):
    """
    Key/value feature toggles. Values are stored as strings; booleans as
    "true"/"false".
    """
    __tablename__ = "settings"
    id: Optional[int] = Field(default=None, primary_key=True)
    setting_name: str = Field(index=True, unique=True)
    setting_value: str
    description: Optional[str] = None
    created_at: dt.datetime = Field(default_factory=now_utc)
    updated_at: dt.datetime = Field(default_factory=now_utc)


class CalendarEntry(SQLModel, table=True):
    __tablename__ = "calendar"
    id: Optional[int] = Field(default=None, primary_key=True)
    date: dt.date = Field(index=True, unique=True)
    # claimed | unclaimed | None
    status: Optional[str] = None
