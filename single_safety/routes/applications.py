# single_safety/routes/applications.py
from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator
from sqlmodel import Session

from single_safety.core.db import get_session
from single_safety.core.deps import get_pricing_policy
from single_safety.core.time_utils import as_utc_aware
from single_safety.services import applications as applications_service
from single_safety.services.applications import ApplicationWithTotals
from single_safety.services.pricing import PricingPolicy

router = APIRouter(prefix="/applications")

ApplicantType = Literal["tenant", "owner"]
ApplicationStatus = Literal["pending", "approved", "rejected", "completed"]


class ApplicationCreate(BaseModel):
    building_name: str = Field(..., min_length=1)
    contact: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    detail_address: Optional[str] = None
    installation_date: date
    applicant_type: ApplicantType = "tenant"
    products: dict[str, int] = Field(
        default_factory=dict,
        description="product_id -> quantity",
    )


class ApplicationUpdate(BaseModel):
    building_name: Optional[str] = Field(default=None, min_length=1)
    contact: Optional[str] = Field(default=None, min_length=1)
    address: Optional[str] = Field(default=None, min_length=1)
    detail_address: Optional[str] = None
    installation_date: Optional[date] = None
    applicant_type: Optional[ApplicantType] = None

    @field_validator("building_name", "contact", "address", "installation_date", "applicant_type")
    @classmethod
    def _not_null(cls, value):
        # omitted means unchanged; explicit null is not allowed for these columns
        if value is None:
            raise ValueError("must not be null")
        return value


class ProductsReplace(BaseModel):
    products: dict[str, int]


class StatusUpdate(BaseModel):
    status: ApplicationStatus


class LineItemOut(BaseModel):
    id: int
    product_id: Optional[str]
    product_name: Optional[str]
    unit_price: Optional[int]
    quantity: Optional[int]


class ApplicationOut(BaseModel):
    id: int
    building_name: str
    contact: str
    address: str
    detail_address: Optional[str]
    installation_date: date
    applicant_type: str
    status: str
    created_at: str

    products: list[LineItemOut]

    # derived, recomputed on each read
    total_amount: int
    original_amount: int
    discount_amount: int
    has_discount: bool
    total_quantity: int


class ApplicationStats(BaseModel):
    total_applications: int
    monthly_applications: int
    pending_applications: int
    total_revenue: int


def _validate_quantities(products: dict[str, int]) -> None:
    if any(q < 1 for q in products.values()):
        raise HTTPException(status_code=400, detail="Quantities must be >= 1")


def to_out(view: ApplicationWithTotals) -> ApplicationOut:
    a = view.application
    return ApplicationOut(
        id=a.id,
        building_name=a.building_name,
        contact=a.contact,
        address=a.address,
        detail_address=a.detail_address,
        installation_date=a.installation_date,
        applicant_type=a.applicant_type or "tenant",
        status=a.status,
        created_at=as_utc_aware(a.created_at).isoformat(),
        products=[
            LineItemOut(
                id=ap.id,
                product_id=ap.product_id,
                product_name=ap.product.name if ap.product else None,
                unit_price=ap.product.price if ap.product else None,
                quantity=ap.quantity,
            )
            for ap in a.application_products
        ],
        total_amount=view.totals.final_amount,
        original_amount=view.totals.original_amount,
        discount_amount=view.totals.discount_amount,
        has_discount=view.totals.has_discount,
        total_quantity=view.total_quantity,
    )


@router.get("", response_model=list[ApplicationOut])
def list_applications(
    q: Optional[str] = None,
    session: Session = Depends(get_session),
    policy: PricingPolicy = Depends(get_pricing_policy),
):
    if q and q.strip():
        views = applications_service.search_applications(session, q, policy)
    else:
        views = applications_service.list_applications(session, policy)
    return [to_out(v) for v in views]


@router.get("/stats", response_model=ApplicationStats)
def application_stats(
    session: Session = Depends(get_session),
    policy: PricingPolicy = Depends(get_pricing_policy),
):
    return applications_service.application_stats(session, policy)


@router.get("/{application_id}", response_model=ApplicationOut)
def get_application(
    application_id: int,
    session: Session = Depends(get_session),
    policy: PricingPolicy = Depends(get_pricing_policy),
):
    view = applications_service.get_application(session, application_id, policy)
    if not view:
        raise HTTPException(status_code=404, detail="Application not found")
    return to_out(view)


@router.post("", response_model=ApplicationOut, status_code=201)
def create_application(
    req: ApplicationCreate,
    session: Session = Depends(get_session),
    policy: PricingPolicy = Depends(get_pricing_policy),
):
    _validate_quantities(req.products)
    data = req.model_dump(exclude={"products"})
    try:
        view = applications_service.create_application(session, data, req.products, policy)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return to_out(view)


@router.patch("/{application_id}", response_model=ApplicationOut)
def update_application(
    application_id: int,
    req: ApplicationUpdate,
    session: Session = Depends(get_session),
    policy: PricingPolicy = Depends(get_pricing_policy),
):
    if not applications_service.update_application(session, application_id, req.model_dump(exclude_unset=True)):
        raise HTTPException(status_code=404, detail="Application not found")
    return to_out(applications_service.get_application(session, application_id, policy))


@router.put("/{application_id}/products", response_model=ApplicationOut)
def replace_products(
    application_id: int,
    req: ProductsReplace,
    session: Session = Depends(get_session),
    policy: PricingPolicy = Depends(get_pricing_policy),
):
    _validate_quantities(req.products)
    try:
        found = applications_service.replace_application_products(session, application_id, req.products)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not found:
        raise HTTPException(status_code=404, detail="Application not found")
    return to_out(applications_service.get_application(session, application_id, policy))


@router.post("/{application_id}/status", response_model=ApplicationOut)
def set_status(
    application_id: int,
    req: StatusUpdate,
    session: Session = Depends(get_session),
    policy: PricingPolicy = Depends(get_pricing_policy),
):
    if not applications_service.update_application_status(session, application_id, req.status):
        raise HTTPException(status_code=404, detail="Application not found")
    return to_out(applications_service.get_application(session, application_id, policy))


@router.delete("/{application_id}")
def delete_application(application_id: int, session: Session = Depends(get_session)):
    if not applications_service.delete_application(session, application_id):
        raise HTTPException(status_code=404, detail="Application not found")
    return {"status": "deleted"}
