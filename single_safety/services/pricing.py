# single_safety/services/pricing.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

SINGLE_PACKAGE_PRODUCT_ID = "single_package"

APPLICANT_OWNER = "owner"


@dataclass(frozen=True)
class PricingPolicy:
    package_product_id: str = SINGLE_PACKAGE_PRODUCT_ID
    discount_rate: Decimal = Decimal("0.30")
    min_package_quantity: int = 3
    eligible_applicant_type: str = APPLICANT_OWNER


DEFAULT_POLICY = PricingPolicy()


@dataclass(frozen=True)
class LineItem:
    product_id: Optional[str]
    unit_price: Optional[int]
    quantity: Optional[int]


@dataclass(frozen=True)
class ApplicationTotals:
    original_amount: int
    discount_amount: int
    final_amount: int
    package_quantity: int

    @property
    def has_discount(self) -> bool:
        return self.discount_amount > 0


def calculate_application_total(
    applicant_type: Optional[str],
    items: Iterable[LineItem],
    policy: PricingPolicy = DEFAULT_POLICY,
) -> ApplicationTotals:
    """
    Owners buying at least `min_package_quantity` units of the package SKU get
    `discount_rate` off the package lines only:
      original = sum(price * qty)
      discount = package_amount * rate   (owner and package_qty >= threshold)
      final    = original - discount

    Items without a resolved price or with no quantity count as zero.
    The discount is truncated to whole currency units.
    """
    original_amount = 0
    package_quantity = 0
    package_amount = 0

    for item in items:
        if item.unit_price is None or not item.quantity:
            continue
        item_total = item.unit_price * item.quantity
        original_amount += item_total
        if item.product_id == policy.package_product_id:
            package_quantity += item.quantity
            package_amount += item_total

    discount_amount = 0
    if applicant_type == policy.eligible_applicant_type and package_quantity >= policy.min_package_quantity:
        discount_amount = int(Decimal(package_amount) * policy.discount_rate)

    return ApplicationTotals(
        original_amount=original_amount,
        discount_amount=discount_amount,
        final_amount=original_amount - discount_amount,
        package_quantity=package_quantity,
    )


def total_quantity(items: Iterable[LineItem]) -> int:
    return sum(item.quantity or 0 for item in items)


def line_items_from_rows(rows) -> list[LineItem]:
    # rows are ApplicationProduct instances with `product` loaded (or None)
    return [
        LineItem(
            product_id=row.product_id,
            unit_price=row.product.price if row.product is not None else None,
            quantity=row.quantity,
        )
        for row in rows
    ]
