"""Tests for the owner bulk-discount calculation."""

from decimal import Decimal

from single_safety.services.pricing import (
    DEFAULT_POLICY,
    LineItem,
    PricingPolicy,
    calculate_application_total,
    line_items_from_rows,
    total_quantity,
)

PACKAGE = "single_package"


def package(qty, price=100000):
    return LineItem(product_id=PACKAGE, unit_price=price, quantity=qty)


def other(qty, price=5000):
    return LineItem(product_id="door_sensor", unit_price=price, quantity=qty)


class TestCalculateApplicationTotal:
    def test_empty_line_items(self):
        """No line items means every amount is zero and no discount."""
        totals = calculate_application_total("owner", [])
        assert totals.original_amount == 0
        assert totals.discount_amount == 0
        assert totals.final_amount == 0
        assert totals.package_quantity == 0
        assert totals.has_discount is False

    def test_owner_with_three_packages(self):
        """Owner buying 3 packages gets 30% off the package lines only."""
        totals = calculate_application_total("owner", [package(3), other(2)])
        assert totals.original_amount == 310000
        assert totals.discount_amount == 90000
        assert totals.final_amount == 220000
        assert totals.package_quantity == 3
        assert totals.has_discount is True

    def test_tenant_never_discounted(self):
        totals = calculate_application_total("tenant", [package(3), other(2)])
        assert totals.discount_amount == 0
        assert totals.final_amount == 310000
        assert totals.has_discount is False

    def test_unknown_or_missing_applicant_type(self):
        for applicant_type in (None, "", "OWNER", "landlord"):
            totals = calculate_application_total(applicant_type, [package(10)])
            assert totals.discount_amount == 0

    def test_owner_below_threshold(self):
        totals = calculate_application_total("owner", [package(2), other(10)])
        assert totals.discount_amount == 0
        assert totals.final_amount == 250000

    def test_package_quantity_summed_across_lines(self):
        """Two package lines of 1 and 2 units reach the threshold together."""
        totals = calculate_application_total("owner", [package(1), package(2)])
        assert totals.package_quantity == 3
        assert totals.discount_amount == 90000

    def test_discount_truncated_to_whole_currency(self):
        totals = calculate_application_total("owner", [package(3, price=33333)])
        # 99999 * 0.3 = 29999.7
        assert totals.discount_amount == 29999
        assert totals.final_amount == 99999 - 29999

    def test_final_equals_original_minus_discount(self):
        for qty in range(0, 8):
            totals = calculate_application_total("owner", [package(qty, price=12345), other(qty, price=777)])
            assert totals.final_amount == totals.original_amount - totals.discount_amount
            assert totals.discount_amount >= 0

    def test_missing_price_or_quantity_counts_as_zero(self):
        items = [
            LineItem(product_id=PACKAGE, unit_price=None, quantity=5),
            LineItem(product_id=PACKAGE, unit_price=100000, quantity=None),
            LineItem(product_id=None, unit_price=None, quantity=None),
            other(1),
        ]
        totals = calculate_application_total("owner", items)
        assert totals.original_amount == 5000
        assert totals.package_quantity == 0
        assert totals.discount_amount == 0

    def test_negative_quantity_is_plain_arithmetic(self):
        totals = calculate_application_total("tenant", [other(3), other(-1)])
        assert totals.original_amount == 10000

    def test_idempotent(self):
        items = [package(4), other(1)]
        assert calculate_application_total("owner", items) == calculate_application_total("owner", items)

    def test_custom_policy(self):
        policy = PricingPolicy(package_product_id="bundle", discount_rate=Decimal("0.10"), min_package_quantity=2)
        items = [LineItem("bundle", 1000, 2)]
        assert calculate_application_total("owner", items, policy).discount_amount == 200
        # the default SKU id means nothing under this policy
        assert calculate_application_total("owner", [package(5)], policy).discount_amount == 0

    def test_default_policy_values(self):
        assert DEFAULT_POLICY.package_product_id == "single_package"
        assert DEFAULT_POLICY.discount_rate == Decimal("0.30")
        assert DEFAULT_POLICY.min_package_quantity == 3


class TestHelpers:
    def test_total_quantity_treats_none_as_zero(self):
        assert total_quantity([package(2), LineItem(PACKAGE, 1, None), other(3)]) == 5

    def test_line_items_from_rows(self):
        class Prod:
            price = 4200

        class Row:
            def __init__(self, product_id, product, quantity):
                self.product_id = product_id
                self.product = product
                self.quantity = quantity

        items = line_items_from_rows([Row("a", Prod(), 2), Row("gone", None, 3)])
        assert items == [LineItem("a", 4200, 2), LineItem("gone", None, 3)]
