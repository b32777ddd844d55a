"""
Tests for money handling and checkout pricing.

Covers cent rounding, the strict free shipping threshold, subtotal
calculation and the declared total reconciliation of CheckoutPricing.
"""

from decimal import Decimal

import pytest

from ecostyle.services.payments.pricing import (
    CheckoutPricing,
    calculate_shipping,
    calculate_subtotal,
    to_money,
    totals_match,
)


# ============================================================================
# Money Conversion
# ============================================================================


class TestToMoney:
    """Test suite for to_money."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (Decimal("10"), Decimal("10.00")),
            (29.99, Decimal("29.99")),
            ("0.005", Decimal("0.01")),
            ("2.675", Decimal("2.68")),
            (7, Decimal("7.00")),
        ],
    )
    def test_rounds_half_up_to_cents(self, value, expected):
        assert to_money(value) == expected

    def test_float_keeps_its_decimal_form(self):
        # 0.1 + 0.2 as binary floats is 0.30000000000000004
        assert to_money(0.1 + 0.2) == Decimal("0.30")

    @pytest.mark.parametrize("value", ["abc", "NaN", "Infinity", True])
    def test_rejects_non_numeric_values(self, value):
        with pytest.raises(ValueError, match="Invalid monetary amount"):
            to_money(value)


# ============================================================================
# Subtotal and Shipping
# ============================================================================


class TestSubtotal:
    """Test suite for calculate_subtotal."""

    def test_sums_price_times_quantity(self):
        items = [
            {"unit_price": "29.99", "quantity": 2},
            {"unit_price": Decimal("15.50"), "quantity": 1},
        ]

        assert calculate_subtotal(items) == Decimal("75.48")

    def test_accepts_objects_with_attributes(self, order_factory):
        order = order_factory(
            items=[
                {"name": "Tee", "unit_price": "12.34", "quantity": 3},
                {"name": "Cap", "unit_price": "5.00", "quantity": 1},
            ]
        )

        assert calculate_subtotal(order.items) == Decimal("42.02")

    def test_empty_items_give_zero(self):
        assert calculate_subtotal([]) == Decimal("0.00")


class TestShipping:
    """Test suite for the free shipping threshold."""

    @pytest.mark.parametrize(
        "subtotal,expected",
        [
            ("0.01", Decimal("10.00")),
            ("49.99", Decimal("10.00")),
            ("50.00", Decimal("10.00")),
            ("50.01", Decimal("0.00")),
            ("250.00", Decimal("0.00")),
        ],
    )
    def test_free_shipping_only_strictly_above_threshold(self, subtotal, expected):
        assert calculate_shipping(subtotal) == expected

    def test_custom_policy(self):
        pricing = CheckoutPricing(
            free_shipping_threshold="100.00",
            flat_shipping_rate="4.95",
        )

        assert pricing.shipping_for("99.99") == Decimal("4.95")
        assert pricing.shipping_for("100.01") == Decimal("0.00")


class TestTotalsMatch:
    @pytest.mark.parametrize(
        "first,second,expected",
        [
            ("39.99", "39.99", True),
            ("39.99", "40.00", True),
            ("39.99", "39.98", True),
            ("39.99", "40.01", False),
            ("100.00", "0.00", False),
        ],
    )
    def test_one_cent_tolerance(self, first, second, expected):
        assert totals_match(first, second) is expected


# ============================================================================
# Checkout Quote
# ============================================================================


class TestCheckoutQuote:
    """Test suite for CheckoutPricing.quote."""

    @pytest.fixture
    def pricing(self):
        return CheckoutPricing()

    def test_quote_below_threshold_adds_shipping(self, pricing):
        quote = pricing.quote([{"unit_price": "20.00", "quantity": 2}])

        assert quote.subtotal == Decimal("40.00")
        assert quote.shipping == Decimal("10.00")
        assert quote.total == Decimal("50.00")
        assert quote.adjusted is False
        assert quote.declared_total is None

    def test_quote_above_threshold_ships_free(self, pricing):
        quote = pricing.quote([{"unit_price": "25.01", "quantity": 2}])

        assert quote.subtotal == Decimal("50.02")
        assert quote.shipping == Decimal("0.00")
        assert quote.total == Decimal("50.02")

    def test_total_is_subtotal_plus_shipping(self, pricing):
        quote = pricing.quote(
            [
                {"unit_price": "9.99", "quantity": 3},
                {"unit_price": "0.50", "quantity": 1},
            ]
        )

        assert quote.total == quote.subtotal + quote.shipping

    def test_matching_declared_total_is_not_adjusted(self, pricing):
        quote = pricing.quote(
            [{"unit_price": "20.00", "quantity": 2}],
            declared_total="50.01",
        )

        assert quote.adjusted is False
        assert quote.total == Decimal("50.00")
        assert quote.declared_total == Decimal("50.01")

    def test_mismatched_declared_total_is_replaced(self, pricing):
        quote = pricing.quote(
            [{"unit_price": "20.00", "quantity": 2}],
            declared_total="1.00",
        )

        assert quote.adjusted is True
        assert quote.total == Decimal("50.00")
        assert quote.declared_total == Decimal("1.00")
