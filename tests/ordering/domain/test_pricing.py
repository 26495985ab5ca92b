"""Tests for money rounding, discount rules and cart totals derivation."""

from decimal import Decimal
from types import SimpleNamespace

import pytest
from ordering.cart.pricing import derive_totals, line_amount, subtotal_of
from ordering.offer.offer import OfferType, discount_for
from ordering.shared.money import apply_rate, percentage_of, to_money


def _line(unit_price, quantity, line_discount="0"):
    return SimpleNamespace(unit_price=Decimal(unit_price), quantity=quantity, line_discount=Decimal(line_discount))


class TestMoney:
    def test_rounds_half_up_to_cents(self):
        assert to_money("2.345") == Decimal("2.35")
        assert to_money("2.344") == Decimal("2.34")

    def test_float_input_does_not_leak_binary_error(self):
        assert to_money(0.1 + 0.2) == Decimal("0.30")

    def test_apply_rate(self):
        assert apply_rate(Decimal("200.00"), Decimal("0.10")) == Decimal("20.00")

    def test_percentage_of(self):
        assert percentage_of(Decimal("19.99"), 15) == Decimal("3.00")


class TestLineAmounts:
    def test_line_amount_is_price_times_quantity(self):
        assert line_amount(Decimal("12.50"), 3) == Decimal("37.50")

    def test_line_discount_is_subtracted(self):
        assert line_amount(Decimal("10.00"), 2, Decimal("5.00")) == Decimal("15.00")

    def test_line_amount_never_goes_negative(self):
        assert line_amount(Decimal("10.00"), 1, Decimal("25.00")) == Decimal("0.00")

    def test_subtotal_sums_lines(self):
        lines = [_line("100.00", 2), _line("9.99", 1)]
        assert subtotal_of(lines) == Decimal("209.99")


class TestDeriveTotals:
    def test_total_equation(self):
        totals = derive_totals([_line("100.00", 2)], Decimal("20.00"), Decimal("0.10"), Decimal("5.00"))

        assert totals.subtotal == Decimal("200.00")
        assert totals.tax == Decimal("20.00")
        assert totals.shipping == Decimal("5.00")
        assert totals.coupon_discount == Decimal("20.00")
        assert totals.total == Decimal("205.00")

    def test_total_is_clamped_at_zero(self):
        totals = derive_totals([_line("10.00", 1)], Decimal("50.00"), Decimal("0"), Decimal("0"))
        assert totals.total == Decimal("0.00")

    def test_empty_cart_totals_are_zero(self):
        totals = derive_totals([], Decimal("0"), Decimal("0.10"), Decimal("0"))
        assert totals.subtotal == totals.tax == totals.total == Decimal("0.00")


class TestDiscountRules:
    def test_percentage(self):
        assert discount_for(OfferType.PERCENTAGE.value, 10, Decimal("200.00")) == Decimal("20.00")

    def test_fixed_amount(self):
        assert discount_for(OfferType.FIXED_AMOUNT.value, 15, Decimal("200.00")) == Decimal("15.00")

    def test_fixed_amount_is_capped_at_subtotal(self):
        assert discount_for(OfferType.FIXED_AMOUNT.value, 50, Decimal("30.00")) == Decimal("30.00")

    def test_bogo_halves_the_subtotal(self):
        assert discount_for(OfferType.BOGO.value, 0, Decimal("80.00")) == Decimal("40.00")

    def test_free_shipping_gives_no_monetary_discount(self):
        assert discount_for(OfferType.FREE_SHIPPING.value, 0, Decimal("80.00")) == Decimal("0.00")

    def test_maximum_discount_caps_the_result(self):
        discount = discount_for(OfferType.PERCENTAGE.value, 50, Decimal("200.00"), maximum_discount=25)
        assert discount == Decimal("25.00")

    @pytest.mark.parametrize("subtotal", ["49.99", "0.00"])
    def test_below_minimum_purchase_gives_nothing(self, subtotal):
        discount = discount_for(OfferType.FIXED_AMOUNT.value, 10, Decimal(subtotal), minimum_purchase=50)
        assert discount == Decimal("0.00")

    def test_minimum_purchase_is_inclusive(self):
        discount = discount_for(OfferType.FIXED_AMOUNT.value, 10, Decimal("50.00"), minimum_purchase=50)
        assert discount == Decimal("10.00")
