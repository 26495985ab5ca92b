"""Tests for applying coupons to a cart and keeping the discount current."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from ordering.cart.cart import Cart
from ordering.cart.events import CartCouponApplied, CartCouponRemoved
from ordering.offer.offer import Offer, OfferType
from ordering.product.product import Product
from ordering.shared.errors import CouponAlreadyUsed, CouponExpired, InvalidCoupon


def _make_offer(offer_type=OfferType.PERCENTAGE.value, value=10, **overrides):
    now = datetime.now(UTC)
    defaults = {
        "name": "Promo",
        "code": "SAVE10",
        "offer_type": offer_type,
        "value": value,
        "start_date": now - timedelta(days=1),
        "end_date": now + timedelta(days=1),
    }
    defaults.update(overrides)
    return Offer.create(**defaults)


def _cart_with_items(quantity=2, price="100.00"):
    cart = Cart.create(owner_id="user-001")
    product = Product.create(name="Widget", price=price, quantity=10)
    cart.add_item(product, quantity)
    return cart, product


class TestApplyCoupon:
    def test_percentage_coupon(self):
        cart, _ = _cart_with_items()
        assert cart.total == Decimal("220.00")

        cart.apply_coupon(_make_offer())

        assert cart.coupon_code == "SAVE10"
        assert cart.coupon_discount == Decimal("20.00")
        assert cart.total == Decimal("200.00")

    def test_apply_coupon_raises_event(self):
        cart, _ = _cart_with_items()
        cart.apply_coupon(_make_offer())

        event = cart._events[-1]
        assert isinstance(event, CartCouponApplied)
        assert event.coupon_code == "SAVE10"
        assert event.coupon_discount == Decimal("20.00")

    def test_fixed_amount_is_capped_at_subtotal(self):
        cart, _ = _cart_with_items(quantity=1, price="30.00")
        cart.apply_coupon(_make_offer(OfferType.FIXED_AMOUNT.value, 50))

        assert cart.coupon_discount == Decimal("30.00")
        assert cart.total == Decimal("3.00")  # tax on the pre-discount subtotal remains

    def test_maximum_discount_cap(self):
        cart, _ = _cart_with_items()
        cart.apply_coupon(_make_offer(value=50, maximum_discount=25))
        assert cart.coupon_discount == Decimal("25.00")

    def test_new_coupon_replaces_the_old_one(self):
        cart, _ = _cart_with_items()
        cart.apply_coupon(_make_offer())
        cart.apply_coupon(_make_offer(OfferType.FIXED_AMOUNT.value, 5, code="FIVE"))

        assert cart.coupon_code == "FIVE"
        assert cart.coupon_discount == Decimal("5.00")

    def test_expired_offer_is_rejected(self):
        cart, _ = _cart_with_items()
        now = datetime.now(UTC)
        offer = _make_offer(start_date=now - timedelta(days=10), end_date=now - timedelta(days=5))

        with pytest.raises(CouponExpired):
            cart.apply_coupon(offer)
        assert cart.coupon is None

    def test_inactive_offer_is_rejected(self):
        cart, _ = _cart_with_items()
        offer = _make_offer()
        offer.deactivate()
        with pytest.raises(InvalidCoupon):
            cart.apply_coupon(offer)

    def test_offer_already_used_by_owner_is_rejected(self):
        cart, _ = _cart_with_items()
        offer = _make_offer()
        offer.record_usage("user-001", "order-1")

        with pytest.raises(CouponAlreadyUsed):
            cart.apply_coupon(offer)


class TestCouponRepricing:
    def test_discount_follows_line_changes(self):
        cart, product = _cart_with_items()
        cart.apply_coupon(_make_offer())

        cart.update_quantity(product.id, 5)

        assert cart.subtotal == Decimal("500.00")
        assert cart.coupon_discount == Decimal("50.00")
        assert cart.total == Decimal("500.00")

    def test_dropping_below_minimum_purchase_zeroes_the_discount(self):
        cart, product = _cart_with_items()
        cart.apply_coupon(_make_offer(OfferType.FIXED_AMOUNT.value, 20, minimum_purchase=150))
        assert cart.coupon_discount == Decimal("20.00")

        cart.update_quantity(product.id, 1)

        assert cart.coupon_code == "SAVE10"
        assert cart.coupon_discount == Decimal("0.00")

    def test_bogo_halves_the_subtotal(self):
        cart, _ = _cart_with_items()
        cart.apply_coupon(_make_offer(OfferType.BOGO.value, 0))
        assert cart.coupon_discount == Decimal("100.00")
        assert cart.total == Decimal("120.00")


class TestFreeShipping:
    def test_free_shipping_zeroes_the_shipping_line(self, shipping_fee):
        cart, _ = _cart_with_items()
        assert cart.shipping == Decimal("5.00")

        cart.apply_coupon(_make_offer(OfferType.FREE_SHIPPING.value, 0, code="SHIPFREE"))

        assert cart.shipping == Decimal("0.00")
        assert cart.coupon_discount == Decimal("0.00")
        assert cart.total == Decimal("220.00")

    def test_free_shipping_needs_the_minimum_purchase(self, shipping_fee):
        cart, product = _cart_with_items(quantity=1, price="10.00")
        offer = _make_offer(OfferType.FREE_SHIPPING.value, 0, code="SHIP50", minimum_purchase="50.00")

        cart.apply_coupon(offer)

        assert cart.coupon_code == "SHIP50"
        assert cart.shipping == Decimal("5.00")
        assert cart.total == Decimal("16.00")

        cart.update_quantity(product.id, 5)

        assert cart.subtotal == Decimal("50.00")
        assert cart.shipping == Decimal("0.00")
        assert cart.total == Decimal("55.00")

    def test_removing_free_shipping_restores_the_fee(self, shipping_fee):
        cart, _ = _cart_with_items()
        cart.apply_coupon(_make_offer(OfferType.FREE_SHIPPING.value, 0, code="SHIPFREE"))

        cart.remove_coupon()

        assert cart.shipping == Decimal("5.00")
        assert cart.total == Decimal("225.00")


class TestRemoveCoupon:
    def test_remove_coupon_restores_total(self):
        cart, _ = _cart_with_items()
        cart.apply_coupon(_make_offer())

        cart.remove_coupon()

        assert cart.coupon is None
        assert cart.coupon_discount == Decimal("0.00")
        assert cart.total == Decimal("220.00")
        assert isinstance(cart._events[-1], CartCouponRemoved)

    def test_remove_without_coupon_is_a_no_op(self):
        cart, _ = _cart_with_items()
        cart._events.clear()
        cart.remove_coupon()
        assert cart._events == []
