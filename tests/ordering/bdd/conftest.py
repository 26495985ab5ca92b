"""Shared BDD fixtures and step definitions for the Ordering domain."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from ordering.cart.cart import Cart
from ordering.cart.events import (
    CartCouponApplied,
    CartCouponRemoved,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
)
from ordering.offer.offer import Offer
from ordering.order.events import (
    OrderCancelled,
    OrderCompleted,
    OrderPlaced,
    OrderProcessing,
    OrderRefunded,
    RefundRequested,
)
from ordering.order.order import Address, Order, OrderItem, OrderPricing, PaymentMethod
from ordering.product.product import Product
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

# Map event name strings to classes for dynamic lookup in Then steps
_ORDER_EVENT_CLASSES = {
    "OrderPlaced": OrderPlaced,
    "OrderProcessing": OrderProcessing,
    "OrderCompleted": OrderCompleted,
    "OrderCancelled": OrderCancelled,
    "RefundRequested": RefundRequested,
    "OrderRefunded": OrderRefunded,
}

_CART_EVENT_CLASSES = {
    "CartItemAdded": CartItemAdded,
    "CartQuantityUpdated": CartQuantityUpdated,
    "CartItemRemoved": CartItemRemoved,
    "CartCouponApplied": CartCouponApplied,
    "CartCouponRemoved": CartCouponRemoved,
}


# ---------------------------------------------------------------------------
# Scalar fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def customer_id():
    return "cust-001"


@pytest.fixture()
def error():
    """Container for the validation error a When step captured."""
    return {"exc": None}


@pytest.fixture()
def offers():
    """Offers known to the scenario, keyed by code."""
    return {}


@pytest.fixture()
def catalog():
    """Products known to the scenario, in creation order."""
    return []


# ---------------------------------------------------------------------------
# Given steps: Cart
# ---------------------------------------------------------------------------
@given(
    parsers.cfparse("a cart holding {quantity:d} units priced at {price}"),
    target_fixture="cart",
)
def cart_holding_units(customer_id, catalog, quantity, price):
    product = Product.create(name="Widget", price=price, quantity=100)
    catalog.append(product)

    cart = Cart.create(owner_id=customer_id)
    cart.add_item(product, quantity)
    cart._events.clear()
    return cart


@given(parsers.cfparse('a "{offer_type}" offer "{code}" worth {value:d}'))
def active_offer(offers, offer_type, code, value):
    now = datetime.now(UTC)
    offers[code] = Offer.create(
        name=code,
        code=code,
        offer_type=offer_type,
        value=value,
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=1),
    )


@given(parsers.cfparse('a "{offer_type}" offer "{code}" worth {value:d} with a minimum purchase of {minimum}'))
def offer_with_minimum(offers, offer_type, code, value, minimum):
    now = datetime.now(UTC)
    offers[code] = Offer.create(
        name=code,
        code=code,
        offer_type=offer_type,
        value=value,
        minimum_purchase=minimum,
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=1),
    )


@given(parsers.cfparse('an expired "{offer_type}" offer "{code}" worth {value:d}'))
def expired_offer(offers, offer_type, code, value):
    now = datetime.now(UTC)
    offers[code] = Offer.create(
        name=code,
        code=code,
        offer_type=offer_type,
        value=value,
        start_date=now - timedelta(days=30),
        end_date=now - timedelta(days=1),
    )


@given(parsers.cfparse('the cart owner has already redeemed "{code}"'))
def owner_redeemed(offers, customer_id, code):
    offers[code].record_usage(customer_id, "earlier-order")


@given(parsers.cfparse('the coupon "{code}" is on the cart'), target_fixture="cart")
def coupon_on_cart(cart, offers, code):
    cart.apply_coupon(offers[code])
    cart._events.clear()
    return cart


# ---------------------------------------------------------------------------
# Given steps: Order
# ---------------------------------------------------------------------------
@given(parsers.cfparse("a pending order totalling {total}"), target_fixture="order")
def pending_order(customer_id, total):
    total = Decimal(total)
    order = Order.create(
        order_number="ORD-260315-000001",
        customer_id=customer_id,
        items=[OrderItem(product_id="prod-001", name="Widget", unit_price=total, quantity=1)],
        shipping_address=Address(
            full_name="Ada Lovelace",
            street="12 St James's Square",
            city="London",
            country="GB",
            zip_code="SW1Y 4JH",
        ),
        billing_address=None,
        payment_method=PaymentMethod.TRANSFER.value,
        pricing=OrderPricing(subtotal=total, tax=0, shipping=0, discount=0, total=total),
    )
    order._events.clear()
    return order


@given("the order is processing", target_fixture="order")
def processing_order(order):
    order.mark_processing(updated_by="admin-001")
    order._events.clear()
    return order


@given("the order was completed", target_fixture="order")
def completed_order(order):
    if order.status == "Pending":
        order.mark_processing(updated_by="admin-001")
    order.complete(updated_by="admin-001")
    order._events.clear()
    return order


# ---------------------------------------------------------------------------
# Then steps: Order
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert order.status == status


@then("the order action fails with a validation error")
def order_action_fails(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse("an {event_type} order event is raised"))
@then(parsers.cfparse("a {event_type} order event is raised"))
def order_event_raised(order, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in order._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in order._events]}"


# ---------------------------------------------------------------------------
# Then steps: Cart
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the cart {figure} is {amount}"))
def cart_figure_is(cart, figure, amount):
    attribute = figure.replace(" ", "_")
    assert getattr(cart, attribute) == Decimal(amount)


@then("the cart action fails with a validation error")
def cart_action_fails(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse("a {event_type} cart event is raised"))
def cart_event_raised(cart, event_type):
    event_cls = _CART_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in cart._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in cart._events]}"
