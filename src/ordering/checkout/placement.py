"""Order placement — command and handler.

PlaceOrder turns the customer's cart into a pending order in one unit of
work: it re-validates every product and the applied coupon, snapshots the
lines and the cart's pricing, allocates an order number, persists the order
and claims the cart for it. Nothing outside these three aggregates (order,
cart, order sequence) is touched here; stock and coupon usage are booked by
the checkout saga once the order exists.
"""

import json
from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.domain import ordering
from ordering.offer.offer import Offer
from ordering.order.numbering import allocate_order_number
from ordering.order.order import (
    Address,
    Order,
    OrderItem,
    OrderPricing,
    PaymentDetails,
    PaymentMethod,
)
from ordering.product.product import Product
from ordering.shared.errors import CheckoutInProgress, EmptyCart, InvalidCoupon, ProductUnavailable
from ordering.shared.settings import pricing_settings

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    shipping_address = Text(required=True)  # JSON: address dict
    billing_address = Text()  # JSON: address dict, defaults to shipping
    payment_method = String(required=True, choices=PaymentMethod)
    payment_details = Text()  # JSON: {transaction_id, payment_intent_id}
    customer_note = Text()


def _from_json(value):
    if not value:
        return None
    return json.loads(value) if isinstance(value, str) else value


def _sellable_product(line):
    product = current_domain.repository_for(Product).get_or_none(line.product_id)
    if product is None:
        raise ProductUnavailable(str(line.product_id), "no longer exists")
    if not product.is_active:
        raise ProductUnavailable(str(product.id), "is no longer available")
    if not product.is_in_stock() or not product.can_supply(line.quantity):
        raise ProductUnavailable(str(product.id), f"does not have {line.quantity} units in stock")
    return product


def _snapshot_item(line, product):
    return OrderItem(
        product_id=str(product.id),
        name=product.name,
        unit_price=line.unit_price,
        quantity=line.quantity,
        line_discount=line.line_discount,
        digital_content=None if product.is_physical else product.digital_content,
    )


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        now = datetime.now(UTC)
        cart_repo = current_domain.repository_for(Cart)

        cart = cart_repo.for_owner(command.customer_id)
        if cart is None or cart.is_empty:
            raise EmptyCart(command.customer_id)
        if cart.has_pending_checkout(now):
            raise CheckoutInProgress(str(cart.id), str(cart.checkout_order_id))

        # All-or-nothing: every line must be sellable before anything is written
        items = [_snapshot_item(line, _sellable_product(line)) for line in cart.ordered_lines]

        offer_id = None
        if cart.coupon:
            offer = current_domain.repository_for(Offer).get_or_none(cart.coupon.offer_id)
            if offer is None:
                raise InvalidCoupon(cart.coupon.code)
            offer.ensure_usable_by(command.customer_id, now)
            offer_id = str(offer.id)

        settings = pricing_settings()
        shipping_address = Address(**_from_json(command.shipping_address))
        billing_data = _from_json(command.billing_address)
        payment_data = _from_json(command.payment_details) or {}

        order = Order.create(
            order_number=allocate_order_number(now),
            customer_id=command.customer_id,
            items=items,
            shipping_address=shipping_address,
            billing_address=Address(**billing_data) if billing_data else None,
            payment_method=command.payment_method,
            payment_details=PaymentDetails(
                transaction_id=payment_data.get("transaction_id"),
                payment_intent_id=payment_data.get("payment_intent_id"),
            ),
            pricing=OrderPricing(
                subtotal=cart.subtotal,
                tax=cart.tax,
                shipping=cart.shipping,
                discount=cart.coupon_discount,
                total=cart.total,
                currency=settings.currency,
            ),
            coupon_code=cart.coupon_code,
            offer_id=offer_id,
            cart_id=str(cart.id),
            customer_note=command.customer_note,
        )
        current_domain.repository_for(Order).add(order)

        cart.begin_checkout(str(order.id), now)
        cart_repo.add(cart)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            customer_id=str(command.customer_id),
            total=str(order.pricing.total),
        )
        return str(order.id)
