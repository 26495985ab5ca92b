"""Domain events for the Order aggregate.

All events are versioned, immutable facts about an order's lifecycle. They
are persisted to the event store when the unit of work that raised them
commits.
"""

from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from ordering.domain import ordering
from ordering.shared.money import Amount


@ordering.event(part_of="Order")
class OrderPlaced:
    """A cart was checked out into a new pending order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, name, unit_price, quantity}
    subtotal = Amount(required=True)
    tax = Amount(required=True)
    shipping = Amount(required=True)
    discount = Amount(required=True)
    total = Amount(required=True)
    coupon_code = String()
    payment_method = String(required=True)
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderProcessing:
    """An admin started working on the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    updated_by = Identifier()
    started_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCompleted:
    """The order was fulfilled and paid."""

    __version__ = 1

    order_id = Identifier(required=True)
    updated_by = Identifier()
    paid_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled before completion."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    reason = String(required=True)
    cancelled_by = String(required=True)
    restocked = Boolean(default=True)
    cancelled_at = DateTime(required=True)


@ordering.event(part_of="Order")
class RefundRequested:
    """The customer asked for their money back on a completed order."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    reason = String()
    requested_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderRefunded:
    """An admin paid out a requested refund."""

    __version__ = 1

    order_id = Identifier(required=True)
    amount = Amount(required=True)
    processed_by = Identifier(required=True)
    refunded_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPricingRecalculated:
    __version__ = 1

    order_id = Identifier(required=True)
    subtotal = Amount(required=True)
    total = Amount(required=True)
    item_count = Integer(required=True)
