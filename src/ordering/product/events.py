"""Domain events for the Product aggregate."""

from protean.fields import Identifier, Integer, String

from ordering.domain import ordering
from ordering.shared.money import Amount


@ordering.event(part_of="Product")
class ProductRegistered:
    """A product became available to the ordering context."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True)
    price = Amount(required=True)
    quantity = Integer(required=True)


@ordering.event(part_of="Product")
class ProductDeactivated:
    __version__ = 1

    product_id = Identifier(required=True)


@ordering.event(part_of="Product")
class StockDeducted:
    """Stock was taken for an order at checkout."""

    __version__ = 1

    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    remaining = Integer(required=True)


@ordering.event(part_of="Product")
class StockRestored:
    """Stock was returned after an order was cancelled or aborted."""

    __version__ = 1

    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True)
    remaining = Integer(required=True)
