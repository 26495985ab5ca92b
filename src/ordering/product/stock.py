"""Stock movements — commands and handler.

Each movement loads, changes and saves a single Product inside the handler's
unit of work. A concurrent movement on the same product fails the version
check on commit and is retried by the handler against fresh state, so stock
is never decremented from a stale read.
"""

from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.product.product import Product
from ordering.shared.errors import NotFound


@ordering.command(part_of="Product")
class DeductStock:
    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="Product")
class RestoreStock:
    product_id = Identifier(required=True)
    order_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


def _load_product(product_id):
    product = current_domain.repository_for(Product).get_or_none(product_id)
    if product is None:
        raise NotFound("Product", product_id)
    return product


@ordering.command_handler(part_of=Product)
class StockHandler:
    @handle(DeductStock)
    def deduct_stock(self, command):
        product = _load_product(command.product_id)
        product.decrease_stock(command.quantity, command.order_id)
        current_domain.repository_for(Product).add(product)
        return product.quantity

    @handle(RestoreStock)
    def restore_stock(self, command):
        product = _load_product(command.product_id)
        product.restore_stock(command.quantity, command.order_id)
        current_domain.repository_for(Product).add(product)
        return product.quantity
