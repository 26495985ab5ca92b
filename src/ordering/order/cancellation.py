"""Order cancellation — commands and handler.

CancelOrder is the customer- or admin-initiated cancel: the order moves to
CANCELLED and every item's quantity goes back to the catalog in the same
unit of work. AbortOrder is used only by the checkout saga after a failed
post-commit step; it cancels without touching stock because the saga's own
compensations already put back whatever was deducted.
"""

import structlog
from protean import handle
from protean.fields import Boolean, Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.product.product import Product
from ordering.shared.errors import NotFound, Unauthorized

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    reason = String(max_length=500)
    is_admin = Boolean(default=False)


@ordering.command(part_of="Order")
class AbortOrder:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)


def load_order(order_id):
    order = current_domain.repository_for(Order).get_or_none(order_id)
    if order is None:
        raise NotFound("Order", order_id)
    return order


def restock_items(order):
    """Return every item's quantity to its product and reverse the purchase count."""
    repo = current_domain.repository_for(Product)
    for item in order.items:
        product = repo.get_or_none(item.product_id)
        if product is None:
            logger.warning(
                "Product vanished before restock",
                order_id=str(order.id),
                product_id=str(item.product_id),
            )
            continue
        product.restore_stock(item.quantity, order.id)
        repo.add(product)


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        order = load_order(command.order_id)
        if not command.is_admin and not order.is_owned_by(command.actor_id):
            raise Unauthorized(command.actor_id, f"order {order.order_number}")

        order.cancel(cancelled_by=command.actor_id, reason=command.reason, restocked=True)
        restock_items(order)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            order_number=order.order_number,
            cancelled_by=str(command.actor_id),
        )
        return order.status

    @handle(AbortOrder)
    def abort_order(self, command):
        order = load_order(command.order_id)
        order.cancel(reason=command.reason, restocked=False)
        current_domain.repository_for(Order).add(order)

        logger.warning("Order aborted", order_id=str(order.id), reason=command.reason)
        return order.status
