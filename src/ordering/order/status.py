"""Admin status updates — command and handler.

Admins move orders along the lifecycle one step at a time. A cancel issued
here restocks exactly like CancelOrder. REFUNDED cannot be set directly; it
is reached only by processing a refund request.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.cancellation import load_order, restock_items
from ordering.order.order import Order, OrderStatus
from ordering.shared.errors import InvalidTransition

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)
    updated_by = Identifier(required=True)
    note = String(max_length=1000)


@ordering.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        order = load_order(command.order_id)
        previous = order.status
        target = OrderStatus(command.status)

        if target == OrderStatus.PROCESSING:
            order.mark_processing(updated_by=command.updated_by, note=command.note)
        elif target == OrderStatus.COMPLETED:
            order.complete(updated_by=command.updated_by, note=command.note)
        elif target == OrderStatus.CANCELLED:
            order.cancel(cancelled_by=command.updated_by, reason=command.note, restocked=True)
            restock_items(order)
        else:
            raise InvalidTransition(previous, target.value)

        current_domain.repository_for(Order).add(order)

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            from_status=previous,
            to_status=order.status,
            updated_by=str(command.updated_by),
        )
        return order.status
