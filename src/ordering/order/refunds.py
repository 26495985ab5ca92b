"""Refunds — commands and handler.

The customer asks (RequestRefund), an admin pays out (ProcessRefund).
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.cancellation import load_order
from ordering.order.order import Order
from ordering.shared.errors import Unauthorized
from ordering.shared.money import Amount

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class RequestRefund:
    order_id = Identifier(required=True)
    customer_id = Identifier(required=True)
    reason = String(max_length=1000)


@ordering.command(part_of="Order")
class ProcessRefund:
    order_id = Identifier(required=True)
    admin_id = Identifier(required=True)
    amount = Amount()  # Optional: defaults to the order total
    reason = String(max_length=1000)


@ordering.command_handler(part_of=Order)
class RefundHandler:
    @handle(RequestRefund)
    def request_refund(self, command):
        order = load_order(command.order_id)
        if not order.is_owned_by(command.customer_id):
            raise Unauthorized(command.customer_id, f"order {order.order_number}")

        order.request_refund(reason=command.reason)
        current_domain.repository_for(Order).add(order)
        logger.info("Refund requested", order_id=str(order.id), customer_id=str(command.customer_id))

    @handle(ProcessRefund)
    def process_refund(self, command):
        order = load_order(command.order_id)
        order.process_refund(processed_by=command.admin_id, amount=command.amount, reason=command.reason)
        current_domain.repository_for(Order).add(order)

        logger.info(
            "Refund processed",
            order_id=str(order.id),
            amount=str(order.refund.amount),
            processed_by=str(command.admin_id),
        )
        return order.refund.amount
