"""Repository for the Order aggregate."""

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.repository(part_of=Order)
class OrderRepository:
    def find_by_number(self, order_number: str) -> Order | None:
        record = self.query.filter(order_number=order_number).first
        if record is None:
            return None
        return self.get(record.id)

    def for_customer(self, customer_id: str) -> list[Order]:
        """The customer's orders, newest first."""
        return self.query.filter(customer_id=customer_id).order_by("-created_at").all().items

    def with_status(self, status: str) -> list[Order]:
        return self.query.filter(status=status).order_by("-created_at").all().items
