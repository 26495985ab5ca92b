"""Order number allocation.

Order numbers look like ``ORD-241017-000042``: a configurable prefix, the UTC
day the order was placed, and a per-day counter. The counter lives in an
``OrderSequence`` aggregate keyed by the day, so allocating a number is a
read-increment-write on a versioned aggregate. Two checkouts that race for
the same value conflict on the sequence's version when their units of work
commit, and the loser is retried by its handler with the next value.
"""

from datetime import UTC, datetime

from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.shared.settings import pricing_settings


@ordering.aggregate
class OrderSequence:
    day = Identifier(identifier=True)  # YYMMDD
    last_value = Integer(default=0, min_value=0)

    def next_value(self):
        self.last_value += 1
        return self.last_value


def format_order_number(prefix, day, value):
    return f"{prefix}-{day}-{value:06d}"


def allocate_order_number(now=None):
    """Reserve the next order number for the day of ``now``.

    Must run inside the unit of work that persists the order.
    """
    now = now or datetime.now(UTC)
    day = now.strftime("%y%m%d")

    repo = current_domain.repository_for(OrderSequence)
    sequence = repo.get_or_none(day) or OrderSequence(day=day)
    value = sequence.next_value()
    repo.add(sequence)

    return format_order_number(pricing_settings().order_number_prefix, day, value)
