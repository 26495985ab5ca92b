"""Ordering bounded context — Cart pricing, Coupons and Orders.

Handles the shopping cart and its live totals, coupon (offer) redemption,
the checkout that snapshots a cart into an immutable order, and the order
status and refund lifecycle that follows.
"""

import structlog
from protean.domain import Domain

from ordering.utils.logging import quiet_library_loggers

ordering = Domain(name="ordering")

quiet_library_loggers()

logger = structlog.get_logger(__name__)
