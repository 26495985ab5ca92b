"""Cart expiry sweep — command and handler for removing idle carts.

Carts roll their expiry time forward on every change. Nothing removes them
in-process: an external scheduler (cron, K8s CronJob, ``manage.py
purge-carts``) dispatches PurgeExpiredCarts, which hard-deletes every cart
whose expiry time has passed. Carts held by a live checkout are left alone.
"""

from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import DateTime
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.domain import ordering

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Cart")
class PurgeExpiredCarts:
    """Delete carts whose expiry time is at or before ``as_of``."""

    as_of = DateTime()  # Optional: defaults to now


@ordering.command_handler(part_of=Cart)
class CartExpiryHandler:
    @handle(PurgeExpiredCarts)
    def purge_expired_carts(self, command):
        as_of = command.as_of or datetime.now(UTC)
        repo = current_domain.repository_for(Cart)

        expired = repo.expired_as_of(as_of)
        if not expired:
            logger.info("No expired carts found", as_of=as_of.isoformat())
            return 0

        purged = 0
        for cart in expired:
            if cart.has_pending_checkout(as_of):
                logger.info("Skipping cart held by a checkout", cart_id=str(cart.id))
                continue

            repo.purge(cart)
            purged += 1
            logger.info(
                "Purged expired cart",
                cart_id=str(cart.id),
                owner_id=str(cart.owner_id),
                expired_at=str(cart.expires_at),
            )

        logger.info("Cart expiry sweep complete", purged_count=purged)
        return purged
