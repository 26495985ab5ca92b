"""Checkout saga — turns a customer's cart into a booked order.

Flow:
    1. PlaceOrder → order persisted as PENDING, cart claimed (one unit of work)
    2. DeductStock per item         (compensated by RestoreStock)
    3. RedeemOffer if a coupon used (compensated by RevokeOfferRedemption)
    4. CompleteCartCheckout → cart emptied, claim dropped

Steps 2-4 each commit on their own. If one fails, the compensations recorded
so far run newest first, the order is aborted to CANCELLED without a second
restock, the cart claim is released so the customer gets their cart back,
and CheckoutIncomplete is raised.
"""

import json

import structlog
from protean.utils.globals import current_domain

from ordering.cart.conversion import CompleteCartCheckout, ReleaseCartCheckout
from ordering.checkout.compensation import CompensationLog
from ordering.checkout.placement import PlaceOrder
from ordering.offer.redemption import RedeemOffer, RevokeOfferRedemption
from ordering.order.cancellation import AbortOrder
from ordering.order.order import Order
from ordering.product.stock import DeductStock, RestoreStock
from ordering.shared.errors import CheckoutIncomplete

logger = structlog.get_logger(__name__)


def _as_json(value):
    if value is None or isinstance(value, str):
        return value
    if hasattr(value, "to_dict"):
        value = value.to_dict()
    return json.dumps(value)


class CheckoutService:
    """Runs the checkout of one cart and compensates when a step fails."""

    def checkout(
        self,
        customer_id,
        shipping_address,
        payment_method,
        billing_address=None,
        payment_details=None,
        customer_note=None,
    ) -> Order:
        order_id = current_domain.process(
            PlaceOrder(
                customer_id=customer_id,
                shipping_address=_as_json(shipping_address),
                billing_address=_as_json(billing_address),
                payment_method=payment_method,
                payment_details=_as_json(payment_details),
                customer_note=customer_note,
            ),
            asynchronous=False,
        )

        repo = current_domain.repository_for(Order)
        order = repo.get(order_id)
        compensations = CompensationLog(order_id=order_id)

        step = None
        try:
            for item in order.items:
                step = f"deduct-stock:{item.product_id}"
                self._dispatch(DeductStock(product_id=item.product_id, order_id=order_id, quantity=item.quantity))
                compensations.record(
                    step,
                    RestoreStock(product_id=item.product_id, order_id=order_id, quantity=item.quantity),
                )

            if order.offer_id:
                step = f"redeem-offer:{order.offer_id}"
                self._dispatch(RedeemOffer(offer_id=order.offer_id, user_id=customer_id, order_id=order_id))
                compensations.record(step, RevokeOfferRedemption(offer_id=order.offer_id, order_id=order_id))

            step = "complete-cart-checkout"
            self._dispatch(CompleteCartCheckout(cart_id=order.cart_id, order_id=order_id))
        except Exception as exc:
            logger.error(
                "Checkout step failed",
                order_id=order_id,
                order_number=order.order_number,
                step=step,
                error=str(exc),
            )
            self._abort(order, compensations, step)
            raise CheckoutIncomplete(order_id, step, exc) from exc

        logger.info(
            "Checkout complete",
            order_id=order_id,
            order_number=order.order_number,
            customer_id=str(customer_id),
        )
        return repo.get(order_id)

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _dispatch(self, command):
        return current_domain.process(command, asynchronous=False)

    def _abort(self, order, compensations, step):
        order_id = str(order.id)

        result = compensations.unwind(self._dispatch)
        logger.warning(
            "Checkout compensated",
            order_id=order_id,
            compensations_run=result.run,
            compensations_failed=result.failed,
        )

        try:
            self._dispatch(AbortOrder(order_id=order_id, reason=f"Checkout failed at {step}"))
        except Exception as exc:
            logger.error("Could not abort order", order_id=order_id, error=str(exc))

        try:
            self._dispatch(ReleaseCartCheckout(cart_id=order.cart_id, order_id=order_id))
        except Exception as exc:
            logger.error("Could not release cart", order_id=order_id, cart_id=str(order.cart_id), error=str(exc))
