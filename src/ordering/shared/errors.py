"""Failure kinds raised by the cart, coupon, checkout and order workflows.

Every kind extends a Protean exception so that callers can catch either the
precise failure or the framework category it belongs to (validation, not
found, conflict). Validation failures keep Protean's ``{"field": [messages]}``
shape.
"""

from protean.exceptions import (
    InvalidOperationError,
    InvalidStateError,
    ObjectNotFoundError,
    ValidationError,
)


class NotFound(ObjectNotFoundError):
    """A cart, cart line, offer, order or product does not exist."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} `{key}` does not exist")


class Unauthorized(InvalidOperationError):
    """The acting user does not own the resource being changed."""

    def __init__(self, actor_id: str, resource: str):
        self.actor_id = actor_id
        self.resource = resource
        super().__init__(f"User `{actor_id}` is not allowed to modify {resource}")


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------
class InvalidCoupon(ValidationError):
    """No active offer matches the coupon code."""

    def __init__(self, code: str):
        self.code = code
        super().__init__({"coupon_code": [f"Invalid coupon code: {code}"]})


class CouponExpired(ValidationError):
    """The offer is outside its validity window or its total usage is exhausted."""

    def __init__(self, code: str):
        self.code = code
        super().__init__({"coupon_code": [f"Coupon {code} has expired"]})


class CouponAlreadyUsed(ValidationError):
    """The user has exhausted their per-user quota for the offer."""

    def __init__(self, code: str, user_id: str):
        self.code = code
        self.user_id = user_id
        super().__init__({"coupon_code": [f"Coupon {code} has already been used"]})


# ---------------------------------------------------------------------------
# Stock
# ---------------------------------------------------------------------------
class OutOfStock(ValidationError):
    def __init__(self, product_id: str, name: str = ""):
        self.product_id = product_id
        super().__init__({"product_id": [f"Product {name or product_id} is out of stock"]})


class ProductUnavailable(ValidationError):
    """A product is inactive, missing or cannot cover the requested quantity."""

    def __init__(self, product_id: str, reason: str = "is no longer available"):
        self.product_id = product_id
        self.reason = reason
        super().__init__({"product_id": [f"Product {product_id} {reason}"]})


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class EmptyCart(ValidationError):
    def __init__(self, owner_id: str):
        self.owner_id = owner_id
        super().__init__({"cart": ["Cannot check out an empty cart"]})


class CheckoutInProgress(InvalidStateError):
    """The cart is claimed by a checkout that has not finished yet."""

    def __init__(self, cart_id: str, order_id: str):
        self.cart_id = cart_id
        self.order_id = order_id
        super().__init__(f"Cart `{cart_id}` is being checked out as order `{order_id}`")


class CheckoutIncomplete(InvalidStateError):
    """A bookkeeping step failed after the order was persisted.

    The order has been cancelled and the completed steps compensated.
    """

    def __init__(self, order_id: str, step: str, cause: Exception):
        self.order_id = order_id
        self.step = step
        self.cause = cause
        super().__init__(f"Checkout of order `{order_id}` failed at {step}: {cause}")


# ---------------------------------------------------------------------------
# Order lifecycle
# ---------------------------------------------------------------------------
class InvalidTransition(ValidationError):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__({"status": [f"Cannot transition from {current} to {target}"]})


class RefundAlreadyRequested(ValidationError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__({"refund": ["A refund has already been requested for this order"]})


class NoRefundRequested(ValidationError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__({"refund": ["No refund has been requested for this order"]})
