"""Domain events for the Cart aggregate."""

from protean.fields import Identifier, Integer, String

from ordering.domain import ordering
from ordering.shared.money import Amount


@ordering.event(part_of="Cart")
class CartItemAdded:
    """A product was added to the cart, or its line quantity increased."""

    __version__ = 1

    cart_id = Identifier(required=True)
    owner_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    unit_price = Amount(required=True)
    subtotal = Amount(required=True)
    total = Amount(required=True)


@ordering.event(part_of="Cart")
class CartQuantityUpdated:
    """The quantity of a cart line was set to a new value."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    subtotal = Amount(required=True)
    total = Amount(required=True)


@ordering.event(part_of="Cart")
class CartItemRemoved:
    """A line was removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    subtotal = Amount(required=True)
    total = Amount(required=True)


@ordering.event(part_of="Cart")
class CartLineDiscounted:
    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    line_discount = Amount(required=True)
    subtotal = Amount(required=True)


@ordering.event(part_of="Cart")
class CartCleared:
    """All lines and the coupon were removed from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)


@ordering.event(part_of="Cart")
class CartCouponApplied:
    """A coupon code was applied to the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    offer_id = Identifier(required=True)
    coupon_code = String(required=True)
    coupon_discount = Amount(required=True)
    total = Amount(required=True)


@ordering.event(part_of="Cart")
class CartCouponRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    coupon_code = String(required=True)
    total = Amount(required=True)


@ordering.event(part_of="Cart")
class CartCheckoutStarted:
    """The cart was claimed by a checkout in progress."""

    __version__ = 1

    cart_id = Identifier(required=True)
    order_id = Identifier(required=True)


@ordering.event(part_of="Cart")
class CartCheckedOut:
    """The cart's contents became an order and the cart was emptied."""

    __version__ = 1

    cart_id = Identifier(required=True)
    order_id = Identifier(required=True)


@ordering.event(part_of="Cart")
class CartCheckoutReleased:
    """A failed checkout gave the cart back to its owner untouched."""

    __version__ = 1

    cart_id = Identifier(required=True)
    order_id = Identifier(required=True)

