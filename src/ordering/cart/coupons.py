"""Cart coupon management — commands and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.domain import ordering
from ordering.offer.offer import Offer, canonical_code
from ordering.shared.errors import InvalidCoupon, NotFound


@ordering.command(part_of="Cart")
class ApplyCouponToCart:
    """Apply a coupon code to the owner's cart."""

    owner_id = Identifier(required=True)
    coupon_code = String(required=True, max_length=50)


@ordering.command(part_of="Cart")
class RemoveCouponFromCart:
    owner_id = Identifier(required=True)


@ordering.command_handler(part_of=Cart)
class CartCouponHandler:
    @handle(ApplyCouponToCart)
    def apply_coupon(self, command):
        offer = current_domain.repository_for(Offer).find_by_code(command.coupon_code)
        if offer is None or not offer.is_active:
            raise InvalidCoupon(canonical_code(command.coupon_code))

        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create_for_owner(command.owner_id)
        cart.apply_coupon(offer)
        repo.add(cart)
        return cart.coupon_discount

    @handle(RemoveCouponFromCart)
    def remove_coupon(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_owner(command.owner_id)
        if cart is None:
            raise NotFound("Cart", command.owner_id)
        cart.remove_coupon()
        repo.add(cart)
