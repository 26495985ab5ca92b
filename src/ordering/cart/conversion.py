"""Cart checkout hand-off — commands and handler.

The checkout claims the cart while the order is being placed. Once the
order's bookkeeping has succeeded the cart is emptied; if the checkout is
abandoned the claim is released and the cart is left as it was.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.domain import ordering


@ordering.command(part_of="Cart")
class CompleteCartCheckout:
    cart_id = Identifier(required=True)
    order_id = Identifier(required=True)


@ordering.command(part_of="Cart")
class ReleaseCartCheckout:
    cart_id = Identifier(required=True)
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Cart)
class CartCheckoutHandler:
    @handle(CompleteCartCheckout)
    def complete_checkout(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        cart.complete_checkout(command.order_id)
        repo.add(cart)

    @handle(ReleaseCartCheckout)
    def release_checkout(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        if cart.release_checkout(command.order_id):
            repo.add(cart)
