"""Cart line management — commands and handler."""

from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.domain import ordering
from ordering.product.product import Product
from ordering.shared.errors import NotFound


@ordering.command(part_of="Cart")
class AddToCart:
    owner_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(default=1, min_value=1)


@ordering.command(part_of="Cart")
class UpdateCartQuantity:
    owner_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=0)


@ordering.command(part_of="Cart")
class RemoveFromCart:
    owner_id = Identifier(required=True)
    product_id = Identifier(required=True)


@ordering.command(part_of="Cart")
class ClearCart:
    owner_id = Identifier(required=True)


@ordering.command_handler(part_of=Cart)
class CartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        product = current_domain.repository_for(Product).get_or_none(command.product_id)
        if product is None:
            raise NotFound("Product", command.product_id)

        repo = current_domain.repository_for(Cart)
        cart = repo.get_or_create_for_owner(command.owner_id)
        cart.add_item(product, command.quantity or 1)
        repo.add(cart)
        return str(cart.id)

    @handle(UpdateCartQuantity)
    def update_quantity(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_owner(command.owner_id)
        if cart is None:
            raise NotFound("Cart", command.owner_id)
        cart.update_quantity(command.product_id, command.quantity)
        repo.add(cart)
        return str(cart.id)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_owner(command.owner_id)
        if cart is None or not cart.remove_item(command.product_id):
            return None
        repo.add(cart)
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_owner(command.owner_id)
        if cart is None:
            return None
        cart.clear()
        repo.add(cart)
        return str(cart.id)
