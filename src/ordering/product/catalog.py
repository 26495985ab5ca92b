"""Catalogue feed into ordering — registering and retiring products."""

from protean import handle
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.product.product import DigitalContent, Product, ProductType
from ordering.shared.errors import NotFound
from ordering.shared.money import Amount


@ordering.command(part_of="Product")
class RegisterProduct:
    name = String(required=True, max_length=200)
    price = Amount(required=True)
    discount_price = Amount()
    product_type = String(choices=ProductType, default=ProductType.PHYSICAL.value)
    license_key = String(max_length=255)
    download_url = String(max_length=1000)
    activation_instructions = Text()
    quantity = Integer(default=0)
    track_inventory = Boolean(default=True)
    allow_backorder = Boolean(default=False)


@ordering.command(part_of="Product")
class DeactivateProduct:
    product_id = Identifier(required=True)


@ordering.command_handler(part_of=Product)
class CatalogHandler:
    @handle(RegisterProduct)
    def register_product(self, command):
        digital_content = None
        if command.product_type != ProductType.PHYSICAL.value:
            digital_content = DigitalContent(
                license_key=command.license_key,
                download_url=command.download_url,
                activation_instructions=command.activation_instructions,
            )

        product = Product.create(
            name=command.name,
            price=command.price,
            discount_price=command.discount_price,
            product_type=command.product_type,
            digital_content=digital_content,
            quantity=command.quantity,
            track_inventory=command.track_inventory,
            allow_backorder=command.allow_backorder,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(DeactivateProduct)
    def deactivate_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get_or_none(command.product_id)
        if product is None:
            raise NotFound("Product", command.product_id)
        product.deactivate()
        repo.add(product)
