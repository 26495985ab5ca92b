"""Product aggregate — the slice of the catalogue that ordering depends on.

Carries the sellable price, availability flags and the stock policy used by
add-to-cart and checkout. Stock only moves through ``decrease_stock`` and
``restore_stock``, which the checkout and cancellation flows reach through
the DeductStock / RestoreStock commands so that every change is versioned.

Stock policy: a product is in stock when it does not track inventory, has a
positive quantity, or accepts backorders.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String, Text, ValueObject

from ordering.domain import ordering
from ordering.product.events import ProductDeactivated, ProductRegistered, StockDeducted, StockRestored
from ordering.shared.errors import OutOfStock
from ordering.shared.money import Amount, to_money


class ProductType(Enum):
    PHYSICAL = "Physical"
    DIGITAL_KEY = "Digital_Key"
    SUBSCRIPTION = "Subscription"
    VOUCHER = "Voucher"
    SOFTWARE = "Software"
    OTHER = "Other"


@ordering.value_object
class DigitalContent:
    """Delivery details for a non-physical product.

    Copied onto the order item at checkout so that later catalogue edits do
    not change what the customer bought.
    """

    license_key = String(max_length=255)
    download_url = String(max_length=1000)
    activation_instructions = Text()


@ordering.aggregate
class Product:
    name = String(required=True, max_length=200)
    price = Amount(required=True)
    discount_price = Amount()
    product_type = String(choices=ProductType, default=ProductType.PHYSICAL.value)
    digital_content = ValueObject(DigitalContent)
    is_active = Boolean(default=True)
    track_inventory = Boolean(default=True)
    quantity = Integer(default=0)  # Negative only when backorders were sold
    allow_backorder = Boolean(default=False)
    purchases = Integer(default=0, min_value=0)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(
        cls,
        name,
        price,
        discount_price=None,
        product_type=ProductType.PHYSICAL.value,
        digital_content=None,
        quantity=0,
        track_inventory=True,
        allow_backorder=False,
    ):
        now = datetime.now(UTC)
        product = cls(
            name=name,
            price=to_money(price),
            discount_price=to_money(discount_price) if discount_price is not None else None,
            product_type=product_type,
            digital_content=digital_content,
            quantity=quantity,
            track_inventory=track_inventory,
            allow_backorder=allow_backorder,
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductRegistered(
                product_id=str(product.id),
                name=name,
                price=product.price,
                quantity=quantity,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_physical(self):
        return self.product_type == ProductType.PHYSICAL.value

    def sellable_price(self):
        """The discount price when one is set, otherwise the list price."""
        if self.discount_price:
            return self.discount_price
        return self.price

    def is_in_stock(self):
        return not self.track_inventory or self.quantity > 0 or self.allow_backorder

    def can_supply(self, quantity):
        if not self.track_inventory or self.allow_backorder:
            return True
        return self.quantity >= quantity

    # -------------------------------------------------------------------
    # Stock movements
    # -------------------------------------------------------------------
    def decrease_stock(self, quantity, order_id):
        """Deduct stock sold on ``order_id`` and count the purchase."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        if not self.can_supply(quantity):
            raise OutOfStock(str(self.id), self.name)

        if self.track_inventory:
            self.quantity -= quantity
        self.purchases += quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockDeducted(
                product_id=str(self.id),
                order_id=str(order_id),
                quantity=quantity,
                remaining=self.quantity,
            )
        )

    def restore_stock(self, quantity, order_id):
        """Return stock released by a cancelled or aborted order."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        if self.track_inventory:
            self.quantity += quantity
        self.purchases = max(0, self.purchases - quantity)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockRestored(
                product_id=str(self.id),
                order_id=str(order_id),
                quantity=quantity,
                remaining=self.quantity,
            )
        )

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": ["Product is already inactive"]})

        self.is_active = False
        self.updated_at = datetime.now(UTC)
        self.raise_(ProductDeactivated(product_id=str(self.id)))
