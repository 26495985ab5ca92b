"""Repository for the Cart aggregate."""

from ordering.cart.cart import Cart, CartLine
from ordering.domain import ordering


@ordering.repository(part_of=Cart)
class CartRepository:
    def for_owner(self, owner_id: str) -> Cart | None:
        """The owner's cart, with its lines loaded, or None."""
        record = self.query.filter(owner_id=owner_id).first
        if record is None:
            return None
        return self.get(record.id)

    def get_or_create_for_owner(self, owner_id: str) -> Cart:
        """The owner's cart. A new, unsaved cart is returned when none exists yet."""
        return self.for_owner(owner_id) or Cart.create(owner_id=owner_id)

    def expired_as_of(self, moment) -> list[Cart]:
        return self.query.filter(expires_at__lte=moment).all().items

    def purge(self, cart: Cart) -> None:
        """Hard-delete a cart together with its lines."""
        line_dao = self._domain.repository_for(CartLine)._dao
        for line in list(cart.lines):
            line_dao.delete(line)
        self._dao.delete(cart)
