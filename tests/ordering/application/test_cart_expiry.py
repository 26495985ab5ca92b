"""Application tests for the expired cart sweep."""

from datetime import UTC, datetime, timedelta

from ordering.cart.cart import Cart, CartLine
from ordering.cart.expiry import PurgeExpiredCarts
from ordering.cart.items import AddToCart
from protean import current_domain


def _add(owner_id, product_id):
    current_domain.process(AddToCart(owner_id=owner_id, product_id=product_id), asynchronous=False)


def _purge(as_of=None):
    return current_domain.process(PurgeExpiredCarts(as_of=as_of), asynchronous=False)


class TestPurgeExpiredCarts:
    def test_fresh_carts_survive(self, register_product):
        _add("user-001", register_product())

        assert _purge() == 0
        assert current_domain.repository_for(Cart).for_owner("user-001") is not None

    def test_expired_carts_are_deleted_with_their_lines(self, register_product):
        _add("user-001", register_product())

        purged = _purge(datetime.now(UTC) + timedelta(days=8))

        assert purged == 1
        assert current_domain.repository_for(Cart).for_owner("user-001") is None
        assert current_domain.repository_for(CartLine)._dao.query.all().items == []

    def test_only_expired_carts_are_deleted(self, register_product):
        product_id = register_product()
        _add("user-001", product_id)

        repo = current_domain.repository_for(Cart)
        stale = repo.for_owner("user-001")
        stale.expires_at = datetime.now(UTC) - timedelta(minutes=1)
        repo.add(stale)

        _add("user-002", product_id)

        assert _purge() == 1
        assert repo.for_owner("user-001") is None
        assert repo.for_owner("user-002") is not None

    def test_carts_held_by_a_checkout_are_kept(self, register_product):
        _add("user-001", register_product())
        repo = current_domain.repository_for(Cart)
        cart = repo.for_owner("user-001")
        cart.begin_checkout("order-in-flight")
        cart.expires_at = datetime.now(UTC) - timedelta(minutes=1)
        repo.add(cart)

        assert _purge() == 0
        assert repo.for_owner("user-001") is not None
