"""Cart aggregate — one live cart per customer, with totals kept current.

Every mutation re-derives the totals through ``derive_totals`` and rolls the
expiry window forward, so a cart read from the repository always satisfies
the pricing equations in ``ordering.cart.pricing``.

The applied coupon is kept as a snapshot of the offer's discount rule. The
coupon discount is recomputed from that snapshot whenever the lines change,
always against the pre-discount subtotal.

While a checkout holds the cart (``checkout_order_id`` is set and the claim
has not gone stale) the cart rejects every mutation.
"""

from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, ValueObject

from ordering.cart.events import (
    CartCheckedOut,
    CartCheckoutReleased,
    CartCheckoutStarted,
    CartCleared,
    CartCouponApplied,
    CartCouponRemoved,
    CartItemAdded,
    CartItemRemoved,
    CartLineDiscounted,
    CartQuantityUpdated,
)
from ordering.cart.pricing import derive_totals, subtotal_of
from ordering.domain import ordering
from ordering.offer.offer import OfferType, discount_for, shipping_waived
from ordering.shared.clock import as_utc
from ordering.shared.errors import CheckoutInProgress, EmptyCart, NotFound, OutOfStock, ProductUnavailable
from ordering.shared.money import ZERO, Amount, clamp_non_negative, to_money
from ordering.shared.settings import pricing_settings


@ordering.value_object(part_of="Cart")
class AppliedCoupon:
    """The discount rule of the offer a coupon code resolved to."""

    offer_id = Identifier(required=True)
    code = String(required=True, max_length=50)
    offer_type = String(required=True, choices=OfferType)
    value = Amount(required=True)
    minimum_purchase = Amount(default=ZERO)
    maximum_discount = Amount()

    def waives_shipping_for(self, subtotal):
        return shipping_waived(self.offer_type, subtotal, minimum_purchase=self.minimum_purchase)

    def discount_for(self, subtotal):
        return discount_for(
            self.offer_type,
            self.value,
            subtotal,
            minimum_purchase=self.minimum_purchase,
            maximum_discount=self.maximum_discount,
        )


@ordering.entity(part_of="Cart")
class CartLine:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = Amount(required=True)  # Captured when the product was added
    applied_offer_id = Identifier()
    line_discount = Amount(default=ZERO)
    position = Integer(default=0)
    added_at = DateTime()


@ordering.aggregate
class Cart:
    owner_id = Identifier(required=True, unique=True)
    lines = HasMany(CartLine)
    coupon = ValueObject(AppliedCoupon)
    coupon_discount = Amount(default=ZERO)
    subtotal = Amount(default=ZERO)
    tax = Amount(default=ZERO)
    shipping = Amount(default=ZERO)
    total = Amount(default=ZERO)
    expires_at = DateTime()
    checkout_order_id = Identifier()
    checkout_started_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_must_match_its_components(self):
        expected = clamp_non_negative(
            (self.subtotal or ZERO) + (self.tax or ZERO) + (self.shipping or ZERO) - (self.coupon_discount or ZERO)
        )
        if (self.total or ZERO) != expected:
            raise ValidationError({"total": [f"Cart total {self.total} does not match its components ({expected})"]})

    @invariant.post
    def coupon_discount_cannot_exceed_subtotal(self):
        if (self.coupon_discount or ZERO) > (self.subtotal or ZERO):
            raise ValidationError({"coupon_discount": ["Coupon discount cannot exceed the cart subtotal"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, owner_id):
        now = datetime.now(UTC)
        return cls(
            owner_id=owner_id,
            created_at=now,
            updated_at=now,
            expires_at=now + pricing_settings().cart_ttl,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def coupon_code(self):
        return self.coupon.code if self.coupon else None

    @property
    def ordered_lines(self):
        return sorted(self.lines, key=lambda line: line.position or 0)

    @property
    def is_empty(self):
        return not self.lines

    def line_for(self, product_id):
        return next((line for line in self.lines if str(line.product_id) == str(product_id)), None)

    def is_expired(self, now=None):
        now = now or datetime.now(UTC)
        return self.expires_at is not None and as_utc(self.expires_at) <= now

    def has_pending_checkout(self, now=None):
        if not self.checkout_order_id:
            return False
        now = now or datetime.now(UTC)
        started_at = as_utc(self.checkout_started_at) or now
        return now - started_at < pricing_settings().checkout_claim_timeout

    def _ensure_modifiable(self, now):
        if self.has_pending_checkout(now):
            raise CheckoutInProgress(str(self.id), str(self.checkout_order_id))

    # -------------------------------------------------------------------
    # Pricing
    # -------------------------------------------------------------------
    def _reprice(self, now):
        """Re-derive all totals and roll the expiry window. Call inside ``atomic_change``."""
        settings = pricing_settings()

        subtotal = subtotal_of(self.lines)
        coupon_discount = self.coupon.discount_for(subtotal) if self.coupon else ZERO
        if self.is_empty or (self.coupon and self.coupon.waives_shipping_for(subtotal)):
            shipping = ZERO
        else:
            shipping = settings.shipping_fee

        totals = derive_totals(self.lines, coupon_discount, settings.tax_rate, shipping)

        self.subtotal = totals.subtotal
        self.tax = totals.tax
        self.shipping = totals.shipping
        self.coupon_discount = totals.coupon_discount
        self.total = totals.total
        self.updated_at = now
        self.expires_at = now + settings.cart_ttl

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def add_item(self, product, quantity, now=None):
        """Add ``quantity`` of ``product``, merging into an existing line for it."""
        now = now or datetime.now(UTC)
        self._ensure_modifiable(now)

        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})
        if not product.is_active:
            raise ProductUnavailable(str(product.id))
        if not product.is_in_stock():
            raise OutOfStock(str(product.id), product.name)

        with atomic_change(self):
            existing = self.line_for(product.id)
            if existing:
                existing.quantity += quantity
                unit_price = existing.unit_price
            else:
                unit_price = to_money(product.sellable_price())
                self.add_lines(
                    CartLine(
                        product_id=str(product.id),
                        quantity=quantity,
                        unit_price=unit_price,
                        position=max((line.position or 0 for line in self.lines), default=-1) + 1,
                        added_at=now,
                    )
                )
            self._reprice(now)

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                owner_id=str(self.owner_id),
                product_id=str(product.id),
                quantity=quantity,
                unit_price=unit_price,
                subtotal=self.subtotal,
                total=self.total,
            )
        )

    def update_quantity(self, product_id, quantity, now=None):
        """Set the quantity of a line. Zero removes the line."""
        now = now or datetime.now(UTC)
        self._ensure_modifiable(now)

        if quantity < 0:
            raise ValidationError({"quantity": ["Quantity cannot be negative"]})

        line = self.line_for(product_id)
        if line is None:
            raise NotFound("Cart line", str(product_id))

        if quantity == 0:
            self.remove_item(product_id, now=now)
            return

        previous_quantity = line.quantity
        with atomic_change(self):
            line.quantity = quantity
            self._reprice(now)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                product_id=str(product_id),
                previous_quantity=previous_quantity,
                new_quantity=quantity,
                subtotal=self.subtotal,
                total=self.total,
            )
        )

    def remove_item(self, product_id, now=None):
        """Remove the line for ``product_id``. Returns False when there was none."""
        now = now or datetime.now(UTC)
        self._ensure_modifiable(now)

        line = self.line_for(product_id)
        if line is None:
            return False

        with atomic_change(self):
            self.remove_lines(line)
            self._reprice(now)

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                product_id=str(product_id),
                subtotal=self.subtotal,
                total=self.total,
            )
        )
        return True

    def discount_line(self, product_id, amount, offer_id=None, now=None):
        """Attach a product-level promotion to a line."""
        now = now or datetime.now(UTC)
        self._ensure_modifiable(now)

        line = self.line_for(product_id)
        if line is None:
            raise NotFound("Cart line", str(product_id))

        amount = to_money(amount)
        if amount < ZERO:
            raise ValidationError({"line_discount": ["Line discount cannot be negative"]})

        with atomic_change(self):
            line.line_discount = amount
            line.applied_offer_id = offer_id
            self._reprice(now)

        self.raise_(
            CartLineDiscounted(
                cart_id=str(self.id),
                product_id=str(product_id),
                line_discount=amount,
                subtotal=self.subtotal,
            )
        )

    def clear(self, now=None):
        """Empty the cart and drop its coupon."""
        now = now or datetime.now(UTC)
        self._ensure_modifiable(now)
        self._empty(now)
        self.raise_(CartCleared(cart_id=str(self.id)))

    def _empty(self, now):
        with atomic_change(self):
            if self.lines:
                self.remove_lines(list(self.lines))
            self.coupon = None
            self._reprice(now)

    # -------------------------------------------------------------------
    # Coupons
    # -------------------------------------------------------------------
    def apply_coupon(self, offer, now=None):
        """Apply ``offer`` for the cart owner, replacing any coupon already applied.

        Raises InvalidCoupon, CouponExpired or CouponAlreadyUsed when the
        owner may not redeem the offer right now.
        """
        now = now or datetime.now(UTC)
        self._ensure_modifiable(now)
        offer.ensure_usable_by(self.owner_id, now)

        with atomic_change(self):
            self.coupon = AppliedCoupon(
                offer_id=str(offer.id),
                code=offer.code,
                offer_type=offer.offer_type,
                value=offer.value,
                minimum_purchase=offer.minimum_purchase or ZERO,
                maximum_discount=offer.maximum_discount,
            )
            self._reprice(now)

        self.raise_(
            CartCouponApplied(
                cart_id=str(self.id),
                offer_id=str(offer.id),
                coupon_code=offer.code,
                coupon_discount=self.coupon_discount,
                total=self.total,
            )
        )

    def remove_coupon(self, now=None):
        now = now or datetime.now(UTC)
        self._ensure_modifiable(now)
        if self.coupon is None:
            return

        code = self.coupon.code
        with atomic_change(self):
            self.coupon = None
            self._reprice(now)

        self.raise_(CartCouponRemoved(cart_id=str(self.id), coupon_code=code, total=self.total))

    # -------------------------------------------------------------------
    # Checkout claim
    # -------------------------------------------------------------------
    def begin_checkout(self, order_id, now=None):
        """Claim the cart for ``order_id``. A stale claim is taken over."""
        now = now or datetime.now(UTC)
        self._ensure_modifiable(now)
        if self.is_empty:
            raise EmptyCart(str(self.owner_id))

        self.checkout_order_id = order_id
        self.checkout_started_at = now

        self.raise_(CartCheckoutStarted(cart_id=str(self.id), order_id=str(order_id)))

    def complete_checkout(self, order_id, now=None):
        """Empty the cart once ``order_id`` has taken over its contents."""
        if str(self.checkout_order_id) != str(order_id):
            raise ValidationError({"checkout_order_id": [f"Cart is not being checked out as order {order_id}"]})

        now = now or datetime.now(UTC)
        self.checkout_order_id = None
        self.checkout_started_at = None
        self._empty(now)

        self.raise_(CartCheckedOut(cart_id=str(self.id), order_id=str(order_id)))

    def release_checkout(self, order_id):
        """Give the cart back to its owner after a failed checkout. Idempotent."""
        if str(self.checkout_order_id) != str(order_id):
            return False

        self.checkout_order_id = None
        self.checkout_started_at = None
        self.raise_(CartCheckoutReleased(cart_id=str(self.id), order_id=str(order_id)))
        return True
