"""Offer aggregate — a coupon code with a discount rule and usage caps.

Evaluation is pure: ``is_valid``, ``can_user_use`` and ``compute_discount``
never mutate the offer. Usage is only recorded by checkout through
``record_usage`` and handed back by ``revoke_usage`` when a checkout has to
be compensated.

Discount rules:
    PERCENTAGE     subtotal × value / 100
    FIXED_AMOUNT   value
    BOGO           subtotal / 2 (whole-cart approximation, not per-unit pairing)
    FREE_SHIPPING  0, the cart waives its shipping line instead once the
                   subtotal reaches ``minimum_purchase``

The result is capped at ``maximum_discount`` when set and never exceeds the
subtotal it discounts. Subtotals below ``minimum_purchase`` get no discount.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, Integer, String, ValueObject

from ordering.domain import ordering
from ordering.offer.events import (
    OfferCreated,
    OfferDeactivated,
    OfferRedeemed,
    OfferRedemptionRevoked,
    OfferTermsUpdated,
)
from ordering.shared.clock import as_utc
from ordering.shared.errors import CouponAlreadyUsed, CouponExpired, InvalidCoupon
from ordering.shared.money import ZERO, Amount, clamp_non_negative, percentage_of, to_money


class OfferType(Enum):
    PERCENTAGE = "Percentage"
    FIXED_AMOUNT = "Fixed_Amount"
    BOGO = "Bogo"
    FREE_SHIPPING = "Free_Shipping"


def canonical_code(code):
    return (code or "").strip().upper()


def discount_for(offer_type, value, subtotal, minimum_purchase=None, maximum_discount=None):
    subtotal = to_money(subtotal)
    if subtotal <= ZERO or subtotal < to_money(minimum_purchase):
        return ZERO

    offer_type = OfferType(offer_type)
    if offer_type == OfferType.PERCENTAGE:
        discount = percentage_of(subtotal, value)
    elif offer_type == OfferType.FIXED_AMOUNT:
        discount = to_money(value)
    elif offer_type == OfferType.BOGO:
        discount = to_money(subtotal / 2)
    else:
        discount = ZERO

    if maximum_discount is not None:
        discount = min(discount, to_money(maximum_discount))

    return clamp_non_negative(min(discount, subtotal))


def shipping_waived(offer_type, subtotal, minimum_purchase=None):
    """FREE_SHIPPING offers waive shipping once the subtotal reaches the minimum purchase."""
    if OfferType(offer_type) != OfferType.FREE_SHIPPING:
        return False
    subtotal = to_money(subtotal)
    return subtotal > ZERO and subtotal >= to_money(minimum_purchase)


@ordering.value_object(part_of="Offer")
class Validity:
    """The window during which an offer can be redeemed, bounds inclusive."""

    start_date = DateTime(required=True)
    end_date = DateTime(required=True)

    @invariant.post
    def end_date_must_follow_start_date(self):
        if self.start_date and self.end_date and as_utc(self.end_date) <= as_utc(self.start_date):
            raise ValidationError({"end_date": ["End date must be after start date"]})

    def contains(self, moment):
        return as_utc(self.start_date) <= as_utc(moment) <= as_utc(self.end_date)


@ordering.value_object(part_of="Offer")
class UsageLimit:
    per_user = Integer(default=1, min_value=1)
    total = Integer(min_value=1)  # None means unlimited


@ordering.entity(part_of="Offer")
class OfferRedemption:
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    used_at = DateTime(required=True)


@ordering.aggregate
class Offer:
    name = String(required=True, max_length=100)
    code = String(required=True, max_length=50, unique=True)
    description = String(max_length=500)
    offer_type = String(required=True, choices=OfferType)
    value = Amount(required=True)
    minimum_purchase = Amount(default=ZERO)
    maximum_discount = Amount()
    usage_limit = ValueObject(UsageLimit)
    usage_count = Integer(default=0, min_value=0)
    validity = ValueObject(Validity, required=True)
    redemptions = HasMany(OfferRedemption)
    is_active = Boolean(default=True)
    created_by = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def percentage_cannot_exceed_one_hundred(self):
        if self.offer_type == OfferType.PERCENTAGE.value and self.value is not None and self.value > 100:
            raise ValidationError({"value": ["Percentage offers cannot exceed 100"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        name,
        code,
        offer_type,
        value,
        start_date,
        end_date,
        minimum_purchase=0,
        maximum_discount=None,
        per_user_limit=1,
        total_limit=None,
        description=None,
        created_by=None,
    ):
        now = datetime.now(UTC)
        offer = cls(
            name=name,
            code=canonical_code(code),
            description=description,
            offer_type=offer_type,
            value=to_money(value),
            minimum_purchase=to_money(minimum_purchase),
            maximum_discount=to_money(maximum_discount) if maximum_discount is not None else None,
            usage_limit=UsageLimit(per_user=per_user_limit, total=total_limit),
            validity=Validity(start_date=start_date, end_date=end_date),
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        offer.raise_(
            OfferCreated(
                offer_id=str(offer.id),
                code=offer.code,
                offer_type=offer.offer_type,
                value=offer.value,
                start_date=start_date,
                end_date=end_date,
            )
        )
        return offer

    # -------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------
    @property
    def per_user_limit(self):
        return self.usage_limit.per_user if self.usage_limit and self.usage_limit.per_user else 1

    @property
    def total_limit(self):
        return self.usage_limit.total if self.usage_limit else None

    def is_valid(self, now=None):
        """Active, inside the validity window, and below the total usage cap."""
        now = now or datetime.now(UTC)
        if not self.is_active:
            return False
        if not self.validity.contains(now):
            return False
        return self.total_limit is None or self.usage_count < self.total_limit

    def redemptions_by(self, user_id):
        return sum(1 for redemption in self.redemptions if str(redemption.user_id) == str(user_id))

    def can_user_use(self, user_id, now=None):
        return self.is_valid(now) and self.redemptions_by(user_id) < self.per_user_limit

    def ensure_usable_by(self, user_id, now=None):
        if not self.is_active:
            raise InvalidCoupon(self.code)
        if not self.is_valid(now):
            raise CouponExpired(self.code)
        if not self.can_user_use(user_id, now):
            raise CouponAlreadyUsed(self.code, str(user_id))

    def compute_discount(self, subtotal):
        return discount_for(
            self.offer_type,
            self.value,
            subtotal,
            minimum_purchase=self.minimum_purchase,
            maximum_discount=self.maximum_discount,
        )

    # -------------------------------------------------------------------
    # Usage bookkeeping
    # -------------------------------------------------------------------
    def record_usage(self, user_id, order_id, now=None):
        """Consume one use of the offer for ``user_id`` on ``order_id``."""
        now = now or datetime.now(UTC)
        self.ensure_usable_by(user_id, now)

        with atomic_change(self):
            self.add_redemptions(OfferRedemption(user_id=user_id, order_id=order_id, used_at=now))
            self.usage_count += 1
            self.updated_at = now

        self.raise_(
            OfferRedeemed(
                offer_id=str(self.id),
                code=self.code,
                user_id=str(user_id),
                order_id=str(order_id),
                usage_count=self.usage_count,
                used_at=now,
            )
        )

    def revoke_usage(self, order_id):
        """Give back the use consumed by ``order_id``. Returns False if there was none."""
        redemption = next((r for r in self.redemptions if str(r.order_id) == str(order_id)), None)
        if redemption is None:
            return False

        now = datetime.now(UTC)
        with atomic_change(self):
            self.remove_redemptions(redemption)
            self.usage_count = max(0, self.usage_count - 1)
            self.updated_at = now

        self.raise_(
            OfferRedemptionRevoked(
                offer_id=str(self.id),
                code=self.code,
                user_id=str(redemption.user_id),
                order_id=str(order_id),
                usage_count=self.usage_count,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------
    def update_terms(
        self,
        name=None,
        description=None,
        offer_type=None,
        value=None,
        minimum_purchase=None,
        maximum_discount=None,
        per_user_limit=None,
        total_limit=None,
        start_date=None,
        end_date=None,
        clear_maximum_discount=False,
        clear_total_limit=False,
    ):
        """Change the given terms. ``None`` leaves a term as it is.

        The ``clear_*`` flags lift the discount cap or the total usage cap.
        """
        if clear_maximum_discount and maximum_discount is not None:
            raise ValidationError({"maximum_discount": ["Cannot set and clear the maximum discount together"]})
        if clear_total_limit and total_limit is not None:
            raise ValidationError({"total_limit": ["Cannot set and clear the total usage limit together"]})

        with atomic_change(self):
            if name is not None:
                self.name = name
            if description is not None:
                self.description = description
            if offer_type is not None:
                self.offer_type = offer_type
            if value is not None:
                self.value = to_money(value)
            if minimum_purchase is not None:
                self.minimum_purchase = to_money(minimum_purchase)
            if maximum_discount is not None:
                self.maximum_discount = to_money(maximum_discount)
            elif clear_maximum_discount:
                self.maximum_discount = None
            if per_user_limit is not None or total_limit is not None or clear_total_limit:
                self.usage_limit = UsageLimit(
                    per_user=per_user_limit if per_user_limit is not None else self.per_user_limit,
                    total=None if clear_total_limit else (total_limit if total_limit is not None else self.total_limit),
                )
            if start_date is not None or end_date is not None:
                self.validity = Validity(
                    start_date=start_date or self.validity.start_date,
                    end_date=end_date or self.validity.end_date,
                )
            self.updated_at = datetime.now(UTC)

        self.raise_(OfferTermsUpdated(offer_id=str(self.id), code=self.code))

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": ["Offer is already inactive"]})

        self.is_active = False
        self.updated_at = datetime.now(UTC)
        self.raise_(OfferDeactivated(offer_id=str(self.id), code=self.code))
