"""Domain events for the Offer aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering
from ordering.shared.money import Amount


@ordering.event(part_of="Offer")
class OfferCreated:
    """An admin published a new coupon."""

    __version__ = 1

    offer_id = Identifier(required=True)
    code = String(required=True)
    offer_type = String(required=True)
    value = Amount(required=True)
    start_date = DateTime(required=True)
    end_date = DateTime(required=True)


@ordering.event(part_of="Offer")
class OfferTermsUpdated:
    __version__ = 1

    offer_id = Identifier(required=True)
    code = String(required=True)


@ordering.event(part_of="Offer")
class OfferDeactivated:
    __version__ = 1

    offer_id = Identifier(required=True)
    code = String(required=True)


@ordering.event(part_of="Offer")
class OfferRedeemed:
    """A customer used the coupon on a placed order."""

    __version__ = 1

    offer_id = Identifier(required=True)
    code = String(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    usage_count = Integer(required=True)
    used_at = DateTime(required=True)


@ordering.event(part_of="Offer")
class OfferRedemptionRevoked:
    """A redemption was handed back because its checkout did not complete."""

    __version__ = 1

    offer_id = Identifier(required=True)
    code = String(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    usage_count = Integer(required=True)
