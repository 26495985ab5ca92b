"""Offer usage bookkeeping run by checkout — commands and handler.

RedeemOffer re-checks eligibility against the freshly loaded offer, so two
checkouts racing for the last use (or for a user's only use) cannot both
succeed: the loser either fails the version check and is retried against
the winner's state, or sees the exhausted quota and is rejected.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.offer.offer import Offer
from ordering.shared.errors import InvalidCoupon, NotFound


@ordering.command(part_of="Offer")
class RedeemOffer:
    offer_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)


@ordering.command(part_of="Offer")
class RevokeOfferRedemption:
    offer_id = Identifier(required=True)
    order_id = Identifier(required=True)


@ordering.command_handler(part_of=Offer)
class OfferRedemptionHandler:
    @handle(RedeemOffer)
    def redeem_offer(self, command):
        repo = current_domain.repository_for(Offer)
        offer = repo.get_or_none(command.offer_id)
        if offer is None:
            raise InvalidCoupon(command.offer_id)

        offer.record_usage(command.user_id, command.order_id)
        repo.add(offer)
        return offer.usage_count

    @handle(RevokeOfferRedemption)
    def revoke_redemption(self, command):
        repo = current_domain.repository_for(Offer)
        offer = repo.get_or_none(command.offer_id)
        if offer is None:
            raise NotFound("Offer", command.offer_id)

        if offer.revoke_usage(command.order_id):
            repo.add(offer)
        return offer.usage_count
