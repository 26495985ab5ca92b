"""Offer administration — commands and handler."""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.offer.offer import Offer, OfferType, canonical_code
from ordering.shared.errors import NotFound
from ordering.shared.money import Amount

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Offer")
class CreateOffer:
    name = String(required=True, max_length=100)
    code = String(required=True, max_length=50)
    description = String(max_length=500)
    offer_type = String(required=True, choices=OfferType)
    value = Amount(required=True)
    minimum_purchase = Amount(default=0)
    maximum_discount = Amount()
    per_user_limit = Integer(default=1, min_value=1)
    total_limit = Integer(min_value=1)
    start_date = DateTime(required=True)
    end_date = DateTime(required=True)
    created_by = Identifier()


@ordering.command(part_of="Offer")
class UpdateOffer:
    offer_id = Identifier(required=True)
    name = String(max_length=100)
    description = String(max_length=500)
    offer_type = String(choices=OfferType)
    value = Amount()
    minimum_purchase = Amount()
    maximum_discount = Amount()
    per_user_limit = Integer(min_value=1)
    total_limit = Integer(min_value=1)
    start_date = DateTime()
    end_date = DateTime()
    clear_maximum_discount = Boolean(default=False)
    clear_total_limit = Boolean(default=False)


@ordering.command(part_of="Offer")
class DeactivateOffer:
    offer_id = Identifier(required=True)


def _load_offer(offer_id):
    offer = current_domain.repository_for(Offer).get_or_none(offer_id)
    if offer is None:
        raise NotFound("Offer", offer_id)
    return offer


@ordering.command_handler(part_of=Offer)
class OfferManagementHandler:
    @handle(CreateOffer)
    def create_offer(self, command):
        repo = current_domain.repository_for(Offer)
        if repo.find_by_code(command.code) is not None:
            raise ValidationError({"code": [f"Offer code {canonical_code(command.code)} already exists"]})

        offer = Offer.create(
            name=command.name,
            code=command.code,
            offer_type=command.offer_type,
            value=command.value,
            start_date=command.start_date,
            end_date=command.end_date,
            minimum_purchase=command.minimum_purchase or 0,
            maximum_discount=command.maximum_discount,
            per_user_limit=command.per_user_limit or 1,
            total_limit=command.total_limit,
            description=command.description,
            created_by=command.created_by,
        )
        repo.add(offer)
        logger.info("Offer created", offer_id=str(offer.id), code=offer.code, offer_type=offer.offer_type)
        return str(offer.id)

    @handle(UpdateOffer)
    def update_offer(self, command):
        offer = _load_offer(command.offer_id)
        offer.update_terms(
            name=command.name,
            description=command.description,
            offer_type=command.offer_type,
            value=command.value,
            minimum_purchase=command.minimum_purchase,
            maximum_discount=command.maximum_discount,
            per_user_limit=command.per_user_limit,
            total_limit=command.total_limit,
            start_date=command.start_date,
            end_date=command.end_date,
            clear_maximum_discount=bool(command.clear_maximum_discount),
            clear_total_limit=bool(command.clear_total_limit),
        )
        current_domain.repository_for(Offer).add(offer)

    @handle(DeactivateOffer)
    def deactivate_offer(self, command):
        offer = _load_offer(command.offer_id)
        offer.deactivate()
        current_domain.repository_for(Offer).add(offer)
        logger.info("Offer deactivated", offer_id=str(offer.id), code=offer.code)
