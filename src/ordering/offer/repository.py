"""Repository for the Offer aggregate."""

from ordering.domain import ordering
from ordering.offer.offer import Offer, canonical_code


@ordering.repository(part_of=Offer)
class OfferRepository:
    def find_by_code(self, code: str) -> Offer | None:
        """Find an offer by its coupon code, ignoring case."""
        record = self.query.filter(code=canonical_code(code)).first
        if record is None:
            return None
        return self.get(record.id)

    def find_active(self) -> list[Offer]:
        return self.query.filter(is_active=True).all().items
