"""Pricing constants read from the ``[custom]`` section of ``domain.toml``."""

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

from protean.utils.globals import current_domain

from ordering.shared.money import to_decimal, to_money

DEFAULT_TAX_RATE = "0.10"
DEFAULT_SHIPPING_FEE = "0.00"
DEFAULT_CART_TTL_DAYS = 7
DEFAULT_CHECKOUT_CLAIM_MINUTES = 15
DEFAULT_ORDER_NUMBER_PREFIX = "ORD"
DEFAULT_CURRENCY = "USD"


@dataclass(frozen=True)
class PricingSettings:
    tax_rate: Decimal
    shipping_fee: Decimal
    cart_ttl: timedelta
    checkout_claim_timeout: timedelta
    order_number_prefix: str
    currency: str = DEFAULT_CURRENCY


def pricing_settings() -> PricingSettings:
    custom = current_domain.config.get("custom", {})

    return PricingSettings(
        tax_rate=to_decimal(str(custom.get("TAX_RATE", DEFAULT_TAX_RATE))),
        shipping_fee=to_money(str(custom.get("SHIPPING_FEE", DEFAULT_SHIPPING_FEE))),
        cart_ttl=timedelta(days=int(custom.get("CART_TTL_DAYS", DEFAULT_CART_TTL_DAYS))),
        checkout_claim_timeout=timedelta(
            minutes=int(custom.get("CHECKOUT_CLAIM_MINUTES", DEFAULT_CHECKOUT_CLAIM_MINUTES))
        ),
        order_number_prefix=str(custom.get("ORDER_NUMBER_PREFIX", DEFAULT_ORDER_NUMBER_PREFIX)),
        currency=str(custom.get("CURRENCY", DEFAULT_CURRENCY)),
    )
