"""Fixed-point money helpers.

Amounts are ``decimal.Decimal`` values rounded to whole cents with
ROUND_HALF_UP. Floats are converted through their string form so that no
binary rounding error leaks into stored totals.
"""

from decimal import ROUND_HALF_UP, Decimal

from protean.fields import Decimal as DecimalField

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def to_money(value) -> Decimal:
    """Convert ``value`` to a Decimal rounded to cents."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def clamp_non_negative(amount: Decimal) -> Decimal:
    return amount if amount > ZERO else ZERO


def apply_rate(amount, rate) -> Decimal:
    """``amount × rate``, e.g. a tax rate of ``0.10``."""
    return to_money(to_decimal(amount) * to_decimal(rate))


def percentage_of(amount, percent) -> Decimal:
    """``amount × percent / 100``."""
    return to_money(to_decimal(amount) * to_decimal(percent) / HUNDRED)


def Amount(**kwargs):
    """A non-negative money field."""
    kwargs.setdefault("min_value", 0)
    return DecimalField(**kwargs)
