"""Cart totals derivation.

``derive_totals`` is the only place cart totals are computed. The Cart
aggregate calls it after every mutation and stores the result, so the
stored figures always satisfy::

    subtotal = Σ max(0, unit_price × quantity − line_discount)
    tax      = subtotal × tax_rate              (rounded to cents)
    total    = max(0, subtotal + tax + shipping − coupon_discount)
"""

from dataclasses import dataclass
from decimal import Decimal

from ordering.shared.money import ZERO, apply_rate, clamp_non_negative, to_decimal, to_money


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    coupon_discount: Decimal
    total: Decimal


def line_amount(unit_price, quantity, line_discount=None) -> Decimal:
    gross = to_decimal(unit_price) * int(quantity)
    return clamp_non_negative(to_money(gross - to_decimal(line_discount)))


def subtotal_of(lines) -> Decimal:
    return to_money(sum((line_amount(line.unit_price, line.quantity, line.line_discount) for line in lines), ZERO))


def derive_totals(lines, coupon_discount, tax_rate, shipping) -> CartTotals:
    """Derive every cart figure from its lines, coupon discount, tax rate and shipping."""
    subtotal = subtotal_of(lines)
    tax = apply_rate(subtotal, tax_rate)
    shipping = to_money(shipping)
    coupon_discount = clamp_non_negative(to_money(coupon_discount))
    total = clamp_non_negative(subtotal + tax + shipping - coupon_discount)

    return CartTotals(
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        coupon_discount=coupon_discount,
        total=total,
    )
