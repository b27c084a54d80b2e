# app/core/pricing.py
#
# Ledger arithmetic. Pure functions, no database access.

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable


CENTS = Decimal("0.01")

# Chilean IVA applied to the calendar estimate
IVA_RATE = Decimal("0.19")


def to_money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def line_total(quantity: int, unit_price) -> Decimal:
    return to_money(Decimal(quantity) * to_money(unit_price))


def sale_total(items: Iterable) -> Decimal:
    """Locked-in total of a sale: sum of quantity x unit_price_at_sale."""
    total = Decimal("0.00")
    for item in items:
        total += line_total(item.quantity, item.unit_price_at_sale)
    return total


def net_total(items: Iterable) -> Decimal:
    # Uses the product's *current* net price
    total = Decimal("0.00")
    for item in items:
        net_price = item.product.net_price if item.product is not None else None
        total += line_total(item.quantity, net_price)
    return total


def gross_total(net: Decimal, rate: Decimal = IVA_RATE) -> Decimal:
    return to_money(net * (Decimal("1") + rate))


def calendar_total(items: Iterable) -> Decimal:
    """Tax-inclusive estimate recomputed from current product net prices."""
    return gross_total(net_total(items))
