"""
Order pricing rules.

All amounts are `Decimal` and rounded half-up to cents. Totals are computed
once at order creation and stored; they are never recomputed afterwards.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Tuple

CENT = Decimal("0.01")
TAX_RATE = Decimal("0.10")
FREE_SHIPPING_THRESHOLD = Decimal("100")
FLAT_SHIPPING_FEE = Decimal("10.00")


def to_money(value) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def effective_unit_price(price, sale_price=None) -> Decimal:
    return to_money(sale_price if sale_price is not None else price)


def compute_tax(subtotal: Decimal) -> Decimal:
    return to_money(subtotal * TAX_RATE)


def compute_shipping(subtotal: Decimal, override: Optional[Decimal] = None) -> Decimal:
    if override is not None:
        return to_money(override)
    return Decimal("0.00") if subtotal >= FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING_FEE


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax: Decimal
    shipping_cost: Decimal
    total_amount: Decimal

    @property
    def amount_in_minor_units(self) -> int:
        return int((self.total_amount * 100).to_integral_value(rounding=ROUND_HALF_UP))


def compute_totals(
    lines: Iterable[Tuple[Decimal, int]],
    shipping_override: Optional[Decimal] = None,
) -> OrderTotals:
    """Totals for (unit price, quantity) lines."""
    subtotal = to_money(sum((to_money(price) * quantity for price, quantity in lines), Decimal("0")))
    tax = compute_tax(subtotal)
    shipping = compute_shipping(subtotal, shipping_override)
    return OrderTotals(
        subtotal=subtotal,
        tax=tax,
        shipping_cost=shipping,
        total_amount=subtotal + tax + shipping,
    )


def generate_order_number(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"ORD-{now:%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"
