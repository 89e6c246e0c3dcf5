import re
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from services.order_service.pricing import (
    compute_shipping,
    compute_tax,
    compute_totals,
    effective_unit_price,
    generate_order_number,
)


@pytest.mark.parametrize(
    "lines, expected",
    [
        # subtotal, tax, shipping, total
        ([(Decimal("50.00"), 2)], ("100.00", "10.00", "0.00", "110.00")),
        ([(Decimal("30.00"), 1)], ("30.00", "3.00", "10.00", "43.00")),
        ([(Decimal("99.99"), 1)], ("99.99", "10.00", "10.00", "119.99")),
        ([(Decimal("19.99"), 3), (Decimal("5.05"), 1)], ("65.02", "6.50", "10.00", "81.52")),
    ],
)
def test_compute_totals(lines, expected):
    totals = compute_totals(lines)
    assert (totals.subtotal, totals.tax, totals.shipping_cost, totals.total_amount) == tuple(
        Decimal(value) for value in expected
    )


def test_free_shipping_starts_at_threshold():
    assert compute_shipping(Decimal("100.00")) == Decimal("0.00")
    assert compute_shipping(Decimal("99.99")) == Decimal("10.00")


def test_shipping_override_wins_over_threshold():
    assert compute_shipping(Decimal("250.00"), Decimal("4.5")) == Decimal("4.50")
    totals = compute_totals([(Decimal("50.00"), 2)], shipping_override=Decimal("7.25"))
    assert totals.total_amount == Decimal("117.25")


def test_tax_rounds_half_up():
    assert compute_tax(Decimal("0.05")) == Decimal("0.01")
    assert compute_tax(Decimal("12.34")) == Decimal("1.23")


def test_sale_price_is_used_when_present():
    assert effective_unit_price(Decimal("20.00"), Decimal("15.00")) == Decimal("15.00")
    assert effective_unit_price(Decimal("20.00"), None) == Decimal("20.00")


def test_amount_in_minor_units():
    totals = compute_totals([(Decimal("19.99"), 3), (Decimal("5.05"), 1)])
    assert totals.amount_in_minor_units == 8152


def test_order_number_format():
    number = generate_order_number(datetime(2024, 3, 9, tzinfo=timezone.utc))
    assert re.fullmatch(r"ORD-20240309-[0-9A-F]{8}", number)


def test_order_numbers_are_unique():
    numbers = {generate_order_number() for _ in range(500)}
    assert len(numbers) == 500
