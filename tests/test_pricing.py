"""Unit tests for cart normalization and money rounding."""

from decimal import Decimal

import pytest

from app.core.errors import ValidationFailed
from app.models import MenuItem
from app.services.order_service import CartLine, PricedLine, cart_fingerprint, normalize_cart, price_cart, to_money


def _line(price: str, quantity: int) -> PricedLine:
    item = MenuItem(name="Item", price=Decimal(price), category="Any")
    return PricedLine(menu_item=item, quantity=quantity, unit_price=Decimal(price))


def test_price_cart_rounds_tax_before_total() -> None:
    quote = price_cart([_line("12.99", 2)], Decimal("2.99"), Decimal("0.08"))

    assert quote.subtotal == Decimal("25.98")
    assert quote.tax == Decimal("2.08")
    assert quote.total == Decimal("31.05")


def test_to_money_rounds_half_to_even() -> None:
    assert to_money(Decimal("0.125")) == Decimal("0.12")
    assert to_money(Decimal("0.135")) == Decimal("0.14")
    assert to_money(Decimal("2")) == Decimal("2.00")


def test_zero_tax_and_free_delivery() -> None:
    quote = price_cart([_line("5.00", 1), _line("1.25", 3)], Decimal("0"), Decimal("0"))

    assert quote.subtotal == Decimal("8.75")
    assert quote.tax == Decimal("0.00")
    assert quote.total == Decimal("8.75")


def test_normalize_cart_merges_and_validates() -> None:
    merged = normalize_cart([CartLine(3, 1), CartLine(1, 2), CartLine(3, 4)])

    assert merged == [CartLine(3, 5), CartLine(1, 2)]
    with pytest.raises(ValidationFailed):
        normalize_cart([])
    with pytest.raises(ValidationFailed):
        normalize_cart([CartLine(1, 0)])


def test_cart_fingerprint_ignores_line_order() -> None:
    first = cart_fingerprint(1, [CartLine(1, 2), CartLine(2, 1)])
    second = cart_fingerprint(1, [CartLine(2, 1), CartLine(1, 2)])

    assert first == second
    assert first != cart_fingerprint(2, [CartLine(1, 2), CartLine(2, 1)])
    assert first != cart_fingerprint(1, [CartLine(1, 3), CartLine(2, 1)])
