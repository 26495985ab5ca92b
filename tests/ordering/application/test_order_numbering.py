"""Tests for per-day order number allocation."""

from datetime import UTC, datetime

from ordering.order.numbering import OrderSequence, allocate_order_number, format_order_number
from protean import current_domain

DAY = datetime(2026, 3, 15, 9, 30, tzinfo=UTC)


def test_format_pads_the_counter():
    assert format_order_number("ORD", "260315", 42) == "ORD-260315-000042"


def test_numbers_increase_within_a_day():
    assert allocate_order_number(DAY) == "ORD-260315-000001"
    assert allocate_order_number(DAY) == "ORD-260315-000002"

    sequence = current_domain.repository_for(OrderSequence).get("260315")
    assert sequence.last_value == 2


def test_each_day_has_its_own_counter():
    allocate_order_number(DAY)
    assert allocate_order_number(datetime(2026, 3, 16, tzinfo=UTC)) == "ORD-260316-000001"


def test_prefix_comes_from_configuration(monkeypatch):
    monkeypatch.setitem(current_domain.config["custom"], "ORDER_NUMBER_PREFIX", "SHOP")
    assert allocate_order_number(DAY) == "SHOP-260315-000001"
