from datetime import date

from ordering.services.order_number import format_order_number, order_number_prefix
from ordering.services.order_service import allowed_transitions, can_transition


def test_pickup_transitions():
    assert allowed_transitions("pending", "pickup") == ("preparing", "cancelled")
    assert allowed_transitions("preparing", "pickup") == ("ready", "cancelled")
    assert allowed_transitions("ready", "pickup") == ("completed", "cancelled")
    assert not can_transition("ready", "out_for_delivery", "pickup")
    assert not can_transition("pending", "ready", "pickup")


def test_delivery_transitions():
    assert can_transition("ready", "out_for_delivery", "delivery")
    assert not can_transition("ready", "completed", "delivery")
    assert can_transition("out_for_delivery", "delivered", "delivery")
    assert can_transition("out_for_delivery", "cancelled", "delivery")
    assert allowed_transitions("delivered", "delivery") == ("completed",)


def test_terminal_states_have_no_exit():
    for status in ("completed", "cancelled", "refunded"):
        for service in ("pickup", "delivery"):
            assert allowed_transitions(status, service) == ()


def test_format_order_number():
    assert format_order_number(date(2026, 10, 19), 7, prefix="ORD") == "ORD-20261019-0007"
    assert format_order_number(date(2026, 1, 2), 12345, prefix="SUB") == "SUB-20260102-12345"


def test_order_number_prefix_from_env(monkeypatch):
    assert order_number_prefix() == "ORD"
    monkeypatch.setenv("ORDER_NUMBER_PREFIX", "SUB")
    assert format_order_number(date(2026, 10, 19), 1) == "SUB-20261019-0001"
    monkeypatch.setenv("ORDER_NUMBER_PREFIX", "  ")
    assert order_number_prefix() == "ORD"
