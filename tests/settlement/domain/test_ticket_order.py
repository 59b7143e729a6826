"""Tests for the TicketOrder aggregate."""

import pytest
from protean.exceptions import ValidationError

from settlement.ticket.events import TicketOrderCancelled, TicketOrderConfirmed, TicketOrderPlaced
from settlement.ticket.ticket_order import TicketOrder, TicketStatus
from settlement.transitions import InvalidTransitionError


def _ticket_order(**overrides):
    defaults = {
        "ticket_type_id": "tt-vip",
        "event_id": "event-1",
        "buyer_id": "buyer-1",
        "quantity": 2,
        "unit_price": 75.0,
    }
    defaults.update(overrides)
    return TicketOrder.place(**defaults)


class TestTicketOrderPlacement:
    def test_place_sets_pending(self):
        ticket_order = _ticket_order()
        assert ticket_order.status == TicketStatus.PENDING.value
        assert ticket_order.created_at is not None

    def test_place_raises_event(self):
        ticket_order = _ticket_order()
        assert isinstance(ticket_order._events[0], TicketOrderPlaced)

    def test_total_price(self):
        assert _ticket_order().total_price == 150.0

    def test_quantity_must_be_positive(self):
        with pytest.raises(ValidationError):
            _ticket_order(quantity=0)

    def test_unit_price_cannot_be_negative(self):
        with pytest.raises(ValidationError):
            _ticket_order(unit_price=-1.0)


class TestTicketOrderTransitions:
    def test_confirm(self):
        ticket_order = _ticket_order()
        ticket_order.confirm()
        assert ticket_order.status == TicketStatus.CONFIRMED.value
        assert ticket_order.confirmed_at is not None
        assert isinstance(ticket_order._events[-1], TicketOrderConfirmed)

    def test_cancel(self):
        ticket_order = _ticket_order()
        ticket_order.cancel(reason="Event postponed")
        assert ticket_order.status == TicketStatus.CANCELLED.value
        assert ticket_order.cancellation_reason == "Event postponed"
        assert isinstance(ticket_order._events[-1], TicketOrderCancelled)

    def test_confirmed_is_terminal(self):
        ticket_order = _ticket_order()
        ticket_order.confirm()
        with pytest.raises(InvalidTransitionError):
            ticket_order.cancel()
        with pytest.raises(InvalidTransitionError):
            ticket_order.confirm()

    def test_cancelled_is_terminal(self):
        ticket_order = _ticket_order()
        ticket_order.cancel()
        with pytest.raises(InvalidTransitionError):
            ticket_order.confirm()
