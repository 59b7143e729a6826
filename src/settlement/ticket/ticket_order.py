"""TicketOrder aggregate (CQRS) — a reservation of tickets for an event.

State Machine:
    PENDING → CONFIRMED
    PENDING → CANCELLED

Confirmed and cancelled are terminal. This is a standard CQRS aggregate (not
event sourced); the stored version guards concurrent saves.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Float, Identifier, Integer, String

from settlement.domain import settlement
from settlement.ticket.events import (
    TicketOrderCancelled,
    TicketOrderConfirmed,
    TicketOrderPlaced,
)
from settlement.transitions import assert_transition_allowed


class TicketStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


_VALID_TRANSITIONS = {
    TicketStatus.PENDING: {TicketStatus.CONFIRMED, TicketStatus.CANCELLED},
    TicketStatus.CONFIRMED: set(),  # Terminal
    TicketStatus.CANCELLED: set(),  # Terminal
}


@settlement.aggregate
class TicketOrder:
    ticket_type_id = Identifier(required=True)
    event_id = Identifier()
    buyer_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    status = String(
        max_length=20,
        choices=TicketStatus,
        default=TicketStatus.PENDING.value,
    )
    cancellation_reason = String(max_length=500)
    created_at = DateTime()
    confirmed_at = DateTime()
    cancelled_at = DateTime()

    @classmethod
    def place(cls, ticket_type_id, quantity, unit_price, event_id=None, buyer_id=None):
        now = datetime.now(UTC)
        ticket_order = cls(
            ticket_type_id=ticket_type_id,
            event_id=event_id,
            buyer_id=buyer_id,
            quantity=quantity,
            unit_price=unit_price,
            created_at=now,
        )
        ticket_order.raise_(
            TicketOrderPlaced(
                ticket_order_id=str(ticket_order.id),
                ticket_type_id=str(ticket_type_id),
                event_id=event_id,
                buyer_id=buyer_id,
                quantity=quantity,
                unit_price=unit_price,
                placed_at=now,
            )
        )
        return ticket_order

    @property
    def total_price(self) -> float:
        return round(self.unit_price * self.quantity, 2)

    def confirm(self):
        assert_transition_allowed(_VALID_TRANSITIONS, TicketStatus(self.status), TicketStatus.CONFIRMED)
        self.status = TicketStatus.CONFIRMED.value
        self.confirmed_at = datetime.now(UTC)
        self.raise_(
            TicketOrderConfirmed(
                ticket_order_id=str(self.id),
                confirmed_at=self.confirmed_at,
            )
        )

    def cancel(self, reason=None):
        assert_transition_allowed(_VALID_TRANSITIONS, TicketStatus(self.status), TicketStatus.CANCELLED)
        self.status = TicketStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.cancelled_at = datetime.now(UTC)
        self.raise_(
            TicketOrderCancelled(
                ticket_order_id=str(self.id),
                reason=reason,
                cancelled_at=self.cancelled_at,
            )
        )
