"""Domain events for the TicketOrder aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from settlement.domain import settlement


@settlement.event(part_of="TicketOrder")
class TicketOrderPlaced:
    """A buyer reserved tickets for an event."""

    __version__ = 1

    ticket_order_id = Identifier(required=True)
    ticket_type_id = Identifier(required=True)
    event_id = Identifier()
    buyer_id = Identifier()
    quantity = Integer(required=True)
    unit_price = Float(required=True)
    placed_at = DateTime(required=True)


@settlement.event(part_of="TicketOrder")
class TicketOrderConfirmed:
    """A pending ticket order was confirmed."""

    __version__ = 1

    ticket_order_id = Identifier(required=True)
    confirmed_at = DateTime(required=True)


@settlement.event(part_of="TicketOrder")
class TicketOrderCancelled:
    """A pending ticket order was cancelled."""

    __version__ = 1

    ticket_order_id = Identifier(required=True)
    reason = String(max_length=500)
    cancelled_at = DateTime(required=True)
