"""Domain events for the Order aggregate.

All events are versioned, immutable facts. The event store keeps every one
of them, which makes the order's event stream its audit trail. Events are
used for:
- Rebuilding aggregate state via @apply (event sourcing)
- Updating the seller ledger and order timeline projections
"""

from protean.fields import DateTime, Float, Identifier, String, Text

from settlement.domain import settlement


@settlement.event(part_of="Order")
class OrderPlaced:
    """A new order was placed at checkout, with its commission ledger frozen."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_name = String()
    customer_email = String()
    customer_phone = String()
    items = Text(required=True)  # JSON: list of ledger item dicts
    total_amount = Float(required=True)
    total_commission = Float(required=True)
    placed_at = DateTime(required=True)


@settlement.event(part_of="Order")
class OrderPaid:
    """The payment processor confirmed payment for a pending order."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    payment_intent_id = String(required=True)
    payment_method = String()
    amount = Float()
    paid_at = DateTime(required=True)


@settlement.event(part_of="Order")
class OrderShipped:
    """A paid order was handed to a carrier."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    tracking_number = String()
    tracking_url = String()
    carrier = String()
    notes = Text()
    shipped_at = DateTime(required=True)


@settlement.event(part_of="Order")
class OrderDelivered:
    """A shipped order reached the customer."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    notes = Text()
    delivered_at = DateTime(required=True)


@settlement.event(part_of="Order")
class OrderCancelled:
    """An order was cancelled before payment or refunded after it."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String()
    notes = Text()
    cancelled_by = String()
    cancelled_at = DateTime(required=True)
