"""Order timeline — append-only audit trail of order status changes."""

import json
import uuid
from datetime import UTC, datetime

from protean.core.projector import on
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from settlement.domain import settlement
from settlement.order.events import (
    OrderCancelled,
    OrderDelivered,
    OrderPaid,
    OrderPlaced,
    OrderShipped,
)
from settlement.order.order import Order, OrderStatus


@settlement.projection
class OrderTimeline:
    entry_id = Identifier(identifier=True, required=True)
    order_id = Identifier(required=True)
    event_type = String(required=True)
    from_status = String()
    to_status = String(required=True)
    description = String(required=True)
    occurred_at = DateTime(required=True)
    recorded_at = DateTime(required=True)
    event_metadata = Text()  # JSON: extra event data


def _add_entry(order_id, event_type, from_status, to_status, description, occurred_at, **metadata):
    current_domain.repository_for(OrderTimeline).add(
        OrderTimeline(
            entry_id=str(uuid.uuid4()),
            order_id=order_id,
            event_type=event_type,
            from_status=from_status,
            to_status=to_status,
            description=description,
            occurred_at=occurred_at,
            recorded_at=datetime.now(UTC),
            event_metadata=json.dumps({k: v for k, v in metadata.items() if v is not None}) if metadata else None,
        )
    )


def timeline_for(order_id) -> list[OrderTimeline]:
    """Entries for one order in the order they were recorded."""
    entries = (
        current_domain.repository_for(OrderTimeline)._dao.query.filter(order_id=str(order_id)).all().items
    )
    return sorted(entries, key=lambda entry: entry.recorded_at)


@settlement.projector(projector_for=OrderTimeline, aggregates=[Order])
class OrderTimelineProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        _add_entry(
            event.order_id,
            "OrderPlaced",
            None,
            OrderStatus.PENDING.value,
            f"Order {event.order_number} placed",
            event.placed_at,
            total_amount=event.total_amount,
            total_commission=event.total_commission,
        )

    @on(OrderPaid)
    def on_order_paid(self, event):
        _add_entry(
            event.order_id,
            "OrderPaid",
            event.previous_status,
            OrderStatus.PAID.value,
            f"Payment of {event.amount} confirmed",
            event.paid_at,
            payment_intent_id=event.payment_intent_id,
            payment_method=event.payment_method,
        )

    @on(OrderShipped)
    def on_order_shipped(self, event):
        _add_entry(
            event.order_id,
            "OrderShipped",
            event.previous_status,
            OrderStatus.SHIPPED.value,
            f"Shipped via {event.carrier or 'unknown carrier'} (tracking: {event.tracking_number or 'n/a'})",
            event.shipped_at,
            tracking_number=event.tracking_number,
            tracking_url=event.tracking_url,
            carrier=event.carrier,
            notes=event.notes,
        )

    @on(OrderDelivered)
    def on_order_delivered(self, event):
        _add_entry(
            event.order_id,
            "OrderDelivered",
            event.previous_status,
            OrderStatus.DELIVERED.value,
            "Order was delivered",
            event.delivered_at,
            notes=event.notes,
        )

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        description = f"Cancelled by {event.cancelled_by}"
        if event.reason:
            description += f": {event.reason}"
        _add_entry(
            event.order_id,
            "OrderCancelled",
            event.previous_status,
            OrderStatus.CANCELLED.value,
            description,
            event.cancelled_at,
            reason=event.reason,
            notes=event.notes,
        )
