"""Seller ledger — one row per order item, tagged with its order's status.

Rows are created from the frozen commission snapshot in OrderPlaced and
only their order status moves afterwards. Revenue reporting reads this
projection instead of replaying order streams.
"""

import json

from protean.core.projector import on
from protean.fields import DateTime, Float, Identifier, Integer, String
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

PAGE_SIZE = 100


@settlement.projection
class SellerLedgerEntry:
    entry_id = Identifier(identifier=True, required=True)  # OrderItem id
    order_id = Identifier(required=True)
    order_number = String()
    seller_id = String(required=True)
    item_id = String()
    item_title = String()
    event_id = String()
    category_id = String()
    quantity = Integer(default=0)
    unit_price = Float(default=0.0)
    total_price = Float(default=0.0)
    commission_rate = Float(default=0.0)
    commission_amount = Float(default=0.0)
    net_amount = Float(default=0.0)
    commission_source = String()
    order_status = String(required=True)
    order_created_at = DateTime()
    updated_at = DateTime()


def ledger_entries(**filters) -> list[SellerLedgerEntry]:
    """All ledger rows matching `filters`, read page by page."""
    query = current_domain.repository_for(SellerLedgerEntry)._dao.query.filter(**filters)
    entries = []
    offset = 0
    while True:
        page = query.offset(offset).limit(PAGE_SIZE).all()
        entries.extend(page.items)
        if not page.has_next:
            return entries
        offset += PAGE_SIZE


def _set_order_status(order_id, status, occurred_at):
    repo = current_domain.repository_for(SellerLedgerEntry)
    for entry in ledger_entries(order_id=str(order_id)):
        entry.order_status = status
        entry.updated_at = occurred_at
        repo.add(entry)


@settlement.projector(projector_for=SellerLedgerEntry, aggregates=[Order])
class SellerLedgerProjector:
    @on(OrderPlaced)
    def on_order_placed(self, event):
        repo = current_domain.repository_for(SellerLedgerEntry)
        items = json.loads(event.items) if isinstance(event.items, str) else []
        for item in items:
            repo.add(
                SellerLedgerEntry(
                    entry_id=item["id"],
                    order_id=event.order_id,
                    order_number=event.order_number,
                    seller_id=item["seller_id"],
                    item_id=item.get("item_id"),
                    item_title=item.get("item_title"),
                    event_id=item.get("event_id"),
                    category_id=item.get("category_id"),
                    quantity=item["quantity"],
                    unit_price=item["unit_price"],
                    total_price=item["total_price"],
                    commission_rate=item["commission_rate"],
                    commission_amount=item["commission_amount"],
                    net_amount=item["net_amount"],
                    commission_source=item.get("commission_source"),
                    order_status=OrderStatus.PENDING.value,
                    order_created_at=event.placed_at,
                    updated_at=event.placed_at,
                )
            )

    @on(OrderPaid)
    def on_order_paid(self, event):
        _set_order_status(event.order_id, OrderStatus.PAID.value, event.paid_at)

    @on(OrderShipped)
    def on_order_shipped(self, event):
        _set_order_status(event.order_id, OrderStatus.SHIPPED.value, event.shipped_at)

    @on(OrderDelivered)
    def on_order_delivered(self, event):
        _set_order_status(event.order_id, OrderStatus.DELIVERED.value, event.delivered_at)

    @on(OrderCancelled)
    def on_order_cancelled(self, event):
        _set_order_status(event.order_id, OrderStatus.CANCELLED.value, event.cancelled_at)
