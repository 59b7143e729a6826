"""Order aggregate (Event Sourced) — the core of the settlement ledger.

Every state change is captured as a domain event and the current state is
rebuilt by replaying events via @apply. The event stream is the order's audit
trail: transitions are appended, never overwritten.

State Machine:
    PENDING → PAID → SHIPPED → DELIVERED
    PENDING → CANCELLED
    PAID → CANCELLED (refund)

Line items carry the commission ledger. Rate, commission amount and net
amount are written once, by OrderPlaced, and never recomputed: later rule
changes do not alter what a past sale settled for.
"""

import json
from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import apply
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Integer,
    String,
    Text,
    ValueObject,
)

from settlement.domain import settlement
from settlement.order.events import (
    OrderCancelled,
    OrderDelivered,
    OrderPaid,
    OrderPlaced,
    OrderShipped,
)
from settlement.transitions import assert_transition_allowed


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

# Orders whose items count towards seller revenue
SETTLED_STATUSES = frozenset({OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.DELIVERED})


def allowed_transitions() -> set[tuple[OrderStatus, OrderStatus]]:
    return {(current, target) for current, targets in _VALID_TRANSITIONS.items() for target in targets}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@settlement.value_object(part_of="Order")
class CustomerContact:
    """Who to reach about the order, captured at checkout."""

    name = String(max_length=255)
    email = String(max_length=254)
    phone = String(max_length=50)


@settlement.value_object(part_of="Order")
class Tracking:
    """Carrier tracking details recorded when an order ships."""

    number = String(max_length=255)
    url = String(max_length=1000)
    carrier = String(max_length=100)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@settlement.entity(part_of="Order")
class OrderItem:
    """A line item and its frozen commission split.

    `commission_rate`, `commission_amount` and `net_amount` are a snapshot
    taken when the order was placed. No operation on the order changes them.
    """

    seller_id = String(required=True, max_length=255)
    item_id = String(max_length=255)
    item_title = String(required=True, max_length=255)
    event_id = String(max_length=255)
    category_id = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)
    commission_rate = Float(required=True, min_value=0.0, max_value=100.0)
    commission_amount = Float(required=True)
    net_amount = Float(required=True)
    commission_source = String(max_length=20)

    def ledger_entry(self) -> dict:
        return {
            "id": str(self.id),
            "seller_id": self.seller_id,
            "item_id": self.item_id,
            "item_title": self.item_title,
            "event_id": self.event_id,
            "category_id": self.category_id,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total_price": self.total_price,
            "commission_rate": self.commission_rate,
            "commission_amount": self.commission_amount,
            "net_amount": self.net_amount,
            "commission_source": self.commission_source,
        }


# ---------------------------------------------------------------------------
# Aggregate Root (Event Sourced)
# ---------------------------------------------------------------------------
@settlement.aggregate(is_event_sourced=True)
class Order:
    order_number = String(required=True, max_length=100)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    customer = ValueObject(CustomerContact)
    items = HasMany(OrderItem)
    total_amount = Float(default=0.0)
    total_commission = Float(default=0.0)
    payment_intent_id = String(max_length=255)
    payment_method = String(max_length=50)
    tracking = ValueObject(Tracking)
    admin_notes = Text()
    cancellation_reason = String(max_length=500)
    cancelled_by = String(max_length=50)
    created_at = DateTime()
    paid_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, order_number, customer, ledger_items):
        """Place a new order from already-priced ledger items.

        Args:
            order_number: Human-facing order number from checkout.
            customer: Dict with name, email, phone (all optional).
            ledger_items: List of dicts produced by OrderItemLedger, each with
                the frozen commission_rate / commission_amount / net_amount.
        """
        now = datetime.now(UTC)

        # Pre-generate item IDs for deterministic replay
        items_with_ids = [{**item, "id": item.get("id") or str(uuid4())} for item in ledger_items]
        total_amount = round(sum(item["total_price"] for item in items_with_ids), 2)
        total_commission = round(sum(item["commission_amount"] for item in items_with_ids), 2)
        customer = customer or {}

        order = cls._create_new()
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                customer_name=customer.get("name"),
                customer_email=customer.get("email"),
                customer_phone=customer.get("phone"),
                items=json.dumps(items_with_ids),
                total_amount=total_amount,
                total_commission=total_commission,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    def can_transition_to(self, target_status: OrderStatus) -> bool:
        return target_status in _VALID_TRANSITIONS.get(self.current_status, set())

    def _assert_can_transition(self, target_status: OrderStatus) -> None:
        assert_transition_allowed(_VALID_TRANSITIONS, self.current_status, target_status)

    def ledger(self) -> list[dict]:
        return [item.ledger_entry() for item in self.items]

    # -------------------------------------------------------------------
    # Order lifecycle transitions
    # -------------------------------------------------------------------
    def record_payment(self, payment_intent_id, payment_method=None, paid_at=None):
        """Record the processor's payment confirmation."""
        self._assert_can_transition(OrderStatus.PAID)
        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                previous_status=self.status,
                payment_intent_id=payment_intent_id,
                payment_method=payment_method,
                amount=self.total_amount,
                paid_at=paid_at or datetime.now(UTC),
            )
        )

    def ship(self, tracking_number=None, tracking_url=None, carrier=None, notes=None):
        """Record that the order was handed to a carrier."""
        self._assert_can_transition(OrderStatus.SHIPPED)
        self.raise_(
            OrderShipped(
                order_id=str(self.id),
                previous_status=self.status,
                tracking_number=tracking_number,
                tracking_url=tracking_url,
                carrier=carrier,
                notes=notes,
                shipped_at=datetime.now(UTC),
            )
        )

    def deliver(self, notes=None):
        """Record that the order was delivered."""
        self._assert_can_transition(OrderStatus.DELIVERED)
        self.raise_(
            OrderDelivered(
                order_id=str(self.id),
                previous_status=self.status,
                notes=notes,
                delivered_at=datetime.now(UTC),
            )
        )

    def cancel(self, reason=None, notes=None, cancelled_by="admin"):
        """Cancel a pending order, or refund a paid one."""
        self._assert_can_transition(OrderStatus.CANCELLED)
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                previous_status=self.status,
                reason=reason,
                notes=notes,
                cancelled_by=cancelled_by,
                cancelled_at=datetime.now(UTC),
            )
        )

    # -------------------------------------------------------------------
    # @apply methods — rebuild state during event replay
    # -------------------------------------------------------------------
    @apply
    def _on_order_placed(self, event: OrderPlaced):
        self.id = event.order_id
        self.order_number = event.order_number
        self.status = OrderStatus.PENDING.value
        self.customer = CustomerContact(
            name=event.customer_name,
            email=event.customer_email,
            phone=event.customer_phone,
        )
        self.total_amount = event.total_amount
        self.total_commission = event.total_commission
        self.created_at = event.placed_at
        self.updated_at = event.placed_at

        # Reconstruct ledger items from JSON (includes IDs for deterministic replay)
        items_data = json.loads(event.items) if isinstance(event.items, str) else []
        self.items = [OrderItem(**item_data) for item_data in items_data]

    @apply
    def _on_order_paid(self, event: OrderPaid):
        self.status = OrderStatus.PAID.value
        self.payment_intent_id = event.payment_intent_id
        self.payment_method = event.payment_method
        self.paid_at = event.paid_at
        self.updated_at = event.paid_at

    @apply
    def _on_order_shipped(self, event: OrderShipped):
        self.status = OrderStatus.SHIPPED.value
        self.tracking = Tracking(
            number=event.tracking_number,
            url=event.tracking_url,
            carrier=event.carrier,
        )
        if event.notes:
            self.admin_notes = event.notes
        self.updated_at = event.shipped_at

    @apply
    def _on_order_delivered(self, event: OrderDelivered):
        self.status = OrderStatus.DELIVERED.value
        if event.notes:
            self.admin_notes = event.notes
        self.updated_at = event.delivered_at

    @apply
    def _on_order_cancelled(self, event: OrderCancelled):
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = event.reason
        self.cancelled_by = event.cancelled_by
        if event.notes:
            self.admin_notes = event.notes
        self.updated_at = event.cancelled_at
