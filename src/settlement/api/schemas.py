"""Pydantic request/response schemas for the Settlement API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CustomerSchema(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None


class CheckoutItemSchema(BaseModel):
    seller_id: str
    item_id: str | None = None
    item_title: str | None = None
    event_id: str | None = None
    category_id: str | None = None
    quantity: int
    unit_price: float


class TrackingSchema(BaseModel):
    number: str | None = None
    url: str | None = None
    carrier: str | None = None


class StatusResponse(BaseModel):
    status: str


# ---------------------------------------------------------------------------
# Commission rules
# ---------------------------------------------------------------------------
class CreateCommissionRuleRequest(BaseModel):
    rule_type: str
    reference_id: str | None = None
    rate: float
    description: str | None = None
    is_active: bool = True

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "rule_type": "seller",
                    "reference_id": "seller-001",
                    "rate": 8.0,
                    "description": "Launch partner rate",
                }
            ]
        }
    }


class UpdateCommissionRuleRequest(BaseModel):
    rate: float | None = None
    description: str | None = None


class CommissionRuleResponse(BaseModel):
    rule_id: str
    rule_type: str
    reference_id: str | None = None
    rate: float
    is_active: bool
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class RuleIdResponse(BaseModel):
    rule_id: str


class QuoteRequest(BaseModel):
    price: float
    seller_id: str | None = None
    event_id: str | None = None
    category_id: str | None = None


class QuoteResponse(BaseModel):
    price: float
    rate: float
    amount: float
    net_amount: float
    source: str


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    order_number: str
    customer: CustomerSchema = Field(default_factory=CustomerSchema)
    items: list[CheckoutItemSchema]


class LedgerLineSchema(BaseModel):
    item_title: str
    rate: float
    source: str
    amount: float


class CreateOrderResponse(BaseModel):
    order_id: str
    total_amount: float
    total_commission: float
    breakdown: list[LedgerLineSchema]


class OrderItemResponse(BaseModel):
    id: str
    seller_id: str
    item_id: str | None = None
    item_title: str
    event_id: str | None = None
    category_id: str | None = None
    quantity: int
    unit_price: float
    total_price: float
    commission_rate: float
    commission_amount: float
    net_amount: float
    commission_source: str | None = None


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    status: str
    customer: CustomerSchema
    items: list[OrderItemResponse]
    total_amount: float
    total_commission: float
    payment_intent_id: str | None = None
    payment_method: str | None = None
    tracking: TrackingSchema | None = None
    admin_notes: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime | None = None
    paid_at: datetime | None = None
    updated_at: datetime | None = None


class TransitionOrderRequest(BaseModel):
    expected_status: str
    target_status: str
    tracking: TrackingSchema | None = None
    notes: str | None = None
    reason: str | None = None


class TransitionResponse(BaseModel):
    applied: bool
    current_status: str


class TimelineEntryResponse(BaseModel):
    event_type: str
    from_status: str | None = None
    to_status: str
    description: str
    occurred_at: datetime


# ---------------------------------------------------------------------------
# Ticket orders
# ---------------------------------------------------------------------------
class PlaceTicketOrderRequest(BaseModel):
    ticket_type_id: str
    event_id: str | None = None
    buyer_id: str | None = None
    quantity: int = Field(ge=1, default=1)
    unit_price: float = Field(ge=0)


class TicketOrderIdResponse(BaseModel):
    ticket_order_id: str


class CancelTicketOrderRequest(BaseModel):
    reason: str | None = None


# ---------------------------------------------------------------------------
# Seller revenue
# ---------------------------------------------------------------------------
class ProductRevenueSchema(BaseModel):
    item_id: str | None = None
    item_title: str | None = None
    quantity: int
    revenue: float


class EventRevenueSchema(BaseModel):
    event_id: str
    revenue: float
    commission: float
    net: float
    items_sold: int


class DailyRevenueSchema(BaseModel):
    date: str
    revenue: float
    orders: int


class SellerRevenueResponse(BaseModel):
    seller_id: str
    total_revenue: float
    total_commission: float
    net_payout: float
    order_count: int
    items_sold: int
    average_order_value: float
    pending_payout: float
    paid_out: float
    top_products: list[ProductRevenueSchema]
    revenue_by_event: list[EventRevenueSchema]
    revenue_over_time: list[DailyRevenueSchema]
