"""FastAPI routes for the Settlement domain."""

import json
from datetime import date

from fastapi import APIRouter, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from protean.utils.globals import current_domain

from settlement.api.schemas import (
    CancelTicketOrderRequest,
    CommissionRuleResponse,
    CreateCommissionRuleRequest,
    CreateOrderRequest,
    CreateOrderResponse,
    LedgerLineSchema,
    OrderItemResponse,
    OrderResponse,
    PlaceTicketOrderRequest,
    QuoteRequest,
    QuoteResponse,
    RuleIdResponse,
    SellerRevenueResponse,
    StatusResponse,
    TicketOrderIdResponse,
    TimelineEntryResponse,
    TrackingSchema,
    TransitionOrderRequest,
    TransitionResponse,
    UpdateCommissionRuleRequest,
)
from settlement.commission.management import (
    ActivateCommissionRule,
    CreateCommissionRule,
    DeactivateCommissionRule,
    DeleteCommissionRule,
    UpdateCommissionRule,
)
from settlement.commission.resolver import CommissionResolver
from settlement.commission.rule import CommissionRule
from settlement.order.creation import PlaceOrder
from settlement.order.order import Order
from settlement.order.state_machine import OrderStateMachine
from settlement.payment.webhook import PaymentWebhookHandler
from settlement.projections.order_timeline import timeline_for
from settlement.reporting.revenue import SellerRevenueAggregator
from settlement.ticket.management import TicketOrderStateMachine
from settlement.transitions import InvalidTransitionError


def _rule_response(rule: CommissionRule) -> CommissionRuleResponse:
    return CommissionRuleResponse(
        rule_id=str(rule.id),
        rule_type=rule.rule_type,
        reference_id=rule.reference_id,
        rate=rule.rate,
        is_active=rule.is_active,
        description=rule.description,
        created_at=rule.created_at,
        updated_at=rule.updated_at,
    )


def _order_response(order: Order) -> OrderResponse:
    customer = order.customer
    tracking = order.tracking
    return OrderResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        status=order.status,
        customer={
            "name": customer.name if customer else None,
            "email": customer.email if customer else None,
            "phone": customer.phone if customer else None,
        },
        items=[OrderItemResponse(**entry) for entry in order.ledger()],
        total_amount=order.total_amount,
        total_commission=order.total_commission,
        payment_intent_id=order.payment_intent_id,
        payment_method=order.payment_method,
        tracking=TrackingSchema(number=tracking.number, url=tracking.url, carrier=tracking.carrier) if tracking else None,
        admin_notes=order.admin_notes,
        cancellation_reason=order.cancellation_reason,
        created_at=order.created_at,
        paid_at=order.paid_at,
        updated_at=order.updated_at,
    )


# ---------------------------------------------------------------------------
# Commission Rule Router
# ---------------------------------------------------------------------------
rule_router = APIRouter(prefix="/commission-rules", tags=["commission-rules"])


@rule_router.post("", status_code=201, response_model=RuleIdResponse)
async def create_rule(body: CreateCommissionRuleRequest) -> RuleIdResponse:
    """Add a commission rule to the rule store."""
    command = CreateCommissionRule(
        rule_type=body.rule_type,
        reference_id=body.reference_id,
        rate=body.rate,
        description=body.description,
        is_active=body.is_active,
    )
    rule_id = current_domain.process(command, asynchronous=False)
    return RuleIdResponse(rule_id=rule_id)


@rule_router.get("", response_model=list[CommissionRuleResponse])
async def list_rules(rule_type: str | None = None, active_only: bool = False) -> list[CommissionRuleResponse]:
    rules = current_domain.repository_for(CommissionRule).find_all(rule_type=rule_type, active_only=active_only)
    return [_rule_response(rule) for rule in rules]


@rule_router.post("/quote", response_model=QuoteResponse)
async def quote_commission(body: QuoteRequest) -> QuoteResponse:
    """Preview the commission split for a sale without recording anything."""
    quote = CommissionResolver().resolve(
        body.price,
        seller_id=body.seller_id,
        event_id=body.event_id,
        category_id=body.category_id,
    )
    return QuoteResponse(**quote.to_dict())


@rule_router.get("/{rule_id}", response_model=CommissionRuleResponse)
async def get_rule(rule_id: str) -> CommissionRuleResponse:
    rule = current_domain.repository_for(CommissionRule).get(rule_id)
    return _rule_response(rule)


@rule_router.put("/{rule_id}", response_model=StatusResponse)
async def update_rule(rule_id: str, body: UpdateCommissionRuleRequest) -> StatusResponse:
    command = UpdateCommissionRule(rule_id=rule_id, rate=body.rate, description=body.description)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="updated")


@rule_router.post("/{rule_id}/activate", response_model=StatusResponse)
async def activate_rule(rule_id: str) -> StatusResponse:
    current_domain.process(ActivateCommissionRule(rule_id=rule_id), asynchronous=False)
    return StatusResponse(status="active")


@rule_router.post("/{rule_id}/deactivate", response_model=StatusResponse)
async def deactivate_rule(rule_id: str) -> StatusResponse:
    current_domain.process(DeactivateCommissionRule(rule_id=rule_id), asynchronous=False)
    return StatusResponse(status="inactive")


@rule_router.delete("/{rule_id}", response_model=StatusResponse)
async def delete_rule(rule_id: str) -> StatusResponse:
    current_domain.process(DeleteCommissionRule(rule_id=rule_id), asynchronous=False)
    return StatusResponse(status="deleted")


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=CreateOrderResponse)
async def create_order(body: CreateOrderRequest) -> CreateOrderResponse:
    """Checkout contract: price the items, freeze their commission and place the order."""
    items = [item.model_dump() for item in body.items]
    command = PlaceOrder(
        order_number=body.order_number,
        customer_name=body.customer.name,
        customer_email=body.customer.email,
        customer_phone=body.customer.phone,
        items=json.dumps(items),
    )
    order_id = current_domain.process(command, asynchronous=False)
    order = current_domain.repository_for(Order).get(order_id)
    return CreateOrderResponse(
        order_id=order_id,
        total_amount=order.total_amount,
        total_commission=order.total_commission,
        breakdown=[
            LedgerLineSchema(
                item_title=item.item_title,
                rate=item.commission_rate,
                source=item.commission_source,
                amount=item.commission_amount,
            )
            for item in order.items
        ],
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    order = current_domain.repository_for(Order).get(order_id)
    return _order_response(order)


@order_router.get("/{order_id}/timeline", response_model=list[TimelineEntryResponse])
async def get_order_timeline(order_id: str) -> list[TimelineEntryResponse]:
    current_domain.repository_for(Order).get(order_id)
    return [
        TimelineEntryResponse(
            event_type=entry.event_type,
            from_status=entry.from_status,
            to_status=entry.to_status,
            description=entry.description,
            occurred_at=entry.occurred_at,
        )
        for entry in timeline_for(order_id)
    ]


@order_router.post("/{order_id}/transition", response_model=TransitionResponse)
async def transition_order(order_id: str, body: TransitionOrderRequest) -> TransitionResponse:
    """Admin status change. Responds 409 when the order is no longer in `expected_status`."""
    tracking = body.tracking or TrackingSchema()
    try:
        result = OrderStateMachine().transition(
            order_id,
            body.expected_status,
            body.target_status,
            tracking_number=tracking.number,
            tracking_url=tracking.url,
            carrier=tracking.carrier,
            notes=body.notes,
            reason=body.reason,
        )
        result.ensure_applied(body.expected_status, body.target_status)
    except InvalidTransitionError as exc:
        raise HTTPException(
            status_code=409,
            detail={
                "message": str(exc),
                "current_status": exc.current_status,
                "target_status": exc.target_status,
            },
        ) from exc
    return TransitionResponse(**result.to_dict())


# ---------------------------------------------------------------------------
# Payment Webhook Router
# ---------------------------------------------------------------------------
webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@webhook_router.post("/payments")
async def payment_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None),
) -> JSONResponse:
    """Payment processor callback. The raw body is needed for signature verification."""
    payload = await request.body()
    outcome = PaymentWebhookHandler().handle(payload, stripe_signature)
    return JSONResponse(status_code=outcome.status_code, content=outcome.to_dict())


# ---------------------------------------------------------------------------
# Ticket Order Router
# ---------------------------------------------------------------------------
ticket_router = APIRouter(prefix="/ticket-orders", tags=["ticket-orders"])


@ticket_router.post("", status_code=201, response_model=TicketOrderIdResponse)
async def place_ticket_order(body: PlaceTicketOrderRequest) -> TicketOrderIdResponse:
    ticket_order_id = TicketOrderStateMachine().place(
        ticket_type_id=body.ticket_type_id,
        quantity=body.quantity,
        unit_price=body.unit_price,
        event_id=body.event_id,
        buyer_id=body.buyer_id,
    )
    return TicketOrderIdResponse(ticket_order_id=ticket_order_id)


@ticket_router.post("/{ticket_order_id}/confirm", response_model=TransitionResponse)
async def confirm_ticket_order(ticket_order_id: str) -> TransitionResponse:
    result = TicketOrderStateMachine().confirm(ticket_order_id)
    return TransitionResponse(**result.to_dict())


@ticket_router.post("/{ticket_order_id}/cancel", response_model=TransitionResponse)
async def cancel_ticket_order(ticket_order_id: str, body: CancelTicketOrderRequest | None = None) -> TransitionResponse:
    result = TicketOrderStateMachine().cancel(ticket_order_id, reason=body.reason if body else None)
    return TransitionResponse(**result.to_dict())


# ---------------------------------------------------------------------------
# Seller Revenue Router
# ---------------------------------------------------------------------------
seller_router = APIRouter(prefix="/sellers", tags=["sellers"])


@seller_router.get("/{seller_id}/revenue", response_model=SellerRevenueResponse)
async def seller_revenue(
    seller_id: str,
    date_from: date | None = None,
    date_to: date | None = None,
    event_id: str | None = None,
) -> SellerRevenueResponse:
    summary = SellerRevenueAggregator().query(seller_id, date_from=date_from, date_to=date_to, event_id=event_id)
    return SellerRevenueResponse(**summary.to_dict())


routers = [rule_router, order_router, webhook_router, ticket_router, seller_router]
