"""Payment webhook handler — the processor's way into the order state machine.

A delivery is verified, parsed into a closed event variant and dispatched.
Checkout completion moves the order pending → paid through the compare-and-swap
payment transition, so a redelivered event is acknowledged without changing
anything. Only a verification or parsing failure (400) or an unexpected
persistence error (500) makes the processor retry.
"""

from dataclasses import dataclass

from protean.exceptions import ObjectNotFoundError, ValidationError

from settlement.domain import logger
from settlement.order.state_machine import OrderStateMachine
from settlement.payment.gateway import get_gateway
from settlement.payment.gateway.port import PaymentGateway
from settlement.payment.webhook_events import (
    CheckoutCompleted,
    IgnoredEvent,
    MalformedWebhookError,
    PaymentFailed,
    parse_webhook_event,
)


@dataclass(frozen=True)
class WebhookOutcome:
    status_code: int
    status: str
    detail: str | None = None

    def to_dict(self) -> dict:
        body = {"status": self.status}
        if self.detail:
            body["detail"] = self.detail
        return body


class PaymentWebhookHandler:
    def __init__(
        self,
        gateway: PaymentGateway | None = None,
        state_machine: OrderStateMachine | None = None,
    ) -> None:
        self.gateway = gateway
        self.state_machine = state_machine or OrderStateMachine()

    def handle(self, payload: bytes, signature: str | None) -> WebhookOutcome:
        gateway = self.gateway or get_gateway()
        if not gateway.verify_webhook_signature(payload, signature):
            logger.warning("Webhook signature verification failed")
            return WebhookOutcome(400, "invalid_signature", "Webhook signature verification failed")

        try:
            event = parse_webhook_event(payload)
        except MalformedWebhookError as exc:
            logger.warning("Malformed webhook payload", error=str(exc))
            return WebhookOutcome(400, "malformed", str(exc))

        try:
            if isinstance(event, CheckoutCompleted):
                return self._checkout_completed(event)
            if isinstance(event, PaymentFailed):
                return self._payment_failed(event)
            return self._ignored(event)
        except Exception:
            logger.exception("Webhook processing failed", event_id=event.event_id)
            return WebhookOutcome(500, "error", "Webhook processing failed")

    def _checkout_completed(self, event: CheckoutCompleted) -> WebhookOutcome:
        if not event.order_id:
            logger.warning("Checkout session has no order id", session_id=event.session_id)
            return WebhookOutcome(200, "ignored", "No order id in session metadata")

        try:
            result = self.state_machine.record_payment(
                order_id=event.order_id,
                payment_intent_id=event.payment_intent_id,
                payment_method=event.payment_method,
                paid_at=event.paid_at,
            )
        except (ObjectNotFoundError, ValidationError):
            logger.warning("Checkout completed for unknown order", order_id=event.order_id)
            return WebhookOutcome(200, "ignored", "Unknown order")

        if not result.applied:
            logger.info(
                "Duplicate checkout completion",
                order_id=event.order_id,
                current_status=result.current_status,
            )
            return WebhookOutcome(200, "duplicate")

        logger.info(
            "Order paid",
            order_id=event.order_id,
            payment_intent_id=event.payment_intent_id,
            payment_method=event.payment_method,
        )
        return WebhookOutcome(200, "processed")

    def _payment_failed(self, event: PaymentFailed) -> WebhookOutcome:
        logger.warning(
            "Payment failed",
            payment_intent_id=event.payment_intent_id,
            order_id=event.order_id,
            failure_code=event.failure_code,
            failure_message=event.failure_message,
        )
        return WebhookOutcome(200, "payment_failed")

    def _ignored(self, event: IgnoredEvent) -> WebhookOutcome:
        logger.info("Unhandled webhook event", event_type=event.event_type)
        return WebhookOutcome(200, "ignored")
