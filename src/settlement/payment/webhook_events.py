"""Payment processor webhook events.

The raw delivery is parsed into one of a closed set of variants. Every event
type the settlement flow does not act on becomes an `IgnoredEvent`, so the
handler never has to guess at the shape of an unknown payload.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

CHECKOUT_COMPLETED = "checkout.session.completed"
PAYMENT_FAILED = "payment_intent.payment_failed"


class MalformedWebhookError(Exception):
    """The webhook body is not a processor event envelope."""


class WebhookData(BaseModel):
    object: dict[str, Any] = Field(default_factory=dict)


class WebhookEnvelope(BaseModel):
    id: str | None = None
    type: str
    created: int | None = None
    data: WebhookData = Field(default_factory=WebhookData)


class CheckoutCompleted(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_id: str | None = None
    session_id: str
    order_id: str | None = None
    payment_intent_id: str
    payment_method: str | None = None
    paid_at: datetime


class PaymentFailed(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_id: str | None = None
    payment_intent_id: str | None = None
    order_id: str | None = None
    failure_code: str | None = None
    failure_message: str | None = None


class IgnoredEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_id: str | None = None
    event_type: str


WebhookEvent = CheckoutCompleted | PaymentFailed | IgnoredEvent


def parse_webhook_event(payload: bytes | str) -> WebhookEvent:
    """Parse a raw webhook body into its variant.

    Raises MalformedWebhookError when the body is not JSON, lacks an event
    type, or a recognised event lacks the fields settlement depends on.
    """
    try:
        envelope = WebhookEnvelope.model_validate_json(payload)
    except PydanticValidationError as exc:
        raise MalformedWebhookError(f"Invalid webhook envelope: {exc.error_count()} error(s)") from exc

    obj = envelope.data.object
    metadata = obj.get("metadata") or {}

    if envelope.type == CHECKOUT_COMPLETED:
        session_id = obj.get("id")
        if not session_id:
            raise MalformedWebhookError("Checkout session has no id")
        method_types = obj.get("payment_method_types") or []
        return CheckoutCompleted(
            event_id=envelope.id,
            session_id=session_id,
            order_id=metadata.get("order_id") or None,
            payment_intent_id=obj.get("payment_intent") or session_id,
            payment_method=method_types[0] if method_types else None,
            paid_at=_event_time(envelope.created),
        )

    if envelope.type == PAYMENT_FAILED:
        error = obj.get("last_payment_error") or {}
        return PaymentFailed(
            event_id=envelope.id,
            payment_intent_id=obj.get("id"),
            order_id=metadata.get("order_id") or None,
            failure_code=error.get("code"),
            failure_message=error.get("message"),
        )

    return IgnoredEvent(event_id=envelope.id, event_type=envelope.type)


def _event_time(created: int | None) -> datetime:
    if created is None:
        return datetime.now(UTC)
    return datetime.fromtimestamp(created, tz=UTC)
