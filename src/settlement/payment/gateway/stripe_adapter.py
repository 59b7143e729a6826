"""Stripe payment gateway adapter.

Webhook deliveries carry a ``Stripe-Signature`` header that stripe-python
checks against the endpoint's signing secret. Deliveries signed longer ago
than the tolerance are rejected as replays.
"""

import stripe

from settlement.domain import logger
from settlement.payment.gateway.port import PaymentGateway

DEFAULT_TOLERANCE_SECONDS = 300


class StripeGateway(PaymentGateway):
    """Verifies webhook signatures with the endpoint signing secret."""

    def __init__(self, webhook_secret: str, tolerance: int = DEFAULT_TOLERANCE_SECONDS) -> None:
        if not webhook_secret:
            raise ValueError("A webhook signing secret is required")
        self.webhook_secret = webhook_secret
        self.tolerance = tolerance

    def verify_webhook_signature(self, payload: bytes, signature: str | None) -> bool:
        if not signature:
            return False

        try:
            body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
            stripe.WebhookSignature.verify_header(body, signature, self.webhook_secret, tolerance=self.tolerance)
        except UnicodeDecodeError:
            return False
        except stripe.SignatureVerificationError as exc:
            logger.debug("Stripe signature rejected", reason=str(exc))
            return False
        return True
