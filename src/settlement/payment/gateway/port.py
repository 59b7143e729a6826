"""Payment gateway port (abstract interface).

The webhook handler only needs one thing from the processor integration:
deciding whether a delivery is authentic. Adapters swap between the fake
gateway (dev/test) and the signing-secret gateway (production) without
touching the handler.
"""

from abc import ABC, abstractmethod


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def verify_webhook_signature(
        self,
        payload: bytes,
        signature: str | None,
    ) -> bool:
        """Verify that a webhook payload is authentically from the gateway."""
        ...
