"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- StripeGateway when PAYMENT_WEBHOOK_SECRET is set
- FakeGateway otherwise, outside production and staging
"""

import os

from settlement.domain import logger
from settlement.payment.gateway.fake_adapter import FakeGateway
from settlement.payment.gateway.port import PaymentGateway
from settlement.payment.gateway.stripe_adapter import StripeGateway

PROTECTED_ENVIRONMENTS = {"production", "staging"}

_current_gateway: PaymentGateway | None = None


class GatewayConfigurationError(RuntimeError):
    """The payment gateway cannot be built from the current environment."""


def _build_gateway() -> PaymentGateway:
    secret = os.getenv("PAYMENT_WEBHOOK_SECRET")
    if secret:
        return StripeGateway(webhook_secret=secret)

    environment = os.getenv("ENVIRONMENT", "development").lower()
    if environment in PROTECTED_ENVIRONMENTS:
        raise GatewayConfigurationError(f"PAYMENT_WEBHOOK_SECRET must be set in {environment}")

    logger.warning("PAYMENT_WEBHOOK_SECRET is not set, using the fake payment gateway", environment=environment)
    return FakeGateway()


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, building it from the environment on first use."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = _build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
