import time

import pytest
import stripe
from protean import current_domain
from protean.integrations.pytest import DomainFixture

from settlement.payment.gateway import reset_gateway


@pytest.fixture(scope="session")
def settlement_bed():
    from settlement.domain import settlement

    bed = DomainFixture(settlement)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(settlement_bed):
    with settlement_bed.domain_context():
        yield

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()

    reset_gateway()


@pytest.fixture()
def sign_webhook():
    """Build a Stripe-Signature header for a payload, as the processor would."""

    def _sign(payload: bytes, secret: str, timestamp: int | None = None) -> str:
        timestamp = timestamp or int(time.time())
        signed_payload = f"{timestamp}.{payload.decode('utf-8')}"
        return f"t={timestamp},v1={stripe.WebhookSignature._compute_signature(signed_payload, secret)}"

    return _sign
