"""Fake payment gateway for development and testing.

Accepts exactly one signature value, so tests can post webhooks without
computing HMACs, and records every verification it is asked to do.
"""

from settlement.payment.gateway.port import PaymentGateway

TEST_SIGNATURE = "test-signature"


class FakeGateway(PaymentGateway):
    def __init__(self, accepted_signature: str = TEST_SIGNATURE) -> None:
        self.accepted_signature = accepted_signature
        self.calls: list[dict] = []

    def verify_webhook_signature(self, payload: bytes, signature: str | None) -> bool:
        self.calls.append({"method": "verify_webhook_signature", "signature": signature, "size": len(payload)})
        return signature == self.accepted_signature
