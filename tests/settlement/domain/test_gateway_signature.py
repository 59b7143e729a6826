"""Tests for webhook signature verification adapters and the gateway factory."""

import time

import pytest

from settlement.payment.gateway import GatewayConfigurationError, get_gateway, reset_gateway, set_gateway
from settlement.payment.gateway.fake_adapter import TEST_SIGNATURE, FakeGateway
from settlement.payment.gateway.stripe_adapter import StripeGateway

SECRET = "whsec_test_secret"
PAYLOAD = b'{"type": "checkout.session.completed"}'


@pytest.fixture()
def gateway():
    return StripeGateway(webhook_secret=SECRET)


class TestStripeGateway:
    def test_valid_signature(self, gateway, sign_webhook):
        assert gateway.verify_webhook_signature(PAYLOAD, sign_webhook(PAYLOAD, SECRET))

    def test_any_of_several_signatures(self, gateway, sign_webhook):
        header = sign_webhook(PAYLOAD, SECRET)
        timestamp, valid = header.split(",")
        assert gateway.verify_webhook_signature(PAYLOAD, f"{timestamp},v1=deadbeef,{valid}")

    def test_tampered_payload(self, gateway, sign_webhook):
        assert not gateway.verify_webhook_signature(PAYLOAD + b" ", sign_webhook(PAYLOAD, SECRET))

    def test_wrong_secret(self, gateway, sign_webhook):
        assert not gateway.verify_webhook_signature(PAYLOAD, sign_webhook(PAYLOAD, "whsec_other"))

    def test_timestamp_outside_tolerance(self, gateway, sign_webhook):
        header = sign_webhook(PAYLOAD, SECRET, timestamp=int(time.time()) - 600)
        assert not gateway.verify_webhook_signature(PAYLOAD, header)

    def test_timestamp_inside_tolerance(self, gateway, sign_webhook):
        header = sign_webhook(PAYLOAD, SECRET, timestamp=int(time.time()) - 60)
        assert gateway.verify_webhook_signature(PAYLOAD, header)

    def test_wider_tolerance_accepts_older_deliveries(self, sign_webhook):
        header = sign_webhook(PAYLOAD, SECRET, timestamp=int(time.time()) - 600)
        assert StripeGateway(webhook_secret=SECRET, tolerance=900).verify_webhook_signature(PAYLOAD, header)

    @pytest.mark.parametrize("header", [None, "", "garbage", "v1=abc", "t=soon,v1=abc"])
    def test_unusable_headers(self, gateway, header):
        assert not gateway.verify_webhook_signature(PAYLOAD, header)

    def test_header_without_signatures(self, gateway):
        assert not gateway.verify_webhook_signature(PAYLOAD, f"t={int(time.time())}")

    def test_non_utf8_payload(self, gateway, sign_webhook):
        assert not gateway.verify_webhook_signature(b"\xff\xfe", sign_webhook(PAYLOAD, SECRET))

    def test_secret_required(self):
        with pytest.raises(ValueError):
            StripeGateway(webhook_secret="")


class TestFakeGateway:
    def test_accepts_test_signature(self):
        gateway = FakeGateway()
        assert gateway.verify_webhook_signature(PAYLOAD, TEST_SIGNATURE)
        assert gateway.calls[0]["signature"] == TEST_SIGNATURE

    def test_rejects_anything_else(self):
        assert not FakeGateway().verify_webhook_signature(PAYLOAD, "t=1,v1=abc")


class TestGatewayFactory:
    def test_defaults_to_fake_gateway(self, monkeypatch):
        monkeypatch.delenv("PAYMENT_WEBHOOK_SECRET", raising=False)
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        reset_gateway()
        assert isinstance(get_gateway(), FakeGateway)

    @pytest.mark.parametrize("environment", ["production", "staging", "Production"])
    def test_refuses_fake_gateway_in_protected_environments(self, monkeypatch, environment):
        monkeypatch.delenv("PAYMENT_WEBHOOK_SECRET", raising=False)
        monkeypatch.setenv("ENVIRONMENT", environment)
        reset_gateway()
        with pytest.raises(GatewayConfigurationError):
            get_gateway()

    def test_production_with_secret_uses_stripe(self, monkeypatch):
        monkeypatch.setenv("PAYMENT_WEBHOOK_SECRET", SECRET)
        monkeypatch.setenv("ENVIRONMENT", "production")
        reset_gateway()
        assert isinstance(get_gateway(), StripeGateway)

    def test_uses_signing_secret_when_configured(self, monkeypatch):
        monkeypatch.setenv("PAYMENT_WEBHOOK_SECRET", SECRET)
        reset_gateway()
        gateway = get_gateway()
        assert isinstance(gateway, StripeGateway)
        assert gateway.webhook_secret == SECRET

    def test_set_gateway_overrides(self):
        custom = FakeGateway(accepted_signature="custom")
        set_gateway(custom)
        assert get_gateway() is custom
