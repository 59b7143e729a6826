"""Application tests for placing orders and freezing their commission ledger."""

import json

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from settlement.commission.management import (
    CreateCommissionRule,
    DeactivateCommissionRule,
    DeleteCommissionRule,
    UpdateCommissionRule,
)
from settlement.order.creation import PlaceOrder
from settlement.order.order import Order, OrderStatus


def _create_rule(rule_type, reference_id, rate):
    command = CreateCommissionRule(rule_type=rule_type, reference_id=reference_id, rate=rate)
    return current_domain.process(command, asynchronous=False)


def _place_order(items=None, order_number="ORD-2001"):
    items = items or [
        {"seller_id": "seller-1", "item_id": "prod-1", "item_title": "Poster", "quantity": 2, "unit_price": 25.0},
    ]
    command = PlaceOrder(
        order_number=order_number,
        customer_name="Grace",
        customer_email="grace@example.com",
        items=json.dumps(items),
    )
    return current_domain.process(command, asynchronous=False)


class TestPlaceOrder:
    def test_order_is_pending(self):
        order_id = _place_order()
        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == OrderStatus.PENDING.value
        assert order.order_number == "ORD-2001"
        assert order.customer.name == "Grace"

    def test_items_carry_commission_snapshot(self):
        _create_rule("seller", "seller-1", 8.0)
        order_id = _place_order()
        item = current_domain.repository_for(Order).get(order_id).items[0]
        assert item.total_price == 50.0
        assert item.commission_rate == 8.0
        assert item.commission_amount == 4.0
        assert item.net_amount == 46.0
        assert item.commission_source == "seller"

    def test_totals(self):
        order_id = _place_order(
            [
                {"seller_id": "seller-1", "item_title": "A", "quantity": 1, "unit_price": 100.0},
                {"seller_id": "seller-2", "item_title": "B", "quantity": 3, "unit_price": 10.0},
            ]
        )
        order = current_domain.repository_for(Order).get(order_id)
        assert order.total_amount == 130.0
        assert order.total_commission == 13.0
        assert order.total_amount == sum(item.total_price for item in order.items)

    def test_invalid_item_rejects_the_order(self):
        with pytest.raises(ValidationError):
            _place_order([{"seller_id": "seller-1", "item_title": "A", "quantity": 0, "unit_price": 10.0}])


class TestSnapshotImmutability:
    def _item(self, order_id):
        return current_domain.repository_for(Order).get(order_id).items[0]

    def test_rate_change_does_not_touch_existing_items(self):
        rule_id = _create_rule("seller", "seller-1", 8.0)
        order_id = _place_order()

        current_domain.process(UpdateCommissionRule(rule_id=rule_id, rate=20.0), asynchronous=False)

        item = self._item(order_id)
        assert item.commission_rate == 8.0
        assert item.commission_amount == 4.0
        assert item.net_amount == 46.0

    def test_deactivation_does_not_touch_existing_items(self):
        rule_id = _create_rule("seller", "seller-1", 8.0)
        order_id = _place_order()

        current_domain.process(DeactivateCommissionRule(rule_id=rule_id), asynchronous=False)

        assert self._item(order_id).commission_rate == 8.0

    def test_deletion_does_not_touch_existing_items(self):
        rule_id = _create_rule("seller", "seller-1", 8.0)
        order_id = _place_order()

        current_domain.process(DeleteCommissionRule(rule_id=rule_id), asynchronous=False)

        assert self._item(order_id).commission_source == "seller"

    def test_new_orders_use_the_new_rate(self):
        rule_id = _create_rule("seller", "seller-1", 8.0)
        first = _place_order(order_number="ORD-A")
        current_domain.process(UpdateCommissionRule(rule_id=rule_id, rate=20.0), asynchronous=False)
        second = _place_order(order_number="ORD-B")

        assert self._item(first).commission_rate == 8.0
        assert self._item(second).commission_rate == 20.0
