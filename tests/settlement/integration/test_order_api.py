"""Integration tests for the order API: checkout, reads and admin transitions."""

from protean import current_domain

from settlement.order.order import Order
from settlement.order.state_machine import OrderStateMachine


def _create_order(client, items=None):
    response = client.post(
        "/orders",
        json={
            "order_number": "ORD-API-1",
            "customer": {"name": "Lin", "email": "lin@example.com"},
            "items": items
            or [
                {
                    "seller_id": "seller-api-1",
                    "item_id": "prod-1",
                    "item_title": "Poster",
                    "quantity": 2,
                    "unit_price": 30.0,
                }
            ],
        },
    )
    assert response.status_code == 201
    return response.json()


def _pay(order_id):
    OrderStateMachine().record_payment(order_id, payment_intent_id="cs_api_1", payment_method="card")


class TestCreateOrderAPI:
    def test_create_returns_totals_and_breakdown(self, client):
        data = _create_order(client)
        assert data["total_amount"] == 60.0
        assert data["total_commission"] == 6.0
        assert data["breakdown"] == [{"item_title": "Poster", "rate": 10.0, "source": "default", "amount": 6.0}]

        order = current_domain.repository_for(Order).get(data["order_id"])
        assert order.status == "pending"

    def test_invalid_quantity_returns_400(self, client):
        response = client.post(
            "/orders",
            json={
                "order_number": "ORD-API-2",
                "items": [{"seller_id": "s", "item_title": "X", "quantity": 0, "unit_price": 5.0}],
            },
        )
        assert response.status_code == 400

    def test_negative_price_returns_400(self, client):
        response = client.post(
            "/orders",
            json={
                "order_number": "ORD-API-3",
                "items": [{"seller_id": "s", "item_title": "X", "quantity": 1, "unit_price": -5.0}],
            },
        )
        assert response.status_code == 400


class TestGetOrderAPI:
    def test_get_order(self, client):
        order_id = _create_order(client)["order_id"]
        response = client.get(f"/orders/{order_id}")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "pending"
        assert data["customer"]["email"] == "lin@example.com"
        item = data["items"][0]
        assert item["commission_rate"] == 10.0
        assert item["net_amount"] == 54.0

    def test_unknown_order_returns_404(self, client):
        assert client.get("/orders/does-not-exist").status_code == 404

    def test_timeline(self, client):
        order_id = _create_order(client)["order_id"]
        _pay(order_id)
        response = client.get(f"/orders/{order_id}/timeline")
        assert response.status_code == 200
        assert [entry["to_status"] for entry in response.json()] == ["pending", "paid"]


class TestTransitionAPI:
    def test_ship_paid_order(self, client):
        order_id = _create_order(client)["order_id"]
        _pay(order_id)
        response = client.post(
            f"/orders/{order_id}/transition",
            json={
                "expected_status": "paid",
                "target_status": "shipped",
                "tracking": {"number": "TRK-API", "carrier": "UPS"},
                "notes": "Fragile",
            },
        )
        assert response.status_code == 200
        assert response.json() == {"applied": True, "current_status": "shipped"}
        assert client.get(f"/orders/{order_id}").json()["tracking"]["number"] == "TRK-API"

    def test_stale_expected_status_returns_409(self, client):
        order_id = _create_order(client)["order_id"]
        _pay(order_id)
        response = client.post(
            f"/orders/{order_id}/transition",
            json={"expected_status": "pending", "target_status": "cancelled"},
        )
        assert response.status_code == 409
        assert response.json()["detail"]["current_status"] == "paid"

    def test_transition_outside_table_returns_409(self, client):
        order_id = _create_order(client)["order_id"]
        response = client.post(
            f"/orders/{order_id}/transition",
            json={"expected_status": "pending", "target_status": "delivered"},
        )
        assert response.status_code == 409

    def test_admin_paid_transition_returns_409(self, client):
        order_id = _create_order(client)["order_id"]
        response = client.post(
            f"/orders/{order_id}/transition",
            json={"expected_status": "pending", "target_status": "paid"},
        )
        assert response.status_code == 409
        assert client.get(f"/orders/{order_id}").json()["status"] == "pending"
