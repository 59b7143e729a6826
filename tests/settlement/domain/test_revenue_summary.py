"""Tests for seller revenue aggregation over ledger rows."""

from datetime import UTC, date, datetime
from uuid import uuid4

from settlement.projections.seller_ledger import SellerLedgerEntry
from settlement.reporting.revenue import SellerRevenueAggregator


def _entry(order_id, status, total_price, quantity=1, rate=10.0, created=datetime(2026, 5, 4, 9, tzinfo=UTC), **extra):
    commission = round(total_price * rate / 100, 2)
    fields = {
        "entry_id": str(uuid4()),
        "order_id": order_id,
        "seller_id": "seller-1",
        "item_id": "prod-1",
        "item_title": "Poster",
        "quantity": quantity,
        "unit_price": total_price / quantity,
        "total_price": total_price,
        "commission_rate": rate,
        "commission_amount": commission,
        "net_amount": round(total_price - commission, 2),
        "commission_source": "default",
        "order_status": status,
        "order_created_at": created,
    }
    fields.update(extra)
    return SellerLedgerEntry(**fields)


def _aggregator(*entries):
    def reader(**filters):
        return [entry for entry in entries if all(getattr(entry, key) == value for key, value in filters.items())]

    return SellerRevenueAggregator(reader=reader)


class TestSettledOnly:
    def test_pending_and_cancelled_orders_excluded(self):
        summary = _aggregator(
            _entry("o-1", "paid", 100.0),
            _entry("o-2", "pending", 500.0),
            _entry("o-3", "cancelled", 700.0),
        ).query("seller-1")
        assert summary.total_revenue == 100.0
        assert summary.order_count == 1
        assert summary.items_sold == 1

    def test_every_settled_status_counts(self):
        summary = _aggregator(
            _entry("o-1", "paid", 100.0),
            _entry("o-2", "shipped", 200.0),
            _entry("o-3", "delivered", 300.0),
        ).query("seller-1")
        assert summary.total_revenue == 600.0
        assert summary.total_commission == 60.0
        assert summary.net_payout == 540.0
        assert summary.order_count == 3
        assert summary.average_order_value == 200.0

    def test_no_rows_gives_zero_summary(self):
        summary = _aggregator().query("seller-1")
        assert summary.total_revenue == 0.0
        assert summary.order_count == 0
        assert summary.average_order_value == 0.0
        assert summary.top_products == []

    def test_other_sellers_excluded(self):
        summary = _aggregator(
            _entry("o-1", "paid", 100.0),
            _entry("o-2", "paid", 900.0, seller_id="seller-2"),
        ).query("seller-1")
        assert summary.total_revenue == 100.0


class TestPayoutSplit:
    def test_pending_payout_and_paid_out(self):
        summary = _aggregator(
            _entry("o-1", "paid", 100.0),
            _entry("o-2", "shipped", 200.0),
            _entry("o-3", "delivered", 300.0),
        ).query("seller-1")
        assert summary.pending_payout == 270.0
        assert summary.paid_out == 270.0


class TestBreakdowns:
    def test_order_count_is_distinct_orders(self):
        summary = _aggregator(
            _entry("o-1", "paid", 100.0, item_id="prod-1"),
            _entry("o-1", "paid", 50.0, item_id="prod-2"),
        ).query("seller-1")
        assert summary.order_count == 1
        assert summary.items_sold == 2
        assert summary.average_order_value == 150.0

    def test_top_products_limited_and_sorted(self):
        entries = [_entry(f"o-{i}", "paid", 10.0 * i, item_id=f"prod-{i}", item_title=f"P{i}") for i in range(1, 8)]
        summary = _aggregator(*entries).query("seller-1")
        assert [product.item_id for product in summary.top_products] == ["prod-7", "prod-6", "prod-5", "prod-4", "prod-3"]

    def test_top_products_group_by_item(self):
        summary = _aggregator(
            _entry("o-1", "paid", 100.0, quantity=2, item_id="prod-1"),
            _entry("o-2", "paid", 50.0, quantity=1, item_id="prod-1"),
        ).query("seller-1")
        product = summary.top_products[0]
        assert product.quantity == 3
        assert product.revenue == 150.0

    def test_revenue_by_event(self):
        summary = _aggregator(
            _entry("o-1", "paid", 100.0, event_id="event-1"),
            _entry("o-2", "paid", 300.0, event_id="event-2"),
            _entry("o-3", "paid", 50.0, event_id="event-1"),
            _entry("o-4", "paid", 20.0),
        ).query("seller-1")
        assert [(event.event_id, event.revenue) for event in summary.revenue_by_event] == [
            ("event-2", 300.0),
            ("event-1", 150.0),
        ]

    def test_revenue_over_time(self):
        summary = _aggregator(
            _entry("o-1", "paid", 100.0, created=datetime(2026, 5, 2, tzinfo=UTC)),
            _entry("o-2", "paid", 40.0, created=datetime(2026, 5, 1, tzinfo=UTC)),
            _entry("o-3", "paid", 60.0, created=datetime(2026, 5, 2, 18, tzinfo=UTC)),
        ).query("seller-1")
        assert [(day.date, day.revenue, day.orders) for day in summary.revenue_over_time] == [
            ("2026-05-01", 40.0, 1),
            ("2026-05-02", 160.0, 2),
        ]


class TestFilters:
    def test_date_range_is_inclusive(self):
        aggregator = _aggregator(
            _entry("o-1", "paid", 10.0, created=datetime(2026, 5, 1, tzinfo=UTC)),
            _entry("o-2", "paid", 20.0, created=datetime(2026, 5, 2, 23, 59, tzinfo=UTC)),
            _entry("o-3", "paid", 40.0, created=datetime(2026, 5, 3, tzinfo=UTC)),
        )
        summary = aggregator.query("seller-1", date_from=date(2026, 5, 2), date_to=date(2026, 5, 3))
        assert summary.total_revenue == 60.0

    def test_event_filter(self):
        summary = _aggregator(
            _entry("o-1", "paid", 100.0, event_id="event-1"),
            _entry("o-2", "paid", 300.0, event_id="event-2"),
        ).query("seller-1", event_id="event-2")
        assert summary.total_revenue == 300.0

    def test_to_dict(self):
        summary = _aggregator(_entry("o-1", "paid", 100.0)).query("seller-1")
        data = summary.to_dict()
        assert data["seller_id"] == "seller-1"
        assert data["top_products"][0]["item_id"] == "prod-1"
