"""Seller revenue reporting over the seller ledger projection.

Only items of orders that are paid, shipped or delivered count. Pending and
cancelled orders are invisible to every figure in the summary. Nothing here
writes.
"""

from collections import defaultdict
from dataclasses import asdict, dataclass, field
from datetime import date, datetime

from settlement.order.order import SETTLED_STATUSES, OrderStatus
from settlement.projections.seller_ledger import SellerLedgerEntry, ledger_entries

TOP_PRODUCTS_LIMIT = 5

_SETTLED = {status.value for status in SETTLED_STATUSES}
_AWAITING_PAYOUT = {OrderStatus.PAID.value, OrderStatus.SHIPPED.value}


@dataclass
class ProductRevenue:
    item_id: str | None
    item_title: str | None
    quantity: int = 0
    revenue: float = 0.0


@dataclass
class EventRevenue:
    event_id: str
    revenue: float = 0.0
    commission: float = 0.0
    net: float = 0.0
    items_sold: int = 0


@dataclass
class DailyRevenue:
    date: str
    revenue: float = 0.0
    orders: int = 0


@dataclass
class SellerRevenueSummary:
    seller_id: str
    total_revenue: float = 0.0
    total_commission: float = 0.0
    net_payout: float = 0.0
    order_count: int = 0
    items_sold: int = 0
    average_order_value: float = 0.0
    pending_payout: float = 0.0
    paid_out: float = 0.0
    top_products: list[ProductRevenue] = field(default_factory=list)
    revenue_by_event: list[EventRevenue] = field(default_factory=list)
    revenue_over_time: list[DailyRevenue] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


class SellerRevenueAggregator:
    def __init__(self, reader=ledger_entries) -> None:
        self._read = reader

    def query(
        self,
        seller_id,
        date_from: date | None = None,
        date_to: date | None = None,
        event_id=None,
    ) -> SellerRevenueSummary:
        """Summarise a seller's settled sales.

        `date_from` and `date_to` bound the order creation date, both
        inclusive. `event_id` narrows the report to one event.
        """
        filters = {"seller_id": str(seller_id)}
        if event_id:
            filters["event_id"] = str(event_id)

        entries = [
            entry
            for entry in self._read(**filters)
            if entry.order_status in _SETTLED and _in_range(entry, date_from, date_to)
        ]
        return _summarise(str(seller_id), entries)


def _in_range(entry: SellerLedgerEntry, date_from, date_to) -> bool:
    created = _as_date(entry.order_created_at)
    if created is None:
        return date_from is None and date_to is None
    if date_from and created < date_from:
        return False
    if date_to and created > date_to:
        return False
    return True


def _as_date(value) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(str(value)).date()


def _summarise(seller_id: str, entries: list[SellerLedgerEntry]) -> SellerRevenueSummary:
    summary = SellerRevenueSummary(seller_id=seller_id)
    if not entries:
        return summary

    order_ids = set()
    products: dict[str, ProductRevenue] = {}
    events: dict[str, EventRevenue] = {}
    days: dict[str, DailyRevenue] = {}
    orders_per_day: dict[str, set] = defaultdict(set)

    for entry in entries:
        order_ids.add(str(entry.order_id))
        summary.total_revenue += entry.total_price
        summary.total_commission += entry.commission_amount
        summary.net_payout += entry.net_amount
        summary.items_sold += entry.quantity

        if entry.order_status in _AWAITING_PAYOUT:
            summary.pending_payout += entry.net_amount
        else:
            summary.paid_out += entry.net_amount

        product_key = entry.item_id or entry.item_title or str(entry.entry_id)
        product = products.setdefault(product_key, ProductRevenue(item_id=entry.item_id, item_title=entry.item_title))
        product.quantity += entry.quantity
        product.revenue += entry.total_price

        if entry.event_id:
            event = events.setdefault(entry.event_id, EventRevenue(event_id=entry.event_id))
            event.revenue += entry.total_price
            event.commission += entry.commission_amount
            event.net += entry.net_amount
            event.items_sold += entry.quantity

        created = _as_date(entry.order_created_at)
        if created is not None:
            day = created.isoformat()
            days.setdefault(day, DailyRevenue(date=day)).revenue += entry.total_price
            orders_per_day[day].add(str(entry.order_id))

    summary.order_count = len(order_ids)
    summary.total_revenue = round(summary.total_revenue, 2)
    summary.total_commission = round(summary.total_commission, 2)
    summary.net_payout = round(summary.net_payout, 2)
    summary.pending_payout = round(summary.pending_payout, 2)
    summary.paid_out = round(summary.paid_out, 2)
    summary.average_order_value = round(summary.total_revenue / summary.order_count, 2)

    for product in products.values():
        product.revenue = round(product.revenue, 2)
    summary.top_products = sorted(products.values(), key=lambda p: p.revenue, reverse=True)[:TOP_PRODUCTS_LIMIT]

    for event in events.values():
        event.revenue = round(event.revenue, 2)
        event.commission = round(event.commission, 2)
        event.net = round(event.net, 2)
    summary.revenue_by_event = sorted(events.values(), key=lambda e: e.revenue, reverse=True)

    for day, daily in days.items():
        daily.revenue = round(daily.revenue, 2)
        daily.orders = len(orders_per_day[day])
    summary.revenue_over_time = [days[day] for day in sorted(days)]

    return summary
