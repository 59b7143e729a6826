"""Order item ledger — freezes the commission split of each line item.

Invoked once per order, at creation time, by the checkout flow. All items are
validated before anything is resolved or written, so a bad item leaves no
partial ledger behind.
"""

from dataclasses import dataclass, field

from protean.exceptions import ValidationError

from settlement.commission.resolver import CommissionResolver, split_amount


@dataclass(frozen=True)
class LedgerLine:
    item_title: str
    rate: float
    source: str
    amount: float

    def to_dict(self) -> dict:
        return {
            "item_title": self.item_title,
            "rate": self.rate,
            "source": self.source,
            "amount": self.amount,
        }


@dataclass
class LedgerResult:
    items: list[dict] = field(default_factory=list)
    breakdown: list[LedgerLine] = field(default_factory=list)

    @property
    def total_amount(self) -> float:
        return round(sum(item["total_price"] for item in self.items), 2)

    @property
    def total_commission(self) -> float:
        return round(sum(item["commission_amount"] for item in self.items), 2)


def validate_items(items) -> None:
    """Reject the whole item list if any item is unusable."""
    if not items:
        raise ValidationError({"items": ["An order needs at least one item"]})

    errors: dict[str, list[str]] = {}
    for index, item in enumerate(items):
        quantity = item.get("quantity")
        unit_price = item.get("unit_price")

        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            errors.setdefault(f"items[{index}].quantity", []).append(
                f"Quantity must be a whole number of at least 1, got {quantity!r}"
            )
        if not isinstance(unit_price, int | float) or isinstance(unit_price, bool) or unit_price < 0:
            errors.setdefault(f"items[{index}].unit_price", []).append(
                f"Unit price must be zero or more, got {unit_price!r}"
            )
        if not item.get("seller_id"):
            errors.setdefault(f"items[{index}].seller_id", []).append("Seller is required")

    if errors:
        raise ValidationError(errors)


class OrderItemLedger:
    def __init__(self, resolver: CommissionResolver | None = None) -> None:
        self.resolver = resolver or CommissionResolver()

    def create_items(self, items) -> LedgerResult:
        """Price each item and attach its commission snapshot.

        Each item dict carries seller_id, unit_price, quantity and optionally
        item_id, item_title, event_id and category_id.
        """
        validate_items(items)

        result = LedgerResult()
        for item in items:
            quantity = item["quantity"]
            unit_price = float(item["unit_price"])
            total_price = round(unit_price * quantity, 2)

            resolved = self.resolver.resolve_rate(
                seller_id=item.get("seller_id"),
                event_id=item.get("event_id"),
                category_id=item.get("category_id"),
            )
            amount, net_amount = split_amount(total_price, resolved.rate)
            title = item.get("item_title") or item.get("item_id") or "Item"

            result.items.append(
                {
                    "seller_id": str(item["seller_id"]),
                    "item_id": _optional_str(item.get("item_id")),
                    "item_title": title,
                    "event_id": _optional_str(item.get("event_id")),
                    "category_id": _optional_str(item.get("category_id")),
                    "quantity": quantity,
                    "unit_price": unit_price,
                    "total_price": total_price,
                    "commission_rate": resolved.rate,
                    "commission_amount": amount,
                    "net_amount": net_amount,
                    "commission_source": resolved.source,
                }
            )
            result.breakdown.append(LedgerLine(item_title=title, rate=resolved.rate, source=resolved.source, amount=amount))

        return result


def _optional_str(value):
    return None if value is None or value == "" else str(value)
