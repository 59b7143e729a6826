"""Commission rate resolution.

Resolution starts from the platform default rate and walks a fixed sequence
of scoped strategies: seller, then event, then category. Every strategy that
finds an active rule overwrites the rate chosen so far, so the last match
wins. A category rule therefore beats an event rule, which beats a seller
rule. When no scoped rule matches, an active `default` rule (if any) replaces
the platform default rate.

Rules are read through a `RuleLookup`:
- RepositoryRuleLookup reads the CommissionRule repository (production)
- InMemoryRuleLookup holds a fixed rule set (tests, previews)
"""

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from settlement.commission.rule import CommissionRule, RuleType

PLATFORM_DEFAULT_RATE = 10.0


def platform_default_rate() -> float:
    """The rate applied when no rule matches at all."""
    return float(os.getenv("SETTLEMENT_DEFAULT_COMMISSION_RATE", PLATFORM_DEFAULT_RATE))


# ---------------------------------------------------------------------------
# Rule lookup port and adapters
# ---------------------------------------------------------------------------
class RuleLookup(ABC):
    """Read access to active commission rules."""

    @abstractmethod
    def first_active(self, rule_type: RuleType, reference_id=None) -> CommissionRule | None:
        """Return the first active rule for the scope, or None."""
        ...


class RepositoryRuleLookup(RuleLookup):
    """Rule lookup backed by the CommissionRule repository of the active domain."""

    def first_active(self, rule_type: RuleType, reference_id=None) -> CommissionRule | None:
        if rule_type != RuleType.DEFAULT and reference_id is None:
            return None
        rules = current_domain.repository_for(CommissionRule).find_active(rule_type, reference_id)
        return rules[0] if rules else None


class InMemoryRuleLookup(RuleLookup):
    """Rule lookup over a fixed list of rules, first match in list order."""

    def __init__(self, rules=None) -> None:
        self.rules: list[CommissionRule] = list(rules or [])

    def first_active(self, rule_type: RuleType, reference_id=None) -> CommissionRule | None:
        if rule_type != RuleType.DEFAULT and reference_id is None:
            return None
        return next((rule for rule in self.rules if rule.matches(rule_type, reference_id)), None)


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class SaleContext:
    seller_id: str | None = None
    event_id: str | None = None
    category_id: str | None = None


@dataclass(frozen=True)
class ScopeStrategy:
    """Looks up the active rule for one scope of the sale context."""

    rule_type: RuleType
    context_field: str

    @property
    def source(self) -> str:
        return self.rule_type.value

    def match(self, rules: RuleLookup, context: SaleContext) -> CommissionRule | None:
        reference_id = getattr(context, self.context_field)
        if reference_id is None:
            return None
        return rules.first_active(self.rule_type, reference_id)


# Evaluated in order; each match overwrites the previous one.
RESOLUTION_SEQUENCE: tuple[ScopeStrategy, ...] = (
    ScopeStrategy(RuleType.SELLER, "seller_id"),
    ScopeStrategy(RuleType.EVENT, "event_id"),
    ScopeStrategy(RuleType.CATEGORY, "category_id"),
)

DEFAULT_SOURCE = RuleType.DEFAULT.value


@dataclass(frozen=True)
class ResolvedRate:
    rate: float
    source: str


@dataclass(frozen=True)
class CommissionQuote:
    """The platform/seller split of one sale."""

    price: float
    rate: float
    amount: float
    net_amount: float
    source: str

    def to_dict(self) -> dict:
        return {
            "price": self.price,
            "rate": self.rate,
            "amount": self.amount,
            "net_amount": self.net_amount,
            "source": self.source,
        }


def split_amount(price: float, rate: float) -> tuple[float, float]:
    """Split `price` into (commission, net). The two always add up to `price`."""
    amount = round(price * rate / 100, 2)
    return amount, round(price - amount, 2)


class CommissionResolver:
    def __init__(
        self,
        rules: RuleLookup | None = None,
        default_rate: float | None = None,
        sequence: tuple[ScopeStrategy, ...] = RESOLUTION_SEQUENCE,
    ) -> None:
        self.rules = rules if rules is not None else RepositoryRuleLookup()
        self.default_rate = default_rate if default_rate is not None else platform_default_rate()
        self.sequence = sequence

    def resolve_rate(self, seller_id=None, event_id=None, category_id=None) -> ResolvedRate:
        """Effective rate and the scope it came from. Never fails."""
        context = SaleContext(
            seller_id=_as_reference(seller_id),
            event_id=_as_reference(event_id),
            category_id=_as_reference(category_id),
        )

        rate = self.default_rate
        source = DEFAULT_SOURCE
        for strategy in self.sequence:
            rule = strategy.match(self.rules, context)
            if rule is not None:
                rate = rule.rate
                source = strategy.source

        if source == DEFAULT_SOURCE:
            default_rule = self.rules.first_active(RuleType.DEFAULT)
            if default_rule is not None:
                rate = default_rule.rate

        return ResolvedRate(rate=float(rate), source=source)

    def resolve(self, price, seller_id=None, event_id=None, category_id=None) -> CommissionQuote:
        """Quote the commission split for a sale of `price`."""
        if price is None or price <= 0:
            raise ValidationError({"price": [f"Price must be greater than zero, got {price!r}"]})

        resolved = self.resolve_rate(seller_id=seller_id, event_id=event_id, category_id=category_id)
        amount, net_amount = split_amount(float(price), resolved.rate)
        return CommissionQuote(
            price=float(price),
            rate=resolved.rate,
            amount=amount,
            net_amount=net_amount,
            source=resolved.source,
        )


def _as_reference(value):
    if value is None or value == "":
        return None
    return str(value)
