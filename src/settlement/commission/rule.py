"""CommissionRule aggregate — the persisted commission policy records.

A rule maps a scope (platform default, category, event, seller or product
type) to a percentage the platform keeps from a sale. Only active rules take
part in rate resolution. Several active rules may exist for the same scope;
the oldest one wins.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, String

from settlement.commission.events import (
    CommissionRateChanged,
    CommissionRuleActivated,
    CommissionRuleCreated,
    CommissionRuleDeactivated,
)
from settlement.domain import settlement

MIN_RATE = 0.0
MAX_RATE = 100.0


class RuleType(Enum):
    DEFAULT = "default"
    CATEGORY = "category"
    EVENT = "event"
    SELLER = "seller"
    PRODUCT_TYPE = "product_type"


def validate_rate(rate) -> float:
    """Return `rate` as a float, or raise if it is not a percentage."""
    if rate is None:
        raise ValidationError({"rate": ["Rate is required"]})
    try:
        value = float(rate)
    except (TypeError, ValueError):
        raise ValidationError({"rate": [f"Rate must be a number, got {rate!r}"]}) from None
    if not MIN_RATE <= value <= MAX_RATE:
        raise ValidationError({"rate": [f"Rate must be between {MIN_RATE:g} and {MAX_RATE:g}, got {value:g}"]})
    return value


@settlement.aggregate
class CommissionRule:
    """A commission policy for one scope of sales.

    `reference_id` identifies the seller, event, category or product type the
    rule applies to. The platform default rule is the only one without it.
    """

    rule_type = String(required=True, max_length=20, choices=RuleType)
    reference_id = String(max_length=255)
    rate = Float(required=True, min_value=MIN_RATE, max_value=MAX_RATE)
    is_active = Boolean(default=True)
    description = String(max_length=500)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def reference_id_matches_rule_type(self):
        if self.rule_type == RuleType.DEFAULT.value:
            if self.reference_id:
                raise ValidationError({"reference_id": ["Default rules cannot reference a scope"]})
        elif not self.reference_id:
            raise ValidationError({"reference_id": [f"A {self.rule_type} rule requires a reference_id"]})

    @classmethod
    def create(cls, rule_type, rate, reference_id=None, description=None, is_active=True):
        rate = validate_rate(rate)
        if isinstance(rule_type, RuleType):
            rule_type = rule_type.value
        now = datetime.now(UTC)

        rule = cls(
            rule_type=rule_type,
            reference_id=reference_id or None,
            rate=rate,
            is_active=is_active,
            description=description,
            created_at=now,
            updated_at=now,
        )
        rule.raise_(
            CommissionRuleCreated(
                rule_id=rule.id,
                rule_type=rule.rule_type,
                reference_id=rule.reference_id,
                rate=rate,
                is_active=rule.is_active,
                created_at=now,
            )
        )
        return rule

    def matches(self, rule_type: RuleType, reference_id) -> bool:
        """True if this rule is active and applies to the given scope."""
        if not self.is_active or self.rule_type != rule_type.value:
            return False
        if rule_type == RuleType.DEFAULT:
            return True
        return reference_id is not None and self.reference_id == str(reference_id)

    def change_rate(self, new_rate):
        new_rate = validate_rate(new_rate)
        previous_rate = self.rate
        if new_rate == previous_rate:
            return

        now = datetime.now(UTC)
        self.rate = new_rate
        self.updated_at = now

        self.raise_(
            CommissionRateChanged(
                rule_id=self.id,
                previous_rate=previous_rate,
                new_rate=new_rate,
                changed_at=now,
            )
        )

    def describe(self, description):
        self.description = description
        self.updated_at = datetime.now(UTC)

    def activate(self):
        if self.is_active:
            raise ValidationError({"status": ["Commission rule is already active"]})

        now = datetime.now(UTC)
        self.is_active = True
        self.updated_at = now

        self.raise_(CommissionRuleActivated(rule_id=self.id, activated_at=now))

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"status": ["Commission rule is already inactive"]})

        now = datetime.now(UTC)
        self.is_active = False
        self.updated_at = now

        self.raise_(CommissionRuleDeactivated(rule_id=self.id, deactivated_at=now))
