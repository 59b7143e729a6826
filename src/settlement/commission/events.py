"""Domain events for the CommissionRule aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, String

from settlement.domain import settlement


@settlement.event(part_of="CommissionRule")
class CommissionRuleCreated:
    """A new commission rule was added to the rule store."""

    __version__ = 1

    rule_id = Identifier(required=True)
    rule_type = String(required=True)
    reference_id = String()
    rate = Float(required=True)
    is_active = Boolean(default=True)
    created_at = DateTime(required=True)


@settlement.event(part_of="CommissionRule")
class CommissionRateChanged:
    """The percentage rate of a commission rule was changed."""

    __version__ = 1

    rule_id = Identifier(required=True)
    previous_rate = Float(required=True)
    new_rate = Float(required=True)
    changed_at = DateTime(required=True)


@settlement.event(part_of="CommissionRule")
class CommissionRuleActivated:
    """A commission rule started participating in rate resolution."""

    __version__ = 1

    rule_id = Identifier(required=True)
    activated_at = DateTime(required=True)


@settlement.event(part_of="CommissionRule")
class CommissionRuleDeactivated:
    """A commission rule stopped participating in rate resolution."""

    __version__ = 1

    rule_id = Identifier(required=True)
    deactivated_at = DateTime(required=True)
