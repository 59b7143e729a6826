"""Commands and handler for managing commission rules."""

from protean import handle
from protean.fields import Boolean, Float, Identifier, String
from protean.utils.globals import current_domain

from settlement.commission.rule import CommissionRule
from settlement.domain import logger, settlement


@settlement.command(part_of="CommissionRule")
class CreateCommissionRule:
    rule_type = String(required=True, max_length=20)
    reference_id = String(max_length=255)
    rate = Float(required=True)
    description = String(max_length=500)
    is_active = Boolean(default=True)


@settlement.command(part_of="CommissionRule")
class UpdateCommissionRule:
    rule_id = Identifier(required=True)
    rate = Float()
    description = String(max_length=500)


@settlement.command(part_of="CommissionRule")
class ActivateCommissionRule:
    rule_id = Identifier(required=True)


@settlement.command(part_of="CommissionRule")
class DeactivateCommissionRule:
    rule_id = Identifier(required=True)


@settlement.command(part_of="CommissionRule")
class DeleteCommissionRule:
    rule_id = Identifier(required=True)


@settlement.command_handler(part_of=CommissionRule)
class ManageCommissionRuleHandler:
    @handle(CreateCommissionRule)
    def create_rule(self, command):
        rule = CommissionRule.create(
            rule_type=command.rule_type,
            rate=command.rate,
            reference_id=command.reference_id,
            description=command.description,
            is_active=command.is_active if command.is_active is not None else True,
        )
        current_domain.repository_for(CommissionRule).add(rule)
        logger.info(
            "Commission rule created",
            rule_id=str(rule.id),
            rule_type=rule.rule_type,
            reference_id=rule.reference_id,
            rate=rule.rate,
        )
        return str(rule.id)

    @handle(UpdateCommissionRule)
    def update_rule(self, command):
        repo = current_domain.repository_for(CommissionRule)
        rule = repo.get(command.rule_id)

        if command.rate is not None:
            rule.change_rate(command.rate)
        if command.description is not None:
            rule.describe(command.description)

        repo.add(rule)

    @handle(ActivateCommissionRule)
    def activate_rule(self, command):
        repo = current_domain.repository_for(CommissionRule)
        rule = repo.get(command.rule_id)
        rule.activate()
        repo.add(rule)

    @handle(DeactivateCommissionRule)
    def deactivate_rule(self, command):
        repo = current_domain.repository_for(CommissionRule)
        rule = repo.get(command.rule_id)
        rule.deactivate()
        repo.add(rule)

    @handle(DeleteCommissionRule)
    def delete_rule(self, command):
        repo = current_domain.repository_for(CommissionRule)
        rule = repo.get(command.rule_id)
        repo._dao.delete(rule)
        logger.info("Commission rule deleted", rule_id=str(command.rule_id))
