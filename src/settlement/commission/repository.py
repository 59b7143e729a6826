"""Repository for the CommissionRule aggregate."""

from settlement.commission.rule import CommissionRule, RuleType
from settlement.domain import settlement

PAGE_SIZE = 100


@settlement.repository(part_of=CommissionRule)
class CommissionRuleRepository:
    """Rule store queries.

    Results are ordered oldest first, which is the order rate resolution
    uses to pick between several active rules for the same scope. Every
    query is read page by page, so no rule is ever left out of a result.
    """

    def find_all(self, rule_type: str | None = None, active_only: bool = False) -> list[CommissionRule]:
        criteria = {}
        if rule_type is not None:
            criteria["rule_type"] = rule_type
        if active_only:
            criteria["is_active"] = True
        return self._read_all(criteria)

    def find_active(self, rule_type: RuleType, reference_id=None) -> list[CommissionRule]:
        """Active rules for one scope. `reference_id` is ignored for default rules."""
        criteria = {"rule_type": rule_type.value, "is_active": True}
        if rule_type != RuleType.DEFAULT:
            if reference_id is None:
                return []
            criteria["reference_id"] = str(reference_id)
        return self._read_all(criteria)

    def _read_all(self, criteria) -> list[CommissionRule]:
        query = self._dao.query
        if criteria:
            query = query.filter(**criteria)
        query = query.order_by("created_at")

        rules = []
        offset = 0
        while True:
            page = query.offset(offset).limit(PAGE_SIZE).all()
            rules.extend(page.items)
            if not page.has_next:
                return rules
            offset += PAGE_SIZE
