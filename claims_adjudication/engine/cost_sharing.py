"""
Cost-sharing calculation.

Stages run in a fixed order because each base depends on the previous one:
deductible, copay, coinsurance, network discount, then the corporate
override. Rules of the same kind are never summed; the largest wins.
"""

from decimal import Decimal

import structlog

from claims_adjudication.config import AdjudicationConfig
from claims_adjudication.domain import (
    BenefitApplicationDetail,
    CostSharingBreakdown,
    CostSharingRule,
    CostSharingScope,
    CostSharingType,
)
from claims_adjudication.engine.context import AdjudicationContext
from claims_adjudication.repository import BenefitRepository
from claims_adjudication.utils import (
    HUNDRED,
    ZERO,
    clamp,
    is_within,
    max_or_zero,
    percentage_of,
    round_money,
)

logger = structlog.get_logger()

INPATIENT_CATEGORY = "inpatient"


def rule_applies(rule: CostSharingRule, context: AdjudicationContext) -> bool:
    """Check whether a cost-sharing rule is in force for the claim."""
    claim = context.claim
    if not rule.is_active:
        return False
    if not is_within(claim.service_date, rule.effective_date, rule.expiry_date):
        return False

    inpatient = claim.service_category.lower() == INPATIENT_CATEGORY
    if rule.applies_to == CostSharingScope.HOSPITALIZATION_ONLY:
        return inpatient
    if rule.applies_to == CostSharingScope.OUTPATIENT_ONLY:
        return not inpatient
    if rule.applies_to == CostSharingScope.SPECIFIC_PROCEDURES:
        return claim.service_code is not None and claim.service_code in rule.procedure_codes
    return True


class CostSharingCalculator:
    """
    Computes the member's share of a claim.

    Usage:
        calculator = CostSharingCalculator(benefit_repository, config)
        breakdown = calculator.calculate(context, details)
    """

    def __init__(self, benefits: BenefitRepository, config: AdjudicationConfig):
        self.benefits = benefits
        self.config = config

    def applicable_rules(
        self,
        context: AdjudicationContext,
        covered: list[BenefitApplicationDetail],
    ) -> list[CostSharingRule]:
        if not covered:
            return []
        rules = self.benefits.get_cost_sharing_rules([d.mapping_id for d in covered])
        return [r for r in rules if rule_applies(r, context)]

    def calculate(
        self,
        context: AdjudicationContext,
        details: list[BenefitApplicationDetail],
    ) -> CostSharingBreakdown:
        amount = context.claim.amount
        places = self.config.engine.rounding_places
        covered = [d for d in details if d.is_covered]
        rules = self.applicable_rules(context, covered)
        benefit_by_mapping = {d.mapping_id: d.benefit_id for d in covered}

        # 1. Deductible
        deductibles = [r.value for r in rules if r.cost_sharing_type == CostSharingType.DEDUCTIBLE]
        outstanding_annual = ZERO
        for rule in rules:
            if rule.cost_sharing_type != CostSharingType.ANNUAL_DEDUCTIBLE:
                continue
            usage = context.current_utilization(benefit_by_mapping[rule.mapping_id])
            met = usage.deductible_met if usage else ZERO
            outstanding = max(ZERO, rule.value - met)
            outstanding_annual = max(outstanding_annual, outstanding)
            deductibles.append(outstanding)
        deductible = min(max_or_zero(deductibles), amount)

        # 2. Copay
        copay = ZERO
        copay_type = "fixed"
        for rule in rules:
            if rule.cost_sharing_type == CostSharingType.COPAY_FIXED:
                value, kind = rule.value, "fixed"
            elif rule.cost_sharing_type == CostSharingType.COPAY_PERCENTAGE:
                value, kind = percentage_of(amount, rule.value), "percentage"
            else:
                continue
            value = clamp(value, rule.minimum_amount, rule.maximum_amount)
            if value > copay:
                copay, copay_type = value, kind

        # 3. Coinsurance rate
        rates = [r.value for r in rules if r.cost_sharing_type == CostSharingType.COINSURANCE]
        rates.extend(HUNDRED - d.coverage_percentage for d in covered)
        coinsurance_rate = min(max_or_zero(rates), HUNDRED)

        # 4. Network discount (in-network providers only)
        discount_pct = ZERO
        tier = context.provider_network_tier
        if tier is not None:
            discount_pct = max(
                self.config.network.tier_discounts.get(tier.value, ZERO),
                max_or_zero(r.network_provider_discount for r in rules),
            )

        # 5. Corporate override
        override_applied = False
        corporate = context.corporate_config
        custom = corporate.custom_cost_sharing if corporate is not None else None
        if custom is not None:
            if custom.deductible is not None:
                deductible = min(custom.deductible, amount)
                override_applied = True
            if custom.copay is not None:
                copay, copay_type = custom.copay, "fixed"
                override_applied = True
            if custom.coinsurance_rate is not None:
                coinsurance_rate = custom.coinsurance_rate
                override_applied = True
            if custom.network_discount_percentage is not None:
                discount_pct = custom.network_discount_percentage
                override_applied = True

        coinsurance = percentage_of(max(ZERO, amount - deductible - copay), coinsurance_rate)
        total = min(deductible + copay + coinsurance, amount)

        breakdown = CostSharingBreakdown(
            deductible=round_money(deductible, places),
            deductible_remaining=round_money(max(ZERO, outstanding_annual - deductible), places),
            copay=round_money(copay, places),
            copay_type=copay_type,
            coinsurance_rate=coinsurance_rate,
            coinsurance=round_money(coinsurance, places),
            network_discount_percentage=discount_pct,
            network_discount=round_money(percentage_of(amount, discount_pct), places),
            total_member_responsibility=round_money(total, places),
            corporate_override_applied=override_applied,
        )

        logger.debug(
            "cost_sharing_calculated",
            claim_id=context.claim.claim_id,
            rules=len(rules),
            total=str(breakdown.total_member_responsibility),
            corporate_override=override_applied,
        )
        return breakdown

    @staticmethod
    def full_liability(amount: Decimal, places: int = 2) -> CostSharingBreakdown:
        """Breakdown for a claim the member bears entirely (eligibility denial)."""
        return CostSharingBreakdown(total_member_responsibility=round_money(amount, places))
