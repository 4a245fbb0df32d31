"""
Decision synthesis.

Combines the pipeline outputs into the final ``AdjudicationResult``.
"""

from decimal import Decimal

import structlog

from claims_adjudication.config import AdjudicationConfig
from claims_adjudication.domain import (
    AdjudicationDecision,
    AdjudicationResult,
    AppliedRule,
    BenefitApplicationDetail,
    CostSharingBreakdown,
    EligibilityResult,
    LimitCheckResult,
    LimitType,
    RuleExecutionLog,
    RuleResult,
)
from claims_adjudication.engine.context import AdjudicationContext
from claims_adjudication.engine.cost_sharing import CostSharingCalculator
from claims_adjudication.engine.rules import RuleOutcome
from claims_adjudication.utils import ZERO, round_money

logger = structlog.get_logger()

SERVICE_NOT_COVERED = "Service not covered"
MANDATORY_RULES_FAILED = "Mandatory eligibility rules failed"


def classify(approved: Decimal, original: Decimal, has_denial_reasons: bool) -> AdjudicationDecision:
    """
    APPROVED when everything is approved, DENIED when nothing is.

    A zero-amount claim is only DENIED when something denied it.
    """
    if approved == ZERO and (original > ZERO or has_denial_reasons):
        return AdjudicationDecision.DENIED
    if approved == original:
        return AdjudicationDecision.APPROVED
    return AdjudicationDecision.PARTIALLY_APPROVED


def rule_impact(log: RuleExecutionLog) -> str:
    if log.modified_fields:
        return "Modified " + ", ".join(sorted(log.modified_fields))
    if log.result == RuleResult.FAIL:
        return "Stopped rule execution" if log.is_mandatory else "Rule failed"
    return "No change"


def generate_next_steps(decision: AdjudicationDecision, requires_review: bool) -> list[str]:
    if requires_review:
        return ["Manual review required", "Check documentation completeness"]
    if decision == AdjudicationDecision.DENIED:
        return ["Member notification required", "Appeal process available"]
    return ["Process payment"]


def generate_explanation(
    decision: AdjudicationDecision,
    approved: Decimal,
    original: Decimal,
    denial_reasons: list[str],
    details: list[BenefitApplicationDetail],
) -> str:
    if decision == AdjudicationDecision.DENIED:
        return "Claim denied: " + ". ".join(denial_reasons or [SERVICE_NOT_COVERED])

    parts = []
    if decision == AdjudicationDecision.APPROVED:
        parts.append(f"Claim approved for {approved}.")
    else:
        parts.append(f"Claim partially approved: {approved} of {original} approved.")

    covered = [d.benefit_name for d in details if d.is_covered]
    if covered:
        parts.append("Covered under " + ", ".join(covered) + ".")
    if denial_reasons:
        parts.append(". ".join(denial_reasons) + ".")
    return " ".join(parts)


class DecisionSynthesizer:
    """
    Produces the final adjudication result.

    Usage:
        synthesizer = DecisionSynthesizer(config)
        result = synthesizer.synthesize(context, eligibility, details, limits, breakdown, outcome)
    """

    def __init__(self, config: AdjudicationConfig):
        self.config = config

    def _round(self, value: Decimal) -> Decimal:
        return round_money(value, self.config.engine.rounding_places)

    def denial(self, context: AdjudicationContext, eligibility: EligibilityResult) -> AdjudicationResult:
        """Result for a claim that failed eligibility. The member bears all of it."""
        original = self._round(context.claim.amount)
        decision = AdjudicationDecision.DENIED
        return AdjudicationResult(
            claim_id=context.claim.claim_id,
            member_id=context.member.member_id,
            adjudication_date=context.adjudication_date,
            original_amount=original,
            approved_amount=ZERO,
            denied_amount=original,
            member_responsibility=ZERO,
            insurer_responsibility=ZERO,
            member_liability=original,
            denial_reasons=list(eligibility.reasons),
            cost_sharing_breakdown=CostSharingCalculator.full_liability(
                original, self.config.engine.rounding_places
            ),
            overall_decision=decision,
            eligibility_warnings=list(eligibility.warnings),
            explanation=generate_explanation(decision, ZERO, original, eligibility.reasons, []),
            requires_manual_review=False,
            next_steps=generate_next_steps(decision, False),
        )

    def synthesize(
        self,
        context: AdjudicationContext,
        eligibility: EligibilityResult,
        details: list[BenefitApplicationDetail],
        limits: list[LimitCheckResult],
        cost_sharing: CostSharingBreakdown,
        outcome: RuleOutcome,
    ) -> AdjudicationResult:
        claim = context.claim
        original = claim.amount
        approved = original
        denial_reasons: list[str] = []

        covered = [d for d in details if d.is_covered]
        if not covered:
            approved = ZERO
            denial_reasons.append(SERVICE_NOT_COVERED)
            for detail in details:
                denial_reasons.extend(detail.special_conditions)

        for check in limits:
            if check.limit_type == LimitType.BENEFIT_ANNUAL and check.is_exceeded:
                approved = min(approved, max(ZERO, check.remaining_amount))
                denial_reasons.append(f"{check.limit_type.value} limit exceeded")

        approved = min(approved, outcome.approved_amount)
        denial_reasons.extend(r for r in outcome.denial_reasons if r not in denial_reasons)

        if outcome.mandatory_failure:
            approved = ZERO
            failed = outcome.failed_mandatory_rule
            if failed is not None and failed.error_message:
                denial_reasons.append(failed.error_message)
            denial_reasons.append(MANDATORY_RULES_FAILED)

        approved = self._round(max(ZERO, min(approved, original)))
        original = self._round(original)
        decision = classify(approved, original, bool(denial_reasons))

        review_reasons = self._review_reasons(original, limits, outcome)

        member = min(cost_sharing.total_member_responsibility, approved)
        insurer = max(ZERO, approved - member)
        denied = original - approved

        result = AdjudicationResult(
            claim_id=claim.claim_id,
            member_id=context.member.member_id,
            adjudication_date=context.adjudication_date,
            original_amount=original,
            approved_amount=approved,
            denied_amount=denied,
            member_responsibility=member,
            insurer_responsibility=insurer,
            member_liability=member + denied,
            denial_reasons=denial_reasons,
            applied_rules=[
                AppliedRule(
                    rule_id=log.rule_id,
                    rule_name=log.rule_name,
                    rule_category=log.rule_category,
                    result=log.result,
                    execution_time_ms=log.execution_time_ms,
                    impact=rule_impact(log),
                    error_message=log.error_message,
                )
                for log in outcome.logs
            ],
            waiting_period_applied=any(d.waiting_period_applied for d in details),
            deductible_applied=cost_sharing.deductible,
            copay_applied=cost_sharing.copay,
            coinsurance_applied=cost_sharing.coinsurance,
            provider_discount_applied=cost_sharing.network_discount,
            benefit_application_details=details,
            limit_checks=limits,
            cost_sharing_breakdown=cost_sharing,
            rule_execution_logs=outcome.logs,
            overall_decision=decision,
            eligibility_warnings=list(eligibility.warnings),
            explanation=generate_explanation(decision, approved, original, denial_reasons, details),
            requires_manual_review=bool(review_reasons),
            review_reasons=review_reasons,
            next_steps=generate_next_steps(decision, bool(review_reasons)),
        )

        logger.debug(
            "decision_synthesized",
            claim_id=claim.claim_id,
            decision=decision.value,
            approved=str(approved),
            review=result.requires_manual_review,
        )
        return result

    def _review_reasons(
        self,
        original: Decimal,
        limits: list[LimitCheckResult],
        outcome: RuleOutcome,
    ) -> list[str]:
        reasons = []
        if outcome.any_failed:
            reasons.append("One or more rules failed")
        for check in limits:
            if check.limit_type == LimitType.SUB_LIMIT and check.is_exceeded:
                reasons.append(f"Sub-limit exceeded: {check.limit_category or check.limit_id}")
        threshold = self.config.engine.high_value_threshold
        if original > threshold:
            reasons.append(f"Claim amount exceeds high-value threshold of {threshold}")
        reasons.extend(outcome.review_reasons)
        if outcome.requires_manual_review and not outcome.review_reasons:
            reasons.append("Flagged for review by rule")
        return reasons
