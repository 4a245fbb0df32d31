"""
Claims integration service.

Wraps the adjudicator for the claims subsystem: validates the submitted
claim, converts the adjudication result into the service-level
``EnhancedClaimProcessingResult`` and updates the claim status.
"""

import time
from datetime import datetime
from decimal import Decimal

import structlog

from claims_adjudication.config import AdjudicationConfig
from claims_adjudication.domain import (
    AdjudicationDecision,
    AdjudicationResult,
    BenefitApplicationSummary,
    Claim,
    ClaimStatus,
    CostSharingBreakdown,
    EnhancedClaimProcessingResult,
    ProcessingMetrics,
    ReviewPriority,
    RuleExecutionSummary,
    RuleResult,
)
from claims_adjudication.engine import Adjudicator
from claims_adjudication.errors import ClaimNotFoundError
from claims_adjudication.repository import Repositories
from claims_adjudication.utils import ZERO

logger = structlog.get_logger()

REVIEW_NEXT_STEPS = [
    "Assign to claims reviewer",
    "Verify supporting documentation",
    "Contact provider if needed",
    "Make final adjudication decision",
]
PAYMENT_NEXT_STEPS = [
    "Process payment to provider",
    "Send EOB to member",
    "Update benefit utilization",
    "Archive claim documentation",
]
CORRECTION_NEXT_STEPS = ["Contact submitter for corrections", "Resubmit corrected claim"]

DECISION_STATUS = {
    AdjudicationDecision.APPROVED: ClaimStatus.APPROVED,
    AdjudicationDecision.PARTIALLY_APPROVED: ClaimStatus.PARTIALLY_APPROVED,
    AdjudicationDecision.DENIED: ClaimStatus.DENIED,
    AdjudicationDecision.REQUIRES_REVIEW: ClaimStatus.PENDING_REVIEW,
}


class ClaimsIntegrationService:
    """
    Service-level claim processing.

    Usage:
        service = ClaimsIntegrationService(repositories, config)
        result = service.process_claim(1001)
    """

    def __init__(
        self,
        repositories: Repositories,
        config: AdjudicationConfig,
        adjudicator: Adjudicator | None = None,
    ):
        self.repos = repositories
        self.config = config
        self.adjudicator = adjudicator or Adjudicator(repositories, config)

    def validate_claim(self, claim: Claim) -> list[str]:
        """Check the claim can be adjudicated. Returns error messages."""
        errors = []
        if claim.amount <= ZERO:
            errors.append("Valid claim amount is required")
        if self.repos.members.get_member(claim.member_id) is None:
            errors.append("Member not found")
        if claim.provider_id is None:
            errors.append("Provider ID is required")
        elif not self.repos.providers.provider_exists(claim.provider_id):
            errors.append("Provider not found")
        return errors

    def process_claim(self, claim_id: int) -> EnhancedClaimProcessingResult:
        """
        Validate, adjudicate and convert one claim.

        Raises:
            AdjudicationError: If the claim does not exist or cannot be adjudicated
        """
        start = time.perf_counter()

        claim = self.repos.claims.get_claim(claim_id)
        if claim is None:
            raise ClaimNotFoundError(claim_id)

        errors = self.validate_claim(claim)
        if errors:
            logger.info("claim_validation_failed", claim_id=claim_id, errors=errors)
            return self.error_result(claim, errors)

        adjudication = self.adjudicator.adjudicate(claim_id)
        result = self.convert(adjudication)

        result.processing_metrics = ProcessingMetrics(
            total_processing_time_ms=(time.perf_counter() - start) * 1000,
            rules_engine_time_ms=adjudication.stage_timings_ms.get("rules", 0.0),
            benefit_validation_time_ms=adjudication.stage_timings_ms.get("benefits", 0.0),
            limit_check_time_ms=adjudication.stage_timings_ms.get("limits", 0.0),
        )

        if self.requires_review(adjudication):
            result.requires_manual_review = True
            result.adjudication_decision = AdjudicationDecision.REQUIRES_REVIEW
            result.review_reasons = self.review_reasons(adjudication)
            result.review_priority = self.review_priority(adjudication)
            result.next_steps = list(REVIEW_NEXT_STEPS)
        else:
            result.next_steps = list(PAYMENT_NEXT_STEPS)

        if not self.adjudicator.dry_run:
            self.repos.claims.update_claim_status(
                claim_id, DECISION_STATUS[result.adjudication_decision]
            )

        logger.info(
            "claim_processed",
            claim_id=claim_id,
            decision=result.adjudication_decision.value,
            approved_amount=str(result.approved_amount),
            review_priority=result.review_priority.value if result.requires_manual_review else None,
        )
        return result

    def convert(self, adjudication: AdjudicationResult) -> EnhancedClaimProcessingResult:
        """Convert an adjudication result to the service-level format."""
        return EnhancedClaimProcessingResult(
            claim_id=adjudication.claim_id,
            member_id=adjudication.member_id,
            adjudication_date=adjudication.adjudication_date,
            original_amount=adjudication.original_amount,
            approved_amount=adjudication.approved_amount,
            denied_amount=adjudication.denied_amount,
            member_responsibility=adjudication.member_responsibility,
            insurer_responsibility=adjudication.insurer_responsibility,
            network_discount_applied=adjudication.provider_discount_applied,
            adjudication_decision=adjudication.overall_decision,
            denial_reasons=list(adjudication.denial_reasons),
            benefit_applications=[
                BenefitApplicationSummary(
                    benefit_id=d.benefit_id,
                    benefit_name=d.benefit_name,
                    coverage_percentage=d.coverage_percentage,
                    limit_applied=d.annual_limit or ZERO,
                    limit_remaining=d.remaining_limit or ZERO,
                    waiting_period_applied=d.waiting_period_applied,
                )
                for d in adjudication.benefit_application_details
            ],
            rule_executions=[
                RuleExecutionSummary(
                    rule_id=r.rule_id,
                    rule_name=r.rule_name,
                    result=r.result,
                    impact=r.impact,
                    execution_time_ms=r.execution_time_ms,
                )
                for r in adjudication.applied_rules
            ],
            cost_sharing_breakdown=adjudication.cost_sharing_breakdown,
            requires_manual_review=adjudication.requires_manual_review,
            review_reasons=list(adjudication.review_reasons),
            next_steps=list(adjudication.next_steps),
        )

    def requires_review(self, adjudication: AdjudicationResult) -> bool:
        return (
            adjudication.requires_manual_review
            or adjudication.original_amount > self.config.review.high_priority_threshold
        )

    def review_reasons(self, adjudication: AdjudicationResult) -> list[str]:
        reasons = list(adjudication.review_reasons)
        if any(r.result == RuleResult.FAIL for r in adjudication.applied_rules):
            reasons.append("Rules engine failures detected")
        if adjudication.denial_reasons:
            reasons.append("Claim has denial reasons")
        if adjudication.original_amount > self.config.review.high_priority_threshold:
            reasons.append("High-value claim")
        return list(dict.fromkeys(reasons))

    def review_priority(self, adjudication: AdjudicationResult) -> ReviewPriority:
        amount = adjudication.original_amount
        if amount > self.config.review.high_priority_threshold:
            return ReviewPriority.HIGH
        if any(r.result == RuleResult.FAIL for r in adjudication.applied_rules):
            return ReviewPriority.HIGH
        if amount > self.config.review.medium_priority_threshold:
            return ReviewPriority.MEDIUM
        return ReviewPriority.LOW

    def error_result(self, claim: Claim, errors: list[str]) -> EnhancedClaimProcessingResult:
        """Result for a claim that failed validation. Nothing is adjudicated."""
        amount: Decimal = claim.amount
        return EnhancedClaimProcessingResult(
            claim_id=claim.claim_id,
            member_id=claim.member_id,
            adjudication_date=datetime.now(),
            original_amount=amount,
            approved_amount=ZERO,
            denied_amount=amount,
            member_responsibility=ZERO,
            insurer_responsibility=ZERO,
            network_discount_applied=ZERO,
            adjudication_decision=AdjudicationDecision.DENIED,
            denial_reasons=errors,
            cost_sharing_breakdown=CostSharingBreakdown(total_member_responsibility=amount),
            next_steps=list(CORRECTION_NEXT_STEPS),
        )
