"""
Adjudication output models.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from claims_adjudication.domain.enums import (
    AdjudicationDecision,
    AuthorizationStatus,
    LimitType,
    NetworkRestriction,
    ReviewPriority,
    RuleCategory,
    RuleResult,
)
from claims_adjudication.domain.rules import RuleExecutionLog


class EligibilityResult(BaseModel):
    """Outcome of eligibility verification."""

    is_eligible: bool
    reasons: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class BenefitApplicationDetail(BaseModel):
    """A benefit as it applies to one claim after all override layers."""

    benefit_id: int
    benefit_name: str
    benefit_category: str
    mapping_id: int
    is_covered: bool
    coverage_percentage: Decimal
    annual_limit: Optional[Decimal] = None
    remaining_limit: Optional[Decimal] = None
    per_visit_limit: Optional[Decimal] = None
    pre_auth_required: bool = False
    pre_auth_status: AuthorizationStatus = AuthorizationStatus.NOT_REQUIRED
    network_restriction: NetworkRestriction = NetworkRestriction.ANY_PROVIDER
    referral_required: bool = False
    referral_status: AuthorizationStatus = AuthorizationStatus.NOT_REQUIRED
    waiting_period_applied: bool = False
    special_conditions: list[str] = Field(default_factory=list)
    applied_layers: list[str] = Field(default_factory=list)


class LimitCheckResult(BaseModel):
    """One evaluated limit instance."""

    limit_type: LimitType
    benefit_id: Optional[int] = None
    limit_id: Optional[int] = None
    limit_category: Optional[str] = None
    limit_amount: Decimal
    limit_unit: str = "currency"
    current_usage: Decimal
    remaining_amount: Decimal
    is_exceeded: bool
    age_based_limit: Optional[int] = None
    frequency_limit: Optional[str] = None
    reset_date: Optional[date] = None


class CostSharingBreakdown(BaseModel):
    """Member cost sharing for one claim."""

    deductible: Decimal = Decimal("0")
    deductible_remaining: Decimal = Decimal("0")
    copay: Decimal = Decimal("0")
    copay_type: str = "fixed"
    coinsurance_rate: Decimal = Decimal("0")
    coinsurance: Decimal = Decimal("0")
    network_discount_percentage: Decimal = Decimal("0")
    network_discount: Decimal = Decimal("0")
    total_member_responsibility: Decimal = Decimal("0")
    corporate_override_applied: bool = False


class AppliedRule(BaseModel):
    """Summary of one executed rule for the decision trail."""

    rule_id: int
    rule_name: str
    rule_category: RuleCategory
    result: RuleResult
    execution_time_ms: float
    impact: str
    error_message: Optional[str] = None


class AdjudicationResult(BaseModel):
    """The synthesized decision for one claim."""

    claim_id: int
    member_id: int
    adjudication_date: datetime

    original_amount: Decimal
    approved_amount: Decimal
    denied_amount: Decimal
    member_responsibility: Decimal
    insurer_responsibility: Decimal
    # What the member owes overall: their share of the approved amount plus
    # everything not approved
    member_liability: Decimal

    denial_reasons: list[str] = Field(default_factory=list)
    applied_rules: list[AppliedRule] = Field(default_factory=list)
    waiting_period_applied: bool = False
    deductible_applied: Decimal = Decimal("0")
    copay_applied: Decimal = Decimal("0")
    coinsurance_applied: Decimal = Decimal("0")
    provider_discount_applied: Decimal = Decimal("0")
    benefit_application_details: list[BenefitApplicationDetail] = Field(default_factory=list)
    limit_checks: list[LimitCheckResult] = Field(default_factory=list)
    cost_sharing_breakdown: CostSharingBreakdown = Field(default_factory=CostSharingBreakdown)
    rule_execution_logs: list[RuleExecutionLog] = Field(default_factory=list)

    overall_decision: AdjudicationDecision
    eligibility_warnings: list[str] = Field(default_factory=list)
    explanation: str
    requires_manual_review: bool = False
    review_reasons: list[str] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)

    stage_timings_ms: dict[str, float] = Field(default_factory=dict)


class ProcessingMetrics(BaseModel):
    """Timings added by the claims integration layer."""

    total_processing_time_ms: float = 0.0
    rules_engine_time_ms: float = 0.0
    benefit_validation_time_ms: float = 0.0
    limit_check_time_ms: float = 0.0


class BenefitApplicationSummary(BaseModel):
    """Service-level view of one applied benefit."""

    benefit_id: int
    benefit_name: str
    coverage_percentage: Decimal
    limit_applied: Decimal
    limit_remaining: Decimal
    waiting_period_applied: bool


class RuleExecutionSummary(BaseModel):
    """Service-level view of one rule execution."""

    rule_id: int
    rule_name: str
    result: RuleResult
    impact: str
    execution_time_ms: float


class EnhancedClaimProcessingResult(BaseModel):
    """Service-level result produced by the claims integration layer."""

    claim_id: int
    member_id: int
    adjudication_date: datetime
    original_amount: Decimal
    approved_amount: Decimal
    denied_amount: Decimal
    member_responsibility: Decimal
    insurer_responsibility: Decimal
    network_discount_applied: Decimal
    adjudication_decision: AdjudicationDecision
    denial_reasons: list[str] = Field(default_factory=list)
    benefit_applications: list[BenefitApplicationSummary] = Field(default_factory=list)
    rule_executions: list[RuleExecutionSummary] = Field(default_factory=list)
    cost_sharing_breakdown: CostSharingBreakdown = Field(default_factory=CostSharingBreakdown)
    processing_metrics: ProcessingMetrics = Field(default_factory=ProcessingMetrics)
    requires_manual_review: bool = False
    review_reasons: list[str] = Field(default_factory=list)
    review_priority: ReviewPriority = ReviewPriority.LOW
    next_steps: list[str] = Field(default_factory=list)


class BatchClaimProcessingResult(BaseModel):
    """Aggregated outcome of a batch run."""

    total_claims: int
    processed_claims: int = 0
    approved_claims: int = 0
    partially_approved_claims: int = 0
    denied_claims: int = 0
    requires_review_claims: int = 0
    total_approved_amount: Decimal = Decimal("0")
    total_denied_amount: Decimal = Decimal("0")
    total_member_responsibility: Decimal = Decimal("0")
    processing_time_ms: float = 0.0
    claim_results: list[EnhancedClaimProcessingResult] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
