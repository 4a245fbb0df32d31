"""
Domain models for the claims adjudication engine.

Pydantic models representing claims, members, schemes, benefits, rules and
adjudication results.
"""

from claims_adjudication.domain.enums import (
    AdjudicationDecision,
    AuthorizationStatus,
    ClaimStatus,
    CostSharingScope,
    CostSharingType,
    EmployeeGrade,
    Gender,
    LimitPeriod,
    LimitType,
    NetworkAccessLevel,
    NetworkRestriction,
    NetworkTier,
    PlanTierLevel,
    ReviewPriority,
    RuleCategory,
    RuleResult,
    RuleType,
    SchemeType,
)
from claims_adjudication.domain.claims import Claim
from claims_adjudication.domain.member import Member, PremiumStatus
from claims_adjudication.domain.benefits import (
    BenefitLimit,
    BenefitUtilization,
    CostSharingRule,
    EnhancedBenefit,
    MappingOverride,
    SchemeBenefitMapping,
)
from claims_adjudication.domain.scheme import (
    BenefitRider,
    CorporateCostSharingOverride,
    CorporateSchemeConfig,
    EmployeeGradeBenefit,
    MemberRiderSelection,
    PlanTier,
    Scheme,
)
from claims_adjudication.domain.rules import BenefitRule, RuleExecutionLog
from claims_adjudication.domain.results import (
    AdjudicationResult,
    AppliedRule,
    BatchClaimProcessingResult,
    BenefitApplicationDetail,
    BenefitApplicationSummary,
    CostSharingBreakdown,
    EligibilityResult,
    EnhancedClaimProcessingResult,
    LimitCheckResult,
    ProcessingMetrics,
    RuleExecutionSummary,
)

__all__ = [
    # Enums
    "AdjudicationDecision",
    "AuthorizationStatus",
    "ClaimStatus",
    "CostSharingScope",
    "CostSharingType",
    "EmployeeGrade",
    "Gender",
    "LimitPeriod",
    "LimitType",
    "NetworkAccessLevel",
    "NetworkRestriction",
    "NetworkTier",
    "PlanTierLevel",
    "ReviewPriority",
    "RuleCategory",
    "RuleResult",
    "RuleType",
    "SchemeType",
    # Inputs
    "Claim",
    "Member",
    "PremiumStatus",
    "BenefitLimit",
    "BenefitUtilization",
    "CostSharingRule",
    "EnhancedBenefit",
    "MappingOverride",
    "SchemeBenefitMapping",
    "BenefitRider",
    "CorporateCostSharingOverride",
    "CorporateSchemeConfig",
    "EmployeeGradeBenefit",
    "MemberRiderSelection",
    "PlanTier",
    "Scheme",
    "BenefitRule",
    "RuleExecutionLog",
    # Outputs
    "AdjudicationResult",
    "AppliedRule",
    "BatchClaimProcessingResult",
    "BenefitApplicationDetail",
    "BenefitApplicationSummary",
    "CostSharingBreakdown",
    "EligibilityResult",
    "EnhancedClaimProcessingResult",
    "LimitCheckResult",
    "ProcessingMetrics",
    "RuleExecutionSummary",
]
