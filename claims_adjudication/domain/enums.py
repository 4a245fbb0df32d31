"""
Enumeration types for claims adjudication domain models.
"""

from enum import Enum


class Gender(str, Enum):
    """Gender enumeration. ALL is only meaningful on limit definitions."""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    ALL = "all"


class ClaimStatus(str, Enum):
    """Lifecycle status of a claim."""
    SUBMITTED = "submitted"
    APPROVED = "approved"
    PARTIALLY_APPROVED = "partially_approved"
    DENIED = "denied"
    PENDING_REVIEW = "pending_review"


class AdjudicationDecision(str, Enum):
    """Overall adjudication decision."""
    APPROVED = "APPROVED"
    PARTIALLY_APPROVED = "PARTIALLY_APPROVED"
    DENIED = "DENIED"
    # Only produced by the claims integration layer
    REQUIRES_REVIEW = "REQUIRES_REVIEW"


class SchemeType(str, Enum):
    """Type of scheme."""
    INDIVIDUAL_MEDICAL = "individual_medical"
    CORPORATE_MEDICAL = "corporate_medical"
    NHIF_TOP_UP = "nhif_top_up"
    STUDENT_COVER = "student_cover"
    INTERNATIONAL_HEALTH = "international_health"
    MICRO_INSURANCE = "micro_insurance"


class PlanTierLevel(str, Enum):
    """Plan tier level."""
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    VIP = "vip"


class NetworkTier(str, Enum):
    """Network tier a provider is contracted at for a scheme."""
    TIER_1 = "tier_1"
    TIER_2 = "tier_2"
    TIER_3 = "tier_3"
    PREMIUM = "premium"
    BASIC = "basic"
    STANDARD = "standard"


class NetworkAccessLevel(str, Enum):
    """Network access granted by a plan tier."""
    TIER_1_ONLY = "tier_1_only"
    FULL_NETWORK = "full_network"
    PREMIUM_NETWORK = "premium_network"


class NetworkRestriction(str, Enum):
    """
    Provider restriction on a benefit mapping.

    Ordered narrowest to widest by ``breadth``.
    """
    TIER_1_ONLY = "tier_1_only"
    NETWORK_ONLY = "network_only"
    ANY_PROVIDER = "any_provider"

    @property
    def breadth(self) -> int:
        return _RESTRICTION_BREADTH[self]


_RESTRICTION_BREADTH = {
    NetworkRestriction.TIER_1_ONLY: 0,
    NetworkRestriction.NETWORK_ONLY: 1,
    NetworkRestriction.ANY_PROVIDER: 2,
}


class EmployeeGrade(str, Enum):
    """Employee grade for corporate members."""
    EXECUTIVE = "executive"
    SENIOR_MANAGEMENT = "senior_management"
    MIDDLE_MANAGEMENT = "middle_management"
    JUNIOR_STAFF = "junior_staff"
    INTERN = "intern"


class CostSharingType(str, Enum):
    """Type of cost-sharing rule."""
    COPAY_FIXED = "copay_fixed"
    COPAY_PERCENTAGE = "copay_percentage"
    COINSURANCE = "coinsurance"
    DEDUCTIBLE = "deductible"
    ANNUAL_DEDUCTIBLE = "annual_deductible"


class CostSharingScope(str, Enum):
    """Which claims a cost-sharing rule applies to."""
    ALL_CLAIMS = "all_claims"
    HOSPITALIZATION_ONLY = "hospitalization_only"
    OUTPATIENT_ONLY = "outpatient_only"
    SPECIFIC_PROCEDURES = "specific_procedures"


class LimitType(str, Enum):
    """Benefit limit hierarchy."""
    OVERALL_ANNUAL = "overall_annual"
    BENEFIT_ANNUAL = "benefit_annual"
    SUB_LIMIT = "sub_limit"
    FREQUENCY = "frequency"
    AGE_BASED = "age_based"


class LimitPeriod(str, Enum):
    """Period a limit is measured over."""
    ANNUAL = "annual"
    LIFETIME = "lifetime"
    PER_ADMISSION = "per_admission"
    PER_VISIT = "per_visit"
    PER_DAY = "per_day"


class RuleCategory(str, Enum):
    """Category of a benefit rule."""
    ELIGIBILITY = "eligibility"
    BENEFIT_APPLICATION = "benefit_application"
    LIMIT_CHECK = "limit_check"
    COST_SHARING = "cost_sharing"
    EXCLUSION = "exclusion"


class RuleType(str, Enum):
    """Type of a benefit rule."""
    CONDITION = "condition"
    CALCULATION = "calculation"
    VALIDATION = "validation"
    WORKFLOW = "workflow"


class RuleResult(str, Enum):
    """Outcome of a single rule execution."""
    PASS = "PASS"
    FAIL = "FAIL"
    SKIP = "SKIP"


class AuthorizationStatus(str, Enum):
    """Pre-authorization / referral status of a benefit for a claim."""
    NOT_REQUIRED = "not_required"
    OBTAINED = "obtained"
    MISSING = "missing"


class ReviewPriority(str, Enum):
    """Manual review queue priority."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
