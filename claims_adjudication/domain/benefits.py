"""
Benefit domain models: definitions, scheme mappings, limits, cost sharing
and utilization.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from claims_adjudication.domain.enums import (
    CostSharingScope,
    CostSharingType,
    Gender,
    LimitPeriod,
    LimitType,
    NetworkRestriction,
)


class EnhancedBenefit(BaseModel):
    """A benefit definition (e.g. Specialist Consultation)."""

    benefit_id: int
    benefit_code: str = Field(..., max_length=30)
    benefit_name: str = Field(..., max_length=200)
    benefit_category: str = Field(..., max_length=50)  # inpatient, outpatient, dental, ...
    benefit_subcategory: Optional[str] = None
    service_codes: list[str] = Field(default_factory=list)
    is_active: bool = True
    sort_order: int = 0


class SchemeBenefitMapping(BaseModel):
    """Coverage terms of a benefit within a scheme and plan tier."""

    mapping_id: int
    scheme_id: int
    plan_tier_id: int
    benefit_id: int

    is_covered: bool = True
    coverage_percentage: Decimal = Field(default=Decimal("100"), ge=0, le=100)
    annual_limit: Optional[Decimal] = Field(None, ge=0)
    per_visit_limit: Optional[Decimal] = Field(None, ge=0)
    waiting_period_days: int = Field(default=0, ge=0)
    pre_auth_required: bool = False
    network_restriction: NetworkRestriction = NetworkRestriction.ANY_PROVIDER
    referral_required: bool = False
    special_conditions: list[str] = Field(default_factory=list)
    is_active: bool = True


class MappingOverride(BaseModel):
    """
    Field-level override of a benefit mapping.

    Every field is optional; None leaves the underlying term unchanged.
    """

    is_covered: Optional[bool] = None
    coverage_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    annual_limit: Optional[Decimal] = Field(None, ge=0)
    per_visit_limit: Optional[Decimal] = Field(None, ge=0)
    waiting_period_days: Optional[int] = Field(None, ge=0)
    pre_auth_required: Optional[bool] = None
    network_restriction: Optional[NetworkRestriction] = None
    referral_required: Optional[bool] = None
    special_conditions: Optional[list[str]] = None

    def changes(self) -> dict:
        """Fields this override actually sets."""
        return self.model_dump(exclude_none=True)


class CostSharingRule(BaseModel):
    """A cost-sharing term attached to a scheme benefit mapping."""

    rule_id: int
    mapping_id: int
    cost_sharing_type: CostSharingType
    value: Decimal = Field(..., ge=0)
    minimum_amount: Optional[Decimal] = Field(None, ge=0)
    maximum_amount: Optional[Decimal] = Field(None, ge=0)
    applies_to: CostSharingScope = CostSharingScope.ALL_CLAIMS
    procedure_codes: list[str] = Field(default_factory=list)
    network_provider_discount: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    effective_date: Optional[date] = None
    expiry_date: Optional[date] = None
    is_active: bool = True


class BenefitLimit(BaseModel):
    """A typed limit on a benefit."""

    limit_id: int
    benefit_id: int
    limit_type: LimitType
    limit_category: Optional[str] = None
    limit_amount: Decimal = Field(..., ge=0)
    limit_unit: str = Field(default="currency", max_length=20)  # currency, days, visits
    limit_period: LimitPeriod = LimitPeriod.ANNUAL
    age_min: Optional[int] = Field(None, ge=0)
    age_max: Optional[int] = Field(None, ge=0)
    gender: Gender = Gender.ALL
    is_active: bool = True


class BenefitUtilization(BaseModel):
    """Running usage of one benefit by one member."""

    member_id: int
    benefit_id: int
    period_start: date
    used_amount: Decimal = Field(default=Decimal("0"), ge=0)
    claim_count: int = Field(default=0, ge=0)
    service_dates: list[date] = Field(default_factory=list)
    category_usage: dict[str, Decimal] = Field(default_factory=dict)
    deductible_met: Decimal = Field(default=Decimal("0"), ge=0)
