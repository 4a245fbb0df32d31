"""
Scheme domain models: schemes, plan tiers and the corporate, grade and
rider override layers.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from claims_adjudication.domain.benefits import MappingOverride
from claims_adjudication.domain.enums import (
    EmployeeGrade,
    NetworkAccessLevel,
    PlanTierLevel,
    SchemeType,
)


class Scheme(BaseModel):
    """An insurance scheme."""

    scheme_id: int
    name: str = Field(..., max_length=200)
    scheme_code: str = Field(..., max_length=30)
    scheme_type: SchemeType = SchemeType.INDIVIDUAL_MEDICAL
    is_active: bool = True
    launch_date: Optional[date] = None
    sunset_date: Optional[date] = None
    min_age: Optional[int] = Field(default=0, ge=0)
    max_age: Optional[int] = Field(None, ge=0)
    grace_period_days: int = Field(default=30, ge=0)


class PlanTier(BaseModel):
    """A plan tier (Bronze/Silver/Gold/...) within a scheme."""

    plan_tier_id: int
    scheme_id: int
    tier_level: PlanTierLevel
    tier_name: str = Field(..., max_length=100)
    overall_annual_limit: Optional[Decimal] = Field(None, ge=0)
    network_access_level: NetworkAccessLevel = NetworkAccessLevel.FULL_NETWORK
    is_active: bool = True


class CorporateCostSharingOverride(BaseModel):
    """Company-specific replacement values for computed cost sharing."""

    deductible: Optional[Decimal] = Field(None, ge=0)
    copay: Optional[Decimal] = Field(None, ge=0)
    coinsurance_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    network_discount_percentage: Optional[Decimal] = Field(None, ge=0, le=100)


class CorporateSchemeConfig(BaseModel):
    """A company's customization of a scheme."""

    corporate_config_id: int
    company_id: int
    scheme_id: int
    config_name: str = Field(..., max_length=200)
    effective_date: date
    expiry_date: Optional[date] = None
    is_active: bool = True
    benefit_overrides: dict[int, MappingOverride] = Field(default_factory=dict)
    custom_cost_sharing: Optional[CorporateCostSharingOverride] = None


class EmployeeGradeBenefit(BaseModel):
    """Grade-specific customization on top of a corporate config."""

    grade_benefit_id: int
    corporate_config_id: int
    employee_grade: EmployeeGrade
    plan_tier_id: Optional[int] = None
    benefit_overrides: dict[int, MappingOverride] = Field(default_factory=dict)
    is_active: bool = True


class BenefitRider(BaseModel):
    """An optional enhancement a member can purchase."""

    rider_id: int
    rider_code: str = Field(..., max_length=30)
    rider_name: str = Field(..., max_length=200)
    base_scheme_id: int
    applicable_tiers: list[PlanTierLevel] = Field(default_factory=list)
    enhancements: dict[int, MappingOverride] = Field(default_factory=dict)
    waiting_period_days: int = Field(default=0, ge=0)
    is_active: bool = True


class MemberRiderSelection(BaseModel):
    """A rider a member has selected."""

    selection_id: int
    member_id: int
    rider_id: int
    effective_date: date
    expiry_date: Optional[date] = None
    is_active: bool = True

    @field_validator("expiry_date")
    @classmethod
    def expiry_after_effective(cls, v: Optional[date], info) -> Optional[date]:
        """Ensure expiry_date is not before effective_date."""
        if v is not None and "effective_date" in info.data and v < info.data["effective_date"]:
            raise ValueError("expiry_date must not be before effective_date")
        return v
