"""
Protocol definitions for the data the adjudication engine reads and writes.

One protocol per entity. The engine depends only on these interfaces;
persistence is owned by the caller.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from claims_adjudication.domain import (
    AdjudicationResult,
    BenefitLimit,
    BenefitRider,
    BenefitRule,
    BenefitUtilization,
    Claim,
    ClaimStatus,
    CorporateSchemeConfig,
    CostSharingRule,
    EmployeeGrade,
    EmployeeGradeBenefit,
    EnhancedBenefit,
    LimitType,
    Member,
    MemberRiderSelection,
    NetworkTier,
    PlanTier,
    PremiumStatus,
    RuleExecutionLog,
    Scheme,
    SchemeBenefitMapping,
)


@runtime_checkable
class ClaimRepository(Protocol):
    """Claims subsystem."""

    def get_claim(self, claim_id: int) -> Claim | None:
        """Get a claim by ID."""
        ...

    def update_claim_status(self, claim_id: int, status: ClaimStatus) -> None:
        """Update a claim's lifecycle status."""
        ...


@runtime_checkable
class MemberRepository(Protocol):
    """Membership and billing position."""

    def get_member(self, member_id: int) -> Member | None:
        """Get a member by ID."""
        ...

    def get_premium_status(self, member_id: int) -> PremiumStatus | None:
        """Get the member's premium position, None if billing has no record."""
        ...


@runtime_checkable
class SchemeRepository(Protocol):
    """Scheme enrollment and the corporate/grade layers."""

    def get_scheme_for_member(self, member_id: int) -> Scheme | None:
        """Get the scheme the member is enrolled in."""
        ...

    def get_plan_tier_for_member(self, member_id: int) -> PlanTier | None:
        """Get the plan tier the member is enrolled in."""
        ...

    def get_corporate_scheme_config(
        self, company_id: int, scheme_id: int | None
    ) -> CorporateSchemeConfig | None:
        """Get a company's configuration of a scheme."""
        ...

    def get_employee_grade_benefit(
        self, employee_grade: EmployeeGrade, corporate_config_id: int
    ) -> EmployeeGradeBenefit | None:
        """Get grade-specific benefits under a corporate configuration."""
        ...


@runtime_checkable
class RiderRepository(Protocol):
    """Optional benefit riders."""

    def get_member_rider_selections(self, member_id: int) -> list[MemberRiderSelection]:
        """Get every rider selection of a member."""
        ...

    def get_rider(self, rider_id: int) -> BenefitRider | None:
        """Get a rider definition."""
        ...


@runtime_checkable
class BenefitRepository(Protocol):
    """Benefit definitions, scheme mappings, limits and cost sharing."""

    def get_scheme_benefit_mappings(
        self, scheme_id: int, plan_tier_id: int
    ) -> list[SchemeBenefitMapping]:
        """Get base benefit mappings of a scheme and plan tier."""
        ...

    def get_benefit(self, benefit_id: int) -> EnhancedBenefit | None:
        """Get a benefit definition."""
        ...

    def get_benefit_limits(
        self, benefit_id: int, limit_type: LimitType | None = None
    ) -> list[BenefitLimit]:
        """Get limits configured for a benefit, optionally of one type."""
        ...

    def get_cost_sharing_rules(self, mapping_ids: list[int]) -> list[CostSharingRule]:
        """Get cost-sharing rules attached to the given mappings."""
        ...


@runtime_checkable
class UtilizationRepository(Protocol):
    """Running benefit usage."""

    def get_member_benefit_utilization(self, member_id: int) -> list[BenefitUtilization]:
        """Get every utilization record of a member."""
        ...

    def update_benefit_utilization(self, utilization: BenefitUtilization) -> None:
        """Insert or replace the utilization record of (member, benefit)."""
        ...


@runtime_checkable
class RuleRepository(Protocol):
    """Rules engine configuration and audit trail."""

    def get_applicable_rules(self, scheme_id: int | None) -> list[BenefitRule]:
        """Get active rules that apply to a scheme, in insertion order."""
        ...

    def record_rule_execution_logs(self, logs: list[RuleExecutionLog]) -> None:
        """Persist rule execution logs."""
        ...


@runtime_checkable
class ProviderRepository(Protocol):
    """Provider network."""

    def get_provider_network_tier(
        self, provider_id: int, scheme_id: int | None
    ) -> NetworkTier | None:
        """Get the network tier of a provider for a scheme, None if out of network."""
        ...

    def provider_exists(self, provider_id: int) -> bool:
        """Check the provider is registered."""
        ...


@runtime_checkable
class AdjudicationResultStore(Protocol):
    """Adjudication output."""

    def record_adjudication_result(self, result: AdjudicationResult) -> None:
        """Persist an adjudication result."""
        ...


@dataclass(frozen=True)
class Repositories:
    """
    The collaborators an adjudicator is constructed with.

    Usage:
        store = InMemoryRepository()
        repos = Repositories.from_store(store)
        adjudicator = Adjudicator(repos, config)
    """

    claims: ClaimRepository
    members: MemberRepository
    schemes: SchemeRepository
    riders: RiderRepository
    benefits: BenefitRepository
    utilization: UtilizationRepository
    rules: RuleRepository
    providers: ProviderRepository
    results: AdjudicationResultStore

    @classmethod
    def from_store(cls, store) -> "Repositories":
        """Use a single object implementing every protocol."""
        return cls(
            claims=store,
            members=store,
            schemes=store,
            riders=store,
            benefits=store,
            utilization=store,
            rules=store,
            providers=store,
            results=store,
        )
