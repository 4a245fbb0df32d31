"""
Adjudication context.

Assembles everything the pipeline needs to adjudicate one claim.
"""

import threading
from datetime import date, datetime
from typing import Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

from claims_adjudication.config import AdjudicationConfig
from claims_adjudication.domain import (
    BenefitRider,
    BenefitUtilization,
    Claim,
    CorporateSchemeConfig,
    EmployeeGradeBenefit,
    Member,
    MemberRiderSelection,
    NetworkTier,
    PlanTier,
    PremiumStatus,
    Scheme,
)
from claims_adjudication.errors import (
    AdjudicationError,
    ClaimNotFoundError,
    ContextBuildError,
    MemberNotFoundError,
)
from claims_adjudication.repository import Repositories
from claims_adjudication.utils import get_age, get_benefit_year_start

logger = structlog.get_logger()


class AdjudicationContext(BaseModel):
    """Immutable snapshot of the data one adjudication reads."""

    model_config = ConfigDict(frozen=True)

    claim: Claim
    member: Member
    member_age: int
    adjudication_date: datetime

    scheme: Optional[Scheme] = None
    plan_tier: Optional[PlanTier] = None
    corporate_config: Optional[CorporateSchemeConfig] = None
    grade_benefit: Optional[EmployeeGradeBenefit] = None
    rider_selections: list[MemberRiderSelection] = Field(default_factory=list)
    riders: dict[int, BenefitRider] = Field(default_factory=dict)
    utilization: list[BenefitUtilization] = Field(default_factory=list)
    provider_network_tier: Optional[NetworkTier] = None
    premium_status: Optional[PremiumStatus] = None

    benefit_year_start: date

    @property
    def service_date(self) -> date:
        return self.claim.service_date

    def current_utilization(self, benefit_id: int) -> Optional[BenefitUtilization]:
        """
        Utilization of a benefit in the current benefit year.

        Rows from an earlier benefit year are stale and treated as absent.
        """
        for u in self.utilization:
            if u.benefit_id == benefit_id and u.period_start >= self.benefit_year_start:
                return u
        return None

    def current_period_utilization(self) -> list[BenefitUtilization]:
        """All utilization rows that belong to the current benefit year."""
        return [u for u in self.utilization if u.period_start >= self.benefit_year_start]


class ContextBuilder:
    """
    Builds and caches adjudication contexts.

    Read-only against the repositories. Contexts are cached per claim id
    until ``invalidate`` is called (the adjudicator does so after writing
    utilization). A build with an explicit ``as_of`` neither reads nor fills
    the cache.

    Usage:
        builder = ContextBuilder(repositories, config)
        context = builder.build(claim_id=1001)
    """

    def __init__(
        self,
        repositories: Repositories,
        config: AdjudicationConfig,
        use_cache: bool = True,
    ):
        self.repos = repositories
        self.config = config
        self.use_cache = use_cache
        self._cache: dict[int, AdjudicationContext] = {}
        self._lock = threading.Lock()

    def build(self, claim_id: int, as_of: datetime | None = None) -> AdjudicationContext:
        """
        Build the context for a claim.

        Args:
            claim_id: Claim to adjudicate
            as_of: Adjudication timestamp (defaults to now)

        Returns:
            Frozen adjudication context

        Raises:
            ClaimNotFoundError: If the claim does not exist
            MemberNotFoundError: If the claim's member does not exist
            ContextBuildError: If a collaborator read fails
        """
        cacheable = self.use_cache and as_of is None
        if cacheable:
            with self._lock:
                cached = self._cache.get(claim_id)
            if cached is not None:
                return cached

        try:
            context = self._build(claim_id, as_of or datetime.now())
        except AdjudicationError:
            raise
        except Exception as e:
            raise ContextBuildError(
                f"Failed to build context for claim {claim_id}: {e}", claim_id=claim_id
            ) from e

        if cacheable:
            with self._lock:
                self._cache[claim_id] = context
        return context

    def _build(self, claim_id: int, adjudication_date: datetime) -> AdjudicationContext:
        claim = self.repos.claims.get_claim(claim_id)
        if claim is None:
            raise ClaimNotFoundError(claim_id)

        member = self.repos.members.get_member(claim.member_id)
        if member is None:
            raise MemberNotFoundError(claim.member_id, claim_id=claim_id)

        scheme = self.repos.schemes.get_scheme_for_member(member.member_id)
        plan_tier = self.repos.schemes.get_plan_tier_for_member(member.member_id)
        scheme_id = scheme.scheme_id if scheme else None

        corporate_config = None
        if member.company_id is not None:
            corporate_config = self.repos.schemes.get_corporate_scheme_config(
                member.company_id, scheme_id
            )

        grade_benefit = None
        if corporate_config is not None and member.employee_grade is not None:
            grade_benefit = self.repos.schemes.get_employee_grade_benefit(
                member.employee_grade, corporate_config.corporate_config_id
            )

        rider_selections = self.repos.riders.get_member_rider_selections(member.member_id)
        riders = {}
        for selection in rider_selections:
            rider = self.repos.riders.get_rider(selection.rider_id)
            if rider is not None:
                riders[rider.rider_id] = rider

        utilization = self.repos.utilization.get_member_benefit_utilization(member.member_id)

        provider_network_tier = None
        if claim.provider_id is not None:
            provider_network_tier = self.repos.providers.get_provider_network_tier(
                claim.provider_id, scheme_id
            )

        premium_status = self.repos.members.get_premium_status(member.member_id)

        context = AdjudicationContext(
            claim=claim,
            member=member,
            member_age=get_age(member.date_of_birth, claim.service_date),
            adjudication_date=adjudication_date,
            scheme=scheme,
            plan_tier=plan_tier,
            corporate_config=corporate_config,
            grade_benefit=grade_benefit,
            rider_selections=rider_selections,
            riders=riders,
            utilization=utilization,
            provider_network_tier=provider_network_tier,
            premium_status=premium_status,
            benefit_year_start=get_benefit_year_start(
                claim.service_date, self.config.engine.benefit_year_start_month
            ),
        )

        logger.debug(
            "adjudication_context_built",
            claim_id=claim_id,
            member_id=member.member_id,
            scheme_id=scheme_id,
            corporate=corporate_config is not None,
            riders=len(riders),
        )
        return context

    def invalidate(self, claim_id: int) -> None:
        """Drop a cached context."""
        with self._lock:
            self._cache.pop(claim_id, None)

    def invalidate_member(self, member_id: int) -> None:
        """Drop every cached context of a member (their utilization changed)."""
        with self._lock:
            stale = [cid for cid, ctx in self._cache.items() if ctx.member.member_id == member_id]
            for cid in stale:
                del self._cache[cid]

    def clear_cache(self) -> None:
        """Drop all cached contexts."""
        with self._lock:
            self._cache.clear()
