"""
In-memory implementation of every repository protocol.

Used by the command-line tools (fed by ``DatasetLoader``) and by tests.
Thread-safe: all access goes through one re-entrant lock.
"""

import threading
from collections import defaultdict

import structlog

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

logger = structlog.get_logger()


class InMemoryRepository:
    """
    Dictionary-backed store satisfying every protocol in
    ``claims_adjudication.repository.protocol``.

    Usage:
        store = InMemoryRepository()
        store.add_scheme(scheme)
        store.add_plan_tier(tier)
        store.enroll(member_id=1, scheme_id=scheme.scheme_id, plan_tier_id=tier.plan_tier_id)
    """

    def __init__(self):
        self._lock = threading.RLock()

        self.claims: dict[int, Claim] = {}
        self.members: dict[int, Member] = {}
        self.premiums: dict[int, PremiumStatus] = {}
        self.schemes: dict[int, Scheme] = {}
        self.plan_tiers: dict[int, PlanTier] = {}
        # member_id -> (scheme_id, plan_tier_id)
        self.enrollments: dict[int, tuple[int, int | None]] = {}
        self.corporate_configs: dict[int, CorporateSchemeConfig] = {}
        self.grade_benefits: dict[int, EmployeeGradeBenefit] = {}
        self.riders: dict[int, BenefitRider] = {}
        self.rider_selections: dict[int, list[MemberRiderSelection]] = defaultdict(list)
        self.benefits: dict[int, EnhancedBenefit] = {}
        self.mappings: list[SchemeBenefitMapping] = []
        self.limits: list[BenefitLimit] = []
        self.cost_sharing_rules: list[CostSharingRule] = []
        self.utilization: dict[tuple[int, int], BenefitUtilization] = {}
        self.rules: list[BenefitRule] = []
        self.providers: set[int] = set()
        # (provider_id, scheme_id or None for every scheme) -> tier
        self.provider_tiers: dict[tuple[int, int | None], NetworkTier] = {}

        self.adjudication_results: dict[int, list[AdjudicationResult]] = defaultdict(list)
        self.rule_execution_logs: list[RuleExecutionLog] = []

    # =========================================================================
    # Seeding
    # =========================================================================

    def add_claim(self, claim: Claim) -> None:
        with self._lock:
            self.claims[claim.claim_id] = claim

    def add_member(self, member: Member) -> None:
        with self._lock:
            self.members[member.member_id] = member

    def add_premium_status(self, status: PremiumStatus) -> None:
        with self._lock:
            self.premiums[status.member_id] = status

    def add_scheme(self, scheme: Scheme) -> None:
        with self._lock:
            self.schemes[scheme.scheme_id] = scheme

    def add_plan_tier(self, tier: PlanTier) -> None:
        with self._lock:
            self.plan_tiers[tier.plan_tier_id] = tier

    def enroll(self, member_id: int, scheme_id: int, plan_tier_id: int | None) -> None:
        with self._lock:
            self.enrollments[member_id] = (scheme_id, plan_tier_id)

    def add_corporate_config(self, config: CorporateSchemeConfig) -> None:
        with self._lock:
            self.corporate_configs[config.corporate_config_id] = config

    def add_grade_benefit(self, grade_benefit: EmployeeGradeBenefit) -> None:
        with self._lock:
            self.grade_benefits[grade_benefit.grade_benefit_id] = grade_benefit

    def add_rider(self, rider: BenefitRider) -> None:
        with self._lock:
            self.riders[rider.rider_id] = rider

    def add_rider_selection(self, selection: MemberRiderSelection) -> None:
        with self._lock:
            self.rider_selections[selection.member_id].append(selection)

    def add_benefit(self, benefit: EnhancedBenefit) -> None:
        with self._lock:
            self.benefits[benefit.benefit_id] = benefit

    def add_mapping(self, mapping: SchemeBenefitMapping) -> None:
        with self._lock:
            self.mappings.append(mapping)

    def add_limit(self, limit: BenefitLimit) -> None:
        with self._lock:
            self.limits.append(limit)

    def add_cost_sharing_rule(self, rule: CostSharingRule) -> None:
        with self._lock:
            self.cost_sharing_rules.append(rule)

    def add_rule(self, rule: BenefitRule) -> None:
        with self._lock:
            self.rules.append(rule)

    def add_provider(
        self,
        provider_id: int,
        network_tier: NetworkTier | None = None,
        scheme_id: int | None = None,
    ) -> None:
        with self._lock:
            self.providers.add(provider_id)
            if network_tier is not None:
                self.provider_tiers[(provider_id, scheme_id)] = network_tier

    # =========================================================================
    # ClaimRepository
    # =========================================================================

    def get_claim(self, claim_id: int) -> Claim | None:
        with self._lock:
            return self.claims.get(claim_id)

    def update_claim_status(self, claim_id: int, status: ClaimStatus) -> None:
        with self._lock:
            claim = self.claims.get(claim_id)
            if claim is None:
                logger.warning("claim_status_update_skipped", claim_id=claim_id, reason="not_found")
                return
            self.claims[claim_id] = claim.model_copy(update={"status": status})

    # =========================================================================
    # MemberRepository
    # =========================================================================

    def get_member(self, member_id: int) -> Member | None:
        with self._lock:
            return self.members.get(member_id)

    def get_premium_status(self, member_id: int) -> PremiumStatus | None:
        with self._lock:
            return self.premiums.get(member_id)

    # =========================================================================
    # SchemeRepository
    # =========================================================================

    def get_scheme_for_member(self, member_id: int) -> Scheme | None:
        with self._lock:
            enrollment = self.enrollments.get(member_id)
            if enrollment is None:
                return None
            return self.schemes.get(enrollment[0])

    def get_plan_tier_for_member(self, member_id: int) -> PlanTier | None:
        with self._lock:
            enrollment = self.enrollments.get(member_id)
            if enrollment is None or enrollment[1] is None:
                return None
            return self.plan_tiers.get(enrollment[1])

    def get_corporate_scheme_config(
        self, company_id: int, scheme_id: int | None
    ) -> CorporateSchemeConfig | None:
        with self._lock:
            matches = [
                c for c in self.corporate_configs.values()
                if c.company_id == company_id
                and c.is_active
                and (scheme_id is None or c.scheme_id == scheme_id)
            ]
        if not matches:
            return None
        # Most recent configuration wins
        return max(matches, key=lambda c: c.effective_date)

    def get_employee_grade_benefit(
        self, employee_grade: EmployeeGrade, corporate_config_id: int
    ) -> EmployeeGradeBenefit | None:
        with self._lock:
            return next(
                (
                    g for g in self.grade_benefits.values()
                    if g.employee_grade == employee_grade
                    and g.corporate_config_id == corporate_config_id
                    and g.is_active
                ),
                None,
            )

    # =========================================================================
    # RiderRepository
    # =========================================================================

    def get_member_rider_selections(self, member_id: int) -> list[MemberRiderSelection]:
        with self._lock:
            return list(self.rider_selections.get(member_id, []))

    def get_rider(self, rider_id: int) -> BenefitRider | None:
        with self._lock:
            return self.riders.get(rider_id)

    # =========================================================================
    # BenefitRepository
    # =========================================================================

    def get_scheme_benefit_mappings(
        self, scheme_id: int, plan_tier_id: int
    ) -> list[SchemeBenefitMapping]:
        with self._lock:
            return [
                m for m in self.mappings
                if m.scheme_id == scheme_id and m.plan_tier_id == plan_tier_id
            ]

    def get_benefit(self, benefit_id: int) -> EnhancedBenefit | None:
        with self._lock:
            return self.benefits.get(benefit_id)

    def get_benefit_limits(
        self, benefit_id: int, limit_type: LimitType | None = None
    ) -> list[BenefitLimit]:
        with self._lock:
            return [
                lim for lim in self.limits
                if lim.benefit_id == benefit_id
                and lim.is_active
                and (limit_type is None or lim.limit_type == limit_type)
            ]

    def get_cost_sharing_rules(self, mapping_ids: list[int]) -> list[CostSharingRule]:
        wanted = set(mapping_ids)
        with self._lock:
            return [r for r in self.cost_sharing_rules if r.mapping_id in wanted]

    # =========================================================================
    # UtilizationRepository
    # =========================================================================

    def get_member_benefit_utilization(self, member_id: int) -> list[BenefitUtilization]:
        with self._lock:
            return [u for (m, _), u in self.utilization.items() if m == member_id]

    def update_benefit_utilization(self, utilization: BenefitUtilization) -> None:
        with self._lock:
            self.utilization[(utilization.member_id, utilization.benefit_id)] = utilization

    # =========================================================================
    # RuleRepository
    # =========================================================================

    def get_applicable_rules(self, scheme_id: int | None) -> list[BenefitRule]:
        with self._lock:
            return [
                r for r in self.rules
                if r.is_active and (r.scheme_id is None or r.scheme_id == scheme_id)
            ]

    def record_rule_execution_logs(self, logs: list[RuleExecutionLog]) -> None:
        with self._lock:
            self.rule_execution_logs.extend(logs)

    # =========================================================================
    # ProviderRepository
    # =========================================================================

    def get_provider_network_tier(
        self, provider_id: int, scheme_id: int | None
    ) -> NetworkTier | None:
        with self._lock:
            tier = self.provider_tiers.get((provider_id, scheme_id))
            if tier is None:
                tier = self.provider_tiers.get((provider_id, None))
            return tier

    def provider_exists(self, provider_id: int) -> bool:
        with self._lock:
            return provider_id in self.providers

    # =========================================================================
    # AdjudicationResultStore
    # =========================================================================

    def record_adjudication_result(self, result: AdjudicationResult) -> None:
        with self._lock:
            self.adjudication_results[result.claim_id].append(result)

    def get_adjudication_results(self, claim_id: int) -> list[AdjudicationResult]:
        with self._lock:
            return list(self.adjudication_results.get(claim_id, []))
