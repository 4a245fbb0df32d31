"""
Benefit resolution.

Coverage terms are built by an override chain applied in a fixed order:

    scheme -> corporate -> grade -> rider

Each layer is a pure function over the list of benefit mappings; later
layers win on conflicting fields. Riders may only widen coverage.
"""

from dataclasses import dataclass
from typing import Callable, Optional

import structlog

from claims_adjudication.config import AdjudicationConfig
from claims_adjudication.domain import (
    AuthorizationStatus,
    BenefitApplicationDetail,
    BenefitRider,
    Claim,
    EnhancedBenefit,
    MappingOverride,
    NetworkRestriction,
    NetworkTier,
    SchemeBenefitMapping,
)
from claims_adjudication.engine.context import AdjudicationContext
from claims_adjudication.repository import BenefitRepository
from claims_adjudication.utils import ZERO, add_days, is_within

logger = structlog.get_logger()

MappingTransform = Callable[[list[SchemeBenefitMapping]], list[SchemeBenefitMapping]]


@dataclass(frozen=True)
class OverrideLayer:
    """A named, pure transformation of the benefit mappings."""

    name: str
    apply: MappingTransform


def apply_overrides(
    mappings: list[SchemeBenefitMapping],
    overrides: dict[int, MappingOverride],
) -> list[SchemeBenefitMapping]:
    """
    Apply field-level overrides keyed by benefit id.

    Overrides for benefits not in ``mappings`` are ignored.
    """
    result = []
    for mapping in mappings:
        override = overrides.get(mapping.benefit_id)
        if override is None:
            result.append(mapping)
        else:
            result.append(mapping.model_copy(update=override.changes()))
    return result


def _wider_limit(base, enhanced):
    # None means unlimited
    if base is None:
        return None
    return max(base, enhanced)


def widen_mapping(
    mapping: SchemeBenefitMapping, enhancement: MappingOverride
) -> SchemeBenefitMapping:
    """Combine a mapping with a rider enhancement, never narrowing any term."""
    update = {}
    if enhancement.is_covered is not None:
        update["is_covered"] = mapping.is_covered or enhancement.is_covered
    if enhancement.coverage_percentage is not None:
        update["coverage_percentage"] = max(
            mapping.coverage_percentage, enhancement.coverage_percentage
        )
    if enhancement.annual_limit is not None:
        update["annual_limit"] = _wider_limit(mapping.annual_limit, enhancement.annual_limit)
    if enhancement.per_visit_limit is not None:
        update["per_visit_limit"] = _wider_limit(
            mapping.per_visit_limit, enhancement.per_visit_limit
        )
    if enhancement.waiting_period_days is not None:
        update["waiting_period_days"] = min(
            mapping.waiting_period_days, enhancement.waiting_period_days
        )
    if enhancement.pre_auth_required is not None:
        update["pre_auth_required"] = mapping.pre_auth_required and enhancement.pre_auth_required
    if enhancement.referral_required is not None:
        update["referral_required"] = mapping.referral_required and enhancement.referral_required
    if enhancement.network_restriction is not None:
        update["network_restriction"] = max(
            mapping.network_restriction,
            enhancement.network_restriction,
            key=lambda r: r.breadth,
        )
    if enhancement.special_conditions:
        update["special_conditions"] = mapping.special_conditions + [
            c for c in enhancement.special_conditions if c not in mapping.special_conditions
        ]
    return mapping.model_copy(update=update)


def rider_mapping_id(rider_id: int, benefit_id: int) -> int:
    """Synthetic id for a mapping a rider adds. Negative so it never clashes."""
    return -(rider_id * 1_000_000 + benefit_id)


def apply_rider(
    mappings: list[SchemeBenefitMapping],
    rider: BenefitRider,
    scheme_id: int,
    plan_tier_id: int,
) -> list[SchemeBenefitMapping]:
    """Widen existing mappings and add covered mappings for new benefits."""
    present = {m.benefit_id for m in mappings}
    result = [
        widen_mapping(m, rider.enhancements[m.benefit_id])
        if m.benefit_id in rider.enhancements
        else m
        for m in mappings
    ]
    for benefit_id in sorted(rider.enhancements):
        if benefit_id in present:
            continue
        changes = rider.enhancements[benefit_id].changes()
        changes["is_covered"] = True
        result.append(
            SchemeBenefitMapping(
                mapping_id=rider_mapping_id(rider.rider_id, benefit_id),
                scheme_id=scheme_id,
                plan_tier_id=plan_tier_id,
                benefit_id=benefit_id,
                **changes,
            )
        )
    return result


class OverrideChain:
    """
    Ordered composition of override layers.

    Tracks which layers changed each benefit so results can explain where
    their terms came from.
    """

    def __init__(self, layers: list[OverrideLayer]):
        self.layers = layers

    def resolve(
        self, base: list[SchemeBenefitMapping]
    ) -> tuple[list[SchemeBenefitMapping], dict[int, list[str]]]:
        """
        Apply every layer left to right.

        Returns:
            Tuple of (final mappings, layer names that touched each benefit id)
        """
        mappings = list(base)
        provenance: dict[int, list[str]] = {m.benefit_id: ["scheme"] for m in mappings}

        for layer in self.layers:
            before = {m.benefit_id: m for m in mappings}
            mappings = layer.apply(mappings)
            for m in mappings:
                if before.get(m.benefit_id) != m:
                    provenance.setdefault(m.benefit_id, []).append(layer.name)

        return mappings, provenance


def benefit_applies(benefit: EnhancedBenefit, claim: Claim) -> bool:
    """Check whether a benefit applies to the claim's service."""
    if benefit.benefit_category.lower() != claim.service_category.lower():
        return False
    if benefit.service_codes and claim.service_code:
        return claim.service_code in benefit.service_codes
    return True


def violates_network_restriction(
    restriction: NetworkRestriction,
    provider_id: Optional[int],
    tier: Optional[NetworkTier],
) -> bool:
    """Check a provider against a mapping's network restriction."""
    if provider_id is None or restriction == NetworkRestriction.ANY_PROVIDER:
        return False
    if restriction == NetworkRestriction.NETWORK_ONLY:
        return tier is None
    return tier != NetworkTier.TIER_1


def authorization_status(required: bool, obtained: bool) -> AuthorizationStatus:
    if not required:
        return AuthorizationStatus.NOT_REQUIRED
    return AuthorizationStatus.OBTAINED if obtained else AuthorizationStatus.MISSING


class BenefitResolver:
    """
    Resolves the benefits that apply to a claim.

    Usage:
        resolver = BenefitResolver(benefit_repository, config)
        details = resolver.resolve(context)
    """

    def __init__(self, benefits: BenefitRepository, config: AdjudicationConfig):
        self.benefits = benefits
        self.config = config

    def base_mappings(self, context: AdjudicationContext) -> list[SchemeBenefitMapping]:
        """Scheme mappings for the member's tier (or the tier their grade assigns)."""
        if context.scheme is None or context.plan_tier is None:
            return []
        plan_tier_id = context.plan_tier.plan_tier_id
        grade = context.grade_benefit
        if grade is not None and grade.is_active and grade.plan_tier_id is not None:
            plan_tier_id = grade.plan_tier_id
        return self.benefits.get_scheme_benefit_mappings(context.scheme.scheme_id, plan_tier_id)

    def build_chain(self, context: AdjudicationContext) -> OverrideChain:
        """Build the corporate, grade and rider layers that apply to the context."""
        layers: list[OverrideLayer] = []

        corporate = context.corporate_config
        if corporate is not None and corporate.benefit_overrides:
            overrides = corporate.benefit_overrides
            layers.append(OverrideLayer("corporate", lambda ms: apply_overrides(ms, overrides)))

        grade = context.grade_benefit
        if grade is not None and grade.is_active and grade.benefit_overrides:
            grade_overrides = grade.benefit_overrides
            layers.append(OverrideLayer("grade", lambda ms: apply_overrides(ms, grade_overrides)))

        for rider in self.applicable_riders(context):
            layers.append(
                OverrideLayer(
                    f"rider:{rider.rider_code}",
                    lambda ms, r=rider: apply_rider(
                        ms, r, context.scheme.scheme_id, context.plan_tier.plan_tier_id
                    ),
                )
            )

        return OverrideChain(layers)

    def applicable_riders(self, context: AdjudicationContext) -> list[BenefitRider]:
        """Riders in force on the service date, in selection order."""
        if context.scheme is None or context.plan_tier is None:
            return []

        service_date = context.service_date
        selections = sorted(
            context.rider_selections, key=lambda s: (s.effective_date, s.selection_id)
        )
        riders = []
        for selection in selections:
            rider = context.riders.get(selection.rider_id)
            if rider is None or not rider.is_active or not selection.is_active:
                continue
            if not is_within(service_date, selection.effective_date, selection.expiry_date):
                continue
            if rider.base_scheme_id != context.scheme.scheme_id:
                continue
            if rider.applicable_tiers and context.plan_tier.tier_level not in rider.applicable_tiers:
                continue
            if service_date < add_days(selection.effective_date, rider.waiting_period_days):
                continue
            riders.append(rider)
        return riders

    def resolve(self, context: AdjudicationContext) -> list[BenefitApplicationDetail]:
        """
        Resolve the applicable benefits for a claim.

        Returns:
            Details ordered by benefit sort order, then benefit id
        """
        mappings, provenance = self.build_chain(context).resolve(self.base_mappings(context))

        claim = context.claim
        details = []
        for mapping in mappings:
            if not mapping.is_active or not mapping.is_covered:
                continue
            benefit = self.benefits.get_benefit(mapping.benefit_id)
            if benefit is None or not benefit.is_active or not benefit_applies(benefit, claim):
                continue
            details.append((benefit, self._detail(context, benefit, mapping, provenance)))

        details.sort(key=lambda pair: (pair[0].sort_order, pair[0].benefit_id))

        logger.debug(
            "benefits_resolved",
            claim_id=claim.claim_id,
            mappings=len(mappings),
            applicable=len(details),
        )
        return [detail for _, detail in details]

    def _detail(
        self,
        context: AdjudicationContext,
        benefit: EnhancedBenefit,
        mapping: SchemeBenefitMapping,
        provenance: dict[int, list[str]],
    ) -> BenefitApplicationDetail:
        claim = context.claim
        is_covered = True
        special_conditions = list(mapping.special_conditions)

        remaining = None
        if mapping.annual_limit is not None:
            usage = context.current_utilization(benefit.benefit_id)
            remaining = mapping.annual_limit - (usage.used_amount if usage else ZERO)

        waiting_applied = False
        enrollment = context.member.enrollment_date
        if enrollment is not None and mapping.waiting_period_days > 0:
            waiting_ends = add_days(enrollment, mapping.waiting_period_days)
            if claim.service_date < waiting_ends:
                waiting_applied = True
                is_covered = False
                special_conditions.append(
                    f"Waiting period of {mapping.waiting_period_days} days applies "
                    f"until {waiting_ends.isoformat()}"
                )

        if violates_network_restriction(
            mapping.network_restriction, claim.provider_id, context.provider_network_tier
        ):
            is_covered = False
            special_conditions.append(
                f"Provider does not meet network restriction "
                f"{mapping.network_restriction.value}"
            )

        return BenefitApplicationDetail(
            benefit_id=benefit.benefit_id,
            benefit_name=benefit.benefit_name,
            benefit_category=benefit.benefit_category,
            mapping_id=mapping.mapping_id,
            is_covered=is_covered,
            coverage_percentage=mapping.coverage_percentage,
            annual_limit=mapping.annual_limit,
            remaining_limit=remaining,
            per_visit_limit=mapping.per_visit_limit,
            pre_auth_required=mapping.pre_auth_required,
            pre_auth_status=authorization_status(
                mapping.pre_auth_required, claim.is_pre_authorized
            ),
            network_restriction=mapping.network_restriction,
            referral_required=mapping.referral_required,
            referral_status=authorization_status(mapping.referral_required, claim.has_referral),
            waiting_period_applied=waiting_applied,
            special_conditions=special_conditions,
            applied_layers=provenance.get(benefit.benefit_id, ["scheme"]),
        )
