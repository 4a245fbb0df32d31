"""
Eligibility verification.

Checks accumulate: every failing reason is reported, except that nothing
past the scheme check can be evaluated without a scheme.
"""

import structlog

from claims_adjudication.config import AdjudicationConfig
from claims_adjudication.domain import EligibilityResult, NetworkAccessLevel, NetworkTier
from claims_adjudication.engine.context import AdjudicationContext
from claims_adjudication.utils import add_days

logger = structlog.get_logger()


class EligibilityVerifier:
    """Decides whether a member is eligible for cover on the service date."""

    def __init__(self, config: AdjudicationConfig):
        self.config = config

    def verify(self, context: AdjudicationContext) -> EligibilityResult:
        reasons: list[str] = []
        warnings: list[str] = []
        service_date = context.service_date

        scheme = context.scheme
        if scheme is None:
            return EligibilityResult(
                is_eligible=False,
                reasons=["Member not enrolled in any scheme"],
            )

        if not scheme.is_active:
            reasons.append("Scheme is not active")
        if scheme.launch_date is not None and service_date < scheme.launch_date:
            reasons.append("Scheme has not launched yet")
        if scheme.sunset_date is not None and service_date > scheme.sunset_date:
            reasons.append("Scheme has expired")

        age = context.member_age
        if scheme.min_age is not None and age < scheme.min_age:
            reasons.append(f"Member age {age} is below minimum age {scheme.min_age}")
        if scheme.max_age is not None and age > scheme.max_age:
            reasons.append(f"Member age {age} is above maximum age {scheme.max_age}")

        plan_tier = context.plan_tier
        if plan_tier is None:
            reasons.append("Member not assigned to a plan tier")
        elif not plan_tier.is_active:
            reasons.append("Member's plan tier is not active")

        corporate = context.corporate_config
        if context.member.is_corporate and corporate is not None:
            if service_date < corporate.effective_date:
                reasons.append("Corporate scheme configuration is not yet effective")
            if corporate.expiry_date is not None and service_date > corporate.expiry_date:
                reasons.append("Corporate scheme configuration has expired")

        if self.config.engine.enforce_premium_status:
            premium = context.premium_status
            if premium is None:
                warnings.append("Premium payment status unknown")
            elif (
                premium.paid_through_date is None
                or add_days(premium.paid_through_date, scheme.grace_period_days) < service_date
            ):
                reasons.append("Member premiums are not paid up to date")

        # Provider warnings never block
        tier = context.provider_network_tier
        if context.claim.provider_id is not None:
            if tier is None:
                warnings.append("Provider is not in the scheme network")
            elif (
                tier == NetworkTier.TIER_1
                and plan_tier is not None
                and plan_tier.network_access_level != NetworkAccessLevel.TIER_1_ONLY
            ):
                warnings.append("Provider is tier 1 but member has higher tier access")

        result = EligibilityResult(is_eligible=not reasons, reasons=reasons, warnings=warnings)

        logger.debug(
            "eligibility_verified",
            claim_id=context.claim.claim_id,
            is_eligible=result.is_eligible,
            reasons=len(reasons),
            warnings=len(warnings),
        )
        return result
