"""
Limit checking.

Evaluates every limit instance that applies to a claim against the member's
pre-claim usage. Limit checks never deny on their own; the decision
synthesizer uses them to cap the approved amount.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

import structlog

from claims_adjudication.config import AdjudicationConfig
from claims_adjudication.domain import (
    BenefitApplicationDetail,
    BenefitLimit,
    Gender,
    LimitCheckResult,
    LimitPeriod,
    LimitType,
)
from claims_adjudication.engine.context import AdjudicationContext
from claims_adjudication.repository import BenefitRepository
from claims_adjudication.utils import (
    ZERO,
    add_days,
    get_benefit_year_end,
    get_next_reset_date,
)

logger = structlog.get_logger()


class LimitChecker:
    """
    Evaluates overall, benefit, sub, frequency and age-based limits.

    Usage:
        checker = LimitChecker(benefit_repository, config)
        results = checker.check(context, details)
    """

    def __init__(self, benefits: BenefitRepository, config: AdjudicationConfig):
        self.benefits = benefits
        self.config = config

    def reset_date(self, period: LimitPeriod, service_date: date) -> Optional[date]:
        """Date the usage counted against a limit of this period resets."""
        if period == LimitPeriod.ANNUAL:
            return get_next_reset_date(service_date, self.config.engine.benefit_year_start_month)
        if period == LimitPeriod.PER_DAY:
            return add_days(service_date, 1)
        return None

    def check(
        self,
        context: AdjudicationContext,
        details: list[BenefitApplicationDetail],
    ) -> list[LimitCheckResult]:
        results: list[LimitCheckResult] = []

        overall = self._check_overall_annual(context)
        if overall is not None:
            results.append(overall)

        for detail in details:
            if not detail.is_covered:
                continue

            if detail.annual_limit is not None:
                results.append(self._check_benefit_annual(context, detail))

            for limit in self.benefits.get_benefit_limits(detail.benefit_id):
                if not limit.is_active:
                    continue
                if limit.limit_type == LimitType.SUB_LIMIT:
                    results.append(self._check_sub_limit(context, limit))
                elif limit.limit_type == LimitType.FREQUENCY:
                    results.append(self._check_frequency(context, limit))
                elif limit.limit_type == LimitType.AGE_BASED:
                    age_result = self._check_age_based(context, limit)
                    if age_result is not None:
                        results.append(age_result)

        logger.debug(
            "limits_checked",
            claim_id=context.claim.claim_id,
            checks=len(results),
            exceeded=sum(1 for r in results if r.is_exceeded),
        )
        return results

    def _result(
        self,
        limit_type: LimitType,
        limit_amount: Decimal,
        usage: Decimal,
        reset_date: Optional[date],
        **kwargs,
    ) -> LimitCheckResult:
        return LimitCheckResult(
            limit_type=limit_type,
            limit_amount=limit_amount,
            current_usage=usage,
            remaining_amount=limit_amount - usage,
            is_exceeded=usage > limit_amount,
            reset_date=reset_date,
            **kwargs,
        )

    def _used_amount(self, context: AdjudicationContext, benefit_id: int) -> Decimal:
        usage = context.current_utilization(benefit_id)
        return usage.used_amount if usage else ZERO

    def _check_overall_annual(self, context: AdjudicationContext) -> Optional[LimitCheckResult]:
        plan_tier = context.plan_tier
        if plan_tier is None or plan_tier.overall_annual_limit is None:
            return None
        usage = sum((u.used_amount for u in context.current_period_utilization()), ZERO)
        return self._result(
            LimitType.OVERALL_ANNUAL,
            plan_tier.overall_annual_limit,
            usage,
            self.reset_date(LimitPeriod.ANNUAL, context.service_date),
        )

    def _check_benefit_annual(
        self, context: AdjudicationContext, detail: BenefitApplicationDetail
    ) -> LimitCheckResult:
        return self._result(
            LimitType.BENEFIT_ANNUAL,
            detail.annual_limit,
            self._used_amount(context, detail.benefit_id),
            self.reset_date(LimitPeriod.ANNUAL, context.service_date),
            benefit_id=detail.benefit_id,
        )

    def _check_sub_limit(self, context: AdjudicationContext, limit: BenefitLimit) -> LimitCheckResult:
        usage_row = context.current_utilization(limit.benefit_id)
        if usage_row is None:
            usage = ZERO
        elif limit.limit_category is None:
            usage = usage_row.used_amount
        else:
            usage = usage_row.category_usage.get(limit.limit_category, ZERO)

        return self._result(
            LimitType.SUB_LIMIT,
            limit.limit_amount,
            usage,
            self.reset_date(limit.limit_period, context.service_date),
            benefit_id=limit.benefit_id,
            limit_id=limit.limit_id,
            limit_category=limit.limit_category,
            limit_unit=limit.limit_unit,
        )

    def _check_frequency(self, context: AdjudicationContext, limit: BenefitLimit) -> LimitCheckResult:
        service_date = context.service_date
        dates = [
            d
            for u in context.utilization
            if u.benefit_id == limit.benefit_id
            for d in u.service_dates
        ]

        if limit.limit_period == LimitPeriod.LIFETIME:
            count = len(dates)
        elif limit.limit_period == LimitPeriod.ANNUAL:
            year_end = get_benefit_year_end(
                service_date, self.config.engine.benefit_year_start_month
            )
            count = sum(1 for d in dates if context.benefit_year_start <= d <= year_end)
        elif limit.limit_period == LimitPeriod.PER_DAY:
            count = sum(1 for d in dates if d == service_date)
        else:
            # Per visit / per admission: every claim starts a new window
            count = 0

        return self._result(
            LimitType.FREQUENCY,
            limit.limit_amount,
            Decimal(count),
            self.reset_date(limit.limit_period, service_date),
            benefit_id=limit.benefit_id,
            limit_id=limit.limit_id,
            limit_category=limit.limit_category,
            limit_unit=limit.limit_unit,
            frequency_limit=f"{limit.limit_amount} per {limit.limit_period.value}",
        )

    def _check_age_based(
        self, context: AdjudicationContext, limit: BenefitLimit
    ) -> Optional[LimitCheckResult]:
        age = context.member_age
        if limit.age_min is not None and age < limit.age_min:
            return None
        if limit.age_max is not None and age > limit.age_max:
            return None
        if limit.gender != Gender.ALL and limit.gender != context.member.gender:
            return None

        return self._result(
            LimitType.AGE_BASED,
            limit.limit_amount,
            self._used_amount(context, limit.benefit_id),
            self.reset_date(limit.limit_period, context.service_date),
            benefit_id=limit.benefit_id,
            limit_id=limit.limit_id,
            limit_category=limit.limit_category,
            limit_unit=limit.limit_unit,
            age_based_limit=age,
        )
