"""
Unit tests for limit checking.
"""

from datetime import date
from decimal import Decimal

import pytest

from claims_adjudication.domain import (
    BenefitApplicationDetail,
    BenefitLimit,
    BenefitUtilization,
    Gender,
    LimitPeriod,
    LimitType,
)
from claims_adjudication.engine import LimitChecker

from conftest import BENEFIT_ID, MAPPING_ID, MEMBER_ID, make_plan_tier


@pytest.fixture
def checker(store, test_config) -> LimitChecker:
    return LimitChecker(store, test_config)


def make_detail(**overrides) -> BenefitApplicationDetail:
    values = {
        "benefit_id": BENEFIT_ID,
        "benefit_name": "Specialist Consultation",
        "benefit_category": "outpatient",
        "mapping_id": MAPPING_ID,
        "is_covered": True,
        "coverage_percentage": Decimal("80"),
    }
    values.update(overrides)
    return BenefitApplicationDetail(**values)


def usage(benefit_id=BENEFIT_ID, period_start=date(2024, 1, 1), **kwargs) -> BenefitUtilization:
    return BenefitUtilization(
        member_id=MEMBER_ID, benefit_id=benefit_id, period_start=period_start, **kwargs
    )


def limit(limit_type, amount, **kwargs) -> BenefitLimit:
    return BenefitLimit(
        limit_id=kwargs.pop("limit_id", 1),
        benefit_id=BENEFIT_ID,
        limit_type=limit_type,
        limit_amount=Decimal(amount),
        **kwargs,
    )


def by_type(results, limit_type):
    return [r for r in results if r.limit_type == limit_type]


class TestOverallAnnualLimit:
    """Tests for the plan tier's overall annual limit."""

    def test_sums_current_year_usage(self, store, checker, build_context):
        store.update_benefit_utilization(usage(used_amount=Decimal("3000")))
        store.update_benefit_utilization(
            usage(benefit_id=2, period_start=date(2023, 1, 1), used_amount=Decimal("9000"))
        )

        [overall] = by_type(checker.check(build_context(), []), LimitType.OVERALL_ANNUAL)

        assert overall.current_usage == Decimal("3000")
        assert overall.remaining_amount == Decimal("97000")
        assert not overall.is_exceeded
        assert overall.reset_date == date(2025, 1, 1)

    def test_no_overall_limit(self, store, checker, build_context):
        store.add_plan_tier(make_plan_tier(overall_annual_limit=None))

        assert checker.check(build_context(), []) == []


class TestBenefitAnnualLimit:
    """Tests for per-benefit annual limits."""

    def test_remaining_within_limit(self, store, checker, build_context):
        store.update_benefit_utilization(usage(used_amount=Decimal("4800")))

        results = checker.check(build_context(), [make_detail(annual_limit=Decimal("5000"))])
        [annual] = by_type(results, LimitType.BENEFIT_ANNUAL)

        assert annual.benefit_id == BENEFIT_ID
        assert annual.current_usage == Decimal("4800")
        assert annual.remaining_amount == Decimal("200")
        assert not annual.is_exceeded

    def test_exceeded_remaining_not_clamped(self, store, checker, build_context):
        store.update_benefit_utilization(usage(used_amount=Decimal("5300")))

        results = checker.check(build_context(), [make_detail(annual_limit=Decimal("5000"))])
        [annual] = by_type(results, LimitType.BENEFIT_ANNUAL)

        assert annual.is_exceeded
        assert annual.remaining_amount == Decimal("-300")

    def test_exactly_at_limit_not_exceeded(self, store, checker, build_context):
        store.update_benefit_utilization(usage(used_amount=Decimal("5000")))

        results = checker.check(build_context(), [make_detail(annual_limit=Decimal("5000"))])
        [annual] = by_type(results, LimitType.BENEFIT_ANNUAL)

        assert annual.remaining_amount == Decimal("0")
        assert not annual.is_exceeded

    def test_uncovered_details_skipped(self, checker, build_context):
        results = checker.check(
            build_context(), [make_detail(annual_limit=Decimal("5000"), is_covered=False)]
        )

        assert by_type(results, LimitType.BENEFIT_ANNUAL) == []


class TestSubLimits:
    """Tests for category sub-limits."""

    def test_category_usage_exceeded(self, store, checker, build_context):
        store.add_limit(
            limit(LimitType.SUB_LIMIT, "10", limit_category="icu_days", limit_unit="days")
        )
        store.update_benefit_utilization(usage(category_usage={"icu_days": Decimal("12")}))

        [sub] = by_type(checker.check(build_context(), [make_detail()]), LimitType.SUB_LIMIT)

        assert sub.limit_category == "icu_days"
        assert sub.limit_unit == "days"
        assert sub.current_usage == Decimal("12")
        assert sub.is_exceeded

    def test_uncategorized_sub_limit_uses_amount(self, store, checker, build_context):
        store.add_limit(limit(LimitType.SUB_LIMIT, "2000"))
        store.update_benefit_utilization(usage(used_amount=Decimal("500")))

        [sub] = by_type(checker.check(build_context(), [make_detail()]), LimitType.SUB_LIMIT)

        assert sub.remaining_amount == Decimal("1500")

    def test_inactive_limit_ignored(self, store, checker, build_context):
        store.add_limit(limit(LimitType.SUB_LIMIT, "10", is_active=False))

        assert by_type(checker.check(build_context(), [make_detail()]), LimitType.SUB_LIMIT) == []


class TestFrequencyLimits:
    """Tests for visit counts over each period."""

    @pytest.fixture(autouse=True)
    def history(self, store):
        store.update_benefit_utilization(
            usage(service_dates=[date(2024, 2, 1), date(2024, 6, 1), date(2024, 6, 1)])
        )
        store.update_benefit_utilization(
            usage(
                benefit_id=2,
                period_start=date(2023, 1, 1),
                service_dates=[date(2023, 3, 1)],
            )
        )

    def _frequency(self, store, checker, build_context, period, benefit_id=BENEFIT_ID):
        store.add_limit(
            BenefitLimit(
                limit_id=9,
                benefit_id=benefit_id,
                limit_type=LimitType.FREQUENCY,
                limit_amount=Decimal("3"),
                limit_unit="visits",
                limit_period=period,
            )
        )
        details = [make_detail(benefit_id=benefit_id)]
        return by_type(checker.check(build_context(), details), LimitType.FREQUENCY)[0]

    def test_annual_count(self, store, checker, build_context):
        result = self._frequency(store, checker, build_context, LimitPeriod.ANNUAL)

        assert result.current_usage == 3
        assert result.frequency_limit == "3 per annual"
        assert not result.is_exceeded
        assert result.reset_date == date(2025, 1, 1)

    def test_per_day_count(self, store, checker, build_context):
        result = self._frequency(store, checker, build_context, LimitPeriod.PER_DAY)

        assert result.current_usage == 2
        assert result.reset_date == date(2024, 6, 2)

    def test_lifetime_counts_stale_rows(self, store, checker, build_context):
        result = self._frequency(store, checker, build_context, LimitPeriod.LIFETIME, benefit_id=2)

        assert result.current_usage == 1
        assert result.reset_date is None

    def test_annual_ignores_earlier_years(self, store, checker, build_context):
        result = self._frequency(store, checker, build_context, LimitPeriod.ANNUAL, benefit_id=2)

        assert result.current_usage == 0

    def test_per_visit_never_counts(self, store, checker, build_context):
        result = self._frequency(store, checker, build_context, LimitPeriod.PER_VISIT)

        assert result.current_usage == 0
        assert result.reset_date is None


class TestAgeBasedLimits:
    """Tests for limits scoped by age and gender."""

    def test_applies_within_band(self, store, checker, build_context):
        store.add_limit(
            limit(LimitType.AGE_BASED, "3000", age_min=30, age_max=50, gender=Gender.FEMALE)
        )

        [result] = by_type(checker.check(build_context(), [make_detail()]), LimitType.AGE_BASED)

        assert result.age_based_limit == 38
        assert result.remaining_amount == Decimal("3000")

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"age_min": 40},
            {"age_max": 30},
            {"gender": Gender.MALE},
        ],
    )
    def test_skipped_outside_band(self, store, checker, build_context, kwargs):
        store.add_limit(limit(LimitType.AGE_BASED, "3000", **kwargs))

        assert by_type(checker.check(build_context(), [make_detail()]), LimitType.AGE_BASED) == []


class TestResetDates:
    """Tests for reset date calculation."""

    def test_reset_dates_by_period(self, checker):
        service_date = date(2024, 6, 1)

        assert checker.reset_date(LimitPeriod.ANNUAL, service_date) == date(2025, 1, 1)
        assert checker.reset_date(LimitPeriod.PER_DAY, service_date) == date(2024, 6, 2)
        assert checker.reset_date(LimitPeriod.LIFETIME, service_date) is None
        assert checker.reset_date(LimitPeriod.PER_ADMISSION, service_date) is None
