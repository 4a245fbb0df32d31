"""
Unit tests for cost-sharing calculation.
"""

from datetime import date
from decimal import Decimal

import pytest

from claims_adjudication.domain import (
    BenefitApplicationDetail,
    BenefitUtilization,
    CorporateCostSharingOverride,
    CorporateSchemeConfig,
    CostSharingRule,
    CostSharingScope,
    CostSharingType,
)
from claims_adjudication.engine import CostSharingCalculator

from conftest import BENEFIT_ID, MAPPING_ID, MEMBER_ID, SCHEME_ID, make_claim, make_member


@pytest.fixture
def calculator(store, test_config) -> CostSharingCalculator:
    return CostSharingCalculator(store, test_config)


@pytest.fixture
def details() -> list[BenefitApplicationDetail]:
    return [
        BenefitApplicationDetail(
            benefit_id=BENEFIT_ID,
            benefit_name="Specialist Consultation",
            benefit_category="outpatient",
            mapping_id=MAPPING_ID,
            is_covered=True,
            coverage_percentage=Decimal("80"),
        )
    ]


_rule_ids = iter(range(1, 1000))


def add_rule(store, cost_sharing_type, value, **kwargs):
    store.add_cost_sharing_rule(
        CostSharingRule(
            rule_id=next(_rule_ids),
            mapping_id=MAPPING_ID,
            cost_sharing_type=cost_sharing_type,
            value=Decimal(value),
            **kwargs,
        )
    )


class TestBaseline:
    """Coverage percentage alone drives coinsurance."""

    def test_coverage_becomes_coinsurance(self, calculator, build_context, details):
        breakdown = calculator.calculate(build_context(), details)

        assert breakdown.deductible == Decimal("0")
        assert breakdown.copay == Decimal("0")
        assert breakdown.coinsurance_rate == Decimal("20")
        assert breakdown.coinsurance == Decimal("200.00")
        assert breakdown.total_member_responsibility == Decimal("200.00")

    def test_tier_discount_for_network_provider(self, calculator, build_context, details):
        breakdown = calculator.calculate(build_context(), details)

        assert breakdown.network_discount_percentage == Decimal("5")
        assert breakdown.network_discount == Decimal("50.00")

    def test_no_discount_out_of_network(self, store, calculator, build_context, details):
        store.add_claim(make_claim(provider_id=999))

        breakdown = calculator.calculate(build_context(), details)

        assert breakdown.network_discount == Decimal("0")

    def test_uncovered_details_contribute_nothing(self, calculator, build_context, details):
        uncovered = [details[0].model_copy(update={"is_covered": False})]

        breakdown = calculator.calculate(build_context(), uncovered)

        assert breakdown.coinsurance_rate == Decimal("0")
        assert breakdown.total_member_responsibility == Decimal("0")


class TestDeductibles:
    """Tests for per-claim and annual deductibles."""

    def test_deductible_and_copay(self, store, calculator, build_context, details):
        add_rule(store, CostSharingType.DEDUCTIBLE, "100")
        add_rule(store, CostSharingType.COPAY_FIXED, "50")

        breakdown = calculator.calculate(build_context(), details)

        assert breakdown.deductible == Decimal("100")
        assert breakdown.copay == Decimal("50")
        # (1000 - 100 - 50) * 20%
        assert breakdown.coinsurance == Decimal("170")
        assert breakdown.total_member_responsibility == Decimal("320")

    def test_largest_deductible_wins(self, store, calculator, build_context, details):
        add_rule(store, CostSharingType.DEDUCTIBLE, "100")
        add_rule(store, CostSharingType.DEDUCTIBLE, "250")

        breakdown = calculator.calculate(build_context(), details)

        assert breakdown.deductible == Decimal("250")

    def test_deductible_capped_at_amount(self, store, calculator, build_context, details):
        store.add_claim(make_claim(amount=Decimal("80")))
        add_rule(store, CostSharingType.DEDUCTIBLE, "100")

        breakdown = calculator.calculate(build_context(), details)

        assert breakdown.deductible == Decimal("80")
        assert breakdown.total_member_responsibility == Decimal("80")

    def test_annual_deductible_net_of_met(self, store, calculator, build_context, details):
        add_rule(store, CostSharingType.ANNUAL_DEDUCTIBLE, "500")
        store.update_benefit_utilization(
            BenefitUtilization(
                member_id=MEMBER_ID,
                benefit_id=BENEFIT_ID,
                period_start=date(2024, 1, 1),
                deductible_met=Decimal("300"),
            )
        )

        breakdown = calculator.calculate(build_context(), details)

        assert breakdown.deductible == Decimal("200")
        assert breakdown.deductible_remaining == Decimal("0")

    def test_annual_deductible_remaining(self, store, calculator, build_context, details):
        store.add_claim(make_claim(amount=Decimal("100")))
        add_rule(store, CostSharingType.ANNUAL_DEDUCTIBLE, "500")

        breakdown = calculator.calculate(build_context(), details)

        assert breakdown.deductible == Decimal("100")
        assert breakdown.deductible_remaining == Decimal("400")

    def test_annual_deductible_resets_with_benefit_year(self, store, calculator, build_context, details):
        add_rule(store, CostSharingType.ANNUAL_DEDUCTIBLE, "500")
        store.update_benefit_utilization(
            BenefitUtilization(
                member_id=MEMBER_ID,
                benefit_id=BENEFIT_ID,
                period_start=date(2023, 1, 1),
                deductible_met=Decimal("500"),
            )
        )

        breakdown = calculator.calculate(build_context(), details)

        assert breakdown.deductible == Decimal("500")


class TestCopays:
    """Tests for fixed and percentage copays."""

    def test_largest_copay_wins(self, store, calculator, build_context, details):
        add_rule(store, CostSharingType.COPAY_FIXED, "30")
        add_rule(store, CostSharingType.COPAY_PERCENTAGE, "10", maximum_amount=Decimal("50"))

        breakdown = calculator.calculate(build_context(), details)

        assert breakdown.copay == Decimal("50")
        assert breakdown.copay_type == "percentage"

    def test_percentage_copay_minimum(self, store, calculator, build_context, details):
        add_rule(store, CostSharingType.COPAY_PERCENTAGE, "1", minimum_amount=Decimal("25"))

        breakdown = calculator.calculate(build_context(), details)

        assert breakdown.copay == Decimal("25")

    def test_total_capped_at_amount(self, store, calculator, build_context, details):
        add_rule(store, CostSharingType.DEDUCTIBLE, "900")
        add_rule(store, CostSharingType.COPAY_FIXED, "300")

        breakdown = calculator.calculate(build_context(), details)

        assert breakdown.coinsurance == Decimal("0")
        assert breakdown.total_member_responsibility == Decimal("1000")


class TestCoinsuranceAndDiscounts:
    """Tests for coinsurance rules and rule-level discounts."""

    def test_coinsurance_rule_above_coverage_gap(self, store, calculator, build_context, details):
        add_rule(store, CostSharingType.COINSURANCE, "30")

        breakdown = calculator.calculate(build_context(), details)

        assert breakdown.coinsurance_rate == Decimal("30")
        assert breakdown.coinsurance == Decimal("300")

    def test_coinsurance_rule_below_coverage_gap(self, store, calculator, build_context, details):
        add_rule(store, CostSharingType.COINSURANCE, "10")

        breakdown = calculator.calculate(build_context(), details)

        assert breakdown.coinsurance_rate == Decimal("20")

    def test_rule_discount_beats_tier(self, store, calculator, build_context, details):
        add_rule(store, CostSharingType.COINSURANCE, "0", network_provider_discount=Decimal("12"))

        breakdown = calculator.calculate(build_context(), details)

        assert breakdown.network_discount_percentage == Decimal("12")
        assert breakdown.network_discount == Decimal("120")


class TestRuleApplicability:
    """Tests for scope and effective dates of cost-sharing rules."""

    def test_hospitalization_only_skipped_for_outpatient(self, store, calculator, build_context, details):
        add_rule(store, CostSharingType.DEDUCTIBLE, "100", applies_to=CostSharingScope.HOSPITALIZATION_ONLY)

        assert calculator.calculate(build_context(), details).deductible == Decimal("0")

    def test_outpatient_only_applies(self, store, calculator, build_context, details):
        add_rule(store, CostSharingType.DEDUCTIBLE, "100", applies_to=CostSharingScope.OUTPATIENT_ONLY)

        assert calculator.calculate(build_context(), details).deductible == Decimal("100")

    def test_specific_procedures(self, store, calculator, build_context, details):
        add_rule(
            store,
            CostSharingType.COPAY_FIXED,
            "40",
            applies_to=CostSharingScope.SPECIFIC_PROCEDURES,
            procedure_codes=["99213"],
        )

        assert calculator.calculate(build_context(), details).copay == Decimal("0")

        store.add_claim(make_claim(service_code="99213"))
        assert calculator.calculate(build_context(), details).copay == Decimal("40")

    def test_expired_rule_skipped(self, store, calculator, build_context, details):
        add_rule(store, CostSharingType.DEDUCTIBLE, "100", expiry_date=date(2024, 5, 31))

        assert calculator.calculate(build_context(), details).deductible == Decimal("0")


class TestCorporateOverride:
    """Corporate custom cost sharing replaces computed values."""

    def test_override_replaces_values(self, store, calculator, build_context, details):
        store.add_member(make_member(company_id=7))
        store.add_corporate_config(
            CorporateSchemeConfig(
                corporate_config_id=70,
                company_id=7,
                scheme_id=SCHEME_ID,
                config_name="Acme Corp",
                effective_date=date(2024, 1, 1),
                custom_cost_sharing=CorporateCostSharingOverride(
                    copay=Decimal("20"), coinsurance_rate=Decimal("10")
                ),
            )
        )
        add_rule(store, CostSharingType.COPAY_FIXED, "50")

        breakdown = calculator.calculate(build_context(), details)

        assert breakdown.corporate_override_applied
        assert breakdown.copay == Decimal("20")
        assert breakdown.coinsurance_rate == Decimal("10")
        # (1000 - 20) * 10%
        assert breakdown.coinsurance == Decimal("98")
        assert breakdown.total_member_responsibility == Decimal("118")


class TestFullLiability:
    def test_member_bears_everything(self):
        breakdown = CostSharingCalculator.full_liability(Decimal("1234.5"))

        assert breakdown.total_member_responsibility == Decimal("1234.50")
        assert breakdown.coinsurance == Decimal("0")
