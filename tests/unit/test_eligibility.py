"""
Unit tests for eligibility verification.
"""

from datetime import date

import pytest

from claims_adjudication.config.models import AdjudicationConfig, EngineConfig
from claims_adjudication.domain import (
    CorporateSchemeConfig,
    NetworkAccessLevel,
    NetworkTier,
    PremiumStatus,
)
from claims_adjudication.engine import EligibilityVerifier

from conftest import MEMBER_ID, PROVIDER_ID, SCHEME_ID, make_claim, make_member, make_plan_tier, make_scheme


@pytest.fixture
def verifier(test_config) -> EligibilityVerifier:
    return EligibilityVerifier(test_config)


class TestSchemeChecks:
    """Tests for scheme enrollment, status and window."""

    def test_eligible_member(self, verifier, build_context):
        result = verifier.verify(build_context())

        assert result.is_eligible
        assert result.reasons == []

    def test_no_scheme_stops_checking(self, store, verifier, build_context):
        """Without a scheme nothing else can be evaluated."""
        store.enrollments.clear()
        store.premiums.clear()

        result = verifier.verify(build_context())

        assert not result.is_eligible
        assert result.reasons == ["Member not enrolled in any scheme"]

    def test_reasons_accumulate(self, store, verifier, build_context):
        """Every failing check is reported, not just the first."""
        store.add_scheme(make_scheme(is_active=False, sunset_date=date(2024, 1, 1)))

        result = verifier.verify(build_context())

        assert "Scheme is not active" in result.reasons
        assert "Scheme has expired" in result.reasons

    def test_scheme_not_launched(self, store, verifier, build_context):
        store.add_scheme(make_scheme(launch_date=date(2024, 7, 1)))

        result = verifier.verify(build_context())

        assert result.reasons == ["Scheme has not launched yet"]


class TestAgeChecks:
    """Tests for scheme age bounds, evaluated at the service date."""

    def test_member_below_minimum_age(self, store, verifier, build_context):
        store.add_member(make_member(date_of_birth=date(2007, 1, 1)))

        result = verifier.verify(build_context())

        assert not result.is_eligible
        assert result.reasons == ["Member age 17 is below minimum age 18"]
        assert "age" in result.reasons[0]

    def test_member_above_maximum_age(self, store, verifier, build_context):
        store.add_member(make_member(date_of_birth=date(1950, 1, 1)))

        result = verifier.verify(build_context())

        assert result.reasons == ["Member age 74 is above maximum age 65"]

    def test_no_maximum_age(self, store, verifier, build_context):
        store.add_scheme(make_scheme(max_age=None))
        store.add_member(make_member(date_of_birth=date(1930, 1, 1)))

        assert verifier.verify(build_context()).is_eligible


class TestPlanTierChecks:
    """Tests for plan tier assignment."""

    def test_no_plan_tier(self, store, verifier, build_context):
        store.enroll(MEMBER_ID, SCHEME_ID, None)

        result = verifier.verify(build_context())

        assert result.reasons == ["Member not assigned to a plan tier"]

    def test_inactive_plan_tier(self, store, verifier, build_context):
        store.add_plan_tier(make_plan_tier(is_active=False))

        result = verifier.verify(build_context())

        assert result.reasons == ["Member's plan tier is not active"]


class TestCorporateChecks:
    """Tests for the corporate configuration window."""

    def _corporate(self, store, **kwargs):
        store.add_member(make_member(company_id=7))
        values = {
            "corporate_config_id": 70,
            "company_id": 7,
            "scheme_id": SCHEME_ID,
            "config_name": "Acme Corp",
            "effective_date": date(2024, 1, 1),
        }
        values.update(kwargs)
        store.add_corporate_config(CorporateSchemeConfig(**values))

    def test_corporate_config_in_force(self, store, verifier, build_context):
        self._corporate(store)

        assert verifier.verify(build_context()).is_eligible

    def test_corporate_config_not_yet_effective(self, store, verifier, build_context):
        self._corporate(store, effective_date=date(2024, 7, 1))

        result = verifier.verify(build_context())

        assert result.reasons == ["Corporate scheme configuration is not yet effective"]

    def test_corporate_config_expired(self, store, verifier, build_context):
        self._corporate(store, expiry_date=date(2024, 5, 31))

        result = verifier.verify(build_context())

        assert result.reasons == ["Corporate scheme configuration has expired"]


class TestPremiumChecks:
    """Tests for premium payment status."""

    def test_within_grace_period(self, store, verifier, build_context):
        # Paid through 10 May, 30 day grace covers 1 June
        store.add_premium_status(
            PremiumStatus(member_id=MEMBER_ID, paid_through_date=date(2024, 5, 10))
        )

        assert verifier.verify(build_context()).is_eligible

    def test_premiums_in_arrears(self, store, verifier, build_context):
        store.add_premium_status(
            PremiumStatus(member_id=MEMBER_ID, paid_through_date=date(2024, 4, 1))
        )

        result = verifier.verify(build_context())

        assert result.reasons == ["Member premiums are not paid up to date"]

    def test_unknown_premium_status_is_warning(self, store, verifier, build_context):
        store.premiums.clear()

        result = verifier.verify(build_context())

        assert result.is_eligible
        assert "Premium payment status unknown" in result.warnings

    def test_premium_check_can_be_disabled(self, store, build_context, tmp_path):
        store.add_premium_status(
            PremiumStatus(member_id=MEMBER_ID, paid_through_date=date(2024, 1, 1))
        )
        config = AdjudicationConfig(
            engine=EngineConfig(enforce_premium_status=False),
            data_path=tmp_path,
        )

        assert EligibilityVerifier(config).verify(build_context()).is_eligible


class TestProviderWarnings:
    """Provider warnings never block a claim."""

    def test_tier_1_provider_with_wider_access(self, store, verifier, build_context):
        store.add_provider(PROVIDER_ID, NetworkTier.TIER_1)

        result = verifier.verify(build_context())

        assert result.is_eligible
        assert result.warnings == ["Provider is tier 1 but member has higher tier access"]

    def test_tier_1_provider_with_tier_1_access(self, store, verifier, build_context):
        store.add_provider(PROVIDER_ID, NetworkTier.TIER_1)
        store.add_plan_tier(make_plan_tier(network_access_level=NetworkAccessLevel.TIER_1_ONLY))

        assert verifier.verify(build_context()).warnings == []

    def test_out_of_network_provider(self, store, verifier, build_context):
        store.add_claim(make_claim(provider_id=999))

        result = verifier.verify(build_context())

        assert result.is_eligible
        assert result.warnings == ["Provider is not in the scheme network"]
