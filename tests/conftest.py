"""
Shared test fixtures for claims adjudication tests.
"""

import copy
import json
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from claims_adjudication.config.models import (
    AdjudicationConfig,
    BatchConfig,
    EngineConfig,
)
from claims_adjudication.domain import (
    Claim,
    EnhancedBenefit,
    Gender,
    Member,
    NetworkAccessLevel,
    NetworkTier,
    PlanTier,
    PlanTierLevel,
    PremiumStatus,
    Scheme,
    SchemeBenefitMapping,
)
from claims_adjudication.engine import Adjudicator, ContextBuilder
from claims_adjudication.repository import InMemoryRepository, Repositories


SCHEME_ID = 1
PLAN_TIER_ID = 10
MEMBER_ID = 100
BENEFIT_ID = 1
MAPPING_ID = 1000
PROVIDER_ID = 500
CLAIM_ID = 1
SERVICE_DATE = date(2024, 6, 1)


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def test_config(tmp_path: Path) -> AdjudicationConfig:
    """Minimal test configuration."""
    return AdjudicationConfig(
        engine=EngineConfig(
            high_value_threshold=Decimal("10000"),
            benefit_year_start_month=1,
        ),
        batch=BatchConfig(batch_size=10, max_workers=2, parallel=False),
        data_path=tmp_path,
    )


# =============================================================================
# Entity Factories
# =============================================================================


def make_scheme(**overrides) -> Scheme:
    values = {
        "scheme_id": SCHEME_ID,
        "name": "Standard Medical",
        "scheme_code": "STD-MED",
        "launch_date": date(2020, 1, 1),
        "min_age": 18,
        "max_age": 65,
        "grace_period_days": 30,
    }
    values.update(overrides)
    return Scheme(**values)


def make_plan_tier(**overrides) -> PlanTier:
    values = {
        "plan_tier_id": PLAN_TIER_ID,
        "scheme_id": SCHEME_ID,
        "tier_level": PlanTierLevel.GOLD,
        "tier_name": "Gold",
        "overall_annual_limit": Decimal("100000"),
        "network_access_level": NetworkAccessLevel.FULL_NETWORK,
    }
    values.update(overrides)
    return PlanTier(**values)


def make_member(**overrides) -> Member:
    values = {
        "member_id": MEMBER_ID,
        "first_name": "Jane",
        "last_name": "Wanjiku",
        "date_of_birth": date(1985, 6, 15),
        "gender": Gender.FEMALE,
        "enrollment_date": date(2023, 1, 1),
    }
    values.update(overrides)
    return Member(**values)


def make_benefit(**overrides) -> EnhancedBenefit:
    values = {
        "benefit_id": BENEFIT_ID,
        "benefit_code": "SPEC-CONS",
        "benefit_name": "Specialist Consultation",
        "benefit_category": "outpatient",
        "sort_order": 1,
    }
    values.update(overrides)
    return EnhancedBenefit(**values)


def make_mapping(**overrides) -> SchemeBenefitMapping:
    values = {
        "mapping_id": MAPPING_ID,
        "scheme_id": SCHEME_ID,
        "plan_tier_id": PLAN_TIER_ID,
        "benefit_id": BENEFIT_ID,
        "coverage_percentage": Decimal("80"),
    }
    values.update(overrides)
    return SchemeBenefitMapping(**values)


def make_claim(**overrides) -> Claim:
    values = {
        "claim_id": CLAIM_ID,
        "member_id": MEMBER_ID,
        "provider_id": PROVIDER_ID,
        "amount": Decimal("1000.00"),
        "service_category": "outpatient",
        "service_date": SERVICE_DATE,
        "submission_date": SERVICE_DATE,
    }
    values.update(overrides)
    return Claim(**values)


# =============================================================================
# Repository Fixtures
# =============================================================================


@pytest.fixture
def store() -> InMemoryRepository:
    """
    Repository holding one eligible individual member on an 80% outpatient
    benefit, one in-network provider and one 1,000 claim.
    """
    repo = InMemoryRepository()
    repo.add_scheme(make_scheme())
    repo.add_plan_tier(make_plan_tier())
    repo.add_member(make_member())
    repo.enroll(MEMBER_ID, SCHEME_ID, PLAN_TIER_ID)
    repo.add_premium_status(
        PremiumStatus(member_id=MEMBER_ID, paid_through_date=date(2024, 12, 31))
    )
    repo.add_benefit(make_benefit())
    repo.add_mapping(make_mapping())
    repo.add_provider(PROVIDER_ID, NetworkTier.TIER_2)
    repo.add_claim(make_claim())
    return repo


@pytest.fixture
def repos(store: InMemoryRepository) -> Repositories:
    """Repositories backed by the shared store."""
    return Repositories.from_store(store)


@pytest.fixture
def build_context(repos: Repositories, test_config: AdjudicationConfig):
    """Build a fresh (uncached) context for a claim id."""

    def _build(claim_id: int = CLAIM_ID):
        return ContextBuilder(repos, test_config).build(claim_id)

    return _build


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def adjudicator(repos: Repositories, test_config: AdjudicationConfig) -> Adjudicator:
    """Adjudicator writing to the shared store."""
    return Adjudicator(repos, test_config)


# =============================================================================
# Dataset Fixtures
# =============================================================================


def _claim_record(claim_id, member_id, amount, category, provider_id=500):
    return {
        "claim_id": claim_id,
        "member_id": member_id,
        "provider_id": provider_id,
        "amount": amount,
        "service_category": category,
        "service_date": SERVICE_DATE.isoformat(),
        "submission_date": SERVICE_DATE.isoformat(),
    }


# One scheme, one Gold tier, an individual member, a corporate executive and
# an under-age dependant.
DATASET = {
    "schemes.json": [
        {
            "scheme_id": 1,
            "name": "Standard Medical",
            "scheme_code": "STD-MED",
            "scheme_type": "corporate_medical",
            "launch_date": "2020-01-01",
            "min_age": 18,
            "max_age": 65,
        }
    ],
    "plan_tiers.json": [
        {
            "plan_tier_id": 10,
            "scheme_id": 1,
            "tier_level": "gold",
            "tier_name": "Gold",
            "overall_annual_limit": 100000,
        }
    ],
    "members.json": [
        {
            "member_id": 1,
            "first_name": "Amina",
            "last_name": "Otieno",
            "date_of_birth": "1984-03-10",
            "gender": "female",
            "enrollment_date": "2022-01-01",
        },
        {
            "member_id": 2,
            "first_name": "Brian",
            "last_name": "Kamau",
            "date_of_birth": "1979-11-02",
            "gender": "male",
            "company_id": 7,
            "employee_id": "ACME-0042",
            "employee_grade": "executive",
            "enrollment_date": "2023-01-01",
        },
        {
            "member_id": 3,
            "first_name": "Chloe",
            "last_name": "Otieno",
            "date_of_birth": "2010-01-01",
            "gender": "female",
            "enrollment_date": "2024-01-01",
        },
    ],
    "enrollments.json": [
        {"member_id": 1, "scheme_id": 1, "plan_tier_id": 10},
        {"member_id": 2, "scheme_id": 1, "plan_tier_id": 10},
        {"member_id": 3, "scheme_id": 1, "plan_tier_id": 10},
    ],
    "premiums.json": [
        {"member_id": m, "paid_through_date": "2024-12-31"} for m in (1, 2, 3)
    ],
    "corporate_configs.json": [
        {
            "corporate_config_id": 70,
            "company_id": 7,
            "scheme_id": 1,
            "config_name": "Acme Corp",
            "effective_date": "2024-01-01",
            "benefit_overrides": {"1": {"coverage_percentage": 90}},
        }
    ],
    "grade_benefits.json": [
        {
            "grade_benefit_id": 1,
            "corporate_config_id": 70,
            "employee_grade": "executive",
            "benefit_overrides": {"1": {"coverage_percentage": 100}},
        }
    ],
    "riders.json": [
        {
            "rider_id": 5,
            "rider_code": "HOSP-PLUS",
            "rider_name": "Hospital Plus",
            "base_scheme_id": 1,
            "enhancements": {"2": {"annual_limit": 60000}},
        }
    ],
    "rider_selections.json": [
        {"selection_id": 1, "member_id": 1, "rider_id": 5, "effective_date": "2023-01-01"}
    ],
    "benefits.json": [
        {
            "benefit_id": 1,
            "benefit_code": "SPEC-CONS",
            "benefit_name": "Specialist Consultation",
            "benefit_category": "outpatient",
            "sort_order": 1,
        },
        {
            "benefit_id": 2,
            "benefit_code": "INPATIENT",
            "benefit_name": "Inpatient Care",
            "benefit_category": "inpatient",
            "sort_order": 2,
        },
    ],
    "mappings.json": [
        {
            "mapping_id": 1000,
            "scheme_id": 1,
            "plan_tier_id": 10,
            "benefit_id": 1,
            "coverage_percentage": 80,
        },
        {
            "mapping_id": 1001,
            "scheme_id": 1,
            "plan_tier_id": 10,
            "benefit_id": 2,
            "coverage_percentage": 100,
            "annual_limit": 50000,
        },
    ],
    "cost_sharing_rules.json": [
        {"rule_id": 1, "mapping_id": 1000, "cost_sharing_type": "copay_fixed", "value": 50},
        {
            "rule_id": 2,
            "mapping_id": 1001,
            "cost_sharing_type": "deductible",
            "value": 500,
            "applies_to": "hospitalization_only",
        },
    ],
    "benefit_limits.json": [
        {
            "limit_id": 1,
            "benefit_id": 2,
            "limit_type": "sub_limit",
            "limit_category": "icu_days",
            "limit_amount": 10,
            "limit_unit": "days",
        }
    ],
    "utilization.json": [
        {
            "member_id": 1,
            "benefit_id": 2,
            "period_start": "2024-01-01",
            "used_amount": 10000,
            "claim_count": 1,
            "service_dates": ["2024-02-14"],
        }
    ],
    "rules.json": [
        {
            "rule_id": 1,
            "rule_name": "Claim within fee schedule",
            "rule_category": "benefit_application",
            "rule_priority": 10,
            "condition_expression": '{"field": "claim.amount", "operator": "lte", "value": 50000}',
            "scheme_id": 1,
        }
    ],
    "providers.json": [
        {"provider_id": 500, "network_tier": "tier_2"},
        {"provider_id": 501, "network_tier": "tier_1", "scheme_id": 1},
    ],
    "claims.json": [
        _claim_record(1001, 1, 1000, "outpatient"),
        _claim_record(1002, 2, 2000, "outpatient"),
        _claim_record(1003, 3, 500, "outpatient"),
        _claim_record(1004, 1, 20000, "inpatient"),
        _claim_record(1005, 1, 300, "dental"),
    ],
}


def write_dataset(path: Path, tables: dict) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    for filename, records in tables.items():
        (path / filename).write_text(json.dumps(records, indent=2))
    return path


@pytest.fixture
def dataset() -> dict:
    """A private copy of the dataset tables, safe to modify."""
    return copy.deepcopy(DATASET)


@pytest.fixture
def dataset_dir(tmp_path: Path, dataset: dict) -> Path:
    """The dataset written to a temporary directory."""
    return write_dataset(tmp_path / "data", dataset)
