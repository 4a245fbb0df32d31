"""
Dataset loader for the claims adjudication engine.

Loads a directory of JSON tables into an ``InMemoryRepository`` so the
command-line tools can adjudicate claims without a database.
"""

import json
from pathlib import Path
from typing import Any, Callable

import structlog
from pydantic import BaseModel, ValidationError

from claims_adjudication.domain import (
    BenefitLimit,
    BenefitRider,
    BenefitRule,
    BenefitUtilization,
    Claim,
    CorporateSchemeConfig,
    CostSharingRule,
    EmployeeGradeBenefit,
    EnhancedBenefit,
    Member,
    MemberRiderSelection,
    NetworkTier,
    PlanTier,
    PremiumStatus,
    Scheme,
    SchemeBenefitMapping,
)
from claims_adjudication.repository.memory import InMemoryRepository

logger = structlog.get_logger()


class DatasetError(Exception):
    """Raised when a dataset file is unreadable or contains invalid records."""


class DatasetLoader:
    """
    Loads and caches dataset tables from JSON files.

    Each table is a JSON list of records, or an object wrapping the list
    under ``records``. Missing optional tables are treated as empty.

    Usage:
        loader = DatasetLoader(Path("data"))
        store = loader.load()
        claim = store.get_claim(1001)
    """

    # filename -> (model, InMemoryRepository method)
    TABLES: dict[str, tuple[type[BaseModel], str]] = {
        "schemes.json": (Scheme, "add_scheme"),
        "plan_tiers.json": (PlanTier, "add_plan_tier"),
        "members.json": (Member, "add_member"),
        "premiums.json": (PremiumStatus, "add_premium_status"),
        "corporate_configs.json": (CorporateSchemeConfig, "add_corporate_config"),
        "grade_benefits.json": (EmployeeGradeBenefit, "add_grade_benefit"),
        "riders.json": (BenefitRider, "add_rider"),
        "rider_selections.json": (MemberRiderSelection, "add_rider_selection"),
        "benefits.json": (EnhancedBenefit, "add_benefit"),
        "mappings.json": (SchemeBenefitMapping, "add_mapping"),
        "cost_sharing_rules.json": (CostSharingRule, "add_cost_sharing_rule"),
        "benefit_limits.json": (BenefitLimit, "add_limit"),
        "utilization.json": (BenefitUtilization, "update_benefit_utilization"),
        "rules.json": (BenefitRule, "add_rule"),
        "claims.json": (Claim, "add_claim"),
    }

    REQUIRED_TABLES = ("schemes.json", "members.json", "claims.json")

    def __init__(self, data_path: Path | str):
        """
        Initialize the dataset loader.

        Args:
            data_path: Directory containing the JSON tables
        """
        self.data_path = Path(data_path)
        self._cache: dict[str, list[dict[str, Any]]] = {}

    def _load_json(self, filename: str) -> list[dict[str, Any]]:
        """
        Load one table, caching the raw records.

        Raises:
            DatasetError: If a required file is missing or the JSON is invalid
        """
        if filename not in self._cache:
            file_path = self.data_path / filename

            if not file_path.exists():
                if filename in self.REQUIRED_TABLES:
                    raise DatasetError(f"Dataset file not found: {file_path}")
                logger.debug("dataset_table_missing", file=filename)
                self._cache[filename] = []
                return self._cache[filename]

            try:
                with open(file_path) as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                raise DatasetError(f"Invalid JSON in {file_path}: {e}") from e

            # Handle both list and wrapped formats
            if isinstance(data, dict):
                data = data.get("records", [data])

            self._cache[filename] = data

            logger.debug("loaded_dataset_table", file=filename, records=len(data))

        return self._cache[filename]

    def clear_cache(self) -> None:
        """Clear the raw record cache."""
        self._cache.clear()

    def _load_table(self, filename: str, model: type[BaseModel], add: Callable) -> int:
        records = self._load_json(filename)
        for i, record in enumerate(records):
            try:
                add(model.model_validate(record))
            except ValidationError as e:
                raise DatasetError(f"{filename} record {i}: {e}") from e
        return len(records)

    def load(self, store: InMemoryRepository | None = None) -> InMemoryRepository:
        """
        Load every table into a repository.

        Args:
            store: Repository to load into (a new one is created if omitted)

        Returns:
            The populated repository

        Raises:
            DatasetError: On missing required tables or invalid records
        """
        if store is None:
            store = InMemoryRepository()

        counts = {}
        for filename, (model, method) in self.TABLES.items():
            counts[filename] = self._load_table(filename, model, getattr(store, method))

        for record in self._load_json("enrollments.json"):
            try:
                store.enroll(
                    member_id=int(record["member_id"]),
                    scheme_id=int(record["scheme_id"]),
                    plan_tier_id=record.get("plan_tier_id"),
                )
            except (KeyError, TypeError, ValueError) as e:
                raise DatasetError(f"enrollments.json: invalid record {record!r}") from e

        for record in self._load_json("providers.json"):
            try:
                tier = record.get("network_tier")
                store.add_provider(
                    provider_id=int(record["provider_id"]),
                    network_tier=NetworkTier(tier) if tier else None,
                    scheme_id=record.get("scheme_id"),
                )
            except (KeyError, TypeError, ValueError) as e:
                raise DatasetError(f"providers.json: invalid record {record!r}") from e

        logger.info(
            "dataset_loaded",
            path=str(self.data_path),
            claims=counts["claims.json"],
            members=counts["members.json"],
            rules=counts["rules.json"],
        )
        return store
