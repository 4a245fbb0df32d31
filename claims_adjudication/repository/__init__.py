"""
Repository layer for the claims adjudication engine.

Provides:
- Protocols for every collaborator the engine reads from or writes to
- A thread-safe in-memory implementation
- A JSON dataset loader
"""

from claims_adjudication.repository.protocol import (
    AdjudicationResultStore,
    BenefitRepository,
    ClaimRepository,
    MemberRepository,
    ProviderRepository,
    Repositories,
    RiderRepository,
    RuleRepository,
    SchemeRepository,
    UtilizationRepository,
)
from claims_adjudication.repository.memory import InMemoryRepository
from claims_adjudication.repository.loader import DatasetError, DatasetLoader

__all__ = [
    "AdjudicationResultStore",
    "BenefitRepository",
    "ClaimRepository",
    "MemberRepository",
    "ProviderRepository",
    "Repositories",
    "RiderRepository",
    "RuleRepository",
    "SchemeRepository",
    "UtilizationRepository",
    "InMemoryRepository",
    "DatasetError",
    "DatasetLoader",
]
