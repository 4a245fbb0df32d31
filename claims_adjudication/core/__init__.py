"""
Batch and service wrappers around the adjudication engine.

Provides:
- Member-based lane partitioning
- The claims integration service
- The batch coordinator
"""

from claims_adjudication.core.partition import PartitionManager, get_partition_id
from claims_adjudication.core.integration import ClaimsIntegrationService
from claims_adjudication.core.batch import BatchCoordinator, BatchTotals

__all__ = [
    "PartitionManager",
    "get_partition_id",
    "ClaimsIntegrationService",
    "BatchCoordinator",
    "BatchTotals",
]
