"""
Batch coordinator.

Fans claims through the claims integration service and folds the results
into a ``BatchClaimProcessingResult``.

Claims are processed in chunks of ``batch.batch_size``. In parallel mode
each chunk is routed to lanes by member (see ``partition``) and the lanes
run on a thread pool, so claims of one member are never adjudicated
concurrently. Per-claim failures are recorded as batch errors and never
abort sibling claims.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from decimal import Decimal

import structlog

from claims_adjudication.config import AdjudicationConfig
from claims_adjudication.core.integration import ClaimsIntegrationService
from claims_adjudication.core.partition import PartitionManager
from claims_adjudication.domain import (
    AdjudicationDecision,
    BatchClaimProcessingResult,
    EnhancedClaimProcessingResult,
)
from claims_adjudication.errors import AdjudicationError
from claims_adjudication.utils import ZERO

logger = structlog.get_logger()


@dataclass(frozen=True)
class BatchTotals:
    """Immutable accumulator of batch counts and sums."""

    processed: int = 0
    approved: int = 0
    partially_approved: int = 0
    denied: int = 0
    requires_review: int = 0
    total_approved_amount: Decimal = ZERO
    total_denied_amount: Decimal = ZERO
    total_member_responsibility: Decimal = ZERO

    def add(self, result: EnhancedClaimProcessingResult) -> "BatchTotals":
        """Return new totals including one more result."""
        decision = result.adjudication_decision
        return replace(
            self,
            processed=self.processed + 1,
            approved=self.approved + (decision == AdjudicationDecision.APPROVED),
            partially_approved=self.partially_approved
            + (decision == AdjudicationDecision.PARTIALLY_APPROVED),
            denied=self.denied + (decision == AdjudicationDecision.DENIED),
            requires_review=self.requires_review + (decision == AdjudicationDecision.REQUIRES_REVIEW),
            total_approved_amount=self.total_approved_amount + result.approved_amount,
            total_denied_amount=self.total_denied_amount + result.denied_amount,
            total_member_responsibility=self.total_member_responsibility
            + result.member_responsibility,
        )

    def merge(self, other: "BatchTotals") -> "BatchTotals":
        """Return the sum of two totals."""
        return BatchTotals(
            processed=self.processed + other.processed,
            approved=self.approved + other.approved,
            partially_approved=self.partially_approved + other.partially_approved,
            denied=self.denied + other.denied,
            requires_review=self.requires_review + other.requires_review,
            total_approved_amount=self.total_approved_amount + other.total_approved_amount,
            total_denied_amount=self.total_denied_amount + other.total_denied_amount,
            total_member_responsibility=self.total_member_responsibility
            + other.total_member_responsibility,
        )


@dataclass(frozen=True)
class _Entry:
    index: int
    claim_id: int
    member_id: int


@dataclass
class _LaneOutput:
    totals: BatchTotals = field(default_factory=BatchTotals)
    results: list[tuple[int, EnhancedClaimProcessingResult]] = field(default_factory=list)
    errors: list[tuple[int, str]] = field(default_factory=list)


class BatchCoordinator:
    """
    Processes many claims.

    Usage:
        coordinator = BatchCoordinator(service, config)
        batch = coordinator.process([1001, 1002, 1003], parallel=True)
    """

    def __init__(self, service: ClaimsIntegrationService, config: AdjudicationConfig):
        self.service = service
        self.config = config

    def process(
        self,
        claim_ids: list[int],
        parallel: bool | None = None,
    ) -> BatchClaimProcessingResult:
        """
        Process claims, optionally in parallel.

        Args:
            claim_ids: Claims to process, in submission order
            parallel: Override ``batch.parallel`` from configuration

        Returns:
            Aggregated result; claim results and errors keep input order
        """
        if parallel is None:
            parallel = self.config.batch.parallel
        start = time.perf_counter()

        logger.info(
            "batch_processing_started",
            claims=len(claim_ids),
            parallel=parallel,
            max_workers=self.config.batch.max_workers,
        )

        entries, errors = self._route(claim_ids)
        totals = BatchTotals()
        results: list[tuple[int, EnhancedClaimProcessingResult]] = []

        batch_size = self.config.batch.batch_size
        for offset in range(0, len(entries), batch_size):
            chunk = entries[offset:offset + batch_size]
            if parallel:
                outputs = self._process_parallel(chunk)
            else:
                outputs = [self._process_lane(chunk)]
            for output in outputs:
                totals = totals.merge(output.totals)
                results.extend(output.results)
                errors.extend(output.errors)

        results.sort(key=lambda pair: pair[0])
        errors.sort(key=lambda pair: pair[0])
        elapsed_ms = (time.perf_counter() - start) * 1000

        batch = BatchClaimProcessingResult(
            total_claims=len(claim_ids),
            processed_claims=totals.processed,
            approved_claims=totals.approved,
            partially_approved_claims=totals.partially_approved,
            denied_claims=totals.denied,
            requires_review_claims=totals.requires_review,
            total_approved_amount=totals.total_approved_amount,
            total_denied_amount=totals.total_denied_amount,
            total_member_responsibility=totals.total_member_responsibility,
            processing_time_ms=elapsed_ms,
            claim_results=[result for _, result in results],
            errors=[message for _, message in errors],
        )

        logger.info(
            "batch_processing_completed",
            processed=batch.processed_claims,
            errors=len(batch.errors),
            elapsed_ms=f"{elapsed_ms:.1f}",
        )
        return batch

    def _route(self, claim_ids: list[int]) -> tuple[list[_Entry], list[tuple[int, str]]]:
        """Look up and validate each claim. Unknown or invalid claims become errors."""
        entries = []
        errors = []
        for index, claim_id in enumerate(claim_ids):
            claim = self.service.repos.claims.get_claim(claim_id)
            if claim is None:
                errors.append((index, f"Claim {claim_id}: Claim {claim_id} not found"))
                continue
            problems = self.service.validate_claim(claim)
            if problems:
                logger.warning("batch_claim_invalid", claim_id=claim_id, errors=problems)
                errors.append((index, f"Claim {claim_id}: {', '.join(problems)}"))
                continue
            entries.append(_Entry(index, claim_id, claim.member_id))
        return entries, errors

    def _process_parallel(self, chunk: list[_Entry]) -> list[_LaneOutput]:
        partition = PartitionManager(num_lanes=self.config.batch.max_workers)
        lanes = partition.assign(chunk, member_of=lambda entry: entry.member_id)

        with ThreadPoolExecutor(max_workers=self.config.batch.max_workers) as executor:
            futures = [executor.submit(self._process_lane, lane) for lane in lanes.values()]
            return [future.result() for future in futures]

    def _process_lane(self, entries: list[_Entry]) -> _LaneOutput:
        """Process claims one after another, folding into lane-local totals."""
        output = _LaneOutput()
        for entry in entries:
            try:
                result = self.service.process_claim(entry.claim_id)
            except AdjudicationError as e:
                logger.warning("batch_claim_failed", claim_id=entry.claim_id, error=str(e))
                output.errors.append((entry.index, f"Claim {entry.claim_id}: {e}"))
                continue
            except Exception as e:
                logger.exception("batch_claim_error", claim_id=entry.claim_id)
                output.errors.append((entry.index, f"Claim {entry.claim_id}: {e}"))
                continue

            output.totals = output.totals.add(result)
            output.results.append((entry.index, result))
        return output
