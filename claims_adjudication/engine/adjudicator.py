"""
Claim adjudicator.

Runs the pipeline for one claim:

    context -> eligibility -> benefits -> limits -> cost sharing -> rules -> decision

then records the result and updates the member's benefit utilization.
Everything before the write step is side-effect free.
"""

import threading
import time
from contextlib import contextmanager
from typing import Iterator

import structlog

from claims_adjudication.config import AdjudicationConfig
from claims_adjudication.domain import AdjudicationResult, BenefitUtilization
from claims_adjudication.engine.benefits import BenefitResolver
from claims_adjudication.engine.context import AdjudicationContext, ContextBuilder
from claims_adjudication.engine.cost_sharing import CostSharingCalculator
from claims_adjudication.engine.decision import DecisionSynthesizer
from claims_adjudication.engine.eligibility import EligibilityVerifier
from claims_adjudication.engine.limits import LimitChecker
from claims_adjudication.engine.rules import RulesEngine
from claims_adjudication.repository import Repositories
from claims_adjudication.utils import ZERO, AdjudicationLogger

logger = structlog.get_logger()


class MemberLockRegistry:
    """
    One lock per member while anyone holds or waits for it.

    Serializes the read-modify-write of a member's utilization so concurrent
    claims of the same member can neither double-count nor lose usage. A
    member's lock is dropped once its last holder releases it.
    """

    def __init__(self):
        self._locks: dict[int, threading.Lock] = {}
        self._users: dict[int, int] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def is_held(self, member_id: int) -> bool:
        with self._guard:
            lock = self._locks.get(member_id)
            return lock is not None and lock.locked()

    @contextmanager
    def hold(self, member_id: int) -> Iterator[None]:
        with self._guard:
            lock = self._locks.get(member_id)
            if lock is None:
                lock = self._locks[member_id] = threading.Lock()
            self._users[member_id] = self._users.get(member_id, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[member_id] -= 1
                if self._users[member_id] == 0:
                    del self._users[member_id]
                    del self._locks[member_id]


@contextmanager
def _timed(timings: dict[str, float], stage: str, log: AdjudicationLogger) -> Iterator[None]:
    start = time.perf_counter()
    yield
    elapsed = (time.perf_counter() - start) * 1000
    timings[stage] = elapsed
    log.stage_completed(stage, elapsed)


class Adjudicator:
    """
    Adjudicates claims.

    Usage:
        repos = Repositories.from_store(store)
        adjudicator = Adjudicator(repos, config)
        result = adjudicator.adjudicate(claim_id=1001)
    """

    def __init__(
        self,
        repositories: Repositories,
        config: AdjudicationConfig,
        dry_run: bool = False,
        locks: MemberLockRegistry | None = None,
    ):
        """
        Initialize the adjudicator.

        Args:
            repositories: Collaborators read from and written to
            config: Adjudication configuration
            dry_run: If True, nothing is recorded and utilization is untouched
            locks: Per-member lock registry (shared between adjudicators that
                write to the same store)
        """
        self.repos = repositories
        self.config = config
        self.dry_run = dry_run
        self.locks = locks or MemberLockRegistry()

        # Nothing invalidates cached contexts during a dry run
        self.context_builder = ContextBuilder(repositories, config, use_cache=not dry_run)
        self.eligibility = EligibilityVerifier(config)
        self.benefit_resolver = BenefitResolver(repositories.benefits, config)
        self.limit_checker = LimitChecker(repositories.benefits, config)
        self.cost_sharing = CostSharingCalculator(repositories.benefits, config)
        self.rules_engine = RulesEngine(repositories.rules, config)
        self.synthesizer = DecisionSynthesizer(config)

    def adjudicate(self, claim_id: int) -> AdjudicationResult:
        """
        Adjudicate one claim.

        Raises:
            AdjudicationError: If the claim or member is missing, or the
                context cannot be built
        """
        log = AdjudicationLogger(claim_id)
        log.adjudication_started(dry_run=self.dry_run)
        timings: dict[str, float] = {}

        with _timed(timings, "context", log):
            context = self.context_builder.build(claim_id)
        log.bind(member_id=context.member.member_id)

        with _timed(timings, "eligibility", log):
            eligibility = self.eligibility.verify(context)

        if not eligibility.is_eligible:
            log.eligibility_failed(eligibility.reasons)
            result = self.synthesizer.denial(context, eligibility)
            result = result.model_copy(update={"stage_timings_ms": timings})
            self._record(context, result, update_utilization=False)
            log.claim_adjudicated(result.overall_decision.value, result.approved_amount)
            return result

        with _timed(timings, "benefits", log):
            details = self.benefit_resolver.resolve(context)
        with _timed(timings, "limits", log):
            limits = self.limit_checker.check(context, details)
        with _timed(timings, "cost_sharing", log):
            breakdown = self.cost_sharing.calculate(context, details)
        with _timed(timings, "rules", log):
            outcome = self.rules_engine.execute(context, details, limits, breakdown)
        with _timed(timings, "decision", log):
            result = self.synthesizer.synthesize(
                context, eligibility, details, limits, breakdown, outcome
            )

        result = result.model_copy(update={"stage_timings_ms": timings})
        self._record(context, result, update_utilization=True)

        log.claim_adjudicated(
            result.overall_decision.value,
            result.approved_amount,
            requires_review=result.requires_manual_review,
        )
        return result

    def _record(
        self,
        context: AdjudicationContext,
        result: AdjudicationResult,
        update_utilization: bool,
    ) -> None:
        if self.dry_run:
            return

        member_id = context.member.member_id
        with self.locks.hold(member_id):
            self.repos.results.record_adjudication_result(result)
            if result.rule_execution_logs:
                self.repos.rules.record_rule_execution_logs(result.rule_execution_logs)
            if update_utilization:
                self._update_utilization(context, result)

        # Cached contexts of this member now hold stale utilization
        self.context_builder.invalidate_member(member_id)

    def _update_utilization(self, context: AdjudicationContext, result: AdjudicationResult) -> None:
        """Attribute the approved amount to the first covered benefit. Caller holds the member lock."""
        if result.approved_amount <= ZERO:
            return
        benefit = next((d for d in result.benefit_application_details if d.is_covered), None)
        if benefit is None:
            return

        member_id = context.member.member_id
        claim = context.claim
        # Re-read under the lock; the context snapshot may predate sibling claims
        rows = self.repos.utilization.get_member_benefit_utilization(member_id)
        row = next((u for u in rows if u.benefit_id == benefit.benefit_id), None)

        if row is None:
            row = BenefitUtilization(
                member_id=member_id,
                benefit_id=benefit.benefit_id,
                period_start=context.benefit_year_start,
            )
        elif row.period_start < context.benefit_year_start:
            # New benefit year: amounts reset, visit history is kept for lifetime limits
            row = BenefitUtilization(
                member_id=member_id,
                benefit_id=benefit.benefit_id,
                period_start=context.benefit_year_start,
                service_dates=row.service_dates,
            )

        category_usage = dict(row.category_usage)
        if claim.limit_category:
            category_usage[claim.limit_category] = (
                category_usage.get(claim.limit_category, ZERO) + claim.quantity
            )

        updated = row.model_copy(
            update={
                "used_amount": row.used_amount + result.approved_amount,
                "claim_count": row.claim_count + 1,
                "service_dates": row.service_dates + [claim.service_date],
                "category_usage": category_usage,
                "deductible_met": row.deductible_met + result.deductible_applied,
            }
        )
        self.repos.utilization.update_benefit_utilization(updated)

        AdjudicationLogger(claim.claim_id, member_id).utilization_updated(
            benefit.benefit_id, result.approved_amount
        )
