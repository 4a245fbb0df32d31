"""
Rules engine.

Executes the configured rules for a claim in priority order (higher first,
ties in configuration order). Every executed rule is logged. A failing
mandatory rule stops execution; the rules after it are neither executed
nor logged.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

import structlog

from claims_adjudication.config import AdjudicationConfig
from claims_adjudication.domain import (
    BenefitApplicationDetail,
    BenefitRule,
    CostSharingBreakdown,
    LimitCheckResult,
    RuleExecutionLog,
    RuleResult,
)
from claims_adjudication.engine.context import AdjudicationContext
from claims_adjudication.engine.expressions import parse_actions, parse_condition
from claims_adjudication.errors import RuleExpressionError
from claims_adjudication.repository import RuleRepository

logger = structlog.get_logger()


@dataclass(frozen=True)
class RuleOutcome:
    """What the rules did to the decision."""

    logs: list[RuleExecutionLog]
    approved_amount: Decimal
    denial_reasons: list[str] = field(default_factory=list)
    review_reasons: list[str] = field(default_factory=list)
    requires_manual_review: bool = False
    mandatory_failure: bool = False
    failed_mandatory_rule: RuleExecutionLog | None = None

    @property
    def any_failed(self) -> bool:
        return any(log.result == RuleResult.FAIL for log in self.logs)


def build_execution_context(
    context: AdjudicationContext,
    details: list[BenefitApplicationDetail],
    limits: list[LimitCheckResult],
    cost_sharing: CostSharingBreakdown,
    decision: dict[str, Any],
) -> dict[str, Any]:
    """Plain mapping rule conditions are evaluated against."""
    member = context.member.model_dump()
    member["age"] = context.member_age
    member["is_corporate"] = context.member.is_corporate

    def dump(model):
        return model.model_dump() if model is not None else None

    return {
        "claim": context.claim.model_dump(),
        "member": member,
        "scheme": dump(context.scheme),
        "plan_tier": dump(context.plan_tier),
        "corporate": dump(context.corporate_config),
        "provider": {
            "provider_id": context.claim.provider_id,
            "network_tier": context.provider_network_tier,
            "in_network": context.provider_network_tier is not None,
        },
        "benefits": [d.model_dump() for d in details],
        "limits": [r.model_dump() for r in limits],
        "cost_sharing": cost_sharing.model_dump(),
        "decision": decision,
    }


class RulesEngine:
    """
    Priority-ordered, mandatory-aware rule execution.

    Usage:
        engine = RulesEngine(rule_repository, config)
        outcome = engine.execute(context, details, limits, cost_sharing)
    """

    def __init__(self, rules: RuleRepository, config: AdjudicationConfig):
        self.rules = rules
        self.config = config

    def ordered_rules(self, scheme_id: int | None) -> list[BenefitRule]:
        applicable = [r for r in self.rules.get_applicable_rules(scheme_id) if r.is_active]
        # sorted() is stable, so equal priorities keep configuration order
        return sorted(applicable, key=lambda r: r.rule_priority, reverse=True)

    def execute(
        self,
        context: AdjudicationContext,
        details: list[BenefitApplicationDetail],
        limits: list[LimitCheckResult],
        cost_sharing: CostSharingBreakdown,
    ) -> RuleOutcome:
        decision: dict[str, Any] = {
            "approved_amount": context.claim.amount,
            "requires_manual_review": False,
            "denial_reasons": [],
            "review_reasons": [],
        }
        data = build_execution_context(context, details, limits, cost_sharing, decision)
        scheme_id = context.scheme.scheme_id if context.scheme else None

        logs: list[RuleExecutionLog] = []
        failed_mandatory = None
        for rule in self.ordered_rules(scheme_id):
            log = self._execute_rule(rule, context, data, decision)
            logs.append(log)
            if rule.is_mandatory and log.result == RuleResult.FAIL:
                failed_mandatory = log
                logger.info(
                    "mandatory_rule_failed",
                    claim_id=context.claim.claim_id,
                    rule_id=rule.rule_id,
                    rule_name=rule.rule_name,
                )
                break

        logger.debug(
            "rules_executed",
            claim_id=context.claim.claim_id,
            executed=len(logs),
            failed=sum(1 for log in logs if log.result == RuleResult.FAIL),
        )

        return RuleOutcome(
            logs=logs,
            approved_amount=decision["approved_amount"],
            denial_reasons=list(decision["denial_reasons"]),
            review_reasons=list(decision["review_reasons"]),
            requires_manual_review=decision["requires_manual_review"],
            mandatory_failure=failed_mandatory is not None,
            failed_mandatory_rule=failed_mandatory,
        )

    def _execute_rule(
        self,
        rule: BenefitRule,
        context: AdjudicationContext,
        data: dict[str, Any],
        decision: dict[str, Any],
    ) -> RuleExecutionLog:
        start = time.perf_counter()
        approved_before = decision["approved_amount"]
        modified: dict[str, Any] = {}
        error_message = None

        try:
            condition = parse_condition(rule.condition_expression)
            actions = parse_actions(rule.action_expression)
            if condition.evaluate(data):
                result = RuleResult.PASS
                for action in actions:
                    modified.update(action.apply(decision, default_reason=rule.error_message or rule.rule_name))
            else:
                result = RuleResult.FAIL
                error_message = rule.error_message or f"Rule '{rule.rule_name}' condition not met"
        except RuleExpressionError as e:
            result = RuleResult.FAIL
            error_message = str(e)
            logger.warning(
                "rule_expression_invalid",
                claim_id=context.claim.claim_id,
                rule_id=rule.rule_id,
                error=error_message,
            )
        except Exception as e:
            result = RuleResult.FAIL
            error_message = f"Rule evaluation error: {e}"
            logger.exception(
                "rule_execution_failed",
                claim_id=context.claim.claim_id,
                rule_id=rule.rule_id,
            )

        return RuleExecutionLog(
            claim_id=context.claim.claim_id,
            member_id=context.member.member_id,
            rule_id=rule.rule_id,
            rule_name=rule.rule_name,
            rule_category=rule.rule_category,
            is_mandatory=rule.is_mandatory,
            executed_at=datetime.now(),
            result=result,
            execution_time_ms=(time.perf_counter() - start) * 1000,
            modified_fields=modified,
            error_message=error_message,
            execution_context={
                "rule_priority": rule.rule_priority,
                "rule_version": rule.version,
                "claim_amount": str(context.claim.amount),
                "approved_amount_before": str(approved_before),
            },
            executed_by=self.config.engine.executed_by,
        )
