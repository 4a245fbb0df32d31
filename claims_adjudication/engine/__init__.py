"""
Adjudication engine.

Provides:
- Context building and eligibility verification
- Benefit resolution through the override chain
- Limit checking and cost-sharing calculation
- The rules engine and its expression language
- Decision synthesis and the adjudicator that runs the pipeline
"""

from claims_adjudication.engine.context import AdjudicationContext, ContextBuilder
from claims_adjudication.engine.eligibility import EligibilityVerifier
from claims_adjudication.engine.benefits import (
    BenefitResolver,
    OverrideChain,
    OverrideLayer,
    apply_overrides,
    widen_mapping,
)
from claims_adjudication.engine.limits import LimitChecker
from claims_adjudication.engine.cost_sharing import CostSharingCalculator
from claims_adjudication.engine.expressions import parse_actions, parse_condition
from claims_adjudication.engine.rules import RuleOutcome, RulesEngine
from claims_adjudication.engine.decision import DecisionSynthesizer
from claims_adjudication.engine.adjudicator import Adjudicator, MemberLockRegistry

__all__ = [
    "AdjudicationContext",
    "ContextBuilder",
    "EligibilityVerifier",
    "BenefitResolver",
    "OverrideChain",
    "OverrideLayer",
    "apply_overrides",
    "widen_mapping",
    "LimitChecker",
    "CostSharingCalculator",
    "parse_actions",
    "parse_condition",
    "RuleOutcome",
    "RulesEngine",
    "DecisionSynthesizer",
    "Adjudicator",
    "MemberLockRegistry",
]
