"""
Exceptions raised by the claims adjudication engine.

Only precondition failures are raised. Adjudication outcomes (ineligible,
limit exceeded, rule failure) are always returned as results.
"""


class AdjudicationError(Exception):
    """Fatal error: the claim could not be adjudicated at all."""

    def __init__(self, message: str, claim_id: int | None = None):
        super().__init__(message)
        self.claim_id = claim_id


class ClaimNotFoundError(AdjudicationError):
    """Raised when the claim does not exist."""

    def __init__(self, claim_id: int):
        super().__init__(f"Claim {claim_id} not found", claim_id=claim_id)


class MemberNotFoundError(AdjudicationError):
    """Raised when the claim's member does not exist."""

    def __init__(self, member_id: int, claim_id: int | None = None):
        super().__init__(f"Member {member_id} not found", claim_id=claim_id)
        self.member_id = member_id


class ContextBuildError(AdjudicationError):
    """Raised when collaborator data needed for adjudication cannot be read."""


class RuleExpressionError(Exception):
    """Raised when a rule expression is malformed or cannot be evaluated.

    Caught by the rules engine and logged against the rule.
    """
