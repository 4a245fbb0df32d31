"""
Rules engine domain models.
"""

import json
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from claims_adjudication.domain.enums import RuleCategory, RuleResult, RuleType


class BenefitRule(BaseModel):
    """
    A configured adjudication rule.

    Condition and action expressions are structured documents (see
    ``claims_adjudication.engine.expressions``). They may be supplied as
    JSON text, as stored by the rules administration UI.
    """

    rule_id: int
    rule_name: str = Field(..., max_length=200)
    rule_category: RuleCategory = RuleCategory.BENEFIT_APPLICATION
    rule_type: RuleType = RuleType.VALIDATION
    rule_priority: int = 0  # Higher numbers execute first
    condition_expression: Any = Field(default_factory=lambda: {"always": True})
    action_expression: Any = Field(default_factory=list)
    error_message: Optional[str] = None
    is_mandatory: bool = False
    is_active: bool = True
    scheme_id: Optional[int] = None  # None = applies to every scheme
    version: str = "1.0"

    @field_validator("condition_expression", "action_expression", mode="before")
    @classmethod
    def parse_json_text(cls, v: Any) -> Any:
        """Decode expressions stored as JSON text.

        Malformed text is kept as-is so the rules engine can log the rule as
        failed instead of rejecting the whole rule set.
        """
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return v
        return v


class RuleExecutionLog(BaseModel):
    """Immutable audit record of one rule evaluated against one claim."""

    model_config = ConfigDict(frozen=True)

    claim_id: int
    member_id: int
    rule_id: int
    rule_name: str
    rule_category: RuleCategory
    is_mandatory: bool = False
    executed_at: datetime
    result: RuleResult
    execution_time_ms: float = Field(..., ge=0)
    modified_fields: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None
    execution_context: dict[str, Any] = Field(default_factory=dict)
    executed_by: str = "system"
