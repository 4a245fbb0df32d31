"""
Rule expression language.

Conditions and actions are JSON documents parsed into small pydantic node
types. Evaluation is total and side-effect free: a missing field or a
comparison between incompatible types is simply false.

Condition documents:

    {"field": "claim.amount", "operator": "gt", "value": 5000}
    {"all": [<condition>, ...]}
    {"any": [<condition>, ...]}
    {"not": <condition>}
    {"some": "limits", "where": <condition>}
    {"every": "benefits", "where": <condition>}
    {"always": true}

Inside ``where`` field paths are relative to the collection element.

Action documents (a single document or a list):

    {"type": "cap_approved_amount", "value": 2500}
    {"type": "reduce_approved_amount", "percentage": 20}
    {"type": "deny", "reason": "..."}
    {"type": "add_denial_reason", "reason": "..."}
    {"type": "flag_manual_review", "reason": "..."}
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from claims_adjudication.errors import RuleExpressionError
from claims_adjudication.utils import HUNDRED, ZERO, to_decimal


class _Missing:
    def __repr__(self) -> str:
        return "<missing>"


MISSING = _Missing()


def resolve_field(data: Any, path: str) -> Any:
    """
    Resolve a dotted path against nested mappings, objects and lists.

    Returns ``MISSING`` when any segment does not resolve.
    """
    current = data
    for part in path.split("."):
        if isinstance(current, Mapping):
            if part not in current:
                return MISSING
            current = current[part]
        elif isinstance(current, (list, tuple)):
            if not part.isdigit() or int(part) >= len(current):
                return MISSING
            current = current[int(part)]
        elif hasattr(current, part):
            current = getattr(current, part)
        else:
            return MISSING
    return current


def _coerce(expected: Any, actual: Any) -> Any:
    """Convert a literal from a rule document to the type of the actual value."""
    try:
        if isinstance(actual, Decimal) and isinstance(expected, (int, float, str)) \
                and not isinstance(expected, bool):
            return to_decimal(expected)
        if isinstance(actual, datetime) and isinstance(expected, str):
            return datetime.fromisoformat(expected)
        if isinstance(actual, date) and isinstance(expected, str):
            return date.fromisoformat(expected)
    except (InvalidOperation, ValueError):
        return expected
    return expected


class Operator(str, Enum):
    """Comparison operators."""
    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    NOT_IN = "not_in"
    CONTAINS = "contains"
    EXISTS = "exists"
    BETWEEN = "between"


class Compare(BaseModel):
    """Compare the value at ``field`` with a literal."""

    field: str = Field(..., min_length=1)
    operator: Operator
    value: Any = None

    @model_validator(mode="after")
    def check_operand(self) -> "Compare":
        if self.operator in (Operator.IN, Operator.NOT_IN) and not isinstance(self.value, list):
            raise ValueError(f"operator {self.operator.value} requires a list value")
        if self.operator == Operator.BETWEEN and (
            not isinstance(self.value, list) or len(self.value) != 2
        ):
            raise ValueError("operator between requires a [low, high] value")
        return self

    def evaluate(self, data: Any) -> bool:
        actual = resolve_field(data, self.field)

        if self.operator == Operator.EXISTS:
            present = actual is not MISSING and actual is not None
            return present if self.value is None else present == bool(self.value)

        if actual is MISSING:
            return False

        try:
            return self._compare(actual)
        except TypeError:
            return False

    def _compare(self, actual: Any) -> bool:
        op = self.operator
        if op == Operator.IN:
            return actual in [_coerce(v, actual) for v in self.value]
        if op == Operator.NOT_IN:
            return actual not in [_coerce(v, actual) for v in self.value]
        if op == Operator.CONTAINS:
            if isinstance(actual, (list, tuple, set, str)):
                return self.value in actual
            return False
        if op == Operator.BETWEEN:
            low, high = (_coerce(v, actual) for v in self.value)
            if actual is None:
                return False
            return low <= actual <= high

        expected = _coerce(self.value, actual)
        if op == Operator.EQ:
            return actual == expected
        if op == Operator.NE:
            return actual != expected
        if actual is None or expected is None:
            return False
        if op == Operator.GT:
            return actual > expected
        if op == Operator.GTE:
            return actual >= expected
        if op == Operator.LT:
            return actual < expected
        return actual <= expected


class AllOf(BaseModel):
    """True when every child holds (vacuously true when empty)."""

    conditions: list["Condition"]

    def evaluate(self, data: Any) -> bool:
        return all(c.evaluate(data) for c in self.conditions)


class AnyOf(BaseModel):
    """True when at least one child holds."""

    conditions: list["Condition"]

    def evaluate(self, data: Any) -> bool:
        return any(c.evaluate(data) for c in self.conditions)


class Not(BaseModel):
    condition: "Condition"

    def evaluate(self, data: Any) -> bool:
        return not self.condition.evaluate(data)


class Quantifier(BaseModel):
    """``some`` / ``every`` element of a collection satisfies ``where``."""

    every: bool
    collection: str
    where: "Condition"

    def evaluate(self, data: Any) -> bool:
        items = resolve_field(data, self.collection)
        if not isinstance(items, (list, tuple)):
            return False
        if self.every:
            return all(self.where.evaluate(item) for item in items)
        return any(self.where.evaluate(item) for item in items)


class Always(BaseModel):
    always: bool = True

    def evaluate(self, data: Any) -> bool:
        return self.always


Condition = Union[Compare, AllOf, AnyOf, Not, Quantifier, Always]

AllOf.model_rebuild()
AnyOf.model_rebuild()
Not.model_rebuild()
Quantifier.model_rebuild()


def parse_condition(document: Any) -> Condition:
    """
    Parse a condition document.

    Raises:
        RuleExpressionError: If the document is not a valid condition
    """
    if not isinstance(document, Mapping):
        raise RuleExpressionError(f"Condition must be an object, got {type(document).__name__}")

    try:
        if "all" in document:
            return AllOf(conditions=[parse_condition(c) for c in _as_list(document["all"])])
        if "any" in document:
            return AnyOf(conditions=[parse_condition(c) for c in _as_list(document["any"])])
        if "not" in document:
            return Not(condition=parse_condition(document["not"]))
        if "some" in document or "every" in document:
            every = "every" in document
            if "where" not in document:
                raise RuleExpressionError("Quantifier requires a 'where' condition")
            return Quantifier(
                every=every,
                collection=document["every" if every else "some"],
                where=parse_condition(document["where"]),
            )
        if "always" in document:
            return Always(always=document["always"])
        if "field" in document:
            return Compare.model_validate(document)
    except ValidationError as e:
        raise RuleExpressionError(f"Invalid condition {dict(document)!r}: {e}") from e

    raise RuleExpressionError(f"Unrecognised condition {dict(document)!r}")


def _as_list(value: Any) -> list:
    if not isinstance(value, list):
        raise RuleExpressionError(f"Expected a list of conditions, got {type(value).__name__}")
    return value


class ActionType(str, Enum):
    """Decision actions a passing rule can take."""
    CAP_APPROVED_AMOUNT = "cap_approved_amount"
    REDUCE_APPROVED_AMOUNT = "reduce_approved_amount"
    DENY = "deny"
    ADD_DENIAL_REASON = "add_denial_reason"
    FLAG_MANUAL_REVIEW = "flag_manual_review"


class Action(BaseModel):
    """
    One decision action.

    Actions only ever narrow the approved amount.
    """

    type: ActionType
    value: Optional[Decimal] = Field(None, ge=0)
    percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    reason: Optional[str] = None

    @model_validator(mode="after")
    def check_arguments(self) -> "Action":
        if self.type == ActionType.CAP_APPROVED_AMOUNT and self.value is None:
            raise ValueError("cap_approved_amount requires 'value'")
        if self.type == ActionType.REDUCE_APPROVED_AMOUNT and self.percentage is None:
            raise ValueError("reduce_approved_amount requires 'percentage'")
        if self.type == ActionType.ADD_DENIAL_REASON and not self.reason:
            raise ValueError("add_denial_reason requires 'reason'")
        return self

    def apply(self, decision: dict[str, Any], default_reason: str) -> dict[str, Any]:
        """
        Apply to the working decision in place.

        Returns:
            The decision fields this action changed, with their new values
        """
        approved: Decimal = decision["approved_amount"]
        reason = self.reason or default_reason
        changed: dict[str, Any] = {}

        if self.type == ActionType.CAP_APPROVED_AMOUNT:
            new_amount = max(ZERO, min(approved, self.value))
            if new_amount != approved:
                decision["approved_amount"] = changed["approved_amount"] = new_amount
        elif self.type == ActionType.REDUCE_APPROVED_AMOUNT:
            new_amount = approved * (HUNDRED - self.percentage) / HUNDRED
            if new_amount != approved:
                decision["approved_amount"] = changed["approved_amount"] = new_amount
        elif self.type == ActionType.DENY:
            decision["approved_amount"] = changed["approved_amount"] = ZERO
            decision["denial_reasons"].append(reason)
            changed["denial_reasons"] = list(decision["denial_reasons"])
        elif self.type == ActionType.ADD_DENIAL_REASON:
            decision["denial_reasons"].append(reason)
            changed["denial_reasons"] = list(decision["denial_reasons"])
        elif self.type == ActionType.FLAG_MANUAL_REVIEW:
            decision["requires_manual_review"] = changed["requires_manual_review"] = True
            decision["review_reasons"].append(reason)
            changed["review_reasons"] = list(decision["review_reasons"])

        return changed


def parse_actions(document: Any) -> list[Action]:
    """
    Parse an action document (a single action, a list, or nothing).

    Raises:
        RuleExpressionError: If any action is invalid
    """
    if document is None or document == {}:
        return []
    items = document if isinstance(document, list) else [document]

    actions = []
    for item in items:
        if not isinstance(item, Mapping):
            raise RuleExpressionError(f"Action must be an object, got {type(item).__name__}")
        try:
            actions.append(Action.model_validate(item))
        except ValidationError as e:
            raise RuleExpressionError(f"Invalid action {dict(item)!r}: {e}") from e
    return actions
