# file: clubpoints_app/services/conditions.py
"""Evaluation of a single rule condition against an evaluation context."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from clubpoints_app.models import ConditionOperator

from .errors import VariableResolutionError
from .values import BoolValue, NumberValue, StringValue, TypedValue, canonical_text, coerce
from .variables import EvaluationContext, VariableRegistry, resolve

logger = logging.getLogger(__name__)

__all__ = ["ConditionLike", "evaluate_condition", "compare", "right_operand"]

_ORDERING = {
    ConditionOperator.GREATER_THAN: lambda a, b: a > b,
    ConditionOperator.GREATER_THAN_OR_EQUAL: lambda a, b: a >= b,
    ConditionOperator.LESS_THAN: lambda a, b: a < b,
    ConditionOperator.LESS_THAN_OR_EQUAL: lambda a, b: a <= b,
}


class ConditionLike(Protocol):
    """Shape shared by :class:`~clubpoints_app.models.RuleCondition` and plain specs."""

    variable: str
    operator: str
    value: Any
    compare_variable: str
    scope: str


def compare(left: TypedValue, operator: str, right: TypedValue) -> bool:
    """Apply ``operator`` to two typed values.

    Ordering operators require two numbers and are false otherwise. Equality
    is numeric for two numbers, boolean for two booleans and textual on the
    canonical form for anything else.
    """
    if operator in _ORDERING:
        if isinstance(left, NumberValue) and isinstance(right, NumberValue):
            return _ORDERING[operator](left.value, right.value)
        return False

    if isinstance(left, NumberValue) and isinstance(right, NumberValue):
        equal = left.value == right.value
    elif isinstance(left, BoolValue) and isinstance(right, BoolValue):
        equal = left.value is right.value
    else:
        equal = canonical_text(left) == canonical_text(right)

    if operator == ConditionOperator.EQUAL:
        return equal
    if operator == ConditionOperator.NOT_EQUAL:
        return not equal
    return False


def right_operand(
    condition: ConditionLike, left: TypedValue, context: EvaluationContext, registry: VariableRegistry
) -> TypedValue:
    """Resolve the right-hand side; ``compare_variable`` wins over ``value``.

    A literal that does not fit the left operand's data type is kept as text,
    so equality compares it lexically and ordering evaluates false.
    """
    if condition.compare_variable:
        return resolve(condition.compare_variable, condition.scope, context, registry)
    try:
        return coerce(condition.value, left.data_type)
    except (TypeError, ValueError):
        return StringValue(canonical_text(condition.value))


def evaluate_condition(condition: ConditionLike, context: EvaluationContext, registry: VariableRegistry) -> bool:
    """Return whether ``condition`` holds for ``context``.

    Resolution failures (unknown variable, mistyped stored value) make the
    condition false; they are logged and never propagate.
    """
    try:
        left = resolve(condition.variable, condition.scope, context, registry)
        right = right_operand(condition, left, context, registry)
    except VariableResolutionError as exc:
        logger.debug(
            "Condition %s %s on player %s evaluated false: %s",
            condition.variable,
            condition.operator,
            context.player_id,
            exc,
        )
        return False
    return compare(left, condition.operator, right)
