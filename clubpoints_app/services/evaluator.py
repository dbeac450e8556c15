# file: clubpoints_app/services/evaluator.py
"""Evaluation of one rule for one player.

A rule fires when it is active, is not a manual rule, targets the player's
position and *all* of its conditions hold. The award is the rule's points,
multiplied for multiplier rules by the player's value of the magnitude
variable (see :func:`multiplier_condition`).

Rules are evaluated from :class:`RuleSpec` snapshots so a scoring run reads
each rule and its conditions once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from clubpoints_app.models import (
    ConditionOperator,
    Rule,
    RuleCategory,
    TargetScope,
    VariableScope,
)

from .conditions import evaluate_condition
from .errors import ConfigurationError, VariableResolutionError
from .values import NumberValue, canonical_text
from .variables import EvaluationContext, VariableRegistry, resolve

logger = logging.getLogger(__name__)

__all__ = [
    "ConditionSpec",
    "RuleSpec",
    "PointAward",
    "evaluate_rule",
    "multiplier_condition",
    "check_targeting",
    "describe_award",
]

_SYMBOLS = dict(ConditionOperator.choices)


@dataclass(frozen=True)
class ConditionSpec:
    variable: str
    operator: str
    value: Any = None
    compare_variable: str = ""
    scope: str = VariableScope.PLAYER

    @classmethod
    def from_model(cls, condition) -> "ConditionSpec":
        return cls(
            variable=condition.variable,
            operator=condition.operator,
            value=condition.value,
            compare_variable=condition.compare_variable or "",
            scope=condition.scope,
        )


@dataclass(frozen=True)
class RuleSpec:
    """Read-only snapshot of a :class:`~clubpoints_app.models.Rule`."""

    id: int | None
    name: str
    points_awarded: Decimal
    category: str = RuleCategory.PLAYER_PERFORMANCE
    is_multiplier: bool = False
    target_scope: str = TargetScope.ALL_PLAYERS
    target_positions: tuple[int, ...] = ()
    is_active: bool = True
    conditions: tuple[ConditionSpec, ...] = field(default_factory=tuple)

    @classmethod
    def from_model(cls, rule: Rule) -> "RuleSpec":
        """Build a snapshot; uses prefetched ``conditions`` when available."""
        return cls(
            id=rule.pk,
            name=rule.name,
            points_awarded=Decimal(rule.points_awarded),
            category=rule.category,
            is_multiplier=rule.is_multiplier,
            target_scope=rule.target_scope,
            target_positions=tuple(rule.target_positions or ()),
            is_active=rule.is_active,
            conditions=tuple(ConditionSpec.from_model(c) for c in rule.conditions.all()),
        )


@dataclass(frozen=True)
class PointAward:
    """Points a rule awards to one player."""

    player_id: int | None
    rule_id: int | None
    rule_name: str
    points: Decimal
    reason: str


def multiplier_condition(rule: RuleSpec) -> ConditionSpec | None:
    """Return the condition whose variable scales a multiplier rule.

    By convention it is the first PLAYER condition of the form
    ``<variable> > 0`` compared against a literal.
    """
    for condition in rule.conditions:
        if (
            condition.scope == VariableScope.PLAYER
            and condition.operator == ConditionOperator.GREATER_THAN
            and not condition.compare_variable
            and _is_zero(condition.value)
        ):
            return condition
    return None


def _is_zero(value: Any) -> bool:
    if isinstance(value, bool) or value is None:
        return False
    try:
        return Decimal(str(value)) == 0
    except ArithmeticError:
        return False


def check_targeting(rule: RuleSpec) -> None:
    """Raise :class:`ConfigurationError` for position targeting without positions."""
    if rule.target_scope == TargetScope.SPECIFIC_POSITIONS and not rule.target_positions:
        raise ConfigurationError(f"Pravidlo '{rule.name}' cílí na pozice, ale žádné nemá vybrané.")


def _targets(rule: RuleSpec, context: EvaluationContext) -> bool:
    if rule.target_scope != TargetScope.SPECIFIC_POSITIONS:
        return True
    try:
        check_targeting(rule)
    except ConfigurationError as exc:
        logger.warning("%s Rule skipped.", exc)
        return False
    return context.position in rule.target_positions


def _magnitude(rule: RuleSpec, points: Decimal, context: EvaluationContext, registry: VariableRegistry) -> Decimal:
    if not rule.is_multiplier:
        return points
    condition = multiplier_condition(rule)
    if condition is None:
        logger.debug("Multiplier rule %r has no '> 0' condition, awarding flat points.", rule.name)
        return points
    value = resolve(condition.variable, condition.scope, context, registry)
    if not isinstance(value, NumberValue):
        return points
    return points * value.value


def describe_award(rule: RuleSpec, context: EvaluationContext, registry: VariableRegistry) -> str:
    """Human readable reason: ``Name: goalsScored > 0 (skutečnost: 2) AND …``."""
    parts = []
    for condition in rule.conditions:
        symbol = _SYMBOLS.get(condition.operator, condition.operator)
        actual = _describe_value(condition.variable, condition.scope, context, registry)
        if condition.compare_variable:
            other = _describe_value(condition.compare_variable, condition.scope, context, registry)
            parts.append(
                f"{condition.variable} {symbol} {condition.compare_variable} ({actual} {symbol} {other})"
            )
        else:
            parts.append(
                f"{condition.variable} {symbol} {canonical_text(condition.value)} (skutečnost: {actual})"
            )
    if not parts:
        return rule.name
    return f"{rule.name}: {' AND '.join(parts)}"


def _describe_value(key: str, scope: str, context: EvaluationContext, registry: VariableRegistry) -> str:
    try:
        return canonical_text(resolve(key, scope, context, registry))
    except VariableResolutionError:
        return "?"


def evaluate_rule(
    rule: RuleSpec | Rule,
    context: EvaluationContext,
    registry: VariableRegistry,
    points: Decimal | None = None,
) -> PointAward | None:
    """Evaluate ``rule`` for the player described by ``context``.

    Args:
        rule: Rule snapshot (a model instance is converted).
        context: Player, game and team facts.
        registry: Snapshot of active custom variables.
        points: Effective points (profile override); defaults to the rule's
            own ``points_awarded``.

    Returns:
        PointAward | None: The award, or ``None`` when the rule does not fire.
    """
    if isinstance(rule, Rule):
        rule = RuleSpec.from_model(rule)
    if not rule.is_active or rule.category == RuleCategory.MANUAL:
        return None
    if not _targets(rule, context):
        return None
    if not all(evaluate_condition(c, context, registry) for c in rule.conditions):
        return None

    base = Decimal(points) if points is not None else rule.points_awarded
    try:
        magnitude = _magnitude(rule, base, context, registry)
    except VariableResolutionError as exc:
        logger.debug("Multiplier of rule %r unresolved: %s", rule.name, exc)
        return None

    return PointAward(
        player_id=context.player_id,
        rule_id=rule.id,
        rule_name=rule.name,
        points=magnitude,
        reason=describe_award(rule, context, registry),
    )
