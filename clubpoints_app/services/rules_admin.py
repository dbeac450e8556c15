# file: clubpoints_app/services/rules_admin.py
"""Rule administration: deletion guards, configuration review, listings.

Provided utilities:
    - :func:`delete_rule` / :func:`delete_rules_profile` – deletion with
      reference checks; :func:`rule_delete_blocker` /
      :func:`profile_delete_blocker` report the reason without deleting.
    - :func:`review_rules` – findings about inconsistent rule configuration.
    - :func:`assert_rules_valid` – raise on any finding.
    - :func:`effective_rules_for_team` – rows describing the rules a team uses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction

from clubpoints_app.models import (
    ConditionOperator,
    Rule,
    RuleCategory,
    RulesProfile,
    Team,
    TargetScope,
    VariableDataType,
)

from .errors import ConfigurationError, ProfileInUse, RuleInUse
from .evaluator import RuleSpec, multiplier_condition
from .profiles import EffectiveRuleSet, resolve_effective_rules
from .values import coerce
from .variables import VariableRegistry, load_registry, lookup_definition

logger = logging.getLogger(__name__)

__all__ = [
    "RuleFinding",
    "rule_delete_blocker",
    "profile_delete_blocker",
    "delete_rule",
    "delete_rules_profile",
    "review_rules",
    "assert_rules_valid",
    "effective_rules_for_team",
]

_EQUALITY = {ConditionOperator.EQUAL, ConditionOperator.NOT_EQUAL}


# --- Deletion guards -------------------------------------------------------


def rule_delete_blocker(rule: Rule) -> str | None:
    """Return why ``rule`` cannot be deleted, or ``None`` when it can."""
    profiles = sorted(set(rule.profile_rules.values_list("profile__name", flat=True)))
    if profiles:
        return f"Pravidlo '{rule.name}' je použito v profilech: {', '.join(profiles)}."
    return None


def profile_delete_blocker(profile: RulesProfile) -> str | None:
    """Return why ``profile`` cannot be deleted, or ``None`` when it can."""
    if profile.is_club_default:
        return f"Profil '{profile.name}' je výchozím profilem klubu."
    teams = sorted(Team.objects.filter(default_rules_profile_id=profile.pk).values_list("name", flat=True))
    if teams:
        return f"Profil '{profile.name}' používají týmy: {', '.join(teams)}."
    return None


def delete_rule(rule: Rule) -> None:
    """Delete ``rule`` with its conditions.

    Raises:
        RuleInUse: If any rules profile references the rule.
    """
    with transaction.atomic():
        blocker = rule_delete_blocker(rule)
        if blocker:
            raise RuleInUse(blocker)
        rule.delete()
    logger.info("Rule %r deleted.", rule.name)


def delete_rules_profile(profile: RulesProfile) -> None:
    """Delete ``profile`` with its rule entries.

    Raises:
        ProfileInUse: If the profile is its club's default or a team uses it.
    """
    with transaction.atomic():
        blocker = profile_delete_blocker(profile)
        if blocker:
            raise ProfileInUse(blocker)
        profile.delete()
    logger.info("Rules profile %r deleted.", profile.name)


# --- Review ----------------------------------------------------------------


@dataclass(frozen=True)
class RuleFinding:
    rule_id: int
    rule_name: str
    message: str
    condition_id: int | None = None

    def __str__(self) -> str:
        where = f" (podmínka #{self.condition_id})" if self.condition_id else ""
        return f"{self.rule_name}{where}: {self.message}"


def _review_condition(rule: Rule, condition, registry: VariableRegistry) -> list[RuleFinding]:
    def finding(message: str) -> RuleFinding:
        return RuleFinding(rule.pk, rule.name, message, condition.pk)

    left = lookup_definition(condition.variable, condition.scope, registry)
    if left is None:
        return [finding(f"proměnná '{condition.variable}' není v rozsahu {condition.scope} dostupná")]

    found = []
    if condition.operator not in _EQUALITY and left.data_type != VariableDataType.NUMBER:
        found.append(finding(f"operátor {condition.operator} vyžaduje číselnou proměnnou"))

    if condition.compare_variable:
        right = lookup_definition(condition.compare_variable, condition.scope, registry)
        if right is None:
            found.append(
                finding(f"proměnná '{condition.compare_variable}' není v rozsahu {condition.scope} dostupná")
            )
        elif right.data_type != left.data_type:
            found.append(finding("porovnávané proměnné mají rozdílný datový typ"))
        return found

    try:
        coerce(condition.value, left.data_type)
    except (TypeError, ValueError):
        found.append(finding(f"hodnota {condition.value!r} neodpovídá typu {left.data_type}"))
    return found


def review_rules(rules=None, registry: VariableRegistry | None = None) -> list[RuleFinding]:
    """Inspect rules for configuration problems that make them misbehave.

    Args:
        rules: Rules to review; all rules when omitted.
        registry: Custom variable snapshot; loaded when omitted.

    Returns:
        list[RuleFinding]: One finding per problem, empty when all is well.
    """
    if registry is None:
        registry = load_registry()
    if rules is None:
        rules = Rule.objects.prefetch_related("conditions")

    findings: list[RuleFinding] = []
    for rule in rules:
        conditions = list(rule.conditions.all())
        if not conditions and rule.category != RuleCategory.MANUAL:
            findings.append(RuleFinding(rule.pk, rule.name, "pravidlo nemá žádné podmínky a platí vždy"))
        if rule.target_scope == TargetScope.SPECIFIC_POSITIONS and not rule.target_positions:
            findings.append(RuleFinding(rule.pk, rule.name, "cílí na pozice, ale žádné nemá vybrané"))
        if rule.is_multiplier and multiplier_condition(RuleSpec.from_model(rule)) is None:
            findings.append(
                RuleFinding(rule.pk, rule.name, "násobící pravidlo nemá podmínku „proměnná > 0“ hráče")
            )
        for condition in conditions:
            findings.extend(_review_condition(rule, condition, registry))
    return findings


def assert_rules_valid(rules=None) -> None:
    """Raise :class:`ConfigurationError` listing every review finding."""
    findings = review_rules(rules)
    if findings:
        raise ConfigurationError("; ".join(str(f) for f in findings))


# --- Listings --------------------------------------------------------------


def effective_rules_for_team(team: Team) -> tuple[EffectiveRuleSet, list[dict]]:
    """Rule set a team resolves to, plus display rows for admin listings.

    Raises:
        StructuralError: If the team has no club.
    """
    rule_set = resolve_effective_rules(team)
    rows = [
        {
            "name": entry.rule.name,
            "category": entry.rule.category,
            "points": entry.effective_points,
            "is_custom_points": entry.is_custom_points,
            "is_active": entry.rule.is_active,
        }
        for entry in rule_set
    ]
    return rule_set, rows
