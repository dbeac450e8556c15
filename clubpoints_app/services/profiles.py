# file: clubpoints_app/services/profiles.py
"""Resolution of the rule set that applies to a team.

Precedence, first match wins and tiers are never merged:

1. the team's own rules profile, if it exists and is active;
2. the club's default profile, if active;
3. every active global rule (fallback).

Profile tiers return the enabled profile entries with their effective points
(``custom_points`` when set). Inactive rules stay in the set; the rule
evaluator skips them.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db.models import Prefetch

from clubpoints_app.models import Rule, RuleCondition, RulesProfile, RulesProfileRule, Team

from .errors import StructuralError
from .evaluator import RuleSpec

logger = logging.getLogger(__name__)

__all__ = ["ResolutionTier", "EffectiveRule", "EffectiveRuleSet", "resolve_effective_rules"]


class ResolutionTier(str, enum.Enum):
    TEAM_PROFILE = "TEAM_PROFILE"
    CLUB_DEFAULT = "CLUB_DEFAULT"
    GLOBAL_FALLBACK = "GLOBAL_FALLBACK"

    @property
    def label(self) -> str:
        return {
            ResolutionTier.TEAM_PROFILE: "Profil týmu",
            ResolutionTier.CLUB_DEFAULT: "Výchozí profil klubu",
            ResolutionTier.GLOBAL_FALLBACK: "Globální pravidla",
        }[self]


@dataclass(frozen=True)
class EffectiveRule:
    rule: RuleSpec
    effective_points: Decimal
    is_custom_points: bool = False


@dataclass(frozen=True)
class EffectiveRuleSet:
    """Rules applying to a team together with the tier that produced them."""

    tier: ResolutionTier
    profile: RulesProfile | None
    rules: tuple[EffectiveRule, ...]

    def __iter__(self):
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)


def _conditions_prefetch(prefix: str = "") -> Prefetch:
    return Prefetch(f"{prefix}conditions", queryset=RuleCondition.objects.order_by("order", "id"))


def _sort_key(entry: EffectiveRule) -> tuple[str, str]:
    return entry.rule.category, entry.rule.name


def _profile_rules(profile: RulesProfile) -> tuple[EffectiveRule, ...]:
    entries = (
        RulesProfileRule.objects.filter(profile=profile, is_enabled=True)
        .select_related("rule")
        .prefetch_related(_conditions_prefetch("rule__"))
    )
    rules = [
        EffectiveRule(
            rule=RuleSpec.from_model(entry.rule),
            effective_points=Decimal(entry.effective_points),
            is_custom_points=entry.custom_points is not None,
        )
        for entry in entries
    ]
    return tuple(sorted(rules, key=_sort_key))


def _global_rules() -> tuple[EffectiveRule, ...]:
    rules = Rule.objects.filter(is_active=True).prefetch_related(_conditions_prefetch())
    return tuple(
        sorted(
            (EffectiveRule(rule=RuleSpec.from_model(r), effective_points=Decimal(r.points_awarded)) for r in rules),
            key=_sort_key,
        )
    )


def _team_profile(team: Team) -> RulesProfile | None:
    profile_id = team.default_rules_profile_id
    if not profile_id:
        return None
    profile = RulesProfile.objects.filter(pk=profile_id).first()
    if profile is None:
        logger.warning("Team %s references missing rules profile %s, falling through.", team.pk, profile_id)
        return None
    if not profile.is_active:
        logger.debug("Team %s profile %s is inactive, falling through.", team.pk, profile_id)
        return None
    return profile


def resolve_effective_rules(team: Team) -> EffectiveRuleSet:
    """Return the rule set that applies to ``team``.

    Args:
        team: Team whose games are being scored.

    Returns:
        EffectiveRuleSet: Tier, the profile used (``None`` for the global
        fallback) and the ordered rules with effective points.

    Raises:
        StructuralError: If the team is missing or has no club.
    """
    if team is None:
        raise StructuralError("Zápas nemá přiřazený tým.")
    if not team.club_id:
        raise StructuralError(f"Tým '{team}' nepatří do žádného klubu.")

    profile = _team_profile(team)
    if profile is not None:
        return EffectiveRuleSet(ResolutionTier.TEAM_PROFILE, profile, _profile_rules(profile))

    club_default = RulesProfile.objects.filter(
        club_id=team.club_id, is_club_default=True, is_active=True
    ).first()
    if club_default is not None:
        return EffectiveRuleSet(ResolutionTier.CLUB_DEFAULT, club_default, _profile_rules(club_default))

    return EffectiveRuleSet(ResolutionTier.GLOBAL_FALLBACK, None, _global_rules())
