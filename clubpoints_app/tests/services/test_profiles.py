# file: clubpoints_app/tests/services/test_profiles.py
"""Tests for resolving the rule set that applies to a team.

Coverage:
* Precedence team profile > club default > global rules, without merging.
* Inactive or missing team profiles fall through.
* Disabled entries are excluded; custom points override rule points.
* Structural errors for teams without a club.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest

from clubpoints_app.services.errors import StructuralError
from clubpoints_app.services.profiles import ResolutionTier, resolve_effective_rules

pytestmark = pytest.mark.django_db


def _points(rule_set) -> dict[str, Decimal]:
    return {entry.rule.name: entry.effective_points for entry in rule_set}


def test_global_fallback_lists_active_rules(team: Any, make_rule: Any) -> None:
    make_rule("Gól", points=3)
    make_rule("Asistence", points=2)
    make_rule("Staré", points=9, is_active=False)
    rule_set = resolve_effective_rules(team)
    assert rule_set.tier is ResolutionTier.GLOBAL_FALLBACK
    assert rule_set.profile is None
    assert _points(rule_set) == {"Asistence": Decimal("2"), "Gól": Decimal("3")}


def test_override_precedence_across_tiers(club: Any, team: Any, make_rule: Any, make_profile: Any) -> None:
    rule = make_rule("Gól", points=3)
    make_rule("Jen globální", points=1)
    club_default = make_profile(club, "Klub", entries=[(rule, 4)], is_club_default=True)

    rule_set = resolve_effective_rules(team)
    assert rule_set.tier is ResolutionTier.CLUB_DEFAULT
    assert rule_set.profile == club_default
    assert _points(rule_set) == {"Gól": Decimal("4")}

    team_profile = make_profile(club, "Tým", entries=[(rule, 6)])
    team.default_rules_profile = team_profile
    team.save()

    rule_set = resolve_effective_rules(team)
    assert rule_set.tier is ResolutionTier.TEAM_PROFILE
    assert rule_set.profile == team_profile
    assert _points(rule_set) == {"Gól": Decimal("6")}
    assert rule_set.rules[0].is_custom_points is True


def test_inactive_team_profile_falls_through(club: Any, team: Any, make_rule: Any, make_profile: Any) -> None:
    rule = make_rule("Gól", points=3)
    team.default_rules_profile = make_profile(club, "Tým", entries=[(rule, 6)], is_active=False)
    team.save()
    make_profile(club, "Klub", entries=[(rule, None)], is_club_default=True)

    rule_set = resolve_effective_rules(team)
    assert rule_set.tier is ResolutionTier.CLUB_DEFAULT
    assert _points(rule_set) == {"Gól": Decimal("3")}
    assert rule_set.rules[0].is_custom_points is False


def test_orphaned_team_profile_id_falls_through(Team: Any, team: Any, make_rule: Any) -> None:
    make_rule("Gól", points=3)
    Team.objects.filter(pk=team.pk).update(default_rules_profile_id=987654)
    team.refresh_from_db()
    assert resolve_effective_rules(team).tier is ResolutionTier.GLOBAL_FALLBACK


def test_inactive_club_default_is_ignored(club: Any, team: Any, make_rule: Any, make_profile: Any) -> None:
    rule = make_rule("Gól", points=3)
    make_profile(club, "Klub", entries=[(rule, 10)], is_club_default=True, is_active=False)
    assert resolve_effective_rules(team).tier is ResolutionTier.GLOBAL_FALLBACK


def test_disabled_entries_excluded_and_inactive_rules_kept(
    club: Any, team: Any, make_rule: Any, make_profile: Any
) -> None:
    kept = make_rule("Gól", points=3)
    disabled = make_rule("Asistence", points=2)
    inactive = make_rule("Neaktivní", points=1, is_active=False)
    profile = make_profile(club, "Klub", entries=[(kept, None), (disabled, None), (inactive, None)], is_club_default=True)
    profile.rules.filter(rule=disabled).update(is_enabled=False)

    rule_set = resolve_effective_rules(team)
    assert set(_points(rule_set)) == {"Gól", "Neaktivní"}
    assert {e.rule.name: e.rule.is_active for e in rule_set}["Neaktivní"] is False


def test_rules_ordered_by_category_then_name(club: Any, team: Any, make_rule: Any) -> None:
    make_rule("Zákrok", category="PLAYER_PERFORMANCE")
    make_rule("Asistence", category="PLAYER_PERFORMANCE")
    make_rule("Výhra", category="GAME_RESULT")
    names = [e.rule.name for e in resolve_effective_rules(team)]
    assert names == ["Výhra", "Asistence", "Zákrok"]


def test_team_without_club_is_structural_error(Team: Any) -> None:
    orphan = Team.objects.create(name="Bez klubu")
    with pytest.raises(StructuralError):
        resolve_effective_rules(orphan)


def test_missing_team_is_structural_error() -> None:
    with pytest.raises(StructuralError):
        resolve_effective_rules(None)
