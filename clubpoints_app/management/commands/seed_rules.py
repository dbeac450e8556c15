# file: clubpoints_app/management/commands/seed_rules.py
"""Seed the standard scoring rules.

Idempotent: rules are matched by name and existing rules (including their
conditions and any admin edits) are left untouched. With ``--club-id`` a
default rules profile containing every seeded rule is created for the club
unless the club already has a profile of that name.
"""

from __future__ import annotations

import argparse
from decimal import Decimal
from typing import Any

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from clubpoints_app.models import (
    Club,
    ConditionOperator as Op,
    PlayingPosition,
    Rule,
    RuleCategory,
    RuleCondition,
    RulesProfile,
    RulesProfileRule,
    TargetScope,
    VariableScope as Scope,
)

PROFILE_NAME = "Standard klubu"

# name, category, points, multiplier, positions, conditions (variable, operator, value, scope)
STANDARD_RULES: list[tuple[str, str, str, bool, list[int], list[tuple[str, str, Any, str]]]] = [
    ("Vstřelený gól", RuleCategory.PLAYER_PERFORMANCE, "3", True, [],
     [("goalsScored", Op.GREATER_THAN, 0, Scope.PLAYER)]),
    ("Asistence", RuleCategory.PLAYER_PERFORMANCE, "2", True, [],
     [("assists", Op.GREATER_THAN, 0, Scope.PLAYER)]),
    ("Gól obránce", RuleCategory.PLAYER_PERFORMANCE, "2", False, [PlayingPosition.DEFENDER],
     [("goalsScored", Op.GREATER_THAN, 0, Scope.PLAYER)]),
    ("Zákrok brankáře", RuleCategory.PLAYER_PERFORMANCE, "1", True, [PlayingPosition.GOALKEEPER],
     [("saves", Op.GREATER_THAN, 0, Scope.PLAYER)]),
    ("Čisté konto", RuleCategory.GAME_RESULT, "4", False, [PlayingPosition.GOALKEEPER, PlayingPosition.DEFENDER],
     [("played", Op.EQUAL, True, Scope.PLAYER), ("cleanSheet", Op.EQUAL, True, Scope.GAME)]),
    ("Bonus za výhru", RuleCategory.GAME_RESULT, "2", False, [],
     [("played", Op.EQUAL, True, Scope.PLAYER), ("result", Op.EQUAL, "win", Scope.GAME)]),
    ("Žlutá karta", RuleCategory.PLAYER_PERFORMANCE, "-1", True, [],
     [("yellowCards", Op.GREATER_THAN, 0, Scope.PLAYER)]),
    ("Červená karta", RuleCategory.PLAYER_PERFORMANCE, "-3", True, [],
     [("redCards", Op.GREATER_THAN, 0, Scope.PLAYER)]),
    ("Hráč zápasu", RuleCategory.MANUAL, "5", False, [], []),
]


class Command(BaseCommand):
    """Create the standard rule set (and optionally a club default profile)."""

    help = "Založí standardní sadu pravidel (opakované spuštění nic nezdvojí)."

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:  # type: ignore[override]
        parser.add_argument("--club-id", type=int, help="Vytvořit výchozí profil pravidel pro tento klub.")

    def _seed_rule(self, name, category, points, multiplier, positions, conditions) -> tuple[Rule, bool]:
        rule, created = Rule.objects.get_or_create(
            name=name,
            defaults={
                "category": category,
                "points_awarded": Decimal(points),
                "is_multiplier": multiplier,
                "target_scope": TargetScope.SPECIFIC_POSITIONS if positions else TargetScope.ALL_PLAYERS,
                "target_positions": [int(p) for p in positions],
            },
        )
        if created:
            for order, (variable, operator, value, scope) in enumerate(conditions):
                condition = RuleCondition(
                    rule=rule, order=order, variable=variable, operator=operator, value=value, scope=scope
                )
                condition.full_clean()
                condition.save()
        return rule, created

    def handle(self, *args: Any, **options: Any) -> None:  # type: ignore[override]
        club = None
        if options.get("club_id"):
            try:
                club = Club.objects.get(pk=options["club_id"])
            except Club.DoesNotExist as exc:
                raise CommandError(f"Klub id={options['club_id']} neexistuje.") from exc

        created_count = 0
        with transaction.atomic():
            rules = []
            for spec in STANDARD_RULES:
                rule, created = self._seed_rule(*spec)
                rules.append(rule)
                created_count += int(created)

            if club is not None:
                profile, profile_created = RulesProfile.objects.get_or_create(
                    club=club, name=PROFILE_NAME, defaults={"is_club_default": True}
                )
                if profile_created:
                    RulesProfileRule.objects.bulk_create(
                        [RulesProfileRule(profile=profile, rule=r, order=i) for i, r in enumerate(rules)]
                    )
                    self.stdout.write(f"📋 Vytvořen výchozí profil '{PROFILE_NAME}' pro klub {club}.")

        self.stdout.write(
            self.style.SUCCESS(f"✅ Pravidla připravena (nových: {created_count}, celkem: {len(STANDARD_RULES)}).")
        )
