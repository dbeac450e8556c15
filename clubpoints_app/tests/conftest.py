# file: clubpoints_app/tests/conftest.py
"""Common pytest fixtures for clubpoints_app tests.

Provides model classes (resolved dynamically via ``apps.get_model``) and
small data builders shared by the model, service, admin and command tests.

Fixtures:
    - ``Club``, ``Team``, ``Player``, ``Game``, ``Rule``, ``RulesProfile``,
      ``PlayerGameRulePoints``: Model classes.
    - ``club`` / ``team``: A club and its team without any rules profile.
    - ``make_player``: Factory for players of ``club`` on ``team``.
    - ``game``: A completed 3:1 game of ``team``.
    - ``add_stats``: Factory for per-game statistics (adds squad membership).
    - ``make_rule``: Factory for rules with conditions given as dicts.
    - ``make_profile``: Factory for rules profiles with rule entries.
"""

from __future__ import annotations

import datetime as _dt
from decimal import Decimal
from typing import Any, Callable

import pytest
from django.apps import apps
from django.core.cache import cache
from django.utils import timezone

APP: str = "clubpoints_app"


@pytest.fixture(autouse=True)
def _clear_cache() -> None:
    """Start every test with an empty cache (leaderboard versions)."""
    cache.clear()


@pytest.fixture
def Club() -> Any:
    return apps.get_model(APP, "Club")


@pytest.fixture
def Team() -> Any:
    return apps.get_model(APP, "Team")


@pytest.fixture
def Player() -> Any:
    return apps.get_model(APP, "Player")


@pytest.fixture
def Game() -> Any:
    return apps.get_model(APP, "Game")


@pytest.fixture
def Rule() -> Any:
    return apps.get_model(APP, "Rule")


@pytest.fixture
def RulesProfile() -> Any:
    return apps.get_model(APP, "RulesProfile")


@pytest.fixture
def PlayerGameRulePoints() -> Any:
    return apps.get_model(APP, "PlayerGameRulePoints")


@pytest.fixture
def club(Club: Any) -> Any:
    """Create a minimal club."""
    return Club.objects.create(name="HC Test", city="Brno")


@pytest.fixture
def team(Team: Any, club: Any) -> Any:
    """Create a team of ``club`` without its own rules profile."""
    return Team.objects.create(club=club, name="Muži A")


@pytest.fixture
def make_player(Player: Any, club: Any, team: Any) -> Callable[..., Any]:
    """Return a factory creating players of ``club``/``team``."""
    counter = {"n": 0}

    def _make(position: int = 3, **kwargs: Any) -> Any:
        counter["n"] += 1
        data = {
            "club": club,
            "team": team,
            "first_name": f"Hráč{counter['n']}",
            "last_name": "Testovací",
            "jersey_number": counter["n"],
            "position": position,
        }
        data.update(kwargs)
        return Player.objects.create(**data)

    return _make


@pytest.fixture
def game(Game: Any, team: Any) -> Any:
    """Completed game of ``team`` won 3:1."""
    return Game.objects.create(
        team=team,
        opponent="HC Soupeř",
        starts_at=timezone.make_aware(_dt.datetime(2025, 10, 4, 18, 0)),
        status="COMPLETED",
        goals_for=3,
        goals_against=1,
    )


@pytest.fixture
def add_stats() -> Callable[..., Any]:
    """Return a factory creating ``GamePlayerStats`` (and squad membership)."""
    GamePlayerStats = apps.get_model(APP, "GamePlayerStats")
    GamePlayer = apps.get_model(APP, "GamePlayer")

    def _add(game: Any, player: Any, squad: bool = True, **stats: Any) -> Any:
        if squad:
            GamePlayer.objects.get_or_create(game=game, player=player)
        return GamePlayerStats.objects.create(game=game, player=player, **stats)

    return _add


@pytest.fixture
def make_rule(Rule: Any) -> Callable[..., Any]:
    """Return a factory creating a rule with conditions.

    Conditions are dicts of ``RuleCondition`` fields; ``scope`` defaults to
    ``PLAYER``. Conditions are saved without ``full_clean`` so tests can
    store deliberately broken configuration.
    """
    RuleCondition = apps.get_model(APP, "RuleCondition")

    def _make(name: str, points: Any = 1, conditions: list[dict] | None = None, **kwargs: Any) -> Any:
        rule = Rule.objects.create(name=name, points_awarded=Decimal(str(points)), **kwargs)
        for order, cond in enumerate(conditions or []):
            data = {"scope": "PLAYER", "order": order}
            data.update(cond)
            RuleCondition.objects.create(rule=rule, **data)
        return rule

    return _make


@pytest.fixture
def make_profile(RulesProfile: Any) -> Callable[..., Any]:
    """Return a factory creating a profile with ``(rule, custom_points)`` entries."""
    RulesProfileRule = apps.get_model(APP, "RulesProfileRule")

    def _make(club: Any, name: str, entries: list[tuple[Any, Any]] = (), **kwargs: Any) -> Any:
        profile = RulesProfile.objects.create(club=club, name=name, **kwargs)
        for order, (rule, custom) in enumerate(entries):
            RulesProfileRule.objects.create(
                profile=profile,
                rule=rule,
                order=order,
                custom_points=None if custom is None else Decimal(str(custom)),
            )
        return profile

    return _make
