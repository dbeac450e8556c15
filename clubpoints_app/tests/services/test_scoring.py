# file: clubpoints_app/tests/services/test_scoring.py
"""End-to-end tests for scoring games.

Coverage:
* Dual TEAM/CLUB tracking of every computed award.
* Idempotent re-scoring that keeps manual rows.
* State checks (scheduled games, games without statistics).
* Structural failures leave no rows behind.
* Squad filtering, custom variables, profile bookkeeping and rule preview.
"""

from __future__ import annotations

import datetime as _dt
from decimal import Decimal
from typing import Any

import pytest
from django.apps import apps
from django.db.models import Sum
from django.utils import timezone

from clubpoints_app.services.awards import record_manual_points
from clubpoints_app.services.errors import ScoringNotAllowed, StructuralError
from clubpoints_app.services.scoring import compute_game_points, game_facts, preview_rule, score_game

pytestmark = pytest.mark.django_db

GOAL = {"variable": "goalsScored", "operator": "GREATER_THAN", "value": 0}
WIN = {"variable": "result", "operator": "EQUAL", "value": "win", "scope": "GAME"}


@pytest.fixture
def standard_rules(make_rule: Any) -> dict[str, Any]:
    return {
        "goal": make_rule("Gól", points=3, conditions=[GOAL], is_multiplier=True),
        "win": make_rule("Výhra", points=2, conditions=[WIN], category="GAME_RESULT"),
        "keeper": make_rule(
            "Čisté konto",
            points=4,
            conditions=[{"variable": "cleanSheet", "operator": "EQUAL", "value": True, "scope": "GAME"}],
            target_scope="SPECIFIC_POSITIONS",
            target_positions=[1],
        ),
    }


def _rows(game: Any, **filters: Any):
    PlayerGameRulePoints = apps.get_model("clubpoints_app", "PlayerGameRulePoints")
    return PlayerGameRulePoints.objects.filter(game=game, **filters)


def _snapshot(game: Any) -> list[tuple]:
    return sorted(
        _rows(game, is_manual=False).values_list("player_id", "rule_id", "point_type", "points", "notes")
    )


def test_game_facts_from_score(game: Any) -> None:
    facts = game_facts(game)
    assert facts == {"goalsFor": 3, "goalsAgainst": 1, "goalDifference": 2, "result": "win", "cleanSheet": False}


def test_score_game_dual_tracking(game: Any, make_player: Any, add_stats: Any, standard_rules: Any) -> None:
    striker = make_player(position=4)
    keeper = make_player(position=1)
    add_stats(game, striker, goals_scored=2)
    add_stats(game, keeper)

    rows = score_game(game)

    assert len(rows) == 6  # striker: goal + win, keeper: win; each TEAM + CLUB
    team_rows = _rows(game, point_type="TEAM")
    club_rows = _rows(game, point_type="CLUB")
    assert team_rows.count() == club_rows.count() == 3
    assert team_rows.aggregate(s=Sum("points"))["s"] == club_rows.aggregate(s=Sum("points"))["s"] == Decimal("10")
    goal_row = team_rows.get(player=striker, rule=standard_rules["goal"])
    assert goal_row.points == Decimal("6")
    assert goal_row.profile is None
    game.refresh_from_db()
    assert game.status == "SCORED"


def test_rescore_is_idempotent_and_keeps_manual_rows(
    game: Any, make_player: Any, add_stats: Any, make_rule: Any, standard_rules: Any
) -> None:
    striker = make_player(position=4)
    add_stats(game, striker, goals_scored=1)
    mvp = make_rule("Hráč zápasu", points=5, category="MANUAL")
    record_manual_points(game, striker, mvp, 5, notes="Nejlepší hráč")

    score_game(game)
    first = _snapshot(game)
    score_game(game)

    assert _snapshot(game) == first
    manual = _rows(game, is_manual=True)
    assert manual.count() == 2
    assert set(manual.values_list("points", flat=True)) == {Decimal("5")}


def test_manual_rule_never_auto_awarded(game: Any, make_player: Any, add_stats: Any, make_rule: Any) -> None:
    make_rule("Hráč zápasu", points=5, category="MANUAL")
    add_stats(game, make_player())
    assert score_game(game) == []


def test_scheduled_game_cannot_be_scored(game: Any, make_player: Any, add_stats: Any) -> None:
    add_stats(game, make_player())
    game.status = "SCHEDULED"
    game.save()
    with pytest.raises(ScoringNotAllowed):
        score_game(game)


def test_game_without_stats_cannot_be_scored(game: Any) -> None:
    with pytest.raises(ScoringNotAllowed):
        score_game(game)


def test_structural_error_writes_nothing(
    Team: Any, Game: Any, Player: Any, club: Any, add_stats: Any, standard_rules: Any
) -> None:
    clubless = Team.objects.create(name="Bez klubu")
    orphan_game = Game.objects.create(
        team=clubless,
        starts_at=timezone.make_aware(_dt.datetime(2025, 10, 11, 18, 0)),
        status="COMPLETED",
        goals_for=2,
    )
    add_stats(orphan_game, Player.objects.create(club=club, first_name="A", last_name="B"), squad=False, goals_scored=2)

    with pytest.raises(StructuralError):
        score_game(orphan_game)
    assert not _rows(orphan_game).exists()
    orphan_game.refresh_from_db()
    assert orphan_game.status == "COMPLETED"


def test_stats_outside_squad_are_skipped(game: Any, make_player: Any, add_stats: Any, standard_rules: Any) -> None:
    in_squad = make_player()
    outsider = make_player()
    add_stats(game, in_squad)
    add_stats(game, outsider, squad=False, goals_scored=3)

    score_game(game)
    assert set(_rows(game).values_list("player_id", flat=True)) == {in_squad.pk}


def test_broken_rule_does_not_block_other_rules(game: Any, make_player: Any, add_stats: Any, make_rule: Any) -> None:
    make_rule("Rozbité", points=9, conditions=[{"variable": "deletedVariable", "operator": "EQUAL", "value": 1}])
    make_rule("Výhra", points=2, conditions=[WIN])
    add_stats(game, make_player())

    rows = score_game(game)
    assert {r.rule.name for r in rows} == {"Výhra"}


def test_custom_player_variable_in_condition(game: Any, make_player: Any, add_stats: Any, make_rule: Any) -> None:
    Variable = apps.get_model("clubpoints_app", "Variable")
    Variable.objects.create(key="mvpVotes", label="Hlasy", scope="PLAYER", data_type="number", default_value=0)
    make_rule(
        "Hlasy MVP",
        points=1,
        conditions=[{"variable": "mvpVotes", "operator": "GREATER_THAN", "value": 0}],
        is_multiplier=True,
    )
    voted = make_player()
    ignored = make_player()
    add_stats(game, voted, custom_values={"mvpVotes": 4})
    add_stats(game, ignored)

    rows = compute_game_points(game)
    assert [(r.player_id, r.points) for r in rows if r.point_type == "TEAM"] == [(voted.pk, Decimal("4"))]


def test_rows_record_profile_and_custom_points(
    club: Any, game: Any, make_player: Any, add_stats: Any, make_profile: Any, standard_rules: Any
) -> None:
    profile = make_profile(club, "Klub", entries=[(standard_rules["win"], 7)], is_club_default=True)
    add_stats(game, make_player())

    rows = score_game(game)
    assert {(r.rule_id, r.points, r.profile_id) for r in rows} == {
        (standard_rules["win"].pk, Decimal("7"), profile.pk)
    }


def test_position_override_in_game(game: Any, make_player: Any, add_stats: Any, Game: Any, standard_rules: Any) -> None:
    Game.objects.filter(pk=game.pk).update(goals_against=0)
    game.refresh_from_db()
    defender = make_player(position=2)
    add_stats(game, defender, position=1)

    rows = score_game(game)
    assert standard_rules["keeper"].pk in {r.rule_id for r in rows}


def test_preview_rule_does_not_persist(game: Any, make_player: Any, add_stats: Any, standard_rules: Any) -> None:
    striker = make_player()
    add_stats(game, striker, goals_scored=2)
    add_stats(game, make_player())

    awards = preview_rule(standard_rules["goal"], game)
    assert [(a.player_id, a.points) for a in awards] == [(striker.pk, Decimal("6"))]
    assert "goalsScored > 0" in awards[0].reason
    assert not _rows(game).exists()
    game.refresh_from_db()
    assert game.status == "COMPLETED"
