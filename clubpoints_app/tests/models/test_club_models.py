# file: clubpoints_app/tests/models/test_club_models.py
"""Validation and constraint tests for clubs, teams, players and games.

Coverage:
* ``Team.clean`` rejects a rules profile of another club.
* ``Player`` jersey uniqueness per team and team/club consistency.
* ``GamePlayer`` squad players must belong to the game team's club.
* ``Game`` custom values shape and scoreable states.
* ``GamePlayerStats`` per-game position override.
"""

from __future__ import annotations

from typing import Any

import pytest
from django.apps import apps
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

pytestmark = pytest.mark.django_db


def test_team_profile_must_belong_to_team_club(Club: Any, Team: Any, club: Any, make_profile: Any) -> None:
    """A team cannot use a rules profile owned by another club."""
    other = Club.objects.create(name="HC Jinde")
    foreign = make_profile(other, "Cizí profil")
    team = Team(club=club, name="Dorost", default_rules_profile=foreign)
    with pytest.raises(ValidationError) as exc:
        team.clean()
    assert "default_rules_profile" in exc.value.message_dict


def test_team_profile_of_same_club_is_valid(Team: Any, club: Any, make_profile: Any) -> None:
    profile = make_profile(club, "Vlastní")
    Team(club=club, name="Dorost", default_rules_profile=profile).clean()


def test_jersey_unique_per_team(make_player: Any) -> None:
    make_player(jersey_number=10)
    with pytest.raises(IntegrityError):
        with transaction.atomic():
            make_player(jersey_number=10)


def test_player_team_must_be_of_player_club(Club: Any, Team: Any, Player: Any, club: Any) -> None:
    other_club = Club.objects.create(name="HC Jinde")
    other_team = Team.objects.create(club=other_club, name="Cizí tým")
    player = Player(club=club, team=other_team, first_name="Jan", last_name="Novák")
    with pytest.raises(ValidationError):
        player.clean()


def test_squad_player_must_be_from_team_club(Club: Any, Player: Any, game: Any) -> None:
    GamePlayer = apps.get_model("clubpoints_app", "GamePlayer")
    stranger = Player.objects.create(club=Club.objects.create(name="HC Jinde"), first_name="Petr", last_name="Cizí")
    with pytest.raises(ValidationError):
        GamePlayer(game=game, player=stranger).clean()


def test_game_custom_values_must_be_mapping(game: Any) -> None:
    game.custom_values = ["not", "a", "dict"]
    with pytest.raises(ValidationError):
        game.clean()


@pytest.mark.parametrize(
    "status, expected",
    [("SCHEDULED", False), ("COMPLETED", True), ("SCORED", True)],
)
def test_game_is_scoreable(game: Any, status: str, expected: bool) -> None:
    game.status = status
    assert game.is_scoreable is expected


def test_stats_effective_position_prefers_override(make_player: Any, game: Any, add_stats: Any) -> None:
    defender = make_player(position=2)
    stats = add_stats(game, defender)
    assert stats.effective_position == 2
    stats.position = 1
    assert stats.effective_position == 1


def test_stats_none_custom_values_saved_as_empty(make_player: Any, game: Any, add_stats: Any) -> None:
    stats = add_stats(game, make_player())
    stats.custom_values = None
    stats.save()
    stats.refresh_from_db()
    assert stats.custom_values == {}


def test_club_default_rules_profile_ignores_inactive(club: Any, make_profile: Any) -> None:
    make_profile(club, "Neaktivní", is_club_default=True, is_active=False)
    assert club.default_rules_profile() is None
