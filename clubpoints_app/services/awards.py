# file: clubpoints_app/services/awards.py
"""Manually awarded points.

Manual rows live next to engine-computed rows in the ledger but carry
``is_manual=True``; scoring never replaces or deletes them. Like computed
awards they are always written as a TEAM and CLUB pair.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction

from clubpoints_app.models import Game, Player, PlayerGameRulePoints, PointType, Rule

from .errors import ConfigurationError, StructuralError
from .leaderboard import invalidate_leaderboard_cache

logger = logging.getLogger(__name__)

__all__ = ["record_manual_points", "clear_manual_points"]


def record_manual_points(
    game: Game, player: Player, rule: Rule, points: Decimal | int | str, notes: str = ""
) -> list[PlayerGameRulePoints]:
    """Award (or re-award) manual points to a player for a game.

    An existing manual award for the same player, game and rule is
    overwritten.

    Returns:
        list[PlayerGameRulePoints]: The TEAM and CLUB rows.

    Raises:
        StructuralError: If the game has no team or the team has no club.
        ConfigurationError: If the player belongs to another club.
    """
    team = game.team
    if team is None or not team.club_id:
        raise StructuralError(f"Zápas {game} nemá tým s klubem.")
    if player.club_id != team.club_id:
        raise ConfigurationError(f"Hráč {player} nepatří do klubu týmu {team}.")

    amount = Decimal(str(points))
    rows = []
    with transaction.atomic():
        for point_type in (PointType.TEAM, PointType.CLUB):
            row, _created = PlayerGameRulePoints.objects.update_or_create(
                player=player,
                game=game,
                rule=rule,
                point_type=point_type,
                is_manual=True,
                defaults={"points": amount, "notes": notes or rule.name},
            )
            rows.append(row)

    invalidate_leaderboard_cache()
    logger.info("Manual award: %s points to player %s in game %s (%s).", amount, player.pk, game.pk, rule.name)
    return rows


def clear_manual_points(game: Game, player: Player | None = None) -> int:
    """Delete manual awards of ``game`` (optionally for one player); returns rows deleted."""
    qs = PlayerGameRulePoints.objects.filter(game=game, is_manual=True)
    if player is not None:
        qs = qs.filter(player=player)
    deleted, _ = qs.delete()
    if deleted:
        invalidate_leaderboard_cache()
    return deleted
