# file: clubpoints_app/services/scoring.py
"""Scoring of completed games.

Provided utilities:
    - :func:`build_contexts` – evaluation contexts for every scored player of a game.
    - :func:`compute_game_points` – unsaved point rows for a game.
    - :func:`score_game` – replace the game's engine-computed rows and mark it scored.
    - :func:`preview_rule` – evaluate one rule against a game without persisting.

Every award is written twice, once as TEAM and once as CLUB points. Manual
rows (``is_manual=True``) are never touched by scoring.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction

from clubpoints_app.models import (
    Game,
    GamePlayerStats,
    GameStatus,
    PlayerGameRulePoints,
    PointType,
    Rule,
)

from .errors import ScoringNotAllowed
from .evaluator import PointAward, RuleSpec, evaluate_rule
from .leaderboard import invalidate_leaderboard_cache
from .profiles import EffectiveRuleSet, resolve_effective_rules
from .variables import EvaluationContext, VariableRegistry, load_registry

logger = logging.getLogger(__name__)

__all__ = [
    "game_facts",
    "team_facts",
    "player_facts",
    "scored_stats",
    "build_contexts",
    "compute_game_points",
    "ensure_scoreable",
    "score_game",
    "preview_rule",
]

NOTES_MAX_LENGTH = PlayerGameRulePoints._meta.get_field("notes").max_length


# --- Contexts --------------------------------------------------------------


def game_facts(game: Game) -> dict:
    """Built-in GAME variables seen from the game team's side."""
    goals_for = int(game.goals_for or 0)
    goals_against = int(game.goals_against or 0)
    if goals_for > goals_against:
        result = "win"
    elif goals_for < goals_against:
        result = "loss"
    else:
        result = "draw"
    return {
        "goalsFor": goals_for,
        "goalsAgainst": goals_against,
        "goalDifference": goals_for - goals_against,
        "result": result,
        "cleanSheet": goals_against == 0,
    }


def team_facts(stats_rows: list[GamePlayerStats], squad_size: int | None = None) -> dict:
    """Built-in TEAM variables aggregated over the scored players."""
    return {
        "teamGoals": sum(s.goals_scored for s in stats_rows),
        "teamAssists": sum(s.assists for s in stats_rows),
        "teamYellowCards": sum(s.yellow_cards for s in stats_rows),
        "teamRedCards": sum(s.red_cards for s in stats_rows),
        "squadSize": squad_size if squad_size is not None else len(stats_rows),
    }


def player_facts(stats: GamePlayerStats) -> dict:
    return {
        "goalsScored": stats.goals_scored,
        "assists": stats.assists,
        "greenCards": stats.green_cards,
        "yellowCards": stats.yellow_cards,
        "redCards": stats.red_cards,
        "saves": stats.saves,
        "tackles": stats.tackles,
        "played": bool(stats.played),
        "position": int(stats.effective_position),
    }


def scored_stats(game: Game) -> tuple[list[GamePlayerStats], int | None]:
    """Stats rows of the players to score and the squad size (``None`` without squad).

    When the game has a squad only squad members are scored.
    """
    rows = list(GamePlayerStats.objects.filter(game=game).select_related("player").order_by("player_id"))
    squad_ids = set(game.squad.values_list("player_id", flat=True))
    if not squad_ids:
        return rows, None
    kept = []
    for row in rows:
        if row.player_id in squad_ids:
            kept.append(row)
        else:
            logger.info("Game %s: player %s has stats but is not in the squad, skipped.", game.pk, row.player_id)
    return kept, len(squad_ids)


def build_contexts(game: Game) -> list[tuple[GamePlayerStats, EvaluationContext]]:
    """Evaluation context for every player of ``game`` that is scored."""
    rows, squad_size = scored_stats(game)
    shared_game = game_facts(game)
    shared_team = team_facts(rows, squad_size)
    game_custom = dict(game.custom_values or {})
    return [
        (
            row,
            EvaluationContext(
                player_id=row.player_id,
                position=int(row.effective_position),
                player=player_facts(row),
                game=shared_game,
                team=shared_team,
                player_custom=dict(row.custom_values or {}),
                game_custom=game_custom,
                team_custom=game_custom,
            ),
        )
        for row in rows
    ]


# --- Computation -----------------------------------------------------------


def _awards(
    game: Game, rule_set: EffectiveRuleSet, registry: VariableRegistry
) -> list[tuple[PointAward, int | None]]:
    awards = []
    for _stats, context in build_contexts(game):
        for entry in rule_set:
            award = evaluate_rule(entry.rule, context, registry, points=entry.effective_points)
            if award is not None:
                awards.append((award, entry.rule.id))
    return awards


def compute_game_points(game: Game, registry: VariableRegistry | None = None) -> list[PlayerGameRulePoints]:
    """Compute (but do not save) the point rows ``game`` earns.

    Args:
        game: Game to score; its team must belong to a club.
        registry: Custom variable snapshot; loaded when omitted.

    Returns:
        list[PlayerGameRulePoints]: Unsaved rows, a TEAM and a CLUB row per award.

    Raises:
        StructuralError: If the game has no team or the team has no club.
    """
    rule_set = resolve_effective_rules(game.team)
    if registry is None:
        registry = load_registry()

    profile = rule_set.profile
    rows: list[PlayerGameRulePoints] = []
    for award, rule_id in _awards(game, rule_set, registry):
        for point_type in (PointType.TEAM, PointType.CLUB):
            rows.append(
                PlayerGameRulePoints(
                    player_id=award.player_id,
                    game=game,
                    rule_id=rule_id,
                    profile=profile,
                    point_type=point_type,
                    points=award.points,
                    is_manual=False,
                    notes=award.reason[:NOTES_MAX_LENGTH],
                )
            )
    logger.debug(
        "Game %s: %d awards under %s (profile %s).",
        game.pk,
        len(rows) // 2,
        rule_set.tier.value,
        getattr(profile, "pk", None),
    )
    return rows


def ensure_scoreable(game: Game) -> None:
    """Raise :class:`ScoringNotAllowed` unless ``game`` is completed and has statistics."""
    if not game.is_scoreable:
        raise ScoringNotAllowed(f"Zápas {game} nelze obodovat ve stavu {game.get_status_display()}.")
    if not game.player_stats.exists():
        raise ScoringNotAllowed(f"Zápas {game} nemá žádné statistiky hráčů.")


def score_game(game: Game) -> list[PlayerGameRulePoints]:
    """Score ``game`` and persist the result.

    The game row is locked for the whole run, so concurrent scoring of the
    same game serializes. Previous engine-computed rows are replaced; manual
    rows are kept. Any failure rolls the run back entirely.

    Args:
        game: A completed (or already scored) game with statistics.

    Returns:
        list[PlayerGameRulePoints]: The persisted rows.

    Raises:
        ScoringNotAllowed: If the game is not completed or has no statistics.
        StructuralError: If the game has no team or the team has no club.
    """
    with transaction.atomic():
        locked = Game.objects.select_for_update().get(pk=game.pk)
        ensure_scoreable(locked)

        rows = compute_game_points(locked)
        deleted, _ = PlayerGameRulePoints.objects.filter(game=locked, is_manual=False).delete()
        created = PlayerGameRulePoints.objects.bulk_create(rows)

        locked.status = GameStatus.SCORED
        locked.save(update_fields=["status"])

    game.status = locked.status
    invalidate_leaderboard_cache()
    logger.info(
        "Scored game %s: %d rows written, %d previous rows replaced.", locked.pk, len(created), deleted
    )
    return created


def preview_rule(rule: Rule | RuleSpec, game: Game, points: Decimal | None = None) -> list[PointAward]:
    """Evaluate one rule against every scored player of ``game`` without persisting."""
    spec = rule if isinstance(rule, RuleSpec) else RuleSpec.from_model(rule)
    registry = load_registry()
    awards = []
    for _stats, context in build_contexts(game):
        award = evaluate_rule(spec, context, registry, points=points)
        if award is not None:
            awards.append(award)
    return awards
