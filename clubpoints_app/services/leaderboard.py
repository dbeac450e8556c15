# file: clubpoints_app/services/leaderboard.py
"""Leaderboards aggregated from the rule point ledger.

Totals are ``SUM(points)`` per player over one :class:`PointType`. Results
are cached briefly; scoring and manual awards bump a version key so stale
boards are never served after a write.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.core.cache import cache
from django.db.models import Count, Sum

from clubpoints_app.models import Club, PlayerGameRulePoints, PointType, Team

__all__ = ["LeaderboardEntry", "leaderboard", "compute_leaderboard", "invalidate_leaderboard_cache"]

CACHE_TTL = 5
_VERSION_KEY = "clubpoints:leaderboard:version"
_TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    player_id: int
    player_name: str
    total_points: Decimal
    games_played: int
    points_per_game: Decimal


def _version() -> int:
    return cache.get_or_set(_VERSION_KEY, 1, None)


def invalidate_leaderboard_cache() -> None:
    """Make every cached leaderboard stale."""
    cache.set(_VERSION_KEY, _version() + 1, None)


def _cache_key(point_type: str, club_id: int | None, team_id: int | None) -> str:
    return f"clubpoints:leaderboard:v{_version()}:{point_type}:{club_id or 'all'}:{team_id or 'all'}"


def compute_leaderboard(
    point_type: str, *, club: Club | None = None, team: Team | None = None
) -> list[LeaderboardEntry]:
    """Uncached leaderboard; see :func:`leaderboard`."""
    if point_type not in PointType.values:
        raise ValueError(f"Unknown point type '{point_type}'.")

    qs = PlayerGameRulePoints.objects.filter(point_type=point_type)
    if club is not None:
        qs = qs.filter(player__club=club)
    if team is not None:
        qs = qs.filter(game__team=team)

    rows = (
        qs.values("player_id", "player__first_name", "player__last_name")
        .annotate(total=Sum("points"), games=Count("game", distinct=True))
        .order_by("-total", "player__last_name", "player__first_name")
    )

    entries: list[LeaderboardEntry] = []
    previous_total = None
    rank = 0
    for position, row in enumerate(rows, start=1):
        total = Decimal(row["total"] or 0)
        if total != previous_total:
            rank = position
            previous_total = total
        games = int(row["games"] or 0)
        per_game = (total / games).quantize(_TWO_PLACES) if games else Decimal("0.00")
        name = f"{row['player__first_name']} {row['player__last_name']}".strip()
        entries.append(
            LeaderboardEntry(
                rank=rank,
                player_id=row["player_id"],
                player_name=name,
                total_points=total,
                games_played=games,
                points_per_game=per_game,
            )
        )
    return entries


def leaderboard(point_type: str, *, club: Club | None = None, team: Team | None = None) -> list[LeaderboardEntry]:
    """Ranked players by total points of ``point_type``.

    Ties share a rank (1, 1, 3). ``club`` limits to the club's players,
    ``team`` to points earned in the team's games.

    Raises:
        ValueError: If ``point_type`` is not a :class:`PointType`.
    """
    if getattr(settings, "DEBUG", False):
        return compute_leaderboard(point_type, club=club, team=team)

    ttl = getattr(settings, "CLUBPOINTS_LEADERBOARD_CACHE_TTL", CACHE_TTL)
    key = _cache_key(point_type, getattr(club, "pk", None), getattr(team, "pk", None))
    return cache.get_or_set(key, lambda: compute_leaderboard(point_type, club=club, team=team), ttl)
