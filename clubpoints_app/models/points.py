# file: clubpoints_app/models/points.py
"""Per-game rule point ledger.

Defines :class:`PlayerGameRulePoints`, one row of points awarded to a player
in a game by a rule. Every award is tracked twice, once per
:class:`PointType`, so team and club leaderboards can be aggregated
independently.

Internal documentation is English; user-facing labels remain Czech.
"""

from __future__ import annotations

from django.db import models


class PointType(models.TextChoices):
    """Ledger the row belongs to."""

    TEAM = "TEAM", "Týmové body"
    CLUB = "CLUB", "Klubové body"


class PlayerGameRulePoints(models.Model):
    """Points awarded to a player in a game by one rule.

    Notes:
        - Engine-computed rows (``is_manual=False``) are replaced wholesale by
          each scoring run of the game; manual rows are never touched by it.
        - ``profile`` records the rules profile the award was computed under
          (empty for the global fallback).
        - ``points`` may be negative (penalty rules).
    """

    player = models.ForeignKey(
        "clubpoints_app.Player", on_delete=models.CASCADE, related_name="rule_points", verbose_name="Hráč"
    )
    game = models.ForeignKey(
        "clubpoints_app.Game", on_delete=models.CASCADE, related_name="rule_points", verbose_name="Zápas"
    )
    rule = models.ForeignKey(
        "clubpoints_app.Rule", on_delete=models.CASCADE, related_name="awarded_points", verbose_name="Pravidlo"
    )
    profile = models.ForeignKey(
        "clubpoints_app.RulesProfile",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="awarded_points",
        verbose_name="Profil",
    )
    point_type = models.CharField("Typ bodů", max_length=4, choices=PointType.choices)
    points = models.DecimalField("Body", max_digits=10, decimal_places=2)
    is_manual = models.BooleanField("Ručně zadáno", default=False)
    notes = models.CharField("Poznámka", max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Body hráče za pravidlo"
        verbose_name_plural = "Body hráčů za pravidla"
        ordering = ("game", "player", "rule", "point_type")
        constraints = [
            models.UniqueConstraint(
                fields=["player", "game", "rule", "point_type", "is_manual"],
                name="uniq_rule_points_per_ledger",
            ),
        ]
        indexes = [models.Index(fields=("point_type", "player"))]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.player} – {self.rule}: {self.points} ({self.point_type})"
