# file: clubpoints_app/models/games.py
"""Game domain models: fixtures, squads, and per-game player statistics.

Contains:
* :class:`GameStatus` – lifecycle of a game with respect to scoring.
* :class:`Game` – a team's fixture with the final score.
* :class:`GamePlayer` – squad membership for a given game.
* :class:`GamePlayerStats` – one row of a player's statistics in one game.

Internal documentation is English; user-facing labels remain Czech.
"""

from __future__ import annotations

from typing import Any

from django.core.exceptions import ValidationError
from django.db import models

from .core import PlayingPosition


# --- Status enum -----------------------------------------------------------


class GameStatus(models.TextChoices):
    """Scoring lifecycle: ``SCHEDULED -> COMPLETED -> SCORED``."""

    SCHEDULED = "SCHEDULED", "Naplánováno"
    COMPLETED = "COMPLETED", "Odehráno"
    SCORED = "SCORED", "Obodováno"


# --- Game ------------------------------------------------------------------


class Game(models.Model):
    """A fixture of one club team against an opponent.

    Notes:
        * ``goals_for``/``goals_against`` are seen from ``team``'s side.
        * ``custom_values`` holds values of admin-defined GAME variables,
          keyed by variable key.
        * ``team`` is nullable so historic games survive a team removal; such
          games cannot be scored.
    """

    team = models.ForeignKey(
        "clubpoints_app.Team",
        on_delete=models.SET_NULL,
        null=True,
        related_name="games",
        verbose_name="Tým",
    )
    opponent = models.CharField("Soupeř", max_length=255, blank=True)
    starts_at = models.DateTimeField("Datum a čas zápasu")
    status = models.CharField(
        "Stav", max_length=12, choices=GameStatus.choices, default=GameStatus.SCHEDULED
    )
    goals_for = models.PositiveIntegerField("Vstřelené góly", default=0)
    goals_against = models.PositiveIntegerField("Obdržené góly", default=0)
    custom_values = models.JSONField("Vlastní proměnné", default=dict, blank=True)

    class Meta:
        verbose_name = "Zápas"
        verbose_name_plural = "Zápasy"
        ordering = ("-starts_at",)

    def clean(self) -> None:
        """Validate the custom variable payload shape."""
        if not isinstance(self.custom_values, dict):
            raise ValidationError({"custom_values": "Vlastní proměnné musí být objekt (klíč: hodnota)."})

    @property
    def is_scoreable(self) -> bool:
        """True when the game has been played (scored games may be re-scored)."""
        return self.status in (GameStatus.COMPLETED, GameStatus.SCORED)

    def __str__(self) -> str:  # pragma: no cover - trivial
        """Readable label: ``Team vs Opponent (YYYY-MM-DD)``."""
        return f"{self.team or '—'} vs {self.opponent or '?'} ({self.starts_at:%Y-%m-%d})"


# --- Squad -----------------------------------------------------------------


class GamePlayer(models.Model):
    """Squad membership binding a player to a particular game."""

    game = models.ForeignKey(Game, on_delete=models.CASCADE, related_name="squad", verbose_name="Zápas")
    player = models.ForeignKey(
        "clubpoints_app.Player",
        on_delete=models.CASCADE,
        related_name="game_entries",
        verbose_name="Hráč",
    )

    class Meta:
        verbose_name = "Hráč v sestavě"
        verbose_name_plural = "Sestava"
        constraints = [
            models.UniqueConstraint(fields=("game", "player"), name="uniq_squad_game_player"),
        ]

    def clean(self) -> None:
        """Squad players must come from the game team's club.

        Raises:
            ValidationError: If the player belongs to another club.
        """
        if not (self.game_id and self.player_id):
            return
        team = self.game.team
        if team is not None and team.club_id and self.player.club_id != team.club_id:
            raise ValidationError("Hráč nepatří do klubu týmu tohoto zápasu.")

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.game} – {self.player}"


# --- Statistics ------------------------------------------------------------


class GamePlayerStats(models.Model):
    """Statistics for a single player in a single game.

    Notes:
        - Uniqueness is enforced per (player, game).
        - ``position`` optionally overrides the player's registered position
          for this game (e.g. a defender playing in goal).
        - ``custom_values`` holds values of admin-defined PLAYER variables.
    """

    game = models.ForeignKey(Game, on_delete=models.CASCADE, related_name="player_stats", verbose_name="Zápas")
    player = models.ForeignKey(
        "clubpoints_app.Player",
        on_delete=models.CASCADE,
        related_name="game_stats",
        verbose_name="Hráč",
    )

    goals_scored = models.PositiveIntegerField("Góly", default=0)
    assists = models.PositiveIntegerField("Asistence", default=0)
    green_cards = models.PositiveIntegerField("Zelené karty", default=0)
    yellow_cards = models.PositiveIntegerField("Žluté karty", default=0)
    red_cards = models.PositiveIntegerField("Červené karty", default=0)
    saves = models.PositiveIntegerField("Zákroky", default=0)
    tackles = models.PositiveIntegerField("Odebrané míče", default=0)
    played = models.BooleanField("Nastoupil", default=True)
    position = models.PositiveSmallIntegerField(
        "Pozice v zápase",
        null=True,
        blank=True,
        choices=PlayingPosition.choices,
    )
    custom_values = models.JSONField("Vlastní proměnné", default=dict, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["player", "game"], name="uniq_stats_player_game")
        ]
        verbose_name = "Statistika hráče"
        verbose_name_plural = "Statistiky hráčů"

    def save(self, *args: Any, **kwargs: Any) -> None:
        """Persist the row; a missing ``custom_values`` is stored as ``{}``."""
        if self.custom_values is None:
            self.custom_values = {}
        super().save(*args, **kwargs)

    @property
    def effective_position(self) -> int:
        """Per-game position override, else the player's registered position."""
        return self.position if self.position is not None else self.player.position

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.player} - {self.game}"
