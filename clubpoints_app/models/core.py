# file: clubpoints_app/models/core.py
"""Core domain models for the club scoring app.

Contains foundational entities:
- :class:`Club` owning teams, players and rules profiles.
- :class:`Team` belonging to a club with an optional default rules profile.
- :class:`PlayingPosition` integer position ids used by scoring rules.
- :class:`Player` with per-team jersey uniqueness.

Internal documentation is English; user-facing labels stay Czech.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models


# --- Club ------------------------------------------------------------------


class Club(models.Model):
    """A hockey club. Rules profiles and teams are owned by a club."""

    name = models.CharField("Název klubu", max_length=255, unique=True)
    city = models.CharField("Město", max_length=255, blank=True)

    class Meta:
        verbose_name = "Klub"
        verbose_name_plural = "Kluby"
        ordering = ("name",)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name

    def default_rules_profile(self):
        """Return the active club default profile, or ``None``."""
        return self.rules_profiles.filter(is_club_default=True, is_active=True).first()


# --- Team ------------------------------------------------------------------


class Team(models.Model):
    """A team of a club.

    Notes:
        ``default_rules_profile`` is stored as a plain id reference without a
        database constraint. Deleting a referenced profile is still blocked by
        the ORM (``PROTECT``), but a dangling id left behind by imports or
        manual SQL is tolerated by profile resolution, which falls through to
        the club default.
    """

    club = models.ForeignKey(
        Club,
        on_delete=models.PROTECT,
        null=True,
        related_name="teams",
        verbose_name="Klub",
    )
    name = models.CharField("Název týmu", max_length=255)
    default_rules_profile = models.ForeignKey(
        "clubpoints_app.RulesProfile",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        db_constraint=False,
        related_name="teams",
        verbose_name="Profil pravidel",
        help_text="Nevyplněno = použije se výchozí profil klubu.",
    )

    class Meta:
        verbose_name = "Tým"
        verbose_name_plural = "Týmy"
        ordering = ("name",)
        constraints = [
            models.UniqueConstraint(fields=["club", "name"], name="uniq_team_name_per_club"),
        ]

    def clean(self) -> None:
        """Ensure the selected rules profile belongs to the team's club.

        Raises:
            ValidationError: If the profile is owned by another club.
        """
        if not self.default_rules_profile_id or not self.club_id:
            return
        profile = self._meta.get_field("default_rules_profile").related_model.objects.filter(
            pk=self.default_rules_profile_id
        ).first()
        if profile is None:
            raise ValidationError({"default_rules_profile": "Profil pravidel neexistuje."})
        if profile.club_id != self.club_id:
            raise ValidationError(
                {"default_rules_profile": "Profil pravidel patří jinému klubu."}
            )

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name


# --- Positions -------------------------------------------------------------


class PlayingPosition(models.IntegerChoices):
    """Position ids referenced by rule conditions and target positions."""

    GOALKEEPER = 1, "Brankář"
    DEFENDER = 2, "Obránce"
    MIDFIELDER = 3, "Záložník"
    FORWARD = 4, "Útočník"


# --- Player ----------------------------------------------------------------


class Player(models.Model):
    """Player registered in a club and (optionally) assigned to a team.

    The jersey number is unique per team (enforced by a DB constraint).
    """

    club = models.ForeignKey(Club, on_delete=models.CASCADE, related_name="players", verbose_name="Klub")
    team = models.ForeignKey(
        Team, on_delete=models.SET_NULL, null=True, blank=True, related_name="players", verbose_name="Tým"
    )
    first_name = models.CharField("Jméno", max_length=255)
    last_name = models.CharField("Příjmení", max_length=255)
    nickname = models.CharField("Přezdívka", max_length=50, blank=True)
    jersey_number = models.PositiveIntegerField("Číslo dresu", null=True, blank=True)
    position = models.PositiveSmallIntegerField(
        "Pozice", choices=PlayingPosition.choices, default=PlayingPosition.MIDFIELDER
    )

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["team", "jersey_number"], name="uniq_jersey_per_team")
        ]
        verbose_name = "Hráč"
        verbose_name_plural = "Hráči"
        ordering = ("last_name", "first_name")

    def clean(self) -> None:
        """Validate that the team (when set) belongs to the player's club."""
        if self.team_id and self.club_id and self.team.club_id != self.club_id:
            raise ValidationError({"team": "Tým nepatří do klubu hráče."})

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.full_name
