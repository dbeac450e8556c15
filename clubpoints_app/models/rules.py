# file: clubpoints_app/models/rules.py
"""Scoring rule models: variables, rules, conditions and club rules profiles.

Contains:
* :class:`Variable` – admin-defined custom variable usable in conditions.
* :class:`Rule` – global, named set of AND-combined conditions with a point award.
* :class:`RuleCondition` – one comparison of a variable against a literal or
  another variable.
* :class:`RulesProfile` – club-owned bundle of rule overrides.
* :class:`RulesProfileRule` – membership of a rule in a profile with optional
  custom points and an enable flag.

Literal condition values are validated against the variable's declared data
type when a condition is cleaned, so evaluation never has to guess.

Internal documentation is English; user-facing labels remain Czech.
"""

from __future__ import annotations

from typing import Any

from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models import Q

from .core import PlayingPosition


# --- Enums -----------------------------------------------------------------


class VariableScope(models.TextChoices):
    """Evaluation context a variable is resolved against."""

    PLAYER = "PLAYER", "Hráč"
    GAME = "GAME", "Zápas"
    TEAM = "TEAM", "Tým"


class VariableDataType(models.TextChoices):
    """Declared data type of a variable value."""

    NUMBER = "number", "Číslo"
    BOOLEAN = "boolean", "Ano/Ne"
    STRING = "string", "Text"


class ConditionOperator(models.TextChoices):
    """Comparison operators available in rule conditions."""

    EQUAL = "EQUAL", "="
    NOT_EQUAL = "NOT_EQUAL", "≠"
    GREATER_THAN = "GREATER_THAN", ">"
    GREATER_THAN_OR_EQUAL = "GREATER_THAN_OR_EQUAL", "≥"
    LESS_THAN = "LESS_THAN", "<"
    LESS_THAN_OR_EQUAL = "LESS_THAN_OR_EQUAL", "≤"


class RuleCategory(models.TextChoices):
    """Rule grouping; ``MANUAL`` rules are only ever awarded by hand."""

    GAME_RESULT = "GAME_RESULT", "Výsledek zápasu"
    PLAYER_PERFORMANCE = "PLAYER_PERFORMANCE", "Výkon hráče"
    MANUAL = "MANUAL", "Ruční"


class TargetScope(models.TextChoices):
    """Which players a rule may award points to."""

    ALL_PLAYERS = "ALL_PLAYERS", "Všichni hráči"
    SPECIFIC_POSITIONS = "SPECIFIC_POSITIONS", "Vybrané pozice"


# --- Variable --------------------------------------------------------------


class Variable(models.Model):
    """Admin-defined variable referenced by rule conditions.

    Built-in variables (goals, assists, cards, position, score …) are not
    stored here; see :mod:`clubpoints_app.services.variables`. A custom key must
    not collide with a built-in key and is unique among active variables.
    """

    key = models.CharField("Klíč", max_length=64)
    label = models.CharField("Název", max_length=120)
    description = models.TextField("Popis", blank=True)
    scope = models.CharField("Rozsah", max_length=8, choices=VariableScope.choices)
    data_type = models.CharField(
        "Datový typ", max_length=8, choices=VariableDataType.choices, default=VariableDataType.NUMBER
    )
    default_value = models.JSONField("Výchozí hodnota", default=0, blank=True)
    is_active = models.BooleanField("Aktivní", default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Proměnná"
        verbose_name_plural = "Proměnné"
        ordering = ("scope", "key")
        constraints = [
            models.UniqueConstraint(
                fields=["key"], condition=Q(is_active=True), name="uniq_active_variable_key"
            ),
        ]

    def clean(self) -> None:
        """Reject built-in key collisions and mistyped default values.

        Raises:
            ValidationError: If the key shadows a built-in variable or the
            default value does not match ``data_type``.
        """
        from clubpoints_app.services.values import coerce
        from clubpoints_app.services.variables import BUILTIN_VARIABLES

        if self.key in BUILTIN_VARIABLES:
            raise ValidationError({"key": "Klíč je vyhrazen pro vestavěnou proměnnou."})
        try:
            coerce(self.default_value, self.data_type)
        except (TypeError, ValueError):
            raise ValidationError({"default_value": "Výchozí hodnota neodpovídá datovému typu."})

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.label} ({self.key})"


# --- Rule ------------------------------------------------------------------


class Rule(models.Model):
    """Global scoring rule.

    A rule fires for a player when *all* of its conditions hold. The award is
    ``points_awarded``, or for multiplier rules ``points_awarded`` times the
    player's value of the rule's magnitude variable.

    Notes:
        * ``target_positions`` holds :class:`PlayingPosition` ids and is only
          consulted for ``SPECIFIC_POSITIONS``.
        * Deletion is blocked while any profile references the rule.
    """

    name = models.CharField("Název", max_length=120, unique=True)
    description = models.TextField("Popis", blank=True)
    category = models.CharField(
        "Kategorie", max_length=20, choices=RuleCategory.choices, default=RuleCategory.PLAYER_PERFORMANCE
    )
    points_awarded = models.DecimalField("Body", max_digits=8, decimal_places=2)
    is_multiplier = models.BooleanField(
        "Násobit hodnotou",
        default=False,
        help_text="Body se vynásobí hodnotou proměnné z podmínky „> 0“.",
    )
    target_scope = models.CharField(
        "Cíl", max_length=20, choices=TargetScope.choices, default=TargetScope.ALL_PLAYERS
    )
    target_positions = models.JSONField("Pozice", default=list, blank=True)
    is_active = models.BooleanField("Aktivní", default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Pravidlo"
        verbose_name_plural = "Pravidla"
        ordering = ("category", "name")

    def clean(self) -> None:
        """Validate targeting configuration.

        Raises:
            ValidationError: If positions are missing for ``SPECIFIC_POSITIONS``
            or contain unknown position ids.
        """
        if self.name:
            self.name = self.name.strip()
        positions = self.target_positions or []
        if not isinstance(positions, list):
            raise ValidationError({"target_positions": "Pozice musí být seznam."})
        valid = set(PlayingPosition.values)
        if any(p not in valid for p in positions):
            raise ValidationError({"target_positions": "Neznámá pozice."})
        if self.target_scope == TargetScope.SPECIFIC_POSITIONS and not positions:
            raise ValidationError({"target_positions": "Vyberte alespoň jednu pozici."})

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name


class RuleCondition(models.Model):
    """One comparison inside a rule.

    When ``compare_variable`` is set the condition compares two resolved
    variables and ``value`` is ignored.
    """

    rule = models.ForeignKey(Rule, on_delete=models.CASCADE, related_name="conditions", verbose_name="Pravidlo")
    order = models.PositiveSmallIntegerField("Pořadí", default=0)
    variable = models.CharField("Proměnná", max_length=64)
    operator = models.CharField("Operátor", max_length=24, choices=ConditionOperator.choices)
    value = models.JSONField("Hodnota", null=True, blank=True)
    compare_variable = models.CharField("Porovnat s proměnnou", max_length=64, blank=True)
    scope = models.CharField("Rozsah", max_length=8, choices=VariableScope.choices, default=VariableScope.PLAYER)

    class Meta:
        verbose_name = "Podmínka"
        verbose_name_plural = "Podmínky"
        ordering = ("order", "id")

    def clean(self) -> None:
        """Validate referenced variables and the literal value.

        Variables are looked up among built-ins and active custom variables of
        the condition's scope. The literal must match the variable's data type
        and is stored normalised. Ordering operators require numbers.

        Raises:
            ValidationError: On unknown variables, mistyped literals or an
            ordering operator over non-numeric data.
        """
        from clubpoints_app.services.values import coerce
        from clubpoints_app.services.variables import lookup_definition

        left = lookup_definition(self.variable, self.scope)
        if left is None:
            raise ValidationError({"variable": "Neznámá proměnná pro zvolený rozsah."})

        ordering = self.operator not in (ConditionOperator.EQUAL, ConditionOperator.NOT_EQUAL)
        if ordering and left.data_type != VariableDataType.NUMBER:
            raise ValidationError({"operator": "Operátor lze použít jen pro číselné proměnné."})

        if self.compare_variable:
            right = lookup_definition(self.compare_variable, self.scope)
            if right is None:
                raise ValidationError({"compare_variable": "Neznámá proměnná pro zvolený rozsah."})
            if right.data_type != left.data_type:
                raise ValidationError({"compare_variable": "Proměnné mají rozdílný datový typ."})
            return

        try:
            self.value = coerce(self.value, left.data_type).json
        except (TypeError, ValueError):
            raise ValidationError({"value": "Hodnota neodpovídá datovému typu proměnné."})

    def __str__(self) -> str:  # pragma: no cover - trivial
        right = self.compare_variable or self.value
        return f"{self.variable} {self.get_operator_display()} {right}"


# --- Profiles --------------------------------------------------------------


class RulesProfile(models.Model):
    """Club-owned bundle of rules with per-rule overrides.

    At most one profile per club is the club default; saving a profile as
    default clears the flag on the club's other profiles in the same
    transaction.
    """

    club = models.ForeignKey(
        "clubpoints_app.Club", on_delete=models.CASCADE, related_name="rules_profiles", verbose_name="Klub"
    )
    name = models.CharField("Název", max_length=120)
    description = models.TextField("Popis", blank=True)
    is_club_default = models.BooleanField("Výchozí profil klubu", default=False)
    is_active = models.BooleanField("Aktivní", default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Profil pravidel"
        verbose_name_plural = "Profily pravidel"
        ordering = ("club", "-is_club_default", "name")
        constraints = [
            models.UniqueConstraint(fields=["club", "name"], name="uniq_profile_name_per_club"),
            models.UniqueConstraint(
                fields=["club"], condition=Q(is_club_default=True), name="uniq_club_default_profile"
            ),
        ]

    def save(self, *args: Any, **kwargs: Any) -> None:
        """Persist the profile, unsetting any previous default of the club."""
        with transaction.atomic():
            if self.is_club_default and self.club_id:
                (
                    RulesProfile.objects.filter(club_id=self.club_id, is_club_default=True)
                    .exclude(pk=self.pk)
                    .update(is_club_default=False)
                )
            super().save(*args, **kwargs)

    def __str__(self) -> str:  # pragma: no cover - trivial
        suffix = " (výchozí)" if self.is_club_default else ""
        return f"{self.name}{suffix}"


class RulesProfileRule(models.Model):
    """Rule membership in a profile.

    ``custom_points`` overrides ``Rule.points_awarded`` when set; disabled
    entries are excluded from evaluation.
    """

    profile = models.ForeignKey(RulesProfile, on_delete=models.CASCADE, related_name="rules", verbose_name="Profil")
    rule = models.ForeignKey(Rule, on_delete=models.PROTECT, related_name="profile_rules", verbose_name="Pravidlo")
    custom_points = models.DecimalField("Vlastní body", max_digits=8, decimal_places=2, null=True, blank=True)
    is_enabled = models.BooleanField("Povoleno", default=True)
    order = models.PositiveSmallIntegerField("Pořadí", default=0)

    class Meta:
        verbose_name = "Pravidlo v profilu"
        verbose_name_plural = "Pravidla v profilu"
        ordering = ("order", "id")
        constraints = [
            models.UniqueConstraint(fields=["profile", "rule"], name="uniq_profile_rule"),
        ]

    @property
    def effective_points(self):
        """``custom_points`` when set, else the rule's own points."""
        return self.custom_points if self.custom_points is not None else self.rule.points_awarded

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.profile} – {self.rule}"
